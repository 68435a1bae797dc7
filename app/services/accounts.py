import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core import security
from app.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.core.config import settings
from app.models.user import User
from app.models.wallet import Wallet
from app.schemas.user import ResetPasswordRequest, UserCreate
from app.services.paystack import PaystackService

logger = logging.getLogger(__name__)

def split_fullname(fullname: str) -> Tuple[str, str]:
    first, _, rest = fullname.strip().partition(" ")
    return first, rest.strip()

async def get_user(session: AsyncSession, user_id: int) -> User:
    result = await session.execute(
        select(User).where(User.user_id == user_id, User.deleted == False)  # noqa: E712
    )
    user = result.scalars().first()
    if not user:
        raise NotFoundError(f"No user found with id {user_id}")
    return user

async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(
        select(User).where(User.email == email, User.deleted == False)  # noqa: E712
    )
    return result.scalars().first()

async def create_user(session: AsyncSession, user_in: UserCreate) -> User:
    if await get_user_by_email(session, user_in.email):
        raise ConflictError("The user with this email already exists in the system.")

    user_data = user_in.model_dump(exclude={"password", "password_2"})
    user = User(**user_data, password=security.get_password_hash(user_in.password))
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("The user with this email already exists in the system.")
    await session.refresh(user)
    logger.info(f"User {user.user_id} registered")
    return user

async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(session, email)
    if not user or not security.verify_password(password, user.password):
        raise AuthenticationError()
    return user

async def reset_password(session: AsyncSession, request: ResetPasswordRequest) -> User:
    user = await get_user(session, request.user_id)
    if user.email != request.email or not security.verify_password(request.previous_password, user.password):
        raise AuthenticationError("Previous password is incorrect")
    if request.previous_password == request.new_password:
        raise ValidationError("New password must differ from the previous password")

    user.password = security.get_password_hash(request.new_password)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"Password reset for user {user.user_id}")
    return user

async def list_wallets(session: AsyncSession, user_id: int) -> List[Wallet]:
    result = await session.execute(
        select(Wallet)
        .where(Wallet.user_id == user_id, Wallet.deleted == False)  # noqa: E712
        .order_by(Wallet.wallet_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())

async def provision_wallet(session: AsyncSession, paystack: PaystackService, user_id: int) -> Wallet:
    """
    Create the Paystack customer and dedicated virtual account backing a
    new wallet.

    Paystack returns the same customer code for an email it already knows,
    so a second request for the same user is refused before a second
    account is opened.
    """
    user = await get_user(session, user_id)
    first_name, last_name = split_fullname(user.fullname)
    customer = await paystack.create_customer(
        email=user.email, first_name=first_name, last_name=last_name, phone=user.phone
    )

    result = await session.execute(
        select(Wallet.wallet_id).where(Wallet.customer_code == customer.customer_code)
    )
    if result.first() is not None:
        raise ConflictError("A wallet already exists for this user")

    account = await paystack.create_dedicated_account(customer.customer_code, settings.PAYSTACK_PREFERRED_BANK)
    wallet = Wallet(
        user_id=user.user_id,
        customer_code=account.customer.customer_code,
        dva_id=account.id,
        bank_name=account.bank.name,
        bank_id=account.bank.id,
        bank_slug=account.bank.slug,
        account_name=account.account_name,
        account_number=account.account_number,
    )
    session.add(wallet)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("A wallet already exists for this user")
    await session.refresh(wallet)
    logger.info(f"Wallet {wallet.wallet_id} provisioned for user {user.user_id} ({wallet.bank_name} {wallet.account_number})")
    return wallet

async def record_kyc_verdict(session: AsyncSession, user_id: int, matched: bool) -> User:
    user = await get_user(session, user_id)
    if matched and not user.biometric_kyc:
        user.biometric_kyc = True
        session.add(user)
        await session.commit()
        await session.refresh(user)
    return user
