import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import (
    InsufficientLocalBalance,
    InsufficientProviderFloat,
    NotFoundError,
    ReconciliationGap,
)
from app.models.enums import OPEN_TRANSFER_STATES, TransactionType
from app.models.transaction import TransferAttempt, UserTransaction
from app.models.wallet import Wallet
from app.services.notifications import dispatch_float_alert
from app.services.provider import ProviderClient
from app.utils.clock import utcnow
from app.utils.money import to_major

logger = logging.getLogger(__name__)

@dataclass
class SpendOutcome:
    """
    What an external purchase returns to the ledger: the provider result to
    hand back to the client, the reference to record, and extra ledger columns.
    """
    result: Any
    reference: Optional[str]
    details: Dict[str, Any] = field(default_factory=dict)

class LedgerService:
    """
    Sole writer of wallet balances and ledger rows.

    Every balance change snapshots `previous_balance` and inserts its ledger
    row in the same database transaction. Debits use a conditional update so
    concurrent spends can never take a wallet below zero.

    Spendable balance is `current_balance` less the amounts of open transfer
    attempts, which hold their funds until they are recorded or fail.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _primary_wallet(self, user_id: int, *, for_update: bool = False) -> Wallet:
        # A user's debits draw on their oldest live wallet
        query = (
            select(Wallet)
            .where(Wallet.user_id == user_id, Wallet.deleted == False)  # noqa: E712
            .order_by(Wallet.wallet_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        wallet = result.scalars().first()
        if not wallet:
            raise NotFoundError(f"No wallet found for user {user_id}")
        return wallet

    async def _wallet_by_customer_code(self, customer_code: str, *, for_update: bool = False) -> Wallet:
        query = (
            select(Wallet)
            .where(Wallet.customer_code == customer_code, Wallet.deleted == False)  # noqa: E712
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        wallet = result.scalars().first()
        if not wallet:
            raise NotFoundError(f"No wallet found for customer {customer_code}")
        return wallet

    async def held_amount(self, user_id: int) -> Decimal:
        result = await self.session.execute(
            select(func.coalesce(func.sum(TransferAttempt.amount), 0))
            .where(TransferAttempt.user_id == user_id, TransferAttempt.status.in_(list(OPEN_TRANSFER_STATES)))
        )
        return to_major(result.scalar_one())

    async def check_sufficient_balance(
        self, user_id: int, amount: Decimal, *, for_update: bool = False
    ) -> Tuple[bool, Decimal]:
        """
        Returns whether the spendable balance covers `amount`, and that balance.

        With `for_update` the wallet row stays locked until the session's
        transaction ends, so no other spend can pass its guard meanwhile.
        """
        wallet = await self._primary_wallet(user_id, for_update=for_update)
        available = wallet.current_balance - await self.held_amount(user_id)
        return available >= to_major(amount), to_major(available)

    async def require_sufficient_balance(self, user_id: int, amount: Decimal, *, for_update: bool = False) -> Decimal:
        sufficient, available = await self.check_sufficient_balance(user_id, amount, for_update=for_update)
        if not sufficient:
            raise InsufficientLocalBalance(available)
        return available

    async def check_provider_float(self, provider: ProviderClient, amount: Decimal) -> bool:
        """
        Compare the provider's own prepaid balance against the spend.

        An insufficient float queues an operator alert.
        """
        float_balance = await provider.fetch_float_balance()
        if float_balance < to_major(amount):
            logger.warning(f"{provider.provider_name} float {float_balance} cannot cover {amount}")
            dispatch_float_alert(provider.provider_name, float_balance, to_major(amount))
            return False
        return True

    async def require_provider_float(self, provider: ProviderClient, amount: Decimal) -> None:
        if not await self.check_provider_float(provider, amount):
            raise InsufficientProviderFloat()

    async def record_debit(
        self,
        user_id: int,
        amount: Decimal,
        reference: Optional[str],
        narration: str,
        **details: Any,
    ) -> UserTransaction:
        amount = to_major(amount)
        try:
            wallet = await self._primary_wallet(user_id, for_update=True)
            result = await self.session.execute(
                update(Wallet)
                .where(Wallet.wallet_id == wallet.wallet_id, Wallet.current_balance >= amount)
                .values(
                    previous_balance=Wallet.current_balance,
                    current_balance=Wallet.current_balance - amount,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                wallet = await self._primary_wallet(user_id)
                raise InsufficientLocalBalance(wallet.current_balance)

            entry = UserTransaction(
                user_id=user_id,
                reference=reference,
                amount=amount,
                transaction_type=TransactionType.DEBIT,
                narration=narration,
                customer_code=wallet.customer_code,
                **details,
            )
            self.session.add(entry)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Debited {amount} from wallet {wallet.wallet_id} (user {user_id}, reference {reference})")
        return entry

    async def settle_debit(
        self,
        user_id: int,
        amount: Decimal,
        reference: Optional[str],
        narration: str,
        **details: Any,
    ) -> UserTransaction:
        """
        Record a debit the provider has already executed.

        Any failure here means money left upstream without a ledger row, so it
        is raised as a reconciliation gap and never retried.
        """
        try:
            return await self.record_debit(user_id, amount, reference, narration, **details)
        except Exception as e:
            logger.error(
                f"RECONCILIATION GAP: provider debit not recorded locally "
                f"(user {user_id}, amount {amount}, reference {reference}, narration {narration!r}): {e!r}"
            )
            raise ReconciliationGap(reference, to_major(amount), user_id, e) from e

    async def _already_recorded(self, reference: str) -> bool:
        existing = await self.session.execute(
            select(UserTransaction.id).where(UserTransaction.reference == reference)
        )
        return existing.first() is not None

    async def record_credit(
        self,
        customer_code: str,
        amount: Decimal,
        reference: str,
        *,
        bank: Optional[str] = None,
        account_name: Optional[str] = None,
        paid_at: Optional[datetime] = None,
        narration: str = "Wallet funding",
    ) -> Optional[UserTransaction]:
        """
        Credit the wallet owning `customer_code`.

        Returns None when `reference` was already recorded, leaving the
        balance untouched.
        """
        amount = to_major(amount)
        try:
            if await self._already_recorded(reference):
                logger.info(f"Credit {reference} already recorded, skipping")
                return None

            wallet = await self._wallet_by_customer_code(customer_code, for_update=True)
            entry = UserTransaction(
                user_id=wallet.user_id,
                reference=reference,
                amount=amount,
                transaction_type=TransactionType.CREDIT,
                narration=narration,
                bank=bank,
                account_name=account_name,
                customer_code=customer_code,
                created_at=paid_at or utcnow(),
            )
            self.session.add(entry)
            try:
                await self.session.flush()
            except IntegrityError:
                # Same reference committed by a concurrent delivery
                await self.session.rollback()
                logger.info(f"Credit {reference} recorded concurrently, skipping")
                return None

            await self.session.execute(
                update(Wallet)
                .where(Wallet.wallet_id == wallet.wallet_id)
                .values(
                    previous_balance=Wallet.current_balance,
                    current_balance=Wallet.current_balance + amount,
                )
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Credited {amount} to wallet {wallet.wallet_id} (customer {customer_code}, reference {reference})")
        return entry

    async def spend(
        self,
        *,
        user_id: int,
        amount: Decimal,
        float_provider: ProviderClient,
        purchase: Callable[[], Awaitable[SpendOutcome]],
        narration: str,
    ) -> Tuple[SpendOutcome, UserTransaction]:
        """
        Outbound spend: local balance guard, provider float guard, the
        external purchase, then the ledger debit.

        The wallet row is locked from the balance guard until the debit
        commits; a failed guard or purchase rolls back and writes nothing.
        """
        try:
            await self.require_sufficient_balance(user_id, amount, for_update=True)
            await self.require_provider_float(float_provider, amount)
            outcome = await purchase()
        except Exception:
            await self.session.rollback()
            raise
        entry = await self.settle_debit(user_id, amount, outcome.reference, narration, **outcome.details)
        return outcome, entry
