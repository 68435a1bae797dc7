from typing import Any, List
from fastapi import APIRouter, Request, status

from app.api.deps import PaystackDep, SessionDep
from app.core.rate_limit import limiter
from app.schemas.paystack import Bank
from app.schemas.response import APIResponse
from app.schemas.user import UserRead
from app.schemas.wallet import UserWalletsRead, WalletCreate, WalletRead
from app.services import accounts

router = APIRouter()

@router.post("", response_model=APIResponse[WalletRead], status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def create_wallet(request: Request, session: SessionDep, paystack: PaystackDep, wallet_in: WalletCreate) -> Any:
    """
    Provision a wallet backed by a Paystack dedicated virtual account.
    """
    wallet = await accounts.provision_wallet(session, paystack, wallet_in.user_id)
    return APIResponse(message="Wallet created successfully", result=WalletRead.model_validate(wallet, from_attributes=True))

@router.get("/banks", response_model=APIResponse[List[Bank]])
@limiter.limit("20/minute")
async def list_banks(request: Request, paystack: PaystackDep) -> Any:
    banks = await paystack.list_banks()
    return APIResponse(message="Banks retrieved", result=banks)

@router.get("/{user_id}", response_model=APIResponse[UserWalletsRead])
async def get_wallets(user_id: int, session: SessionDep) -> Any:
    user = await accounts.get_user(session, user_id)
    wallets = await accounts.list_wallets(session, user_id)
    result = UserWalletsRead(
        user=UserRead.model_validate(user, from_attributes=True),
        wallets=[WalletRead.model_validate(w, from_attributes=True) for w in wallets],
    )
    return APIResponse(message="Wallet details retrieved", result=result)
