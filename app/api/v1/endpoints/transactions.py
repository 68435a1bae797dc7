from typing import Annotated, Any, Dict, List
from fastapi import APIRouter, Depends, Request
from sqlmodel import select

from app.api.deps import PageParams, PaystackDep, SessionDep
from app.core.rate_limit import limiter
from app.models.transaction import UserTransaction
from app.schemas.response import APIResponse
from app.schemas.transaction import FundTransferRequest, TransactionRead, TransferRead
from app.services import accounts
from app.services.transfer import TransferWorkflow, get_transfer_attempt

router = APIRouter()

@router.post("/transfer", response_model=APIResponse[Dict[str, Any]])
@limiter.limit("10/minute")
async def fund_transfer(request: Request, session: SessionDep, paystack: PaystackDep, transfer_in: FundTransferRequest) -> Any:
    """
    Send money from the user's wallet to a bank account.

    The wallet is debited only after Paystack confirms the transfer.
    """
    attempt, entry = await TransferWorkflow(session, paystack).execute(transfer_in)
    return APIResponse(
        message="Transfer successful",
        result={
            "transfer": TransferRead.model_validate(attempt, from_attributes=True),
            "transaction": TransactionRead.model_validate(entry, from_attributes=True),
        },
    )

@router.get("/transfer/{reference}", response_model=APIResponse[TransferRead])
async def read_transfer(reference: str, session: SessionDep) -> Any:
    attempt = await get_transfer_attempt(session, reference)
    return APIResponse(message="Transfer retrieved", result=TransferRead.model_validate(attempt, from_attributes=True))

@router.get("/history/{user_id}", response_model=APIResponse[List[TransactionRead]])
async def transaction_history(
    user_id: int,
    session: SessionDep,
    paging: Annotated[PageParams, Depends()],
) -> Any:
    """
    Ledger entries for a user, newest first.
    """
    await accounts.get_user(session, user_id)
    result = await session.execute(
        select(UserTransaction)
        .where(UserTransaction.user_id == user_id)
        .order_by(UserTransaction.created_at.desc(), UserTransaction.id.desc())
        .offset(paging.skip)
        .limit(paging.limit)
    )
    entries = [TransactionRead.model_validate(t, from_attributes=True) for t in result.scalars().all()]
    return APIResponse(message="Transaction history retrieved", result=entries)

@router.get("/customer/{email_or_code}", response_model=APIResponse[Dict[str, Any]])
async def fetch_customer(email_or_code: str, paystack: PaystackDep) -> Any:
    customer = await paystack.fetch_customer(email_or_code)
    return APIResponse(message="Customer retrieved", result=customer)

@router.get("/dedicated_account/{dedicated_account_id}", response_model=APIResponse[Dict[str, Any]])
async def fetch_dedicated_account(dedicated_account_id: int, paystack: PaystackDep) -> Any:
    account = await paystack.fetch_dedicated_account(dedicated_account_id)
    return APIResponse(message="Dedicated account retrieved", result=account)
