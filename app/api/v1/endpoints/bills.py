from decimal import Decimal
from typing import Any, Dict, List
from fastapi import APIRouter, Request

from app.api.deps import DojahDep, SessionDep
from app.core.rate_limit import limiter
from app.schemas.bill import AirtimePurchaseRequest, DataPurchaseRequest
from app.schemas.dojah import DataPlan
from app.schemas.response import APIResponse
from app.schemas.transaction import TransactionRead
from app.services.bills import BillPaymentService

router = APIRouter()

def _purchase_result(entity, entry) -> Dict[str, Any]:
    return {
        "purchase": entity.model_dump(),
        "transaction": TransactionRead.model_validate(entry, from_attributes=True),
    }

@router.post("/airtime_purchase", response_model=APIResponse[Dict[str, Any]])
@limiter.limit("10/minute")
async def airtime_purchase(request: Request, session: SessionDep, dojah: DojahDep, purchase_in: AirtimePurchaseRequest) -> Any:
    entity, entry = await BillPaymentService(session, dojah).purchase_airtime(purchase_in)
    return APIResponse(message="Airtime purchase successful", result=_purchase_result(entity, entry))

@router.post("/data_purchase", response_model=APIResponse[Dict[str, Any]])
@limiter.limit("10/minute")
async def data_purchase(request: Request, session: SessionDep, dojah: DojahDep, purchase_in: DataPurchaseRequest) -> Any:
    """
    Buy a data bundle; the wallet is charged the catalog price of the plan.
    """
    entity, entry = await BillPaymentService(session, dojah).purchase_data(purchase_in)
    return APIResponse(message="Data purchase successful", result=_purchase_result(entity, entry))

@router.get("/data_plans", response_model=APIResponse[List[DataPlan]])
async def data_plans(dojah: DojahDep) -> Any:
    plans = await dojah.list_data_plans()
    return APIResponse(message="Data plans retrieved", result=plans)

@router.get("/float_balance", response_model=APIResponse[Dict[str, Decimal]])
async def float_balance(dojah: DojahDep) -> Any:
    balance = await dojah.fetch_float_balance()
    return APIResponse(message="Float balance retrieved", result={"wallet_balance": balance})
