import logging
import uuid
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ValidationError
from app.models.enums import Narration
from app.models.transaction import UserTransaction
from app.schemas.bill import AirtimePurchaseRequest, DataPurchaseRequest
from app.schemas.dojah import DataPlan, PurchaseEntity
from app.services.dojah import DojahService
from app.services.ledger import LedgerService, SpendOutcome

logger = logging.getLogger(__name__)

def _reference(prefix: str, entity: PurchaseEntity) -> str:
    return entity.reference_id or f"{prefix}_{uuid.uuid4().hex}"

class BillPaymentService:
    """
    Airtime and data purchases paid from the user's wallet and settled
    against the Dojah float.
    """

    def __init__(self, session: AsyncSession, dojah: DojahService):
        self.dojah = dojah
        self.ledger = LedgerService(session)

    async def purchase_airtime(self, request: AirtimePurchaseRequest) -> Tuple[PurchaseEntity, UserTransaction]:
        async def purchase() -> SpendOutcome:
            entity = await self.dojah.purchase_airtime(amount=request.amount, destination=request.destination)
            return SpendOutcome(result=entity, reference=_reference("air", entity))

        outcome, entry = await self.ledger.spend(
            user_id=request.user_id,
            amount=request.amount,
            float_provider=self.dojah,
            purchase=purchase,
            narration=Narration.AIRTIME,
        )
        logger.info(f"Airtime of {request.amount} sent to {request.destination} for user {request.user_id}")
        return outcome.result, entry

    async def find_plan(self, plan: str) -> DataPlan:
        plans: List[DataPlan] = await self.dojah.list_data_plans()
        for candidate in plans:
            if candidate.plan == plan:
                return candidate
        raise ValidationError(f"Unknown data plan '{plan}'")

    async def purchase_data(self, request: DataPurchaseRequest) -> Tuple[PurchaseEntity, UserTransaction]:
        plan = await self.find_plan(request.plan)
        amount: Decimal = plan.amount

        async def purchase() -> SpendOutcome:
            entity = await self.dojah.purchase_data(plan=plan.plan, destination=request.destination)
            return SpendOutcome(result=entity, reference=_reference("data", entity))

        outcome, entry = await self.ledger.spend(
            user_id=request.user_id,
            amount=amount,
            float_provider=self.dojah,
            purchase=purchase,
            narration=Narration.DATA,
        )
        logger.info(f"Data plan {plan.plan} ({amount}) sent to {request.destination} for user {request.user_id}")
        return outcome.result, entry
