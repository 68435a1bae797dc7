from decimal import Decimal
from typing import List, Optional
from pydantic import Field
from app.schemas.paystack import ProviderModel

class DojahBalance(ProviderModel):
    wallet_balance: Decimal

class PurchaseLine(ProviderModel):
    destination: Optional[str] = None
    status: Optional[str] = None

class PurchaseEntity(ProviderModel):
    """
    Result of an airtime or data purchase.
    """
    data: List[PurchaseLine] = Field(default_factory=list)
    reference_id: Optional[str] = None

class DataPlan(ProviderModel):
    plan: str
    amount: Decimal
    description: Optional[str] = None

class SelfieVerdict(ProviderModel):
    match: bool = False
    confidence_value: Optional[float] = None
    age_range: Optional[str] = None
    card_type: Optional[str] = None

class PhotoIdVerdict(ProviderModel):
    selfie: SelfieVerdict = Field(default_factory=SelfieVerdict)
