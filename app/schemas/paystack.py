from datetime import datetime, timezone
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

class ProviderModel(BaseModel):
    """
    Base for decoded provider payloads; unknown fields are kept so they can be
    passed back to clients untouched.
    """
    model_config = ConfigDict(extra="allow")

class ResolvedAccount(ProviderModel):
    account_number: str
    account_name: str

class TransferRecipient(ProviderModel):
    recipient_code: str
    name: Optional[str] = None

class RecipientBankDetails(ProviderModel):
    account_number: Optional[str] = None
    account_name: Optional[str] = None
    bank_code: Optional[str] = None
    bank_name: Optional[str] = None

class RecipientDetails(ProviderModel):
    recipient_code: Optional[str] = None
    name: Optional[str] = None
    details: Optional[RecipientBankDetails] = None

class InitiatedTransfer(ProviderModel):
    """
    Paystack returns `recipient` either as the numeric recipient ID or as the
    expanded recipient object; both shapes decode here, once.
    """
    transfer_code: str
    reference: Optional[str] = None
    status: Optional[str] = None
    recipient: int | RecipientDetails | None = None

    @property
    def recipient_id(self) -> Optional[int]:
        return self.recipient if isinstance(self.recipient, int) else None

class VerifiedTransfer(ProviderModel):
    status: str
    reference: Optional[str] = None
    transfer_code: Optional[str] = None
    recipient: int | RecipientDetails | None = None

    @property
    def bank_name(self) -> Optional[str]:
        if isinstance(self.recipient, RecipientDetails) and self.recipient.details:
            return self.recipient.details.bank_name
        return None

class BalanceEntry(ProviderModel):
    currency: str
    balance: int

class PaystackCustomer(ProviderModel):
    customer_code: str
    email: Optional[str] = None

class DedicatedAccountBank(ProviderModel):
    name: Optional[str] = None
    id: Optional[int] = None
    slug: Optional[str] = None

class DedicatedAccountCustomer(ProviderModel):
    customer_code: str

class DedicatedAccount(ProviderModel):
    id: int
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    bank: DedicatedAccountBank = Field(default_factory=DedicatedAccountBank)
    customer: DedicatedAccountCustomer

class Bank(ProviderModel):
    name: str
    slug: Optional[str] = None
    code: Optional[str] = None
    longcode: Optional[str] = None
    active: bool = True
    country: Optional[str] = None
    currency: Optional[str] = None
    type: Optional[str] = None
    id: Optional[int] = None

# Webhook payloads

class ChargeCustomer(ProviderModel):
    customer_code: Optional[str] = None
    email: Optional[str] = None

class ChargeAuthorization(ProviderModel):
    bank: Optional[str] = None
    account_name: Optional[str] = None

class ChargeData(ProviderModel):
    status: Optional[str] = None
    reference: str
    amount: int
    paid_at: Optional[datetime] = None
    customer: ChargeCustomer = Field(default_factory=ChargeCustomer)
    authorization: ChargeAuthorization = Field(default_factory=ChargeAuthorization)

    @field_validator("paid_at")
    @classmethod
    def to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

class PaystackEvent(ProviderModel):
    event: str
    data: Any = None

    @property
    def is_successful_charge(self) -> bool:
        return (
            self.event == "charge.success"
            and isinstance(self.data, dict)
            and self.data.get("status") == "success"
        )
