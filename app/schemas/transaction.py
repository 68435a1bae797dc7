from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import Field
from sqlmodel import SQLModel
from app.models.enums import TransactionType, TransferStatus

class FundTransferRequest(SQLModel):
    """
    Schema for a bank transfer out of a user's wallet.
    """
    account_number: str = Field(pattern=r"^\d{10}$", description="10-digit NUBAN account number")
    bank_code: str = Field(min_length=1, max_length=10)
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2, description="Amount in naira")
    user_id: int = Field(gt=0)
    reason: Optional[str] = Field(default=None, max_length=255)

    model_config = {
        "json_schema_extra": {
            "example": {
                "account_number": "0123456789",
                "bank_code": "058",
                "amount": "2500.00",
                "user_id": 1,
                "reason": "Rent"
            }
        }
    }

class TransferRead(SQLModel):
    reference: str
    user_id: int
    amount: Decimal
    account_number: str
    bank_code: str
    status: TransferStatus
    account_name: Optional[str] = None
    recipient_code: Optional[str] = None
    transfer_code: Optional[str] = None
    bank_name: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class TransactionRead(SQLModel):
    id: int
    user_id: Optional[int] = None
    reference: Optional[str] = None
    recipient_code: Optional[str] = None
    transfer_code: Optional[str] = None
    amount: Decimal
    transaction_type: TransactionType
    narration: Optional[str] = None
    bank: Optional[str] = None
    bank_code: Optional[str] = None
    account_name: Optional[str] = None
    customer_code: Optional[str] = None
    created_at: datetime
