from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import SQLModel, Field
from app.utils.clock import utcnow
from .enums import TransactionType, TransferStatus

class UserTransaction(SQLModel, table=True):
    """
    Append-only ledger entry. Rows are inserted by the ledger service and
    never updated or deleted.
    """
    __tablename__ = "user_transaction"

    id: int | None = Field(default=None, primary_key=True, description="Unique identifier for the ledger entry")
    user_id: Optional[int] = Field(default=None, foreign_key="users.user_id", index=True, description="Owner, when known")
    reference: Optional[str] = Field(default=None, unique=True, index=True, description="Provider reference")
    recipient_code: Optional[str] = Field(default=None, description="Provider transfer recipient code")
    transfer_code: Optional[str] = Field(default=None, description="Provider transfer code")
    amount: Decimal = Field(max_digits=18, decimal_places=2, description="Amount in major units")
    transaction_type: TransactionType = Field(description="debit or credit")
    narration: Optional[str] = Field(default=None, description="Free-text description")
    bank: Optional[str] = Field(default=None, description="Bank name")
    bank_code: Optional[str] = Field(default=None, description="Bank code for transfers")
    account_name: Optional[str] = Field(default=None, description="Counterparty account name")
    customer_code: Optional[str] = Field(default=None, index=True, description="Provider customer code")
    created_at: datetime = Field(default_factory=utcnow)

class TransferAttempt(SQLModel, table=True):
    """
    In-flight marker for the multi-call transfer sequence.

    Written before the first provider call and advanced after each step so an
    interrupted transfer can be reported instead of lost. Until it is recorded
    or fails, its amount is held against the wallet.
    """
    __tablename__ = "transfer_attempt"

    id: int | None = Field(default=None, primary_key=True)
    reference: str = Field(unique=True, index=True, description="Idempotency key sent to the provider")
    user_id: int = Field(foreign_key="users.user_id", index=True)
    amount: Decimal = Field(max_digits=18, decimal_places=2)
    account_number: str
    bank_code: str
    reason: Optional[str] = None
    status: TransferStatus = Field(default=TransferStatus.PENDING)
    account_name: Optional[str] = None
    recipient_code: Optional[str] = None
    transfer_code: Optional[str] = None
    bank_name: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
