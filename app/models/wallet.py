from datetime import datetime
from decimal import Decimal
from sqlmodel import SQLModel, Field
from app.utils.clock import utcnow

class Wallet(SQLModel, table=True):
    """
    Wallet backed by a provider dedicated virtual account.

    Balances are in major units. Only the ledger service writes
    `current_balance` / `previous_balance`, always together.
    """
    __tablename__ = "wallet"

    wallet_id: int | None = Field(default=None, primary_key=True, description="Unique identifier for the wallet")
    user_id: int = Field(foreign_key="users.user_id", index=True, description="ID of the wallet owner")
    customer_code: str = Field(unique=True, index=True, description="Provider customer code")
    dva_id: int | None = Field(default=None, description="Provider dedicated account ID")
    bank_name: str | None = Field(default=None, description="Name of the bank issuing the account")
    bank_id: int | None = Field(default=None, description="Provider bank ID")
    bank_slug: str | None = Field(default=None, description="Provider bank slug")
    account_name: str | None = Field(default=None, description="Name on the dedicated account")
    account_number: str | None = Field(default=None, description="Dedicated account number")
    current_balance: Decimal = Field(default=Decimal("0.00"), max_digits=18, decimal_places=2, description="Current wallet balance")
    previous_balance: Decimal = Field(default=Decimal("0.00"), max_digits=18, decimal_places=2, description="Balance before the last mutation")
    deleted: bool = Field(default=False, description="Soft-delete flag")
    created_at: datetime = Field(default_factory=utcnow)
