from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import Field
from sqlmodel import SQLModel
from app.schemas.user import UserRead

class WalletCreate(SQLModel):
    """
    Schema for provisioning a dedicated-account wallet.
    """
    user_id: int = Field(gt=0)

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_id": 1
            }
        }
    }

class WalletRead(SQLModel):
    """
    Schema for reading wallet details.
    """
    wallet_id: int
    user_id: int
    customer_code: str
    dva_id: Optional[int] = None
    bank_name: Optional[str] = None
    bank_id: Optional[int] = None
    bank_slug: Optional[str] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    current_balance: Decimal
    previous_balance: Decimal
    created_at: datetime

class UserWalletsRead(SQLModel):
    user: UserRead
    wallets: List[WalletRead]
