from decimal import Decimal
from pydantic import Field
from sqlmodel import SQLModel

PHONE_PATTERN = r"^\+?[0-9\s\-\(\)\.]{10,15}$"

class AirtimePurchaseRequest(SQLModel):
    """
    Schema for an airtime top-up paid from the user's wallet.
    """
    amount: Decimal = Field(gt=0, max_digits=18, decimal_places=2, description="Amount in naira")
    destination: str = Field(pattern=PHONE_PATTERN, description="Recipient phone number")
    user_id: int = Field(gt=0)

    model_config = {
        "json_schema_extra": {
            "example": {
                "amount": "100",
                "destination": "08012345678",
                "user_id": 1
            }
        }
    }

class DataPurchaseRequest(SQLModel):
    """
    Schema for a data bundle purchase; the price comes from the plan catalog.
    """
    destination: str = Field(pattern=PHONE_PATTERN, description="Recipient phone number")
    plan: str = Field(min_length=1)
    user_id: int = Field(gt=0)

    model_config = {
        "json_schema_extra": {
            "example": {
                "destination": "08012345678",
                "plan": "MTN-1GB-30D",
                "user_id": 1
            }
        }
    }
