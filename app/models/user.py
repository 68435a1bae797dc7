from datetime import datetime
from sqlmodel import SQLModel, Field
from app.utils.clock import utcnow
from pydantic import EmailStr

class UserBase(SQLModel):
    """
    Base User model containing shared attributes.
    """
    fullname: str = Field(description="User's full name")
    email: EmailStr = Field(unique=True, index=True, description="User's email address")
    phone: str = Field(description="User's phone number")

class User(UserBase, table=True):
    """
    User database model.

    Users are never hard-deleted; `deleted` hides them from every lookup.
    """
    __tablename__ = "users"

    user_id: int | None = Field(default=None, primary_key=True, description="Unique identifier for the user")
    password: str = Field(description="Hashed version of the user's password")
    deleted: bool = Field(default=False, description="Soft-delete flag")
    biometric_kyc: bool = Field(default=False, description="Whether photo ID verification succeeded")
    created_at: datetime = Field(default_factory=utcnow, description="Timestamp when the user was created")
