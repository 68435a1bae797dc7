from datetime import datetime
from pydantic import EmailStr, Field, model_validator
from sqlmodel import SQLModel
from app.schemas.bill import PHONE_PATTERN

MIN_PASSWORD_LENGTH = 4

class LoginRequest(SQLModel):
    """
    Schema for user login request.
    """
    email: EmailStr
    password: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "johndoe@example.com",
                "password": "securepassword123"
            }
        }
    }

class UserCreate(SQLModel):
    fullname: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(pattern=PHONE_PATTERN)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    password_2: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_2:
            raise ValueError("passwords do not match")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "fullname": "John Doe",
                "email": "johndoe@example.com",
                "phone": "+2348012345678",
                "password": "securepassword123",
                "password_2": "securepassword123"
            }
        }
    }

class UserRead(SQLModel):
    user_id: int
    fullname: str
    email: EmailStr
    phone: str
    biometric_kyc: bool
    created_at: datetime

class ResetPasswordRequest(SQLModel):
    user_id: int = Field(gt=0)
    email: EmailStr
    previous_password: str
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("passwords do not match")
        return self
