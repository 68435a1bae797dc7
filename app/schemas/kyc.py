from pydantic import Field
from sqlmodel import SQLModel

class PhotoIdVerificationRequest(SQLModel):
    """
    Base64 images forwarded to the KYC provider.
    """
    photoid_image: str = Field(min_length=1)
    selfie_image: str = Field(min_length=1)
    user_id: int = Field(gt=0)
