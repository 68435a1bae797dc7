from sqlmodel import SQLModel
from app.schemas.user import UserRead

class Token(SQLModel):
    """
    Schema for JWT access token.
    """
    access_token: str
    token_type: str

class LoginResult(Token):
    user: UserRead
