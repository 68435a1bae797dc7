from typing import Any
from fastapi import APIRouter, Request

from app.api.deps import SessionDep
from app.core import security
from app.core.rate_limit import limiter
from app.schemas.response import APIResponse
from app.schemas.token import LoginResult
from app.schemas.user import LoginRequest, ResetPasswordRequest, UserRead
from app.services import accounts

router = APIRouter()

@router.post("/login", response_model=APIResponse[LoginResult])
@limiter.limit("10/minute")
async def login_access_token(request: Request, session: SessionDep, form_data: LoginRequest) -> Any:
    user = await accounts.authenticate(session, form_data.email, form_data.password)
    token = LoginResult(
        access_token=security.create_access_token(user.user_id),
        token_type="bearer",
        user=UserRead.model_validate(user, from_attributes=True),
    )
    return APIResponse(message="Login successful", result=token)

@router.post("/reset_password", response_model=APIResponse[UserRead])
@limiter.limit("5/minute")
async def reset_password(request: Request, session: SessionDep, reset_in: ResetPasswordRequest) -> Any:
    """
    Change a password after re-checking the previous one.
    """
    user = await accounts.reset_password(session, reset_in)
    return APIResponse(message="Password reset successful", result=UserRead.model_validate(user, from_attributes=True))
