from typing import Any
from fastapi import APIRouter, status

from app.api.deps import SessionDep
from app.schemas.user import UserCreate, UserRead
from app.schemas.response import APIResponse
from app.services import accounts

router = APIRouter()

@router.post("", response_model=APIResponse[UserRead], status_code=status.HTTP_201_CREATED)
async def create_user(*, session: SessionDep, user_in: UserCreate) -> Any:
    """
    Register a user. The password is stored as a bcrypt hash.
    """
    user = await accounts.create_user(session, user_in)
    return APIResponse(message="User created successfully", result=UserRead.model_validate(user, from_attributes=True))

@router.get("/{user_id}", response_model=APIResponse[UserRead])
async def read_user(user_id: int, session: SessionDep) -> Any:
    user = await accounts.get_user(session, user_id)
    return APIResponse(message="User details retrieved", result=UserRead.model_validate(user, from_attributes=True))
