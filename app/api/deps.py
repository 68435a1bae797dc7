from typing import Annotated
from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.services.dojah import DojahService
from app.services.paystack import PaystackService

class PageParams:
    def __init__(
        self,
        skip: Annotated[int, Query(ge=0, description="Number of entries to skip")] = 0,
        limit: Annotated[int, Query(ge=1, le=100, description="Entries per page")] = 50,
    ):
        self.skip = skip
        self.limit = limit

def get_paystack() -> PaystackService:
    return PaystackService.from_settings()

def get_dojah() -> DojahService:
    return DojahService.from_settings()

SessionDep = Annotated[AsyncSession, Depends(get_db)]
PaystackDep = Annotated[PaystackService, Depends(get_paystack)]
DojahDep = Annotated[DojahService, Depends(get_dojah)]
