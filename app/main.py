import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.core.config import settings
from app.core.errors import ServiceError
from app.core.exception_handlers import (
    http_exception_handler,
    service_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.core.rate_limit import limiter
from app.schemas.response import ValidationErrorResponse, HTTPErrorResponse

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables on startup
    from sqlmodel import SQLModel
    from app.db.session import engine
    from app.models import transaction, user, wallet  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    logger.info(f"{settings.PROJECT_NAME} started")
    yield
    await engine.dispose()

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    # Also renders slowapi RateLimitExceeded as a 429 envelope
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
    responses={
        400: {"model": ValidationErrorResponse, "description": "Validation Error"},
        401: {"model": HTTPErrorResponse, "description": "Unauthorized"},
        404: {"model": HTTPErrorResponse, "description": "Not Found"},
        500: {"model": HTTPErrorResponse, "description": "Upstream or Database Failure"},
        503: {"model": HTTPErrorResponse, "description": "Provider Float Exhausted"},
    }
)

app.state.limiter = limiter
register_exception_handlers(app)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_PREFIX)
