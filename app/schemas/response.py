from typing import Generic, Literal, TypeVar, Optional, List
from pydantic import BaseModel

T = TypeVar("T")

class APIResponse(BaseModel, Generic[T]):
    """
    Standard API response envelope.
    """
    status: Literal["success", "error"] = "success"
    message: str = "success"
    result: Optional[T] = None

class ValidationErrorDetail(BaseModel):
    """
    Structure for a single validation error.
    """
    field: str
    message: str

class ValidationErrorResponse(BaseModel):
    """
    Response schema for validation errors (400 Bad Request).
    """
    status: Literal["error"] = "error"
    message: str = "Validation Error"
    result: List[ValidationErrorDetail]

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "error",
                "message": "Validation Error",
                "result": [
                    {
                        "field": "email",
                        "message": "value is not a valid email address; The email address is not valid. It must have exactly one @-sign."
                    },
                    {
                        "field": "user_id",
                        "message": "Field required"
                    }
                ]
            }
        }
    }

class HTTPErrorResponse(BaseModel):
    """
    Standard schema for other HTTP errors (401, 404, 409, 500, 503).
    """
    status: Literal["error"] = "error"
    message: str
    result: dict | None = None
