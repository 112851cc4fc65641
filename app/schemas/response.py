from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Envelope for every successful exam, attempt and results response."""
    message: str = Field(..., description="Short outcome message shown to the student.")
    data: Optional[DataType] = Field(None, description="Session view, attempt record or results payload.")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Error code such as NOT_FOUND, SUBMIT_FAILED or INVALID_STATE")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Context such as the attempt or question id")

class ErrorResponse(BaseModel):
    """Body returned for domain, validation and unexpected errors."""
    error: ErrorDetail
    timestamp: str = Field(..., description="ISO 8601 timestamp of error")
    path: str = Field(..., description="Request path that caused the error")
    request_id: Optional[str] = Field(None, description="Matches the X-Request-ID response header")
