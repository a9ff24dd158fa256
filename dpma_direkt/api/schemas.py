import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Any | None = None


class ApiEnvelope(BaseModel):
    success: bool
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    data: Any | None = None
    error: ErrorBody | None = None


def ok(data: Any) -> dict[str, Any]:
    return ApiEnvelope(success=True, data=data).model_dump(mode="json", exclude_none=True)


def fail(code: str, message: str, details: Any | None = None) -> dict[str, Any]:
    envelope = ApiEnvelope(success=False, error=ErrorBody(code=code, message=message, details=details))
    return envelope.model_dump(mode="json", exclude_none=True)


class TermValidationRequest(BaseModel):
    term: str | None = None
    class_number: int | None = None
    nice_classes: list[dict[str, Any]] | None = None


class TaskAccepted(BaseModel):
    task_id: str
    status: str = "PENDING"
