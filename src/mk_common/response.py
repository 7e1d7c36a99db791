"""Unified API response wrapper.

All API endpoints return this format:
{
    "code": 0,           // 0=success, non-0=error code
    "message": "success",
    "error_kind": null,  // ErrorKind value on error
    "data": { ... },     // null on error
    "timestamp": "...",
    "request_id": "..."
}

Monetary values inside `data` are decimal strings ("17.20"), never floats.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    error_kind: str | None = None
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: Any = None) -> ApiResponse:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return ApiResponse(code=0, message="success", data=data)


def error_response(code: int, message: str, kind: str | None = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, error_kind=kind, data=None)
