"""Uniform ``{status, message, data}`` response envelope."""

from __future__ import annotations

from typing import Any, Literal

from fastapi.responses import JSONResponse
from pydantic import BaseModel

EnvelopeStatus = Literal["success", "fail", "error"]


class ApiResponse(BaseModel):
    status: EnvelopeStatus
    message: str
    data: Any | None = None


def status_for_code(status_code: int) -> EnvelopeStatus:
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "fail"
    return "success"


def success(message: str, data: Any | None = None) -> ApiResponse:
    return ApiResponse(status="success", message=message, data=data)


def error_response(
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    envelope = ApiResponse(status=status_for_code(status_code), message=message)
    return JSONResponse(
        envelope.model_dump(),
        status_code=status_code,
        headers=headers,
    )
