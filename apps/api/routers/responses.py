"""Uniform response envelope shared by every route."""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ApiResponse(BaseModel):
    status_code: int
    data: Any = None
    message: str = "Success"
    success: bool = True


def envelope(status_code: int, data: Any = None, message: str = "Success") -> dict:
    payload = ApiResponse(
        status_code=status_code,
        data=data,
        message=message,
        success=status_code < 400,
    )
    return jsonable_encoder(payload)


def api_response(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    """Wrap ``data`` in the envelope."""
    return JSONResponse(status_code=status_code, content=envelope(status_code, data, message))


def error_response(status_code: int, message: str, data: Any = None, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(status_code, data, message), headers=headers)
