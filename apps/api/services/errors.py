"""Client-facing error taxonomy."""

from typing import Any, Dict, Optional

from fastapi import HTTPException


class ApiError(HTTPException):
    """HTTP error carrying a status code and a human-readable message."""

    status_code_default = 500

    def __init__(self, message: str, status_code: Optional[int] = None, headers: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=message, headers=headers)
        self.message = message


class InvalidArgumentError(ApiError):
    status_code_default = 400


class UnauthorizedError(ApiError):
    status_code_default = 401


class ForbiddenError(ApiError):
    status_code_default = 403


class NotFoundError(ApiError):
    status_code_default = 404


class ConflictError(ApiError):
    status_code_default = 409
