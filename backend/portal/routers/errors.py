"""Translate data-access errors into HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException

from portal.models.schemas import ErrorDetail
from portal.services.errors import AuthError, PersistenceError


def to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, AuthError):
        return HTTPException(
            status_code=401,
            detail=ErrorDetail(code=error.code, message=error.message).model_dump(),
        )
    if isinstance(error, PersistenceError):
        return HTTPException(
            status_code=404 if error.code == "NOT_FOUND" else 500,
            detail=ErrorDetail(
                code=error.code,
                message=error.message,
                details=error.to_details(),
            ).model_dump(),
        )
    return HTTPException(
        status_code=500,
        detail=ErrorDetail(code="INTERNAL_ERROR", message=str(error)).model_dump(),
    )
