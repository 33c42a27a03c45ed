"""Error types raised by the data-access layer."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class AuthError(Exception):
    """Raised when the session lookup fails or an identity is required but absent."""

    def __init__(self, message: str, code: str = "AUTH_ERROR") -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class PersistenceError(Exception):
    """Raised when a remote read or write fails.

    Carries whatever diagnostics the database driver exposed so they can be
    logged and returned to the caller.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "PERSISTENCE_ERROR",
        details: str | None = None,
        hint: str | None = None,
        conflict: bool = False,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details
        self.hint = hint
        # Unique/primary key violation on insert
        self.conflict = conflict
        super().__init__(message)

    @classmethod
    def from_sqlalchemy(cls, exc: SQLAlchemyError) -> PersistenceError:
        """Build from a SQLAlchemy error, pulling driver-level fields when present."""
        orig = getattr(exc, "orig", None)
        driver_error = getattr(orig, "__cause__", None) or orig
        code = (
            getattr(driver_error, "sqlstate", None)
            or getattr(orig, "pgcode", None)
            or getattr(exc, "code", None)
            or "PERSISTENCE_ERROR"
        )
        message = str(orig) if orig is not None else str(exc)
        return cls(
            message.strip().splitlines()[0] if message.strip() else type(exc).__name__,
            code=code,
            details=getattr(driver_error, "detail", None),
            hint=getattr(driver_error, "hint", None),
            conflict=isinstance(exc, IntegrityError),
        )

    def to_details(self) -> dict:
        return {"details": self.details, "hint": self.hint}


class ParseError(ValueError):
    """Raised inside the normalizer when a JSON-encoded field cannot be decoded.

    Never escapes the normalizer: the field is dropped and the error logged.
    """


def log_error(logger: logging.Logger, context: str, error: Exception) -> None:
    """Log an error with every diagnostic field it carries."""
    logger.error("Error in %s: %s", context, error)
    if isinstance(error, PersistenceError):
        logger.error("Code: %s", error.code)
        if error.details:
            logger.error("Details: %s", error.details)
        if error.hint:
            logger.error("Hint: %s", error.hint)
