"""Shared helpers for database error handling."""

from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

MYSQL_LOCK_NOWAIT_CODE = 3572
MYSQL_DUPLICATE_ENTRY_CODE = 1062


def _error_code(exc: SQLAlchemyError) -> int | None:
    orig = getattr(exc, "orig", None)
    if orig and getattr(orig, "args", None):
        try:
            return int(orig.args[0])
        except (TypeError, ValueError):
            return None
    return None


def database_error_message(exc: SQLAlchemyError) -> str:
    """Raw engine message, without SQLAlchemy's statement/parameter trailer.

    Clients pattern-match it (``Duplicate entry``, ``UNIQUE constraint failed``)
    to show a friendly text, so it is passed through untouched.
    """

    orig = getattr(exc, "orig", None)
    if orig is None:
        return str(exc)
    args = getattr(orig, "args", None)
    # aiomysql/pymysql errors carry (code, message)
    if args and len(args) >= 2 and isinstance(args[1], str):
        return args[1]
    return str(orig)


def is_duplicate_key(exc: SQLAlchemyError) -> bool:
    if not isinstance(exc, IntegrityError):
        return False
    if _error_code(exc) == MYSQL_DUPLICATE_ENTRY_CODE:
        return True
    message = database_error_message(exc).lower()
    return "duplicate entry" in message or "unique constraint failed" in message


def raise_on_lock_conflict(exc: OperationalError) -> None:
    """Translate lock-nowait conflicts into user-friendly HTTP errors."""

    message = database_error_message(exc).lower()
    if (
        _error_code(exc) == MYSQL_LOCK_NOWAIT_CODE
        or "could not obtain lock" in message
        or "database is locked" in message
    ):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Registro bloqueado por outra requisição. Tente novamente.",
        ) from exc
    raise exc
