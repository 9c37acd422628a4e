from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import (
    ArgumentError,
    CompileError,
    DataError,
    IntegrityError,
    InvalidRequestError,
    NoResultFound,
    ProgrammingError,
    StatementError,
)
from sqlalchemy.orm import Session

from taskboard.core.errors import (
    AppError,
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
)
from taskboard.services.sql_predicates import StoreQueryError

_LOG = logging.getLogger("taskboard.store")

UNIQUE_VIOLATION_CODES = {"23505"}
FOREIGN_KEY_VIOLATION_CODES = {"23503"}
INVALID_QUERY_MESSAGE = "Invalid query parameters or field names"


def _integrity_error_kind(exc: IntegrityError) -> str:
    orig = getattr(exc, "orig", None)
    code = str(getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None) or "")
    if code in UNIQUE_VIOLATION_CODES:
        return "unique"
    if code in FOREIGN_KEY_VIOLATION_CODES:
        return "foreign_key"
    text = str(orig or exc).lower()
    if "unique" in text or "duplicate key" in text:
        return "unique"
    if "foreign key" in text:
        return "foreign_key"
    return "other"


def translate_store_error(exc: BaseException) -> AppError:
    """Map a store failure to exactly one error of the API taxonomy."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, NoResultFound):
        return NotFoundError("Record not found")
    if isinstance(exc, IntegrityError):
        kind = _integrity_error_kind(exc)
        if kind == "unique":
            return ConflictError("Unique constraint violation")
        if kind == "foreign_key":
            return BadRequestError("Invalid relation or foreign key constraint failed")
        return BadRequestError("Invalid data provided")
    if isinstance(exc, StoreQueryError):
        return BadRequestError(INVALID_QUERY_MESSAGE)
    if isinstance(exc, (DataError, ProgrammingError)):
        return BadRequestError(INVALID_QUERY_MESSAGE)
    if isinstance(exc, (ArgumentError, CompileError, InvalidRequestError)):
        return BadRequestError(INVALID_QUERY_MESSAGE)
    if isinstance(exc, StatementError) and not getattr(exc, "connection_invalidated", False):
        orig = getattr(exc, "orig", None)
        if orig is None or isinstance(orig, (TypeError, ValueError, StoreQueryError)):
            return BadRequestError(INVALID_QUERY_MESSAGE)
    return InternalError("An unexpected error occurred")


@contextmanager
def store_operation(context: str, db: Session | None = None) -> Iterator[None]:
    """Run store calls, rolling back and re-raising failures as API errors."""
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        if db is not None:
            db.rollback()
        error = translate_store_error(exc)
        if error.status_code >= 500:
            _LOG.exception("store operation failed: %s", context)
        else:
            _LOG.warning("store operation rejected: %s (%s: %s)", context, type(exc).__name__, exc)
        raise error from exc
