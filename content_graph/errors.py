"""
Error taxonomy for the entity graph core.

Hierarchy::

    ContentGraphError
    ├── ValidationError   field value violates a declared rule
    ├── ConflictError     a uniqueness constraint would be violated
    ├── NotFound          the primary target id does not exist
    ├── IntegrityError    a nested reference (e.g. author account) does not exist
    └── StorageError      infrastructure failure (connection loss, timeout)

The repositories raise the most specific kind they can determine; the
services roll back and re-raise, optionally tagging ``context`` with the
sub-operation that failed.  Mapping to HTTP status codes lives in
``content_graph.main``.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import exc as sa_exc

logger = logging.getLogger(__name__)


class ContentGraphError(Exception):
    """Base class for every error raised by the core."""

    def __init__(self, message: str, context: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        data: dict = {"detail": self.message}
        if self.context:
            data["context"] = self.context
        return data


class ValidationError(ContentGraphError):
    """One or more fields violate their declared rules."""

    def __init__(self, errors: dict[str, str], message: str | None = None) -> None:
        self.errors = dict(errors)
        if message is None:
            message = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class ConflictError(ContentGraphError):
    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class NotFound(ContentGraphError):
    def __init__(self, entity: str, entity_id) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class IntegrityError(ContentGraphError):
    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class StorageError(ContentGraphError):
    pass


# ---------------------------------------------------------------------------
# Translation of driver / SQLAlchemy errors
# ---------------------------------------------------------------------------

# SQLSTATE classes shared by asyncpg and psycopg.
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: sa_exc.DBAPIError) -> str | None:
    orig = exc.orig
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    cause = getattr(orig, "__cause__", None)
    return getattr(cause, "sqlstate", None)


def _column_from_message(text: str) -> str | None:
    """
    Extract the column name from a SQLite "UNIQUE constraint failed: t.col"
    message or a PostgreSQL "Key (col)=(value)" detail line.  Composite
    constraints report the first column.
    """
    marker = "constraint failed:"
    if marker in text:
        tail = text.split(marker, 1)[1].strip().split(",")[0].strip()
        return tail.split(".")[-1].split()[0] if tail else None
    if "Key (" in text:
        return text.split("Key (", 1)[1].split(")", 1)[0].split(",")[0].strip()
    return None


def translate_integrity_error(exc: sa_exc.IntegrityError) -> ContentGraphError:
    """Classify a storage-level integrity violation as conflict or dangling reference."""
    text = str(exc.orig)
    lowered = text.lower()
    state = _sqlstate(exc)

    if state == _UNIQUE_VIOLATION or "unique" in lowered or "duplicate key" in lowered:
        field = _column_from_message(text)
        label = field or "value"
        return ConflictError(f"A record with this {label} already exists", field=field)
    if state == _FOREIGN_KEY_VIOLATION or "foreign key" in lowered:
        return IntegrityError("Referenced record does not exist")
    return IntegrityError(f"Integrity constraint violated: {text}")


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """
    Re-raise SQLAlchemy / driver failures raised inside the block as
    core errors.  Core errors pass through untouched.
    """
    try:
        yield
    except ContentGraphError:
        raise
    except sa_exc.IntegrityError as exc:
        raise translate_integrity_error(exc) from exc
    except (sa_exc.OperationalError, sa_exc.DBAPIError, sa_exc.TimeoutError) as exc:
        logger.error("Storage failure during %s: %s", operation, exc)
        raise StorageError(f"Storage failure during {operation}") from exc
    except (TimeoutError, asyncio.TimeoutError) as exc:
        logger.error("Storage timeout during %s", operation)
        raise StorageError(f"Storage timeout during {operation}") from exc
