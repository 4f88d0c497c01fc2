"""
Store Error Taxonomy
====================

Every rejected store operation surfaces as one of the classes below. They are
raised synchronously at the operation boundary; nothing is retried or
repaired by the store.

    StoreError
    ├── UniquenessViolation    unique key collision (email, transaction id, ...)
    ├── ReferentialViolation   missing parent row / unresolvable item reference
    ├── DomainViolation        value outside a closed set or failing a CHECK
    │   └── CapacityExceeded   mentorship program is full
    ├── AuthorizationDenied    no policy grants the caller this row/operation
    └── RowNotFound            targeted row does not exist

`translate_integrity_error` maps driver-level IntegrityErrors onto the
taxonomy. PostgreSQL exposes SQLSTATE codes on the DBAPI exception; SQLite
only gives a message, so both are inspected.

RELATED FILES
-------------
- trading_academy/store.py: wraps every flush with translate_integrity_error
- trading_academy/constraints.py: raises DomainViolation before flush
- trading_academy/main.py: renders these errors as HTTP responses
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError


logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable codes carried by every StoreError."""
    UNIQUE_VIOLATION = "unique_violation"
    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    CHECK_VIOLATION = "check_violation"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    AUTHORIZATION_DENIED = "authorization_denied"
    NOT_FOUND = "not_found"


class StoreError(Exception):
    """Base class for all rejected store operations."""

    code: ErrorCode = ErrorCode.CHECK_VIOLATION
    status_code: int = 400

    def __init__(self, message: str = "", *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code.value, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return body


class UniquenessViolation(StoreError):
    code = ErrorCode.UNIQUE_VIOLATION
    status_code = 409


class ReferentialViolation(StoreError):
    code = ErrorCode.FOREIGN_KEY_VIOLATION
    status_code = 409


class DomainViolation(StoreError):
    code = ErrorCode.CHECK_VIOLATION
    status_code = 400


class CapacityExceeded(DomainViolation):
    code = ErrorCode.CAPACITY_EXCEEDED


class AuthorizationDenied(StoreError):
    code = ErrorCode.AUTHORIZATION_DENIED
    status_code = 403


class RowNotFound(StoreError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


# PostgreSQL SQLSTATE class 23 (integrity constraint violation)
_PG_CODES = {
    "23505": UniquenessViolation,
    "23503": ReferentialViolation,
    "23514": DomainViolation,
    "23502": DomainViolation,  # not_null_violation
}

# SQLite message prefixes
_SQLITE_MESSAGES = (
    ("UNIQUE constraint failed", UniquenessViolation),
    ("FOREIGN KEY constraint failed", ReferentialViolation),
    ("CHECK constraint failed", DomainViolation),
    ("NOT NULL constraint failed", DomainViolation),
)


def translate_integrity_error(exc: IntegrityError) -> StoreError:
    """Classify a driver IntegrityError into the store taxonomy.

    Args:
        exc: The IntegrityError raised by a flush or execute.

    Returns:
        A StoreError instance (not raised) chained to the original error
        by the caller via ``raise ... from exc``.
    """
    orig = exc.orig
    message = str(orig) if orig is not None else str(exc)

    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode in _PG_CODES:
        error_cls = _PG_CODES[pgcode]
    else:
        error_cls = next(
            (cls for prefix, cls in _SQLITE_MESSAGES if prefix in message),
            DomainViolation,
        )

    logger.info("[STORE] Integrity error classified as %s: %s", error_cls.__name__, message)
    return error_cls(message.strip().splitlines()[0], details={"constraint": message})
