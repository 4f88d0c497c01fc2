"""Write-time constraint guards.

WHAT:
    - Validates closed enum domains on every pending/dirty instance before a
      flush, raising DomainViolation with the offending table/column/value.
    - Turns on foreign key enforcement for SQLite connections.

WHY:
    The database CHECK constraints reject bad values too, but the resulting
    driver message varies by backend. Guarding before flush gives one error
    shape everywhere; the CHECKs stay as the backstop for raw SQL writers.

REFERENCES:
    - trading_academy/models.py (_enum columns)
    - trading_academy/errors.py (DomainViolation)
"""

import logging
import sqlite3

from sqlalchemy import Enum, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .errors import DomainViolation

logger = logging.getLogger(__name__)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def check_domain(instance) -> None:
    """Raise DomainViolation if any enum column of `instance` is out of set."""
    mapper = inspect(instance).mapper
    for prop in mapper.column_attrs:
        column = prop.columns[0]
        if not isinstance(column.type, Enum):
            continue
        value = getattr(instance, prop.key)
        if value is None:
            continue
        allowed = column.type.enums
        if value not in allowed:
            logger.info(
                "[CONSTRAINT] Rejected %s.%s=%r",
                mapper.local_table.name, column.name, value,
            )
            raise DomainViolation(
                f"{mapper.local_table.name}.{column.name} must be one of {', '.join(allowed)}",
                details={
                    "table": mapper.local_table.name,
                    "column": column.name,
                    "value": str(value),
                    "allowed": list(allowed),
                },
            )


@event.listens_for(Session, "before_flush")
def _guard_domains(session, flush_context, instances):
    for instance in list(session.new) + list(session.dirty):
        check_domain(instance)
