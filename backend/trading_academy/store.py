"""Policy-checked, statement-atomic access to the store tables.

WHAT:
    `Store` wraps a SQLAlchemy session with an optional `Caller`. Each write
    is one statement: policy check, flush, commit. On any failure the
    statement is rolled back and a StoreError is raised.

WHY:
    PostgreSQL evaluates row-level policies and constraints on every
    statement. Routing every read and write through one object keeps
    that behaviour identical for the HTTP layer, services and tests.

REFERENCES:
    - trading_academy/policies.py (grants and predicates)
    - trading_academy/errors.py (taxonomy + integrity translation)
"""

import logging
from typing import List, Optional

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import DomainViolation, RowNotFound, StoreError, translate_integrity_error
from .policies import Caller, Operation, authorize_row, read_clause, require_grant

logger = logging.getLogger(__name__)


class Store:
    """Store access on behalf of `caller`; `caller=None` is the owner connection."""

    def __init__(self, db: Session, caller: Optional[Caller] = None):
        self.db = db
        self.caller = caller

    # Reads ---------------------------------------------------------------

    def get(self, model, row_id):
        """Fetch one row by primary key.

        Raises:
            AuthorizationDenied: caller has no read grant, or the row fails
                the read predicate.
            RowNotFound: no such row.
        """
        if self.caller is not None:
            require_grant(model, Operation.read, self.caller)
        row = self.db.get(model, row_id)
        if row is None:
            raise RowNotFound(f"{model.__tablename__} {row_id} not found")
        if self.caller is not None:
            authorize_row(row, Operation.read, self.caller)
        return row

    def select(self, model, *criteria, order_by=None) -> List:
        """List rows matching `criteria`, filtered to what the caller may read."""
        stmt = select(model).where(*criteria)
        if self.caller is not None:
            stmt = stmt.where(read_clause(model, self.caller))
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list(self.db.scalars(stmt).all())

    # Writes --------------------------------------------------------------

    def insert(self, row):
        if self.caller is not None:
            authorize_row(row, Operation.create, self.caller)
        self.db.add(row)
        self.commit(f"insert into {type(row).__tablename__}")
        return row

    def update(self, model, row_id, **values):
        """Apply `values` to one row.

        The update predicate is checked on the row before and after the
        change, so a caller cannot move a row out of its own ownership.
        """
        if self.caller is not None:
            require_grant(model, Operation.update, self.caller)
        row = self.db.get(model, row_id)
        if row is None:
            raise RowNotFound(f"{model.__tablename__} {row_id} not found")
        if self.caller is not None:
            authorize_row(row, Operation.update, self.caller)

        columns = {attr.key for attr in inspect(model).column_attrs}
        unknown = set(values) - columns
        if unknown:
            raise DomainViolation(
                f"unknown columns for {model.__tablename__}: {', '.join(sorted(unknown))}",
                details={"table": model.__tablename__, "columns": sorted(unknown)},
            )
        for key, value in values.items():
            setattr(row, key, value)

        if self.caller is not None:
            try:
                authorize_row(row, Operation.update, self.caller)
            except StoreError:
                self.db.rollback()
                raise
        self.commit(f"update {model.__tablename__}")
        return row

    def delete(self, model, row_id) -> None:
        """Delete one row; foreign keys cascade to dependent rows."""
        if self.caller is not None:
            require_grant(model, Operation.delete, self.caller)
        row = self.db.get(model, row_id)
        if row is None:
            raise RowNotFound(f"{model.__tablename__} {row_id} not found")
        if self.caller is not None:
            authorize_row(row, Operation.delete, self.caller)
        self.db.delete(row)
        self.commit(f"delete from {model.__tablename__}")

    def commit(self, statement: str) -> None:
        """Commit pending changes as one statement; roll back and translate on failure."""
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise translate_integrity_error(exc) from exc
        except StoreError:
            self.db.rollback()
            raise
        logger.debug("[STORE] %s committed (caller=%s)", statement, self.caller or "owner")
