"""
Row-Level Access Policies
=========================

Every store operation made on behalf of a caller is checked against the
policy table below. The model mirrors PostgreSQL row-level security:

    operation x capability x predicate

- Capabilities are a closed set: ``anonymous`` and ``authenticated``.
- A predicate is evaluated per row, either as a SQL clause (to filter reads)
  or against a Python row (to check a targeted read/update or a new row).
- Anything not granted is denied. There is no elevated/administrative tier.

Store access without a caller is the owner connection (migrations, seeding,
trusted services) and does not consult this module, the same way a table
owner bypasses RLS in PostgreSQL.

RELATED FILES
-------------
- trading_academy/store.py: calls authorize_row / read_clause
- trading_academy/views.py: applies read_clause to every joined table
- backend/alembic/versions/20250619_000001_initial_schema.py: native RLS DDL
"""

import enum
import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, false, or_, true

from .errors import AuthorizationDenied
from .models import (
    Booking,
    Client,
    ContactSubmission,
    Course,
    MentorshipProgram,
    NewsletterSubscriber,
    Payment,
    TradingPerformanceRecord,
)

logger = logging.getLogger(__name__)


class Capability(str, enum.Enum):
    anonymous = "anon"
    authenticated = "authenticated"


class Operation(str, enum.Enum):
    read = "select"
    create = "insert"
    update = "update"
    delete = "delete"


@dataclass(frozen=True)
class Caller:
    """Who is asking. `identity` is the external auth subject (a client id)."""

    capability: Capability
    identity: Optional[UUID] = None

    def __post_init__(self):
        if self.capability is Capability.authenticated and self.identity is None:
            raise ValueError("authenticated callers need an identity")
        if self.capability is Capability.anonymous and self.identity is not None:
            raise ValueError("anonymous callers cannot carry an identity")

    @classmethod
    def anonymous(cls) -> "Caller":
        return cls(Capability.anonymous)

    @classmethod
    def authenticated(cls, identity: UUID) -> "Caller":
        return cls(Capability.authenticated, identity)

    def __str__(self):
        if self.identity is None:
            return self.capability.value
        return f"{self.capability.value}:{self.identity}"


# Predicates ------------------------------------------------------------

class Unconditional:
    """WITH CHECK (true)."""

    def clause(self, model, caller: Caller):
        return true()

    def matches(self, row, caller: Caller) -> bool:
        return True


@dataclass(frozen=True)
class OwnedBy:
    """Row column equals the caller identity (``auth.uid() = <column>``)."""

    column: str

    def clause(self, model, caller: Caller):
        if caller.identity is None:
            return false()
        return getattr(model, self.column) == caller.identity

    def matches(self, row, caller: Caller) -> bool:
        value = getattr(row, self.column)
        return caller.identity is not None and value is not None and str(value) == str(caller.identity)


@dataclass(frozen=True)
class IsTrue:
    """Boolean column is true (``is_active = true``)."""

    column: str

    def clause(self, model, caller: Caller):
        return getattr(model, self.column).is_(True)

    def matches(self, row, caller: Caller) -> bool:
        return getattr(row, self.column) is True


@dataclass(frozen=True)
class Policy:
    name: str
    model: type
    operation: Operation
    roles: FrozenSet[Capability]
    predicate: object

    def applies_to(self, model, operation: Operation, caller: Caller) -> bool:
        return self.model is model and self.operation is operation and caller.capability in self.roles


ANYONE = frozenset({Capability.anonymous, Capability.authenticated})
AUTHENTICATED = frozenset({Capability.authenticated})

POLICIES: Tuple[Policy, ...] = (
    Policy("Users can read own client data", Client, Operation.read, AUTHENTICATED, OwnedBy("id")),
    Policy("Users can update own client data", Client, Operation.update, AUTHENTICATED, OwnedBy("id")),
    Policy("Anyone can read courses", Course, Operation.read, ANYONE, IsTrue("is_active")),
    Policy("Anyone can read mentorship programs", MentorshipProgram, Operation.read, ANYONE, IsTrue("is_active")),
    Policy("Users can read own bookings", Booking, Operation.read, AUTHENTICATED, OwnedBy("client_id")),
    Policy("Users can create own bookings", Booking, Operation.create, AUTHENTICATED, OwnedBy("client_id")),
    Policy("Users can read own payments", Payment, Operation.read, AUTHENTICATED, OwnedBy("client_id")),
    Policy("Anyone can create contact submissions", ContactSubmission, Operation.create, ANYONE, Unconditional()),
    Policy("Anyone can subscribe to newsletter", NewsletterSubscriber, Operation.create, ANYONE, Unconditional()),
    Policy(
        "Users can read own trading performance",
        TradingPerformanceRecord,
        Operation.read,
        AUTHENTICATED,
        OwnedBy("client_id"),
    ),
)


def policies_for(model, operation: Operation, caller: Caller) -> List[Policy]:
    return [p for p in POLICIES if p.applies_to(model, operation, caller)]


def require_grant(model, operation: Operation, caller: Caller) -> List[Policy]:
    """Return the applicable policies or raise if the caller has none."""
    found = policies_for(model, operation, caller)
    if not found:
        logger.info(
            "[POLICY] No %s grant on %s for %s",
            operation.value, model.__tablename__, caller,
        )
        raise AuthorizationDenied(
            f"{caller.capability.value} callers may not {operation.value} {model.__tablename__}",
            details={"table": model.__tablename__, "operation": operation.value},
        )
    return found


def read_clause(model, caller: Caller):
    """SQL filter that keeps only the rows the caller may read.

    Permissive policies combine with OR, as in PostgreSQL.
    """
    found = require_grant(model, Operation.read, caller)
    return or_(*[p.predicate.clause(model, caller) for p in found])


def authorize_row(row, operation: Operation, caller: Caller) -> None:
    """Check one concrete row (existing or new) against the caller's grants."""
    model = type(row)
    found = require_grant(model, operation, caller)
    if not any(p.predicate.matches(row, caller) for p in found):
        logger.info(
            "[POLICY] Row-level %s denied on %s for %s",
            operation.value, model.__tablename__, caller,
        )
        raise AuthorizationDenied(
            f"row-level policy denies {operation.value} on {model.__tablename__}",
            details={"table": model.__tablename__, "operation": operation.value},
        )


def join_clause(model, caller: Optional[Caller], *conditions):
    """ON-clause for a LEFT JOIN that hides rows the caller cannot read."""
    if caller is None:
        return and_(*conditions)
    return and_(*conditions, read_clause(model, caller))
