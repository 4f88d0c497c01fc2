"""
Derived Views
=============

Read-only aggregations recomputed on every call. Nothing here writes.

    active_client_enrollment  active clients + latest completed payment + catalog item
    monthly_revenue           completed payments bucketed by calendar month
    upcoming_sessions         scheduled bookings from `as_of` onwards

Each function takes an optional caller. With a caller, the read policy of
every underlying table applies: rows the caller cannot read are filtered
out, and a capability with no read grant on a base table is denied.

RELATED FILES
-------------
- trading_academy/policies.py: read_clause / join_clause
- trading_academy/routers/reports.py: HTTP exposure
- backend/alembic/versions/20250619_000001_initial_schema.py: SQL views
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, literal_column, select
from sqlalchemy.orm import Session

from .models import (
    Booking,
    BookingStatusEnum,
    Client,
    ClientStatusEnum,
    Course,
    MentorshipProgram,
    Payment,
    PaymentStatusEnum,
    PaymentTypeEnum,
    SessionTypeEnum,
    as_utc,
    utcnow,
)
from .policies import Caller, join_clause, read_clause

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class ActiveClientEnrollment:
    client_id: UUID
    name: str
    email: str
    phone: str
    package_selected: Optional[str]
    status: ClientStatusEnum
    payment_id: Optional[UUID]
    payment_status: Optional[PaymentStatusEnum]
    payment_type: Optional[PaymentTypeEnum]
    course_name: Optional[str]
    program_name: Optional[str]


@dataclass(frozen=True)
class MonthlyRevenue:
    month: Optional[date]
    total_payments: int
    total_revenue: Decimal
    average_payment: Decimal


@dataclass(frozen=True)
class UpcomingSession:
    id: UUID
    session_date: datetime
    session_type: SessionTypeEnum
    client_name: str
    client_email: str
    client_phone: str
    notes: Optional[str]


def active_client_enrollment(db: Session, caller: Optional[Caller] = None) -> List[ActiveClientEnrollment]:
    """Active clients joined to their most recent completed payment.

    The payment's `item_id` is resolved against `courses` or `mentorship`
    depending on `payment_type`. Clients with no completed payment are
    kept with null payment/catalog fields.
    """
    ranked = select(
        Payment.id.label("payment_id"),
        Payment.client_id,
        Payment.payment_status,
        Payment.payment_type,
        Payment.item_id,
        func.row_number()
        .over(
            partition_by=Payment.client_id,
            order_by=(Payment.payment_date.desc().nulls_last(), Payment.created_at.desc()),
        )
        .label("recency"),
    ).where(Payment.payment_status == PaymentStatusEnum.completed)
    if caller is not None:
        ranked = ranked.where(read_clause(Payment, caller))
    latest = ranked.subquery("latest_payment")

    stmt = (
        select(
            Client.id.label("client_id"),
            Client.name,
            Client.email,
            Client.phone,
            Client.package_selected,
            Client.status,
            latest.c.payment_id,
            latest.c.payment_status,
            latest.c.payment_type,
            Course.course_name,
            MentorshipProgram.program_name,
        )
        .select_from(Client)
        .outerjoin(latest, and_(latest.c.client_id == Client.id, latest.c.recency == 1))
        .outerjoin(
            Course,
            join_clause(
                Course, caller,
                Course.id == latest.c.item_id,
                latest.c.payment_type == PaymentTypeEnum.course,
            ),
        )
        .outerjoin(
            MentorshipProgram,
            join_clause(
                MentorshipProgram, caller,
                MentorshipProgram.id == latest.c.item_id,
                latest.c.payment_type == PaymentTypeEnum.mentorship,
            ),
        )
        .where(Client.status == ClientStatusEnum.active)
        .order_by(Client.registration_date, Client.name)
    )
    if caller is not None:
        stmt = stmt.where(read_clause(Client, caller))

    return [ActiveClientEnrollment(**row._mapping) for row in db.execute(stmt)]


def _month_bucket(db: Session):
    """'YYYY-MM' of payment_date, rendered per dialect."""
    if db.get_bind().dialect.name == "postgresql":
        return func.to_char(
            func.date_trunc(literal_column("'month'"), func.timezone(literal_column("'UTC'"), Payment.payment_date)),
            literal_column("'YYYY-MM'"),
        )
    return func.strftime(literal_column("'%Y-%m'"), Payment.payment_date)


def monthly_revenue(db: Session, caller: Optional[Caller] = None) -> List[MonthlyRevenue]:
    """Completed payments per calendar month, most recent month first.

    Undated payments are grouped under `month=None`, listed last.
    """
    bucket = _month_bucket(db).label("month")
    stmt = (
        select(
            bucket,
            func.count(Payment.id).label("total_payments"),
            func.sum(Payment.amount).label("total_revenue"),
        )
        .where(Payment.payment_status == PaymentStatusEnum.completed)
        .group_by(bucket)
        .order_by(bucket.desc().nulls_last())
    )
    if caller is not None:
        stmt = stmt.where(read_clause(Payment, caller))

    results = []
    for month, count, total in db.execute(stmt):
        if month is not None:
            year, month_number = (int(part) for part in month.split("-"))
            month = date(year, month_number, 1)
        total = Decimal(total).quantize(CENTS)
        results.append(
            MonthlyRevenue(
                month=month,
                total_payments=count,
                total_revenue=total,
                average_payment=(total / count).quantize(CENTS, rounding=ROUND_HALF_UP),
            )
        )
    return results


def upcoming_sessions(
    db: Session,
    caller: Optional[Caller] = None,
    as_of: Optional[datetime] = None,
) -> List[UpcomingSession]:
    """Scheduled bookings at or after `as_of` (default: now), soonest first."""
    as_of = as_utc(as_of) if as_of is not None else utcnow()
    stmt = (
        select(
            Booking.id,
            Booking.session_date,
            Booking.session_type,
            Client.name.label("client_name"),
            Client.email.label("client_email"),
            Client.phone.label("client_phone"),
            Booking.notes,
        )
        .join(Client, Booking.client_id == Client.id)
        .where(
            Booking.session_date >= as_of,
            Booking.status == BookingStatusEnum.scheduled,
        )
        .order_by(Booking.session_date.asc())
    )
    if caller is not None:
        stmt = stmt.where(read_clause(Booking, caller), read_clause(Client, caller))

    return [UpcomingSession(**row._mapping) for row in db.execute(stmt)]
