"""SQLAlchemy ORM models and enums.

This module defines the store schema using UUID primary keys, closed enum
domains and explicit relationships. Every child table that belongs to a client
cascades on client deletion; `payments.item_id` is a polymorphic back
reference resolved through `Payment.item_ref` (no foreign key is declared).
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import INET, JSONB, UUID
from sqlalchemy.orm import declarative_base, relationship, validates


# Single Base used by the entire application
Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert aware datetimes to UTC; naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)


def _enum(enum_cls, name: str) -> Enum:
    """VARCHAR + CHECK rendition of a closed value set (no native PG enum)."""
    return Enum(
        enum_cls,
        values_callable=lambda obj: [e.value for e in obj],
        native_enum=False,
        create_constraint=True,
        length=20,
        name=name,
    )


_json = JSON().with_variant(JSONB(), "postgresql")
_ip_address = String(45).with_variant(INET(), "postgresql")


# Enums ---------------------------------------------------------

class ClientPaymentStatusEnum(str, enum.Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class ClientStatusEnum(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class CourseLevelEnum(str, enum.Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"
    elite = "elite"


class BillingPeriodEnum(str, enum.Enum):
    monthly = "monthly"
    quarterly = "quarterly"
    annually = "annually"


class SessionTypeEnum(str, enum.Enum):
    consultation = "consultation"
    mentorship = "mentorship"
    group_call = "group_call"
    trading_room = "trading_room"


class BookingStatusEnum(str, enum.Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


class PaymentMethodEnum(str, enum.Enum):
    stripe = "stripe"
    paypal = "paypal"
    bank_transfer = "bank_transfer"


class PaymentTypeEnum(str, enum.Enum):
    course = "course"
    mentorship = "mentorship"
    consultation = "consultation"


class PaymentStatusEnum(str, enum.Enum):
    """Payment lifecycle. `disputed` only exists on payments, not on clients."""
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"
    disputed = "disputed"


class ContactStatusEnum(str, enum.Enum):
    new = "new"
    contacted = "contacted"
    converted = "converted"
    closed = "closed"


class SubscriberStatusEnum(str, enum.Enum):
    active = "active"
    unsubscribed = "unsubscribed"
    bounced = "bounced"


# Polymorphic payment reference ------------------------------------

@dataclass(frozen=True)
class CourseRef:
    id: uuid.UUID
    payment_type = PaymentTypeEnum.course


@dataclass(frozen=True)
class MentorshipRef:
    id: uuid.UUID
    payment_type = PaymentTypeEnum.mentorship


@dataclass(frozen=True)
class ConsultationRef:
    """Consultations reference the client's consultation booking, if any."""
    id: Optional[uuid.UUID]
    payment_type = PaymentTypeEnum.consultation


ItemRef = Union[CourseRef, MentorshipRef, ConsultationRef]

_REF_BY_TYPE = {
    PaymentTypeEnum.course: CourseRef,
    PaymentTypeEnum.mentorship: MentorshipRef,
    PaymentTypeEnum.consultation: ConsultationRef,
}


# Core models ----------------------------------------------------

class Client(Base):
    """A registered student.

    Lifecycle is soft: `status` and `payment_status` are mutated by moderation
    and billing events. Deleting a client (owner connection only) cascades to
    its bookings, payments, sessions and performance records.
    """
    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_email", "email"),
        Index("idx_clients_package", "package_selected"),
        Index("idx_clients_status", "status"),
        Index("idx_clients_registration_date", "registration_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, nullable=False)
    phone = Column(String(20), nullable=False)
    package_selected = Column(String(50), nullable=True)
    payment_status = Column(
        _enum(ClientPaymentStatusEnum, "ck_clients_payment_status"),
        default=ClientPaymentStatusEnum.pending,
        nullable=False,
    )
    registration_date = Column(DateTime(timezone=True), default=utcnow)
    last_login = Column(DateTime(timezone=True), nullable=True)
    status = Column(
        _enum(ClientStatusEnum, "ck_clients_status"),
        default=ClientStatusEnum.active,
        nullable=False,
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    bookings = relationship("Booking", back_populates="client", cascade="all, delete-orphan", passive_deletes=True)
    payments = relationship("Payment", back_populates="client", cascade="all, delete-orphan", passive_deletes=True)
    sessions = relationship("UserSession", back_populates="client", cascade="all, delete-orphan", passive_deletes=True)
    performance = relationship(
        "TradingPerformanceRecord", back_populates="client", cascade="all, delete-orphan", passive_deletes=True
    )

    def __str__(self):
        return f"{self.name} ({self.email})"


class Course(Base):
    """Catalog course. Seeded centrally; only price and `is_active` change."""
    __tablename__ = "courses"
    __table_args__ = (
        Index("idx_courses_level", "level"),
        Index("idx_courses_active", "is_active"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)  # pre-discount price for display
    duration_weeks = Column(Integer, nullable=True)
    level = Column(_enum(CourseLevelEnum, "ck_courses_level"), nullable=False)
    features = Column(_json, nullable=True)
    outcomes = Column(_json, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __str__(self):
        return f"{self.course_name} ({self.level.value})"


class MentorshipProgram(Base):
    """Catalog mentorship program with a bounded enrollment counter.

    `current_students` is only moved through services.enrollment, which uses a
    conditional UPDATE; the check constraint is the backstop.
    """
    __tablename__ = "mentorship"
    __table_args__ = (
        CheckConstraint(
            "current_students >= 0 AND current_students <= max_students",
            name="ck_mentorship_capacity",
        ),
        Index("idx_mentorship_billing", "billing_period"),
        Index("idx_mentorship_active", "is_active"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    program_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    billing_period = Column(_enum(BillingPeriodEnum, "ck_mentorship_billing_period"), nullable=False)
    features = Column(_json, nullable=True)
    benefits = Column(_json, nullable=True)
    max_students = Column(Integer, default=50, nullable=False)
    current_students = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __str__(self):
        return f"{self.program_name} ({self.billing_period.value})"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("idx_bookings_client", "client_id"),
        Index("idx_bookings_session_date", "session_date"),
        Index("idx_bookings_status", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    session_date = Column(DateTime(timezone=True), nullable=False)
    session_type = Column(_enum(SessionTypeEnum, "ck_bookings_session_type"), nullable=False)
    duration_minutes = Column(Integer, default=60)
    status = Column(
        _enum(BookingStatusEnum, "ck_bookings_status"),
        default=BookingStatusEnum.scheduled,
        nullable=False,
    )
    meeting_link = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    client = relationship("Client", back_populates="bookings")

    @validates("session_date")
    def _session_date_utc(self, key, value):
        return as_utc(value)

    def __str__(self):
        return f"{self.session_type.value} at {self.session_date:%Y-%m-%d %H:%M} ({self.status.value})"


class Payment(Base):
    """A client payment.

    `item_id` is interpreted against the catalog table selected by
    `payment_type`; use `item_ref` rather than the raw column.
    """
    __tablename__ = "payments"
    __table_args__ = (
        Index("idx_payments_client", "client_id"),
        Index("idx_payments_transaction", "transaction_id"),
        Index("idx_payments_status", "payment_status"),
        Index("idx_payments_date", "payment_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="GBP")
    transaction_id = Column(String(100), unique=True, nullable=True)
    stripe_payment_intent_id = Column(String(100), nullable=True)
    payment_method = Column(
        _enum(PaymentMethodEnum, "ck_payments_method"),
        default=PaymentMethodEnum.stripe,
        nullable=False,
    )
    payment_type = Column(_enum(PaymentTypeEnum, "ck_payments_type"), nullable=False)
    item_id = Column(UUID(as_uuid=True), nullable=True)
    payment_status = Column(
        _enum(PaymentStatusEnum, "ck_payments_status"),
        default=PaymentStatusEnum.pending,
        nullable=False,
    )
    payment_date = Column(DateTime(timezone=True), default=utcnow)
    refund_date = Column(DateTime(timezone=True), nullable=True)
    refund_amount = Column(Numeric(10, 2), default=Decimal("0.00"))
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    client = relationship("Client", back_populates="payments")

    @validates("payment_date", "refund_date")
    def _dates_utc(self, key, value):
        return as_utc(value)

    @property
    def item_ref(self) -> Optional[ItemRef]:
        if self.payment_type is None:
            return None
        ref_cls = _REF_BY_TYPE[PaymentTypeEnum(self.payment_type)]
        if self.item_id is None and ref_cls is not ConsultationRef:
            return None
        return ref_cls(self.item_id)

    @item_ref.setter
    def item_ref(self, ref: ItemRef) -> None:
        self.payment_type = ref.payment_type
        self.item_id = ref.id

    def __str__(self):
        return f"{self.amount} {self.currency} ({self.payment_status.value})"


class ContactSubmission(Base):
    """Standalone lead captured from the public contact form."""
    __tablename__ = "contact_submissions"
    __table_args__ = (
        Index("idx_contact_email", "email"),
        Index("idx_contact_status", "status"),
        Index("idx_contact_submitted_date", "submitted_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    email = Column(String(150), nullable=False)
    phone = Column(String(20), nullable=False)
    package_interest = Column(String(50), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(
        _enum(ContactStatusEnum, "ck_contact_status"),
        default=ContactStatusEnum.new,
        nullable=False,
    )
    follow_up_date = Column(Date, nullable=True)
    submitted_date = Column(DateTime(timezone=True), default=utcnow)
    response_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __str__(self):
        return f"{self.name} <{self.email}> ({self.status.value})"


class UserSession(Base):
    """Mirror of an externally issued login session, kept for auditing."""
    __tablename__ = "user_sessions"
    __table_args__ = (
        Index("idx_sessions_client", "client_id"),
        Index("idx_sessions_token", "session_token"),
        Index("idx_sessions_active", "is_active"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    session_token = Column(String(255), unique=True, nullable=False)
    ip_address = Column(_ip_address, nullable=True)
    user_agent = Column(Text, nullable=True)
    login_time = Column(DateTime(timezone=True), default=utcnow)
    last_activity = Column(DateTime(timezone=True), default=utcnow)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    client = relationship("Client", back_populates="sessions")


class NewsletterSubscriber(Base):
    __tablename__ = "newsletter_subscribers"
    __table_args__ = (
        Index("idx_newsletter_email", "email"),
        Index("idx_newsletter_status", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(150), unique=True, nullable=False)
    name = Column(String(100), nullable=True)
    subscription_date = Column(DateTime(timezone=True), default=utcnow)
    status = Column(
        _enum(SubscriberStatusEnum, "ck_newsletter_status"),
        default=SubscriberStatusEnum.active,
        nullable=False,
    )
    source = Column(String(50), default="website")
    preferences = Column(_json, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __str__(self):
        return self.email


class TradingPerformanceRecord(Base):
    """Monthly trading metrics for one client; one row per calendar month."""
    __tablename__ = "trading_performance"
    __table_args__ = (
        UniqueConstraint("client_id", "month_year", name="uq_trading_performance_client_month"),
        Index("idx_performance_client", "client_id"),
        Index("idx_performance_month_year", "month_year"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    month_year = Column(Date, nullable=False)
    total_trades = Column(Integer, default=0)
    winning_trades = Column(Integer, default=0)
    losing_trades = Column(Integer, default=0)
    total_pips = Column(Numeric(10, 2), default=Decimal("0.00"))
    total_profit_loss = Column(Numeric(12, 2), default=Decimal("0.00"))
    win_rate = Column(Numeric(5, 2), default=Decimal("0.00"))
    risk_reward_ratio = Column(Numeric(5, 2), default=Decimal("0.00"))
    max_drawdown = Column(Numeric(5, 2), default=Decimal("0.00"))
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    client = relationship("Client", back_populates="performance")

    @validates("month_year")
    def _normalise_month(self, key, value):
        # Uniqueness is per calendar month, so any day collapses to the 1st.
        if value is not None:
            value = value.replace(day=1)
        return value
