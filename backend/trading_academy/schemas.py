"""Pydantic schemas for request/response payloads."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .models import (
    BillingPeriodEnum,
    BookingStatusEnum,
    ClientPaymentStatusEnum,
    ClientStatusEnum,
    ContactStatusEnum,
    CourseLevelEnum,
    PaymentMethodEnum,
    PaymentStatusEnum,
    PaymentTypeEnum,
    SessionTypeEnum,
    SubscriberStatusEnum,
)


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(description="Error message", examples=["row-level policy denies select on clients"])
    code: Optional[str] = Field(default=None, description="Machine-readable error code", examples=["authorization_denied"])
    details: Optional[Dict[str, Any]] = None


# Catalog -----------------------------------------------------------------

class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_name: str
    description: Optional[str] = None
    price: Decimal
    original_price: Optional[Decimal] = None
    duration_weeks: Optional[int] = None
    level: CourseLevelEnum
    features: Optional[List[str]] = None
    outcomes: Optional[List[str]] = None


class MentorshipOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    program_name: str
    description: Optional[str] = None
    price: Decimal
    billing_period: BillingPeriodEnum
    features: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    max_students: int
    current_students: int


# Clients -----------------------------------------------------------------

class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str
    package_selected: Optional[str] = None
    payment_status: ClientPaymentStatusEnum
    status: ClientStatusEnum
    registration_date: Optional[datetime] = None
    last_login: Optional[datetime] = None


class ClientUpdate(BaseModel):
    """Fields a client may change on their own record."""

    name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    package_selected: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = None


# Bookings ----------------------------------------------------------------

class BookingCreate(BaseModel):
    """Payload for booking a session.

    `client_id` defaults to the caller; supplying someone else's id is
    rejected by the booking policy.
    """

    client_id: Optional[UUID] = None
    session_date: datetime
    session_type: SessionTypeEnum
    duration_minutes: int = 60
    notes: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "session_date": "2025-07-01T14:00:00Z",
                "session_type": "consultation",
                "duration_minutes": 60,
            }
        }
    }


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    session_date: datetime
    session_type: SessionTypeEnum
    duration_minutes: Optional[int] = None
    status: BookingStatusEnum
    meeting_link: Optional[str] = None
    notes: Optional[str] = None


# Payments ----------------------------------------------------------------

class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: Decimal
    currency: str
    transaction_id: Optional[str] = None
    payment_method: PaymentMethodEnum
    payment_type: PaymentTypeEnum
    item_id: Optional[UUID] = None
    payment_status: PaymentStatusEnum
    payment_date: Optional[datetime] = None
    refund_date: Optional[datetime] = None
    refund_amount: Optional[Decimal] = None


# Performance -------------------------------------------------------------

class PerformanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    month_year: date
    total_trades: int
    winning_trades: int
    losing_trades: int
    total_pips: Decimal
    total_profit_loss: Decimal
    win_rate: Decimal
    risk_reward_ratio: Decimal
    max_drawdown: Decimal
    notes: Optional[str] = None


# Public forms ------------------------------------------------------------

class ContactCreate(BaseModel):
    name: str = Field(max_length=100)
    email: EmailStr
    phone: str = Field(max_length=20)
    package_interest: Optional[str] = Field(default=None, max_length=50)
    message: str


class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: ContactStatusEnum
    submitted_date: Optional[datetime] = None


class NewsletterCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=100)
    source: str = Field(default="website", max_length=50)
    preferences: Optional[Dict[str, Any]] = None


class NewsletterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    status: SubscriberStatusEnum
    subscription_date: Optional[datetime] = None


# Reports -----------------------------------------------------------------

class ActiveClientEnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    client_id: UUID
    name: str
    email: str
    phone: str
    package_selected: Optional[str] = None
    status: ClientStatusEnum
    payment_id: Optional[UUID] = None
    payment_status: Optional[PaymentStatusEnum] = None
    payment_type: Optional[PaymentTypeEnum] = None
    course_name: Optional[str] = None
    program_name: Optional[str] = None


class MonthlyRevenueOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: Optional[date] = None
    total_payments: int
    total_revenue: Decimal
    average_payment: Decimal


class UpcomingSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_date: datetime
    session_type: SessionTypeEnum
    client_name: str
    client_email: str
    client_phone: str
    notes: Optional[str] = None
