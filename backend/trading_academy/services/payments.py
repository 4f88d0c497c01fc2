"""Payment recording with explicit item reference checks.

`payments.item_id` has no foreign key: its target table depends on
`payment_type`. These helpers resolve the tagged reference before writing so
a payment can never point at a missing catalog entry.

    CourseRef(id)        -> courses.id
    MentorshipRef(id)    -> mentorship.id
    ConsultationRef(id)  -> bookings.id (consultation booking of the same
                            client), or None for an unbooked consultation
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..errors import DomainViolation, ReferentialViolation
from ..models import (
    Booking,
    ClientPaymentStatusEnum,
    ConsultationRef,
    Course,
    CourseRef,
    ItemRef,
    MentorshipProgram,
    MentorshipRef,
    Payment,
    PaymentStatusEnum,
    SessionTypeEnum,
    utcnow,
)
from ..store import Store

logger = logging.getLogger(__name__)


def resolve_item(db: Session, ref: ItemRef, client_id: UUID):
    """Return the row a payment reference points at.

    Raises:
        ReferentialViolation: the reference does not resolve.
    """
    if isinstance(ref, CourseRef):
        target = db.get(Course, ref.id) if ref.id is not None else None
    elif isinstance(ref, MentorshipRef):
        target = db.get(MentorshipProgram, ref.id) if ref.id is not None else None
    elif isinstance(ref, ConsultationRef):
        if ref.id is None:
            return None
        target = db.get(Booking, ref.id)
        if target is not None and (
            target.client_id != client_id or target.session_type != SessionTypeEnum.consultation
        ):
            target = None
    else:
        raise DomainViolation(f"unsupported payment reference {ref!r}")

    if target is None:
        raise ReferentialViolation(
            f"{ref.payment_type.value} item {ref.id} does not exist",
            details={"payment_type": ref.payment_type.value, "item_id": str(ref.id)},
        )
    return target


def record_payment(
    db: Session,
    client_id: UUID,
    amount: Decimal,
    ref: ItemRef,
    **fields,
) -> Payment:
    """Validate `ref` and insert a payment on the owner connection."""
    resolve_item(db, ref, client_id)
    payment = Payment(client_id=client_id, amount=amount, **fields)
    payment.item_ref = ref
    Store(db).insert(payment)
    logger.info(
        "[PAYMENT] Recorded %s %s %s payment for client %s",
        payment.amount, payment.currency, ref.payment_type.value, client_id,
    )
    return payment


def set_payment_status(db: Session, payment_id: UUID, status: PaymentStatusEnum) -> Payment:
    """Move a payment to `status` and mirror it onto the client when the
    client-level status set has the same value (`disputed` does not)."""
    store = Store(db)
    payment = store.get(Payment, payment_id)
    try:
        status = PaymentStatusEnum(status)
    except ValueError:
        allowed = [s.value for s in PaymentStatusEnum]
        raise DomainViolation(
            f"payments.payment_status must be one of {', '.join(allowed)}",
            details={
                "table": "payments",
                "column": "payment_status",
                "value": str(status),
                "allowed": allowed,
            },
        ) from None
    payment.payment_status = status
    if status.value in {s.value for s in ClientPaymentStatusEnum}:
        payment.client.payment_status = ClientPaymentStatusEnum(status.value)
    store.commit(f"payment {payment_id} -> {status.value}")
    return payment


def record_refund(
    db: Session,
    payment_id: UUID,
    amount: Optional[Decimal] = None,
    refunded_at: Optional[datetime] = None,
) -> Payment:
    """Record a (full or partial) refund against a completed payment.

    Defaults to a full refund dated now. Refund fields stay at 0.00/NULL
    until this is called.
    """
    store = Store(db)
    payment = store.get(Payment, payment_id)
    if payment.payment_status not in (PaymentStatusEnum.completed, PaymentStatusEnum.disputed):
        raise DomainViolation(
            f"cannot refund a {payment.payment_status.value} payment",
            details={"payment_id": str(payment_id)},
        )
    refund = payment.amount if amount is None else Decimal(amount)
    if refund > payment.amount:
        raise DomainViolation(
            "refund exceeds payment amount",
            details={"payment_id": str(payment_id), "amount": str(payment.amount), "refund": str(refund)},
        )

    payment.refund_amount = refund
    payment.refund_date = refunded_at or utcnow()
    payment.payment_status = PaymentStatusEnum.refunded
    payment.client.payment_status = ClientPaymentStatusEnum.refunded
    store.commit(f"refund payment {payment_id}")
    logger.info("[PAYMENT] Refunded %s of payment %s", refund, payment_id)
    return payment

