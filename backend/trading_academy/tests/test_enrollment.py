"""Mentorship enrollment counter tests."""

from decimal import Decimal
from uuid import uuid4

import pytest

from trading_academy.errors import CapacityExceeded, DomainViolation, RowNotFound
from trading_academy.models import BillingPeriodEnum, Client, MentorshipProgram
from trading_academy.services.enrollment import enroll, release
from trading_academy.store import Store


@pytest.fixture
def small_program(test_db_session):
    return Store(test_db_session).insert(
        MentorshipProgram(
            program_name="Small Group",
            price=Decimal("299.00"),
            billing_period=BillingPeriodEnum.monthly,
            max_students=2,
        )
    )


def test_enroll_until_full(test_db_session, small_program):
    assert enroll(test_db_session, small_program.id) == 1
    assert enroll(test_db_session, small_program.id) == 2

    with pytest.raises(CapacityExceeded) as exc_info:
        enroll(test_db_session, small_program.id)

    assert isinstance(exc_info.value, DomainViolation)
    assert exc_info.value.details["max_students"] == 2
    test_db_session.refresh(small_program)
    assert small_program.current_students == 2


def test_inactive_program_takes_no_enrollments(test_db_session, small_program):
    small_program.is_active = False
    test_db_session.commit()

    with pytest.raises(DomainViolation) as exc_info:
        enroll(test_db_session, small_program.id)

    assert not isinstance(exc_info.value, CapacityExceeded)
    assert "not accepting enrollments" in exc_info.value.message


def test_rejected_enrollment_keeps_pending_work(test_db_session, small_program):
    enroll(test_db_session, small_program.id)
    enroll(test_db_session, small_program.id)
    pending = Client(name="Pending", email="pending@example.com", phone="555")
    test_db_session.add(pending)

    with pytest.raises(CapacityExceeded):
        enroll(test_db_session, small_program.id)

    assert pending in test_db_session.new
    test_db_session.commit()
    assert test_db_session.get(Client, pending.id) is not None


def test_release_never_goes_below_zero(test_db_session, small_program):
    enroll(test_db_session, small_program.id)

    assert release(test_db_session, small_program.id) == 0
    with pytest.raises(DomainViolation):
        release(test_db_session, small_program.id)


def test_unknown_program(test_db_session):
    with pytest.raises(RowNotFound):
        enroll(test_db_session, uuid4())
    with pytest.raises(RowNotFound):
        release(test_db_session, uuid4())
