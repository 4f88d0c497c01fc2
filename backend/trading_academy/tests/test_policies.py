"""Row-level policy tests for anonymous and authenticated callers."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from trading_academy.errors import AuthorizationDenied, RowNotFound
from trading_academy.models import (
    Booking,
    Client,
    ContactSubmission,
    Course,
    MentorshipProgram,
    NewsletterSubscriber,
    Payment,
    PaymentTypeEnum,
    SessionTypeEnum,
    TradingPerformanceRecord,
    UserSession,
)
from trading_academy.policies import POLICIES, Capability, Caller, Operation, policies_for
from trading_academy.store import Store


def _booking(client, days=1):
    return Booking(
        client_id=client.id,
        session_date=datetime.now(timezone.utc) + timedelta(days=days),
        session_type=SessionTypeEnum.consultation,
    )


class TestCaller:
    def test_authenticated_requires_identity(self):
        with pytest.raises(ValueError):
            Caller(Capability.authenticated)

    def test_anonymous_cannot_carry_identity(self):
        with pytest.raises(ValueError):
            Caller(Capability.anonymous, uuid4())

    def test_policy_table_has_no_admin_tier(self):
        assert len(POLICIES) == 10
        for policy in POLICIES:
            assert policy.roles <= {Capability.anonymous, Capability.authenticated}


class TestCatalogReads:
    def test_anonymous_sees_only_active_courses(self, seeded_catalog, course):
        course.is_active = False
        Store(seeded_catalog).commit("deactivate course")

        visible = Store(seeded_catalog, Caller.anonymous()).select(Course)

        assert len(visible) == 2
        assert course.id not in {c.id for c in visible}

    def test_targeted_read_of_inactive_program_is_denied(self, seeded_catalog, program):
        program.is_active = False
        Store(seeded_catalog).commit("deactivate program")

        store = Store(seeded_catalog, Caller.anonymous())
        with pytest.raises(AuthorizationDenied):
            store.get(MentorshipProgram, program.id)

    def test_missing_course_is_not_found(self, seeded_catalog):
        with pytest.raises(RowNotFound):
            Store(seeded_catalog, Caller.anonymous()).get(Course, uuid4())

    def test_anonymous_cannot_modify_catalog(self, seeded_catalog, course):
        store = Store(seeded_catalog, Caller.anonymous())
        with pytest.raises(AuthorizationDenied):
            store.update(Course, course.id, price=Decimal("1.00"))
        with pytest.raises(AuthorizationDenied):
            store.delete(Course, course.id)


class TestClientRecords:
    def test_anonymous_has_no_client_access(self, test_db_session, client_a):
        store = Store(test_db_session, Caller.anonymous())
        with pytest.raises(AuthorizationDenied):
            store.select(Client)
        with pytest.raises(AuthorizationDenied):
            store.get(Client, client_a.id)

    def test_client_reads_only_own_record(self, test_db_session, client_a, client_b):
        store = Store(test_db_session, Caller.authenticated(client_a.id))

        assert [c.id for c in store.select(Client)] == [client_a.id]
        assert store.get(Client, client_a.id).email == "alice@example.com"
        with pytest.raises(AuthorizationDenied):
            store.get(Client, client_b.id)

    def test_client_updates_own_record(self, test_db_session, client_a):
        store = Store(test_db_session, Caller.authenticated(client_a.id))

        updated = store.update(Client, client_a.id, phone="+44 1234", package_selected="elite")

        assert updated.phone == "+44 1234"
        assert updated.package_selected == "elite"

    def test_client_cannot_update_someone_else(self, test_db_session, client_a, client_b):
        store = Store(test_db_session, Caller.authenticated(client_a.id))

        with pytest.raises(AuthorizationDenied):
            store.update(Client, client_b.id, name="Hijacked")

        test_db_session.refresh(client_b)
        assert client_b.name == "Bob Trader"

    def test_client_cannot_move_row_out_of_ownership(self, test_db_session, client_a):
        original_id = client_a.id
        store = Store(test_db_session, Caller.authenticated(original_id))

        with pytest.raises(AuthorizationDenied):
            store.update(Client, original_id, id=uuid4())

        assert test_db_session.get(Client, original_id) is not None

    def test_client_cannot_delete_own_record(self, test_db_session, client_a):
        store = Store(test_db_session, Caller.authenticated(client_a.id))
        with pytest.raises(AuthorizationDenied):
            store.delete(Client, client_a.id)


class TestBookings:
    def test_client_lists_only_own_bookings(self, test_db_session, client_a, client_b):
        owner = Store(test_db_session)
        owner.insert(_booking(client_a, days=1))
        owner.insert(_booking(client_a, days=2))
        owner.insert(_booking(client_b, days=1))

        mine = Store(test_db_session, Caller.authenticated(client_a.id)).select(Booking)

        assert len(mine) == 2
        assert {b.client_id for b in mine} == {client_a.id}

    def test_client_books_for_self(self, test_db_session, client_a):
        store = Store(test_db_session, Caller.authenticated(client_a.id))
        booking = store.insert(_booking(client_a))
        assert booking.id is not None

    def test_client_cannot_book_for_someone_else(self, test_db_session, client_a, client_b):
        store = Store(test_db_session, Caller.authenticated(client_a.id))
        with pytest.raises(AuthorizationDenied):
            store.insert(_booking(client_b))

    def test_anonymous_cannot_book(self, test_db_session, client_a):
        with pytest.raises(AuthorizationDenied):
            Store(test_db_session, Caller.anonymous()).insert(_booking(client_a))

    def test_booking_create_grant_does_not_allow_updates(self, test_db_session, client_a):
        booking = Store(test_db_session).insert(_booking(client_a))
        store = Store(test_db_session, Caller.authenticated(client_a.id))
        with pytest.raises(AuthorizationDenied):
            store.update(Booking, booking.id, notes="moved")


class TestOwnedReadOnlyTables:
    def test_payments_and_performance_are_read_only_and_owned(self, test_db_session, client_a, client_b):
        owner = Store(test_db_session)
        for c in (client_a, client_b):
            owner.insert(Payment(client_id=c.id, amount=Decimal("50.00"), payment_type=PaymentTypeEnum.consultation))
            owner.insert(TradingPerformanceRecord(client_id=c.id, month_year=datetime(2025, 6, 1).date()))

        store = Store(test_db_session, Caller.authenticated(client_a.id))
        assert [p.client_id for p in store.select(Payment)] == [client_a.id]
        assert [r.client_id for r in store.select(TradingPerformanceRecord)] == [client_a.id]

        with pytest.raises(AuthorizationDenied):
            store.insert(Payment(client_id=client_a.id, amount=Decimal("1.00"), payment_type=PaymentTypeEnum.course))

    def test_sessions_have_no_caller_grant(self, test_db_session, client_a):
        store = Store(test_db_session, Caller.authenticated(client_a.id))
        with pytest.raises(AuthorizationDenied):
            store.select(UserSession)


class TestPublicForms:
    @pytest.mark.parametrize("caller", [Caller.anonymous(), Caller.authenticated(uuid4())])
    def test_anyone_can_submit_contact_form(self, test_db_session, caller):
        store = Store(test_db_session, caller)
        submission = store.insert(
            ContactSubmission(name="Eve", email="eve@example.com", phone="0", message="Tell me more")
        )
        assert submission.status.value == "new"

        with pytest.raises(AuthorizationDenied):
            store.select(ContactSubmission)

    def test_anyone_can_subscribe_but_not_read_list(self, test_db_session):
        store = Store(test_db_session, Caller.anonymous())
        subscriber = store.insert(NewsletterSubscriber(email="news@example.com"))

        assert subscriber.status.value == "active"
        assert subscriber.source == "website"
        with pytest.raises(AuthorizationDenied):
            store.get(NewsletterSubscriber, subscriber.id)


def test_policies_for_filters_by_capability():
    anon = Caller.anonymous()
    assert [p.name for p in policies_for(Course, Operation.read, anon)] == ["Anyone can read courses"]
    assert policies_for(Payment, Operation.read, anon) == []
