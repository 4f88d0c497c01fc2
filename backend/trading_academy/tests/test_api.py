"""HTTP endpoint tests through the FastAPI TestClient."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from trading_academy.models import (
    Booking,
    Payment,
    PaymentStatusEnum,
    PaymentTypeEnum,
    SessionTypeEnum,
    TradingPerformanceRecord,
)
from trading_academy.store import Store


def test_health(api):
    response = api.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestCatalog:
    def test_anonymous_lists_courses_cheapest_first(self, api, seeded_catalog):
        response = api.get("/courses")

        assert response.status_code == 200
        names = [c["course_name"] for c in response.json()]
        assert names == ["Beginner Package", "Advanced Package", "Elite Package"]
        assert response.json()[0]["price"] == "997.00"

    def test_inactive_course_is_forbidden(self, api, seeded_catalog, course):
        course.is_active = False
        seeded_catalog.commit()

        response = api.get(f"/courses/{course.id}")

        assert response.status_code == 403
        assert response.json()["code"] == "authorization_denied"

    def test_unknown_program_is_not_found(self, api, seeded_catalog):
        response = api.get(f"/mentorship/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_mentorship_listing(self, api, seeded_catalog):
        response = api.get("/mentorship")
        assert [p["billing_period"] for p in response.json()] == ["monthly", "quarterly", "annually"]


class TestClientSelfService:
    def test_anonymous_me_is_forbidden(self, api):
        response = api.get("/clients/me")
        assert response.status_code == 403

    def test_invalid_token_is_unauthorized(self, api):
        response = api.get("/clients/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_non_bearer_scheme_is_unauthorized(self, api):
        response = api.get("/clients/me", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_me_and_update(self, api, client_a, auth_headers):
        headers = auth_headers(client_a.id)

        response = api.get("/clients/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"
        assert response.json()["payment_status"] == "pending"

        response = api.patch("/clients/me", json={"phone": "+44 1111"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["phone"] == "+44 1111"
        assert response.json()["name"] == "Alice Trader"

    def test_token_for_deleted_client_is_not_found(self, api, auth_headers):
        response = api.get("/clients/me", headers=auth_headers(uuid4()))
        assert response.status_code == 404


class TestBookings:
    def _payload(self, **overrides):
        body = {
            "session_date": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
            "session_type": "consultation",
        }
        body.update(overrides)
        return body

    def test_book_and_list(self, api, client_a, client_b, auth_headers, test_db_session):
        Store(test_db_session).insert(
            Booking(
                client_id=client_b.id,
                session_date=datetime.now(timezone.utc) + timedelta(days=1),
                session_type=SessionTypeEnum.group_call,
            )
        )
        headers = auth_headers(client_a.id)

        created = api.post("/bookings", json=self._payload(notes="first call"), headers=headers)
        assert created.status_code == 201
        assert created.json()["client_id"] == str(client_a.id)
        assert created.json()["status"] == "scheduled"
        assert created.json()["duration_minutes"] == 60

        listed = api.get("/bookings", headers=headers)
        assert [b["id"] for b in listed.json()] == [created.json()["id"]]

    def test_booking_for_other_client_is_forbidden(self, api, client_a, client_b, auth_headers):
        response = api.post(
            "/bookings",
            json=self._payload(client_id=str(client_b.id)),
            headers=auth_headers(client_a.id),
        )
        assert response.status_code == 403

    def test_anonymous_booking_is_forbidden(self, api, client_a):
        response = api.post("/bookings", json=self._payload(client_id=str(client_a.id)))
        assert response.status_code == 403

    def test_unknown_session_type_is_rejected(self, api, client_a, auth_headers):
        response = api.post("/bookings", json=self._payload(session_type="webinar"), headers=auth_headers(client_a.id))
        assert response.status_code == 422

    def test_booking_for_missing_client_conflicts(self, api, auth_headers):
        response = api.post("/bookings", json=self._payload(), headers=auth_headers(uuid4()))
        assert response.status_code == 409
        assert response.json()["code"] == "foreign_key_violation"


class TestOwnedHistory:
    def test_payments_and_performance(self, api, client_a, client_b, auth_headers, test_db_session):
        store = Store(test_db_session)
        for c in (client_a, client_b):
            store.insert(Payment(client_id=c.id, amount=Decimal("25.00"), payment_type=PaymentTypeEnum.consultation))
            store.insert(TradingPerformanceRecord(client_id=c.id, month_year=datetime(2025, 6, 1).date(),
                                                  total_trades=12, winning_trades=7, losing_trades=5))
        headers = auth_headers(client_a.id)

        payments = api.get("/payments", headers=headers).json()
        assert len(payments) == 1
        assert payments[0]["payment_type"] == "consultation"

        performance = api.get("/performance", headers=headers).json()
        assert len(performance) == 1
        assert performance[0]["total_trades"] == 12
        assert performance[0]["month_year"] == "2025-06-01"

    def test_anonymous_payments_forbidden(self, api):
        assert api.get("/payments").status_code == 403


class TestPublicForms:
    def test_contact_submission(self, api):
        response = api.post(
            "/contact",
            json={"name": "Eve", "email": "eve@example.com", "phone": "0", "message": "Hello"},
        )
        assert response.status_code == 201
        assert response.json()["status"] == "new"

    def test_contact_requires_valid_email(self, api):
        response = api.post("/contact", json={"name": "Eve", "email": "nope", "phone": "0", "message": "Hi"})
        assert response.status_code == 422

    def test_duplicate_newsletter_signup_conflicts(self, api):
        first = api.post("/newsletter", json={"email": "news@example.com"})
        assert first.status_code == 201
        assert first.json()["status"] == "active"

        second = api.post("/newsletter", json={"email": "news@example.com", "name": "Again"})
        assert second.status_code == 409
        assert second.json()["code"] == "unique_violation"


class TestReports:
    def test_reports_are_scoped_to_caller(self, api, client_a, client_b, auth_headers, test_db_session):
        store = Store(test_db_session)
        store.insert(Payment(client_id=client_a.id, amount=Decimal("40.00"), payment_type=PaymentTypeEnum.consultation,
                             payment_status=PaymentStatusEnum.completed,
                             payment_date=datetime(2025, 6, 2, tzinfo=timezone.utc)))
        store.insert(Payment(client_id=client_b.id, amount=Decimal("60.00"), payment_type=PaymentTypeEnum.consultation,
                             payment_status=PaymentStatusEnum.completed,
                             payment_date=datetime(2025, 6, 3, tzinfo=timezone.utc)))
        store.insert(Booking(client_id=client_a.id, session_date=datetime(2025, 7, 1, 9, tzinfo=timezone.utc),
                             session_type=SessionTypeEnum.consultation))
        headers = auth_headers(client_a.id)

        revenue = api.get("/reports/monthly-revenue", headers=headers).json()
        assert len(revenue) == 1
        assert revenue[0]["month"] == "2025-06-01"
        assert revenue[0]["total_payments"] == 1
        assert Decimal(revenue[0]["total_revenue"]) == Decimal("40.00")

        active = api.get("/reports/active-clients", headers=headers).json()
        assert [r["client_id"] for r in active] == [str(client_a.id)]
        assert active[0]["payment_type"] == "consultation"

        sessions = api.get(
            "/reports/upcoming-sessions",
            params={"as_of": "2025-06-19T00:00:00+00:00"},
            headers=headers,
        ).json()
        assert [s["client_email"] for s in sessions] == ["alice@example.com"]

    def test_undated_revenue_is_reported_without_month(self, api, client_a, auth_headers, test_db_session):
        store = Store(test_db_session)
        payment = store.insert(Payment(client_id=client_a.id, amount=Decimal("25.00"),
                                       payment_type=PaymentTypeEnum.consultation,
                                       payment_status=PaymentStatusEnum.completed))
        store.update(Payment, payment.id, payment_date=None)

        response = api.get("/reports/monthly-revenue", headers=auth_headers(client_a.id))

        assert response.status_code == 200
        assert response.json()[0]["month"] is None
        assert response.json()[0]["total_payments"] == 1

    def test_anonymous_reports_forbidden(self, api):
        assert api.get("/reports/monthly-revenue").status_code == 403
        assert api.get("/reports/upcoming-sessions").status_code == 403
