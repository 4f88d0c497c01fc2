"""Login session audit tests."""

import pytest

from trading_academy.errors import RowNotFound, UniquenessViolation
from trading_academy.services.sessions import close_session, open_session, touch_session


def test_open_session_stamps_last_login(test_db_session, client_a):
    session = open_session(test_db_session, client_a.id, "tok-1", ip_address="203.0.113.7", user_agent="pytest")

    test_db_session.refresh(client_a)
    assert session.is_active is True
    assert session.ip_address == "203.0.113.7"
    assert client_a.last_login is not None
    assert client_a.last_login == session.login_time


def test_session_tokens_are_unique(test_db_session, client_a, client_b):
    open_session(test_db_session, client_a.id, "shared-token")
    with pytest.raises(UniquenessViolation):
        open_session(test_db_session, client_b.id, "shared-token")


def test_touch_and_close(test_db_session, client_a):
    opened = open_session(test_db_session, client_a.id, "tok-2")
    first_activity = opened.last_activity

    touched = touch_session(test_db_session, "tok-2")
    assert touched.last_activity >= first_activity

    closed = close_session(test_db_session, "tok-2")
    assert closed.is_active is False


def test_unknown_token(test_db_session):
    with pytest.raises(RowNotFound):
        close_session(test_db_session, "missing")
