"""Audit mirror of externally issued login sessions.

The identity provider owns session issuance. This module only records what
it reports (login, activity, logout) so the store has an audit trail.
Callers have no policy on `user_sessions`; everything here runs on the
owner connection.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import RowNotFound
from ..models import Client, UserSession, utcnow
from ..store import Store

logger = logging.getLogger(__name__)


def open_session(
    db: Session,
    client_id: UUID,
    session_token: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> UserSession:
    """Record a login and stamp the client's `last_login`."""
    store = Store(db)
    now = utcnow()
    session = UserSession(
        client_id=client_id,
        session_token=session_token,
        ip_address=ip_address,
        user_agent=user_agent,
        login_time=now,
        last_activity=now,
    )
    client = db.get(Client, client_id)
    if client is not None:
        client.last_login = now
    store.insert(session)
    logger.info("[SESSION] Opened session for client %s from %s", client_id, ip_address or "unknown")
    return session


def _by_token(db: Session, session_token: str) -> UserSession:
    session = db.scalar(select(UserSession).where(UserSession.session_token == session_token))
    if session is None:
        raise RowNotFound("session not found")
    return session


def touch_session(db: Session, session_token: str) -> UserSession:
    session = _by_token(db, session_token)
    session.last_activity = utcnow()
    Store(db).commit("touch session")
    return session


def close_session(db: Session, session_token: str) -> UserSession:
    session = _by_token(db, session_token)
    session.is_active = False
    session.last_activity = utcnow()
    Store(db).commit("close session")
    logger.info("[SESSION] Closed session for client %s", session.client_id)
    return session
