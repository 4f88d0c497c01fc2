"""Caller identity from bearer JWTs.

WHAT:
    Decodes tokens issued by the external identity provider and turns the
    `sub` claim into a `Caller`.
WHY:
    Row policies compare the caller identity with `clients.id` (what
    `auth.uid()` returns in the database policies). Token issuance is external.
REFERENCES:
    - trading_academy/deps.py::get_caller
    - trading_academy/policies.py::Caller
"""

import logging
from typing import Any, Dict
from uuid import UUID

from jose import JWTError, jwt

from .policies import Caller

logger = logging.getLogger(__name__)


class InvalidToken(Exception):
    """The bearer token is malformed, expired, or lacks a UUID subject."""


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """Decode and validate a JWT, returning its payload.

    Raises:
        InvalidToken: signature, expiry or format failure.
    """
    try:
        return jwt.decode(token, secret, algorithms=[algorithm], options={"verify_aud": False})
    except JWTError as exc:
        logger.info("[AUTH] Rejected bearer token: %s", exc)
        raise InvalidToken(str(exc)) from exc


def caller_from_token(token: str, secret: str, algorithm: str = "HS256") -> Caller:
    payload = decode_token(token, secret, algorithm)
    subject = payload.get("sub")
    try:
        identity = UUID(str(subject))
    except ValueError as exc:
        raise InvalidToken("token subject is not a client id") from exc
    return Caller.authenticated(identity)
