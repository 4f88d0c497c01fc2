"""Dependency providers and settings management."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.orm import Session

from .database import get_db
from .policies import Caller
from .security import InvalidToken, caller_from_token
from .store import Store
from .telemetry.sentry import set_caller_context


class Settings(BaseSettings):
    """Application settings loaded from environment or .env."""

    BACKEND_CORS_ORIGINS: str = "http://localhost:3000"
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # Error tracking (disabled when unset)
    SENTRY_DSN: Optional[str] = None
    ENVIRONMENT: str = "development"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # type: ignore[call-arg]


def get_caller(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Caller:
    """Resolve the caller from the `Authorization` header.

    No header means an anonymous caller. A header that does not hold a valid
    "Bearer <jwt>" is rejected rather than downgraded to anonymous.
    """
    if not authorization:
        caller = Caller.anonymous()
        set_caller_context(caller)
        return caller

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authorization header")

    try:
        caller = caller_from_token(token, settings.JWT_SECRET, settings.JWT_ALGORITHM)
    except InvalidToken:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    set_caller_context(caller)
    return caller


def get_store(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
) -> Store:
    """Store bound to the request's caller; row policies always apply."""
    return Store(db, caller)
