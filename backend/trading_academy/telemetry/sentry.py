"""
Sentry Error Tracking
=====================

Error tracking and performance monitoring using Sentry.

Related files:
- trading_academy/main.py: Initializes Sentry in create_app()
- trading_academy/deps.py: Sets caller context after token resolution
- trading_academy/main.py: Unexpected errors captured by the 500 handler

Environment Variables:
- SENTRY_DSN: Sentry project DSN (required for Sentry to work)
- ENVIRONMENT: Environment name (production, staging, development)
- RELEASE_VERSION: Release tag set by CI/CD (optional)
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from trading_academy.policies import Caller

logger = logging.getLogger(__name__)


def init_sentry(dsn: Optional[str] = None, environment: Optional[str] = None) -> bool:
    """
    Initialize Sentry SDK for FastAPI.

    Falls back to SENTRY_DSN / ENVIRONMENT from the environment when the
    arguments are not given.

    Returns:
        True if Sentry was initialized, False when no DSN is configured or
        initialization failed.
    """
    dsn = dsn or os.environ.get("SENTRY_DSN")
    if not dsn:
        logger.info("[SENTRY] SENTRY_DSN not set - error tracking disabled")
        return False

    environment = environment or os.environ.get("ENVIRONMENT", "development")

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                LoggingIntegration(
                    level=logging.INFO,        # INFO+ as breadcrumbs
                    event_level=logging.ERROR,  # ERROR+ as events
                ),
            ],
            traces_sample_rate=0.1,
            # Client rows carry names, emails and phone numbers
            send_default_pii=False,
            release=os.environ.get("RELEASE_VERSION"),
        )
        logger.info(f"[SENTRY] Initialized for {environment} environment")
        return True
    except Exception as e:
        logger.error(f"[SENTRY] Failed to initialize: {e}")
        return False


def set_caller_context(caller: Caller) -> None:
    """Attach the caller's capability (and client id, if any) to subsequent events."""
    try:
        sentry_sdk.set_tag("capability", caller.capability.value)
        if caller.identity is not None:
            sentry_sdk.set_user({"id": str(caller.identity)})
        else:
            sentry_sdk.set_user(None)
    except Exception as e:
        logger.debug(f"[SENTRY] Failed to set caller context: {e}")


def capture_exception(exception: Exception, extra: Optional[dict] = None) -> None:
    """
    Manually capture an exception to Sentry.

    Example:
        except Exception as e:
            capture_exception(e, extra={"path": request.url.path})
    """
    try:
        with sentry_sdk.new_scope() as scope:
            for key, value in (extra or {}).items():
                scope.set_extra(key, value)
            sentry_sdk.capture_exception(exception)
    except Exception as e:
        logger.error(f"[SENTRY] Failed to capture exception: {e}")
