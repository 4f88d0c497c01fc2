"""
Telemetry Module
================

Error tracking for the trading academy API.

Components:
- sentry.py: Error tracking and performance monitoring

Environment Variables:
- SENTRY_DSN: Sentry project DSN (tracking disabled when unset)
- ENVIRONMENT: Environment name attached to events

Related modules:
- trading_academy/main.py: Initializes Sentry on startup
- trading_academy/deps.py: Tags events with the resolved caller
"""

from trading_academy.telemetry.sentry import (
    init_sentry,
    set_caller_context,
    capture_exception,
)

__all__ = [
    "init_sentry",
    "set_caller_context",
    "capture_exception",
]
