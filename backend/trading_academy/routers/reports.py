"""Reporting endpoints backed by the derived views.

Views are evaluated with the caller's read policies, so an authenticated
client sees only their own enrollment, revenue and sessions.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .. import schemas, views
from ..deps import get_store
from ..store import Store


router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    responses={403: {"model": schemas.ErrorResponse, "description": "Forbidden"}},
)


@router.get("/active-clients", response_model=List[schemas.ActiveClientEnrollmentOut])
def active_clients(store: Store = Depends(get_store)):
    return views.active_client_enrollment(store.db, store.caller)


@router.get("/monthly-revenue", response_model=List[schemas.MonthlyRevenueOut])
def monthly_revenue(store: Store = Depends(get_store)):
    return views.monthly_revenue(store.db, store.caller)


@router.get("/upcoming-sessions", response_model=List[schemas.UpcomingSessionOut])
def upcoming_sessions(
    as_of: Optional[datetime] = Query(default=None, description="Cut-off instant; defaults to now"),
    store: Store = Depends(get_store),
):
    return views.upcoming_sessions(store.db, store.caller, as_of=as_of)
