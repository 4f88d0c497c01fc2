"""Session booking endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status

from .. import schemas
from ..deps import get_store
from ..models import Booking
from ..store import Store


router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"],
    responses={
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        403: {"model": schemas.ErrorResponse, "description": "Forbidden"},
        409: {"model": schemas.ErrorResponse, "description": "Conflict"},
    },
)


@router.get("", response_model=List[schemas.BookingOut], summary="List own bookings")
def list_bookings(store: Store = Depends(get_store)):
    return store.select(Booking, order_by=Booking.session_date)


@router.post(
    "",
    response_model=schemas.BookingOut,
    status_code=status.HTTP_201_CREATED,
    summary="Book a session",
    description="""
    Book a consultation, mentorship or course session for the caller.

    A booking for another client is refused by the row policy (403), and a
    client id with no client row is a foreign key conflict (409).
    """,
)
def create_booking(payload: schemas.BookingCreate, store: Store = Depends(get_store)):
    booking = Booking(
        client_id=payload.client_id or store.caller.identity,
        session_date=payload.session_date,
        session_type=payload.session_type,
        duration_minutes=payload.duration_minutes,
        notes=payload.notes,
    )
    return store.insert(booking)
