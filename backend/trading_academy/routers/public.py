"""Unauthenticated website forms: contact and newsletter signup."""

from fastapi import APIRouter, Depends, status

from .. import schemas
from ..deps import get_store
from ..models import ContactSubmission, NewsletterSubscriber
from ..store import Store


router = APIRouter(
    tags=["Public"],
    responses={409: {"model": schemas.ErrorResponse, "description": "Conflict"}},
)


@router.post(
    "/contact",
    response_model=schemas.ContactOut,
    status_code=status.HTTP_201_CREATED,
    summary="Submit the contact form",
)
def submit_contact(payload: schemas.ContactCreate, store: Store = Depends(get_store)):
    return store.insert(ContactSubmission(**payload.model_dump()))


@router.post(
    "/newsletter",
    response_model=schemas.NewsletterOut,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to the newsletter",
    description="One subscription per email address; a repeat signup returns 409.",
)
def subscribe(payload: schemas.NewsletterCreate, store: Store = Depends(get_store)):
    return store.insert(NewsletterSubscriber(**payload.model_dump()))
