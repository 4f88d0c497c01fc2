"""Payment history endpoint (read-only; payments are recorded server-side)."""

from typing import List

from fastapi import APIRouter, Depends

from .. import schemas
from ..deps import get_store
from ..models import Payment
from ..store import Store


router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
    responses={403: {"model": schemas.ErrorResponse, "description": "Forbidden"}},
)


@router.get("", response_model=List[schemas.PaymentOut], summary="List own payments")
def list_payments(store: Store = Depends(get_store)):
    return store.select(Payment, order_by=Payment.payment_date.desc())
