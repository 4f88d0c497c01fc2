"""Client self-service endpoints.

The caller's token subject is their client id, so `/clients/me` is the
only addressable client record.
"""

from fastapi import APIRouter, Depends

from .. import schemas
from ..deps import get_store
from ..models import Client
from ..store import Store


router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
    responses={
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        403: {"model": schemas.ErrorResponse, "description": "Forbidden"},
        404: {"model": schemas.ErrorResponse, "description": "Not Found"},
    },
)


@router.get("/me", response_model=schemas.ClientOut, summary="Get own client record")
def get_me(store: Store = Depends(get_store)):
    # Anonymous callers have no read grant and are denied before the lookup
    return store.get(Client, store.caller.identity)


@router.patch("/me", response_model=schemas.ClientOut, summary="Update own client record")
def update_me(payload: schemas.ClientUpdate, store: Store = Depends(get_store)):
    """Apply the fields present in the payload.

    WHAT: Partial update of name/phone/package/notes
    WHY: Status and payment status are managed by the payment flow, not the client
    """
    return store.update(Client, store.caller.identity, **payload.model_dump(exclude_unset=True))
