"""Monthly trading performance endpoint."""

from typing import List

from fastapi import APIRouter, Depends

from .. import schemas
from ..deps import get_store
from ..models import TradingPerformanceRecord
from ..store import Store


router = APIRouter(
    prefix="/performance",
    tags=["Performance"],
    responses={403: {"model": schemas.ErrorResponse, "description": "Forbidden"}},
)


@router.get("", response_model=List[schemas.PerformanceOut], summary="List own monthly performance")
def list_performance(store: Store = Depends(get_store)):
    return store.select(TradingPerformanceRecord, order_by=TradingPerformanceRecord.month_year.desc())
