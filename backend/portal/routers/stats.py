"""Usage statistics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portal.dependencies import get_stats_store
from portal.models.schemas import UserStats
from portal.routers.errors import to_http_exception
from portal.services.stats_store import StatsStore

router = APIRouter(prefix="/api/v1/stats", tags=["stats"])


@router.get("", response_model=UserStats)
async def get_stats(store: StatsStore = Depends(get_stats_store)) -> UserStats:
    await store.fetch()
    if store.error is not None:
        raise to_http_exception(store.error)
    return store.stats
