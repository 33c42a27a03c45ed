"""Health check API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portal.dependencies import get_health_check_store
from portal.models.schemas import HealthCheck, HealthCheckCreate
from portal.routers.errors import to_http_exception
from portal.services.errors import AuthError, PersistenceError
from portal.services.health_check_store import HealthCheckStore

router = APIRouter(prefix="/api/v1/health-checks", tags=["health-checks"])


@router.get("", response_model=list[HealthCheck])
async def list_health_checks(
    store: HealthCheckStore = Depends(get_health_check_store),
) -> list[HealthCheck]:
    await store.fetch()
    if store.error is not None:
        raise to_http_exception(store.error)
    return store.health_checks


@router.post("", response_model=HealthCheck, status_code=201)
async def save_health_check(
    health_check: HealthCheckCreate,
    store: HealthCheckStore = Depends(get_health_check_store),
) -> HealthCheck:
    try:
        return await store.save(health_check)
    except (AuthError, PersistenceError) as e:
        raise to_http_exception(e)
