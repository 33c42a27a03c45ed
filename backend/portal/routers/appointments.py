"""Appointment API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from portal.dependencies import get_appointment_store, get_identity_resolver
from portal.models.schemas import Appointment, AppointmentCreate, AppointmentUpdate
from portal.routers.errors import to_http_exception
from portal.services.appointment_store import AppointmentStore
from portal.services.errors import AuthError, PersistenceError
from portal.services.identity import IdentityResolver

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])


@router.get("", response_model=list[Appointment])
async def list_appointments(
    store: AppointmentStore = Depends(get_appointment_store),
) -> list[Appointment]:
    await store.fetch()
    if store.error is not None:
        raise to_http_exception(store.error)
    return store.appointments


@router.post("", response_model=Appointment, status_code=201)
async def book_appointment(
    appointment: AppointmentCreate,
    store: AppointmentStore = Depends(get_appointment_store),
) -> Appointment:
    try:
        return await store.add(appointment)
    except (AuthError, PersistenceError) as e:
        raise to_http_exception(e)


@router.patch("/{appointment_id}", response_model=Appointment)
async def update_appointment(
    appointment_id: str,
    changes: AppointmentUpdate,
    store: AppointmentStore = Depends(get_appointment_store),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Appointment:
    try:
        # Signed-in callers only; row ownership is the database access policy
        await resolver.require()
        return await store.update(appointment_id, changes)
    except (AuthError, PersistenceError) as e:
        raise to_http_exception(e)
