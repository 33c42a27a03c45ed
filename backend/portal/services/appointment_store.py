"""Appointment store: list, book and update the current user's appointments."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.orm import AppointmentRow, ProfileRow
from portal.models.schemas import Appointment, AppointmentCreate, AppointmentUpdate
from portal.services.errors import AuthError, PersistenceError, log_error
from portal.services.identity import IdentityResolver
from portal.services.normalizer import normalize_appointment, normalize_status
from portal.services.notifications import Notifier
from portal.services.tables import RemoteTable
from portal.services.upsert import Clock, ensure_row, utcnow

logger = logging.getLogger(__name__)


class AppointmentStore:
    """Cached appointments for one caller, ordered by date."""

    def __init__(
        self,
        session: AsyncSession,
        resolver: IdentityResolver,
        notifier: Notifier | None = None,
        now: Clock = utcnow,
    ) -> None:
        self.appointments: list[Appointment] = []
        self.loading = True
        self.error: Exception | None = None
        self._appointments = RemoteTable(session, AppointmentRow)
        self._profiles = RemoteTable(session, ProfileRow)
        self._resolver = resolver
        self._notifier = notifier or Notifier()
        self._now = now

    async def fetch(self) -> list[Appointment]:
        self.loading = True
        try:
            identity = await self._resolver.resolve()
            if identity is None:
                logger.info("No authenticated user found for appointments")
                return self.appointments
            rows = await self._appointments.select(
                filters={"user_id": identity}, order_by="date", ascending=True
            )
            self.appointments = [normalize_appointment(row) for row in rows]
            self.error = None
            logger.debug("Fetched %d appointments for %s", len(rows), identity)
        except (AuthError, PersistenceError) as e:
            log_error(logger, "fetching appointments", e)
            self.error = e
            self._notifier.error("Failed to fetch your appointments. Please try again later.")
        finally:
            self.loading = False
        return self.appointments

    async def add(self, appointment: AppointmentCreate) -> Appointment:
        """Book an appointment, creating a bare profile first if there is none."""
        try:
            identity = await self._resolver.require()
            logger.info("Adding appointment for %s", identity)
            # appointments.user_id references profiles.id
            await ensure_row(self._profiles, identity, now=self._now)

            timestamp = self._now()
            values = {
                **appointment.model_dump(),
                "user_id": identity,
                "status": normalize_status(appointment.status or "pending"),
                "created_at": timestamp,
                "updated_at": timestamp,
            }
            row = await self._appointments.insert_one(values)
        except (AuthError, PersistenceError) as e:
            log_error(logger, "adding appointment", e)
            self._notifier.error("Failed to book appointment. Please try again.")
            raise

        booked = normalize_appointment(row)
        self.appointments = [*self.appointments, booked]
        self._notifier.success("Appointment booked successfully")
        return booked

    async def update(self, appointment_id: str, changes: AppointmentUpdate) -> Appointment:
        """Update an appointment by id.

        Ownership is not re-checked here: any row with this id is targeted.
        """
        values = changes.model_dump(exclude_unset=True)
        if "status" in values:
            values["status"] = normalize_status(values["status"])
        values["updated_at"] = self._now()
        try:
            row = await self._appointments.update_one(values, filters={"id": appointment_id})
        except PersistenceError as e:
            log_error(logger, "updating appointment", e)
            self._notifier.error("Failed to update appointment")
            raise

        updated = normalize_appointment(row)
        self.appointments = [
            updated if existing.id == appointment_id else existing
            for existing in self.appointments
        ]
        self._notifier.success("Appointment updated successfully")
        return updated
