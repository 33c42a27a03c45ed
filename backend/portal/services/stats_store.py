"""Usage statistics, recomputed from the appointment and health check tables."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.orm import AppointmentRow, HealthCheckRow
from portal.models.schemas import UserStats
from portal.services.errors import AuthError, PersistenceError, log_error
from portal.services.identity import IdentityResolver
from portal.services.tables import RemoteTable

logger = logging.getLogger(__name__)


def utc_today() -> datetime.date:
    return datetime.datetime.now(datetime.UTC).date()


class StatsStore:
    def __init__(
        self,
        session: AsyncSession,
        resolver: IdentityResolver,
        today: Callable[[], datetime.date] = utc_today,
    ) -> None:
        self.stats = UserStats()
        self.loading = True
        self.error: Exception | None = None
        self._appointments = RemoteTable(session, AppointmentRow)
        self._health_checks = RemoteTable(session, HealthCheckRow)
        self._resolver = resolver
        self._today = today

    async def fetch(self) -> UserStats:
        self.loading = True
        try:
            identity = await self._resolver.resolve()
            if identity is None:
                return self.stats
            mine = {"user_id": identity}
            appointments = await self._appointments.count(filters=mine)
            upcoming = await self._appointments.count(
                filters=mine,
                where=[
                    AppointmentRow.date >= self._today(),
                    # A NULL status reads as pending
                    or_(AppointmentRow.status.is_(None), AppointmentRow.status != "cancelled"),
                ],
            )
            health_checks = await self._health_checks.count(filters=mine)
            self.stats = UserStats(
                appointments_count=appointments,
                health_checks_count=health_checks,
                upcoming_appointments=upcoming,
                # No completion criterion exists for health checks yet
                completed_health_checks=health_checks,
            )
            self.error = None
        except (AuthError, PersistenceError) as e:
            log_error(logger, "fetching user stats", e)
            self.error = e
        finally:
            self.loading = False
        return self.stats
