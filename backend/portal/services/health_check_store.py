"""Health check store: list and save symptom checks, newest first."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.orm import HealthCheckRow
from portal.models.schemas import HealthCheck, HealthCheckCreate
from portal.services.errors import AuthError, PersistenceError, log_error
from portal.services.identity import IdentityResolver
from portal.services.normalizer import normalize_health_check, photos_for_storage
from portal.services.notifications import Notifier
from portal.services.tables import RemoteTable
from portal.services.upsert import Clock, utcnow

logger = logging.getLogger(__name__)


class HealthCheckStore:
    def __init__(
        self,
        session: AsyncSession,
        resolver: IdentityResolver,
        notifier: Notifier | None = None,
        now: Clock = utcnow,
    ) -> None:
        self.health_checks: list[HealthCheck] = []
        self.loading = True
        self.error: Exception | None = None
        self._table = RemoteTable(session, HealthCheckRow)
        self._resolver = resolver
        self._notifier = notifier or Notifier()
        self._now = now

    async def fetch(self) -> list[HealthCheck]:
        self.loading = True
        try:
            identity = await self._resolver.resolve()
            if identity is None:
                return self.health_checks
            rows = await self._table.select(
                filters={"user_id": identity}, order_by="created_at", ascending=False
            )
            self.health_checks = [normalize_health_check(row).value for row in rows]
            self.error = None
            logger.debug("Fetched %d health checks for %s", len(rows), identity)
        except (AuthError, PersistenceError) as e:
            log_error(logger, "fetching health checks", e)
            self.error = e
            self._notifier.error("Failed to fetch your health check history")
        finally:
            self.loading = False
        return self.health_checks

    async def save(self, health_check: HealthCheckCreate) -> HealthCheck:
        """Insert a new health check and put it at the front of the cache."""
        analysis = health_check.analysis_results
        values = {
            **health_check.model_dump(exclude={"analysis_results", "symptom_photos"}),
            "analysis_results": (
                [c.model_dump(by_alias=True) for c in analysis] if analysis is not None else None
            ),
            "symptom_photos": photos_for_storage(health_check.symptom_photos),
            "comprehensive_analysis": health_check.comprehensive_analysis or False,
            "urgency_level": health_check.urgency_level or None,
            "overall_assessment": health_check.overall_assessment or None,
            "created_at": self._now(),
        }
        try:
            values["user_id"] = await self._resolver.require()
            logger.info(
                "Saving health check for %s (%d symptoms, comprehensive=%s)",
                values["user_id"],
                len(health_check.symptoms),
                values["comprehensive_analysis"],
            )
            row = await self._table.insert_one(values)
        except (AuthError, PersistenceError) as e:
            log_error(logger, "saving health check", e)
            self._notifier.error("Failed to save health check data")
            raise

        saved = normalize_health_check(row).value
        self.health_checks = [saved, *self.health_checks]
        self._notifier.success("Comprehensive health check saved successfully")
        return saved
