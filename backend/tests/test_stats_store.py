"""Tests for the stats store."""

from __future__ import annotations

import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.orm import AppointmentRow, HealthCheckRow, ProfileRow
from portal.models.schemas import UserStats
from portal.services.errors import PersistenceError
from portal.services.stats_store import StatsStore
from portal.services.tables import RemoteTable

TODAY = datetime.date(2024, 6, 15)


async def _seed(session: AsyncSession) -> None:
    await RemoteTable(session, ProfileRow).insert_one({"id": "user-1"})
    appointments = [
        (TODAY - datetime.timedelta(days=30), "completed"),
        (TODAY, "confirmed"),
        (TODAY + datetime.timedelta(days=7), "pending"),
        (TODAY + datetime.timedelta(days=14), "cancelled"),
    ]
    await RemoteTable(session, AppointmentRow).insert(
        [
            {
                "user_id": "user-1",
                "doctor_name": "Dr. Chen",
                "date": day,
                "time": "09:00",
                "status": status,
            }
            for day, status in appointments
        ]
    )
    await RemoteTable(session, HealthCheckRow).insert(
        [
            {"user_id": "user-1", "symptoms": ["Cough"]},
            {"user_id": "user-1", "symptoms": ["Fever"]},
            {"user_id": "user-2", "symptoms": ["Rash"]},
        ]
    )


async def test_fetch_counts(session: AsyncSession, resolver) -> None:
    await _seed(session)
    store = StatsStore(session, resolver, today=lambda: TODAY)

    stats = await store.fetch()

    assert stats == UserStats(
        appointments_count=4,
        health_checks_count=2,
        upcoming_appointments=2,
        completed_health_checks=2,
    )
    assert store.loading is False
    assert store.error is None


async def test_fetch_without_identity_is_zero(session: AsyncSession, anonymous) -> None:
    await _seed(session)
    store = StatsStore(session, anonymous, today=lambda: TODAY)

    assert await store.fetch() == UserStats()
    assert store.loading is False
    assert store.error is None


async def test_any_failed_count_fails_the_fetch(session: AsyncSession, resolver, mocker) -> None:
    await _seed(session)
    store = StatsStore(session, resolver, today=lambda: TODAY)
    mocker.patch.object(
        store._health_checks,
        "count",
        side_effect=PersistenceError("relation does not exist", code="42P01"),
    )

    stats = await store.fetch()

    assert stats == UserStats()
    assert isinstance(store.error, PersistenceError)
    assert store.loading is False


async def test_null_status_counts_as_upcoming(session: AsyncSession, resolver) -> None:
    await RemoteTable(session, ProfileRow).insert_one({"id": "user-1"})
    await RemoteTable(session, AppointmentRow).insert_one(
        {
            "user_id": "user-1",
            "doctor_name": "Dr. Chen",
            "date": TODAY + datetime.timedelta(days=2),
            "time": "09:00",
            "status": None,
        }
    )
    store = StatsStore(session, resolver, today=lambda: TODAY)

    stats = await store.fetch()

    assert stats.upcoming_appointments == 1
