"""Tests for the health check store."""

from __future__ import annotations

import datetime
import json

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.orm import HealthCheckRow
from portal.models.schemas import AnalysisCondition, HealthCheckCreate
from portal.services.errors import AuthError
from portal.services.health_check_store import HealthCheckStore
from portal.services.tables import RemoteTable


@pytest.fixture
def store(session: AsyncSession, resolver, notifier, clock) -> HealthCheckStore:
    return HealthCheckStore(session, resolver, notifier, now=clock)


async def test_fetch_without_identity_is_empty(
    session: AsyncSession, anonymous, notifier
) -> None:
    store = HealthCheckStore(session, anonymous, notifier)

    assert await store.fetch() == []
    assert store.loading is False
    assert store.error is None


async def test_save_applies_defaults(store: HealthCheckStore, notifier) -> None:
    saved = await store.save(HealthCheckCreate(symptoms=["Cough"]))

    assert saved.id is not None
    assert saved.user_id == "user-1"
    assert saved.symptoms == ["Cough"]
    assert saved.comprehensive_analysis is False
    assert saved.urgency_level is None
    assert saved.overall_assessment is None
    assert saved.analysis_results is None
    assert saved.symptom_photos is None
    assert notifier.sent[-1].title == "Success"


async def test_save_stores_structured_fields(store: HealthCheckStore, session: AsyncSession) -> None:
    saved = await store.save(
        HealthCheckCreate(
            symptoms=["Rash", "Itching"],
            severity="mild",
            analysis_results=[
                AnalysisCondition(
                    name="Eczema",
                    matched_symptoms=["Rash", "Itching"],
                    match_score=70,
                    recommended_actions=["Moisturize"],
                )
            ],
            symptom_photos={
                "Rash": "https://storage.example.com/rash.jpg",
                "Itching": "data:image/png;base64,iVBORw0KGgo=",
                "Swelling": None,
            },
            comprehensive_analysis=True,
            urgency_level="low",
            overall_assessment="Mild skin irritation",
        )
    )

    assert saved.analysis_results[0].name == "Eczema"
    assert saved.analysis_results[0].match_score == 70
    assert saved.symptom_photos == {
        "Rash": "https://storage.example.com/rash.jpg",
        "Itching": "data:image/png;base64,iVBORw0KGgo=",
    }
    assert saved.comprehensive_analysis is True

    row = await RemoteTable(session, HealthCheckRow).maybe_single(filters={"id": saved.id})
    assert row["analysis_results"][0]["matchedSymptoms"] == ["Rash", "Itching"]
    assert row["analysis_results"][0]["matchScore"] == 70


async def test_save_prepends_to_cache(store: HealthCheckStore) -> None:
    first = await store.save(HealthCheckCreate(symptoms=["Cough"]))
    second = await store.save(HealthCheckCreate(symptoms=["Fever"]))

    assert [h.id for h in store.health_checks] == [second.id, first.id]


async def test_save_without_identity_raises(session: AsyncSession, anonymous, notifier) -> None:
    store = HealthCheckStore(session, anonymous, notifier)

    with pytest.raises(AuthError):
        await store.save(HealthCheckCreate(symptoms=["Cough"]))

    assert store.health_checks == []
    assert notifier.sent[-1].description == "Failed to save health check data"


async def test_fetch_newest_first_and_parses_encoded_fields(
    store: HealthCheckStore, session: AsyncSession
) -> None:
    table = RemoteTable(session, HealthCheckRow)
    await table.insert(
        [
            {
                "user_id": "user-1",
                "symptoms": ["Headache"],
                "analysis_results": json.dumps([{"name": "Flu"}]),
                "symptom_photos": json.dumps({"Headache": "https://x/h.jpg"}),
                "created_at": datetime.datetime(2024, 1, 1, 8, 0),
            },
            {
                "user_id": "user-1",
                "symptoms": ["Rash"],
                "analysis_results": "[{broken",
                "symptom_photos": "{broken",
                "created_at": datetime.datetime(2024, 2, 1, 8, 0),
            },
            {
                "user_id": "user-2",
                "symptoms": ["Other"],
                "created_at": datetime.datetime(2024, 3, 1, 8, 0),
            },
        ]
    )

    result = await store.fetch()

    assert [h.symptoms for h in result] == [["Rash"], ["Headache"]]
    newest, oldest = result
    assert newest.analysis_results is None
    assert newest.symptom_photos is None
    assert oldest.analysis_results[0].name == "Flu"
    assert oldest.analysis_results[0].matched_symptoms == []
    assert oldest.analysis_results[0].match_score == 0
    assert oldest.symptom_photos == {"Headache": "https://x/h.jpg"}
    assert store.error is None
