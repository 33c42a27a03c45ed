"""Seed the database with a demo patient. Drop-and-recreate tables on each run.

Usage:
    cd backend
    python seed.py [USER_ID]

USER_ID should be the auth user id of the account you sign in with.
"""

from __future__ import annotations

import asyncio
import datetime
import sys

from portal.database import async_session, engine
from portal.models.orm import AppointmentRow, Base, HealthCheckRow, ProfileRow

DEFAULT_USER_ID = "00000000-0000-0000-0000-000000000001"


def build_rows(user_id: str) -> list[Base]:
    now = datetime.datetime.now(datetime.UTC)
    today = now.date()
    return [
        ProfileRow(
            id=user_id,
            first_name="Maria",
            last_name="Garcia",
            date_of_birth="1957-03-15",
            gender="female",
            phone="+1 555 0100",
            address="12 Harbor Street",
            region="Lisbon",
            medical_history="Type 2 diabetes, hypertension",
            allergies="Penicillin, sulfa drugs",
            medications="Metformin 1000mg twice daily; Lisinopril 20mg once daily",
            emergency_contact_name="Luis Garcia",
            emergency_contact_relationship="Son",
            emergency_contact_phone="+1 555 0101",
            created_at=now,
            updated_at=now,
        ),
        AppointmentRow(
            user_id=user_id,
            doctor_name="Dr. Sarah Chen",
            doctor_specialty="Endocrinology",
            date=today + datetime.timedelta(days=7),
            time="09:30",
            reason="Diabetes follow-up",
            status="confirmed",
            created_at=now,
            updated_at=now,
        ),
        AppointmentRow(
            user_id=user_id,
            doctor_name="Dr. Ahmed Karim",
            doctor_specialty="Cardiology",
            date=today + datetime.timedelta(days=21),
            time="14:00",
            reason="Blood pressure review",
            status="pending",
            created_at=now,
            updated_at=now,
        ),
        AppointmentRow(
            user_id=user_id,
            doctor_name="Dr. Sarah Chen",
            doctor_specialty="Endocrinology",
            date=today - datetime.timedelta(days=90),
            time="10:00",
            reason="HbA1c results",
            status="completed",
            created_at=now,
            updated_at=now,
        ),
        HealthCheckRow(
            user_id=user_id,
            symptoms=["Headache", "Fatigue"],
            severity="moderate",
            duration="3 days",
            previous_conditions=["Hypertension"],
            medications=["Lisinopril"],
            notes="Worse in the morning",
            analysis_results=[
                {
                    "name": "Tension headache",
                    "description": "Common headache linked to stress and poor sleep",
                    "matchedSymptoms": ["Headache", "Fatigue"],
                    "matchScore": 72,
                    "recommendedActions": ["Rest", "Hydrate", "Monitor blood pressure"],
                    "seekMedicalAttention": "If the headache is sudden and severe",
                }
            ],
            comprehensive_analysis=True,
            urgency_level="low",
            overall_assessment="Likely benign; check blood pressure readings.",
            created_at=now,
        ),
    ]


async def main() -> None:
    user_id = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_USER_ID

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    rows = build_rows(user_id)
    async with async_session() as session:
        # Profile first: appointments reference it
        session.add(rows[0])
        await session.flush()
        session.add_all(rows[1:])
        await session.commit()

    print(f"Seeded profile, 3 appointments and 1 health check for {user_id}.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
