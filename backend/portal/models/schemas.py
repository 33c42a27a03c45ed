"""Pydantic records, request/response and error schemas."""

from __future__ import annotations

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AppointmentStatus = Literal["pending", "confirmed", "cancelled", "completed"]


# --- Profile ---


class Profile(BaseModel):
    """A profile as presented to the portal (``region`` is shown as ``city``)."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    medical_history: str | None = None
    allergies: str | None = None
    medications: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_relationship: str | None = None
    emergency_contact_phone: str | None = None
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None


class ProfileUpdate(BaseModel):
    """Partial profile changes. Only fields that are set get written."""

    model_config = ConfigDict(extra="forbid")

    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    medical_history: str | None = None
    allergies: str | None = None
    medications: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_relationship: str | None = None
    emergency_contact_phone: str | None = None


class ProfileForm(BaseModel):
    """Editable profile form state, every field defaulting to an empty string."""

    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    gender: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    medical_history: str = ""
    allergies: str = ""
    medications: str = ""
    emergency_contact_name: str = ""
    emergency_contact_relationship: str = ""
    emergency_contact_phone: str = ""
    password: str = ""
    confirm_password: str = ""

    @classmethod
    def from_profile(cls, profile: Profile | None) -> ProfileForm:
        if profile is None:
            return cls()
        values = profile.model_dump(include=set(ProfileUpdate.model_fields))
        return cls(**{k: v or "" for k, v in values.items()})

    def to_update(self) -> ProfileUpdate:
        return ProfileUpdate(**self.model_dump(exclude={"password", "confirm_password"}))


# --- Appointments ---


class Appointment(BaseModel):
    id: str
    user_id: str
    doctor_name: str
    doctor_specialty: str | None = None
    date: datetime.date
    time: str
    reason: str | None = None
    status: AppointmentStatus = "pending"
    notes: str | None = None
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None


class AppointmentCreate(BaseModel):
    doctor_name: str
    doctor_specialty: str | None = None
    date: datetime.date
    time: str
    reason: str | None = None
    # Free-form on input; normalized before it is stored
    status: str | None = None
    notes: str | None = None


class AppointmentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    doctor_name: str | None = None
    doctor_specialty: str | None = None
    date: datetime.date | None = None
    time: str | None = None
    reason: str | None = None
    status: str | None = None
    notes: str | None = None


# --- Health checks ---


class AnalysisCondition(BaseModel):
    """One candidate condition from a symptom analysis.

    Serialized with camelCase keys, which is how the ``analysis_results``
    column stores them.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    description: str = ""
    matched_symptoms: list[str] = Field(default_factory=list)
    match_score: float = 0
    recommended_actions: list[str] = Field(default_factory=list)
    seek_medical_attention: str | None = None
    visual_diagnostic_features: list[str] | None = None
    photo_analysis_method: str | None = None
    medical_history_relevance: str | None = None
    medication_considerations: str | None = None


class HealthCheck(BaseModel):
    id: str | None = None
    user_id: str | None = None
    symptoms: list[str] = Field(default_factory=list)
    severity: str | None = None
    duration: str | None = None
    previous_conditions: list[str] | None = None
    medications: list[str] | None = None
    notes: str | None = None
    created_at: datetime.datetime | None = None
    analysis_results: list[AnalysisCondition] | None = None
    # symptom -> remote URL or inline encoded image
    symptom_photos: dict[str, str] | None = None
    comprehensive_analysis: bool = False
    urgency_level: str | None = None
    overall_assessment: str | None = None


class HealthCheckCreate(BaseModel):
    symptoms: list[str]
    severity: str | None = None
    duration: str | None = None
    previous_conditions: list[str] | None = None
    medications: list[str] | None = None
    notes: str | None = None
    analysis_results: list[AnalysisCondition] | None = None
    symptom_photos: dict[str, str | None] | None = None
    comprehensive_analysis: bool | None = None
    urgency_level: str | None = None
    overall_assessment: str | None = None


# --- Stats ---


class UserStats(BaseModel):
    appointments_count: int = 0
    health_checks_count: int = 0
    upcoming_appointments: int = 0
    # Same value as health_checks_count; nothing is filtered by completion
    completed_health_checks: int = 0


# --- Error schema ---


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict = {}
