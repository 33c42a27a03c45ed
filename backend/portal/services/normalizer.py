"""Turn loosely shaped database rows into typed records.

Rows come back from the database with whatever the writer put there: an
unknown appointment status, ``analysis_results`` as native JSON or as a
JSON-encoded string, and so on. The functions here never fail on a
malformed optional field. They drop it, log it, and report the field name
in ``Decoded.discarded`` so one bad record can't block a whole list.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from portal.models.schemas import (
    AnalysisCondition,
    Appointment,
    AppointmentStatus,
    HealthCheck,
    Profile,
    ProfileUpdate,
)
from portal.services.errors import ParseError

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

VALID_STATUSES: tuple[AppointmentStatus, ...] = (
    "pending",
    "confirmed",
    "cancelled",
    "completed",
)


@dataclass(frozen=True)
class Decoded(Generic[T]):
    """A best-effort decoded value and the fields that had to be dropped."""

    value: T
    discarded: tuple[str, ...] = ()

    @property
    def lossy(self) -> bool:
        return bool(self.discarded)


# --- Appointment status ---


def normalize_status(status: object) -> AppointmentStatus:
    """Map any stored or submitted status onto the four valid values."""
    if isinstance(status, str) and status in VALID_STATUSES:
        return status  # type: ignore[return-value]
    return "pending"


# --- Helpers ---


def _decode_json(raw: str, field: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"{field} is not valid JSON: {e}") from e


def _str_list(value: Any) -> list[str] | None:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return None


def _opt_str(value: Any) -> str | None:
    return str(value) if value else None


def _score(value: Any) -> tuple[float, bool]:
    """Numeric match score, 0 when missing. Second item is True if a value was lost."""
    if not value:
        return 0, False
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0, True
    if math.isnan(score):
        return 0, True
    return score, False


def _validate(model: type[M], data: dict[str, Any], discarded: list[str]) -> M:
    """Validate ``data``, dropping optional fields that fail validation."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        bad = {err["loc"][0] for err in e.errors() if err["loc"]}
        droppable = [
            f for f in bad if f in model.model_fields and not model.model_fields[f].is_required()
        ]
        if not droppable:
            raise
        for field in droppable:
            logger.warning("Dropping invalid %s.%s: %r", model.__name__, field, data[field])
            data.pop(field)
            discarded.append(str(field))
        return model.model_validate(data)


# --- Analysis results ---


def _to_condition(item: Any) -> tuple[AnalysisCondition, bool]:
    if isinstance(item, AnalysisCondition):
        item = item.model_dump(by_alias=True)
    lossy = False
    if not isinstance(item, Mapping):
        item, lossy = {}, True

    score, bad_score = _score(item.get("matchScore"))
    condition = AnalysisCondition(
        name=str(item.get("name") or ""),
        description=str(item.get("description") or ""),
        matched_symptoms=_str_list(item.get("matchedSymptoms")) or [],
        match_score=score,
        recommended_actions=_str_list(item.get("recommendedActions")) or [],
        seek_medical_attention=_opt_str(item.get("seekMedicalAttention")),
        visual_diagnostic_features=_str_list(item.get("visualDiagnosticFeatures")),
        photo_analysis_method=_opt_str(item.get("photoAnalysisMethod")),
        medical_history_relevance=_opt_str(item.get("medicalHistoryRelevance")),
        medication_considerations=_opt_str(item.get("medicationConsiderations")),
    )
    return condition, lossy or bad_score


def parse_analysis_results(raw: Any) -> Decoded[list[AnalysisCondition] | None]:
    """Materialize ``analysis_results`` from a list or a JSON-encoded string.

    Missing sub-fields default to empty string/list/zero. A string that
    fails to decode, or decodes to something other than a list, leaves the
    field as ``None``.
    """
    if raw is None or raw == "":
        return Decoded(None)
    try:
        items = _decode_json(raw, "analysis_results") if isinstance(raw, str) else raw
        if not isinstance(items, (list, tuple)):
            raise ParseError(f"analysis_results is a {type(items).__name__}, expected a list")
    except ParseError as e:
        logger.error("Error parsing analysis_results: %s", e)
        return Decoded(None, ("analysis_results",))

    conditions: list[AnalysisCondition] = []
    discarded: list[str] = []
    for i, item in enumerate(items):
        condition, lossy = _to_condition(item)
        conditions.append(condition)
        if lossy:
            discarded.append(f"analysis_results[{i}]")
    return Decoded(conditions, tuple(discarded))


# --- Symptom photos ---


def parse_symptom_photos(raw: Any) -> Decoded[dict[str, str] | None]:
    """Materialize ``symptom_photos`` as a symptom -> photo mapping."""
    if raw is None or raw == "":
        return Decoded(None)
    try:
        photos = _decode_json(raw, "symptom_photos") if isinstance(raw, str) else raw
        if not isinstance(photos, Mapping):
            raise ParseError(f"symptom_photos is a {type(photos).__name__}, expected an object")
    except ParseError as e:
        logger.error("Error parsing symptom_photos: %s", e)
        return Decoded(None, ("symptom_photos",))

    result: dict[str, str] = {}
    discarded: list[str] = []
    for symptom, photo in photos.items():
        if isinstance(photo, str):
            result[str(symptom)] = photo
        else:
            discarded.append(f"symptom_photos[{symptom}]")
    return Decoded(result, tuple(discarded))


def is_remote_photo(photo: str) -> bool:
    return photo.startswith("http")


def photo_for_storage(photo: str) -> str:
    """Remote URLs pass through; anything else is an inline payload kept as-is."""
    if is_remote_photo(photo):
        return photo
    logger.debug("Storing inline photo payload (%d chars)", len(photo))
    return photo


def photos_for_storage(photos: Mapping[str, str | None] | None) -> dict[str, str] | None:
    if photos is None:
        return None
    return {symptom: photo_for_storage(photo) for symptom, photo in photos.items() if photo}


# --- Entities ---


def normalize_health_check(row: Mapping[str, Any] | None) -> Decoded[HealthCheck]:
    if not row:
        return Decoded(HealthCheck())

    results = parse_analysis_results(row.get("analysis_results"))
    photos = parse_symptom_photos(row.get("symptom_photos"))
    discarded = [*results.discarded, *photos.discarded]

    data = {k: v for k, v in row.items() if k in HealthCheck.model_fields}
    data["symptoms"] = _str_list(row.get("symptoms")) or []
    for field in ("previous_conditions", "medications"):
        if data.get(field) is not None:
            data[field] = _str_list(data[field])
            if data[field] is None:
                discarded.append(field)
    data["comprehensive_analysis"] = bool(row.get("comprehensive_analysis") or False)
    data["analysis_results"] = results.value
    data["symptom_photos"] = photos.value

    health_check = _validate(HealthCheck, data, discarded)
    if discarded:
        logger.debug("Health check %s decoded with discarded fields: %s", row.get("id"), discarded)
    return Decoded(health_check, tuple(discarded))


def normalize_appointment(row: Mapping[str, Any]) -> Appointment:
    data = {k: v for k, v in row.items() if k in Appointment.model_fields}
    data["status"] = normalize_status(row.get("status"))
    return _validate(Appointment, data, [])


def profile_from_row(row: Mapping[str, Any]) -> Profile:
    """Build a ``Profile`` from a ``profiles`` row, presenting ``region`` as ``city``."""
    data = {k: v for k, v in row.items() if k in Profile.model_fields}
    data["city"] = row.get("region")
    return _validate(Profile, data, [])


def profile_to_row(changes: ProfileUpdate | Mapping[str, Any]) -> dict[str, Any]:
    """Column values for a profile write, storing ``city`` under ``region``."""
    if isinstance(changes, BaseModel):
        values = changes.model_dump(exclude_unset=True)
    else:
        values = dict(changes)
    if "city" in values:
        values["region"] = values.pop("city")
    return values
