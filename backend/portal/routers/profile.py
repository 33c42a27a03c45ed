"""Profile API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from portal.dependencies import get_notifier, get_profile_store
from portal.models.schemas import Profile, ProfileForm
from portal.routers.errors import to_http_exception
from portal.services.errors import AuthError, PersistenceError
from portal.services.notifications import Notification, Notifier
from portal.services.profile_store import ProfileStore

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


class ProfileSaveResponse(BaseModel):
    profile: Profile
    notifications: list[Notification]


@router.get("", response_model=Profile | None)
async def get_profile(store: ProfileStore = Depends(get_profile_store)) -> Profile | None:
    await store.fetch()
    if store.error is not None:
        raise to_http_exception(store.error)
    return store.profile


@router.get("/form", response_model=ProfileForm)
async def get_profile_form(store: ProfileStore = Depends(get_profile_store)) -> ProfileForm:
    await store.fetch()
    if store.error is not None:
        raise to_http_exception(store.error)
    return ProfileForm.from_profile(store.profile)


@router.put("", response_model=ProfileSaveResponse)
async def save_profile(
    form: ProfileForm,
    store: ProfileStore = Depends(get_profile_store),
    notifier: Notifier = Depends(get_notifier),
) -> ProfileSaveResponse:
    try:
        profile = await store.save_form(form)
    except (AuthError, PersistenceError) as e:
        raise to_http_exception(e)
    return ProfileSaveResponse(profile=profile, notifications=notifier.sent)
