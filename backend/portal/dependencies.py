"""FastAPI dependencies: auth, notifier and per-request store instances."""

from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_session
from portal.services.appointment_store import AppointmentStore
from portal.services.health_check_store import HealthCheckStore
from portal.services.identity import AuthClient, IdentityResolver, SupabaseAuthClient
from portal.services.notifications import Notifier
from portal.services.profile_store import ProfileStore
from portal.services.stats_store import StatsStore

_auth_client: AuthClient | None = None


def get_auth_client() -> AuthClient:
    """Get or create the auth service client."""
    global _auth_client
    if _auth_client is None:
        _auth_client = SupabaseAuthClient()
    return _auth_client


def get_access_token(authorization: str | None = Header(None)) -> str | None:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_identity_resolver(
    access_token: str | None = Depends(get_access_token),
    client: AuthClient = Depends(get_auth_client),
) -> IdentityResolver:
    return IdentityResolver(client, access_token)


def get_notifier() -> Notifier:
    return Notifier()


def get_profile_store(
    session: AsyncSession = Depends(get_session),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    notifier: Notifier = Depends(get_notifier),
) -> ProfileStore:
    return ProfileStore(session, resolver, notifier)


def get_appointment_store(
    session: AsyncSession = Depends(get_session),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    notifier: Notifier = Depends(get_notifier),
) -> AppointmentStore:
    return AppointmentStore(session, resolver, notifier)


def get_health_check_store(
    session: AsyncSession = Depends(get_session),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    notifier: Notifier = Depends(get_notifier),
) -> HealthCheckStore:
    return HealthCheckStore(session, resolver, notifier)


def get_stats_store(
    session: AsyncSession = Depends(get_session),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> StatsStore:
    return StatsStore(session, resolver)
