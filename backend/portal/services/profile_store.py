"""Profile store: fetch and save the current user's single profile row."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from portal.models.orm import ProfileRow
from portal.models.schemas import Profile, ProfileForm, ProfileUpdate
from portal.services.errors import AuthError, PersistenceError, log_error
from portal.services.identity import IdentityResolver
from portal.services.normalizer import profile_from_row, profile_to_row
from portal.services.notifications import Notifier
from portal.services.tables import RemoteTable
from portal.services.upsert import Clock, upsert, utcnow

logger = logging.getLogger(__name__)


class ProfileStore:
    """Cached profile for one caller.

    The cache is replaced wholesale by whatever the database returns after a
    write; local changes are never merged into it.
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: IdentityResolver,
        notifier: Notifier | None = None,
        now: Clock = utcnow,
    ) -> None:
        self.profile: Profile | None = None
        self.loading = True
        self.error: Exception | None = None
        self._table = RemoteTable(session, ProfileRow)
        self._resolver = resolver
        self._notifier = notifier or Notifier()
        self._now = now

    async def fetch(self) -> Profile | None:
        self.loading = True
        try:
            identity = await self._resolver.resolve()
            if identity is None:
                logger.info("No authenticated user found")
                return None
            row = await self._table.maybe_single(filters={"id": identity})
            self.profile = profile_from_row(row) if row else None
            self.error = None
            logger.debug("Fetched profile for %s: %s", identity, self.profile)
        except (AuthError, PersistenceError) as e:
            log_error(logger, "fetching profile", e)
            self.error = e
            self._notifier.error("Failed to fetch your profile data. Please try again later.")
        finally:
            self.loading = False
        return self.profile

    async def update(self, changes: ProfileUpdate | Mapping[str, Any]) -> Profile:
        try:
            identity = await self._resolver.require()
            logger.info("Updating profile for %s", identity)
            row = await upsert(self._table, identity, profile_to_row(changes), now=self._now)
        except (AuthError, PersistenceError) as e:
            log_error(logger, "updating profile", e)
            self._notifier.error(f"Failed to update profile: {e.message}")
            raise

        self.profile = profile_from_row(row)
        self._notifier.success("Profile updated successfully")
        return self.profile

    async def save_form(self, form: ProfileForm) -> Profile:
        """Save the profile form, then report on the password fields.

        Password changes are not supported; a filled-in pair only produces a
        notice, and a mismatched pair a warning.
        """
        profile = await self.update(form.to_update())

        if form.password and form.password == form.confirm_password:
            self._notifier.notify(
                "Password Change Not Implemented",
                "Password change functionality is not implemented",
            )
        elif form.password:
            self._notifier.notify("Password Mismatch", "Passwords do not match", "destructive")
        return profile
