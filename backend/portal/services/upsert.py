"""Insert-if-absent-else-update keyed by identity."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable, Mapping
from typing import Any

from portal.services.errors import PersistenceError
from portal.services.tables import RemoteTable

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime.datetime]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


async def row_exists(table: RemoteTable, identity: str, key: str = "id") -> bool:
    """Check for a row keyed by ``identity``, selecting only the key column."""
    existing = await table.maybe_single(filters={key: identity}, columns=[key])
    return existing is not None


async def upsert(
    table: RemoteTable,
    identity: str,
    record: Mapping[str, Any],
    *,
    key: str = "id",
    now: Clock = utcnow,
) -> dict[str, Any]:
    """Create or update the row keyed by ``identity`` and return it as stored.

    A new row gets both ``created_at`` and ``updated_at``; an existing row
    only gets a fresh ``updated_at``. The existence check and the write are
    two statements, so a concurrent first save from another session can win
    the insert. That case surfaces as a key conflict and the write is
    retried once as an update.
    """
    exists = await row_exists(table, identity, key)
    timestamp = now()
    data = {**record, key: identity, "updated_at": timestamp}

    if not exists:
        try:
            row = await table.insert_one({**data, "created_at": timestamp})
            logger.info("Created %s row for %s", table.name, identity)
            return row
        except PersistenceError as e:
            if not e.conflict or not await row_exists(table, identity, key):
                raise
            logger.warning(
                "Insert into %s for %s lost a race, updating instead", table.name, identity
            )

    row = await table.update_one(data, filters={key: identity})
    logger.info("Updated %s row for %s", table.name, identity)
    return row


async def ensure_row(
    table: RemoteTable,
    identity: str,
    *,
    key: str = "id",
    now: Clock = utcnow,
) -> bool:
    """Insert a bare timestamped row for ``identity`` if none exists.

    Returns True when a row was created.
    """
    if await row_exists(table, identity, key):
        return False
    timestamp = now()
    await table.insert_one({key: identity, "created_at": timestamp, "updated_at": timestamp})
    logger.info("Created bare %s row for %s", table.name, identity)
    return True
