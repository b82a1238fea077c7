"""App snapshot persistence keyed by (session_id, version)."""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from appshare.core.clock import Clock, ensure_utc, utcnow
from appshare.core.keys import decode_key, is_wildcard
from appshare.models.snapshot import AppSnapshot
from appshare.schemas.apps import SnapshotData

logger = logging.getLogger(__name__)

SnapshotInput = SnapshotData | Mapping[str, Any] | str

# INSERT .. ON CONFLICT builders for the supported backends.
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _parse_snapshot(snapshot: SnapshotInput) -> SnapshotData | None:
    if isinstance(snapshot, SnapshotData):
        return snapshot
    try:
        raw = json.loads(snapshot) if isinstance(snapshot, str) else snapshot
        if not isinstance(raw, Mapping):
            return None
        return SnapshotData.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.error("Rejected malformed snapshot payload: %s", exc.__class__.__name__)
        return None


def _to_data(row: AppSnapshot) -> SnapshotData:
    return SnapshotData(
        html=row.html,
        signature=row.signature,
        title=row.title,
        description=row.description,
        created_at=ensure_utc(row.created_at),
        creator_ip_hash=row.creator_ip_hash,
    )


class AppSnapshotStore:
    """Upsert/get of snapshot blobs.

    Concurrent puts on the same key are last-write-wins at the transaction
    boundary; no version token is kept.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def put(self, session_id: str, version: str, snapshot: SnapshotInput) -> bool:
        """Insert or overwrite the snapshot. Returns False on invalid input."""
        data = _parse_snapshot(snapshot)
        if data is None:
            return False
        if not data.html:
            logger.error(
                "Missing required html field",
                extra={"session_id": session_id, "version": version},
            )
            return False

        values = {
            "html": data.html,
            "signature": data.signature,
            "title": data.title or "Untitled",
            "description": data.description,
            "creator_ip_hash": data.creator_ip_hash or "",
            "created_at": data.created_at or self._clock(),
        }
        async with self._session_factory() as session:
            insert = _UPSERT_INSERTS[session.get_bind().dialect.name]
            stmt = (
                insert(AppSnapshot)
                .values(session_id=session_id, version=version, **values)
                .on_conflict_do_update(
                    index_elements=[AppSnapshot.session_id, AppSnapshot.version],
                    set_=values,
                )
            )
            await session.execute(stmt)
            await session.commit()

        logger.info(
            "Snapshot stored",
            extra={"session_id": session_id, "version": version},
        )
        return True

    async def get(self, session_id: str, version: str) -> SnapshotData | None:
        """Exact match, or the newest version of the session for ``"*"``."""
        stmt = select(AppSnapshot).where(AppSnapshot.session_id == session_id)
        if not is_wildcard(version):
            stmt = stmt.where(AppSnapshot.version == version)
        stmt = stmt.order_by(AppSnapshot.created_at.desc(), AppSnapshot.id.desc()).limit(1)

        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar()
        return _to_data(row) if row is not None else None

    async def get_by_key(self, key: str) -> SnapshotData | None:
        decoded = decode_key(key)
        if decoded is None:
            logger.error("Invalid storage key format", extra={"key": key})
            return None
        session_id, version = decoded
        return await self.get(session_id, version)
