"""Upvote ledger: one vote per (gallery item, voter hash), counts derived by recount.

The denormalized `gallery_items.upvotes` column is never incremented; it is
overwritten with a fresh COUNT of ledger rows after each accepted vote, so a
partially applied write heals on the next recount.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from appshare.core.clock import Clock, utcnow
from appshare.core.ip_hash import hash_ip
from appshare.errors import GalleryItemNotFound
from appshare.gallery_cache import GalleryCache
from appshare.metrics import UPVOTES_TOTAL
from appshare.models.gallery import GalleryEntry, UpvoteRecord

logger = logging.getLogger(__name__)


async def _count_votes(session: AsyncSession, gallery_item_id: int) -> int:
    return (
        await session.execute(
            select(func.count())
            .select_from(UpvoteRecord)
            .where(UpvoteRecord.gallery_item_id == gallery_item_id)
        )
    ).scalar() or 0


async def _find_entry(session: AsyncSession, session_id: str, version: str) -> GalleryEntry | None:
    return (
        await session.execute(
            select(GalleryEntry).where(
                GalleryEntry.session_id == session_id,
                GalleryEntry.version == version,
            )
        )
    ).scalar()


class UpvoteLedger:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: GalleryCache,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache
        self._clock = clock

    async def upvote(
        self,
        session_id: str,
        version: str,
        voter_ip: str,
        timestamp: datetime | None = None,
    ) -> int:
        """Record a vote and return the entry's count.

        A repeat vote from the same hashed IP is a no-op returning the
        current count. Raises GalleryItemNotFound for unknown entries.
        """
        voter_id = hash_ip(voter_ip)
        async with self._session_factory() as session:
            entry = await _find_entry(session, session_id, version)
            if entry is None:
                logger.warning(
                    "Gallery item not found for upvote",
                    extra={"session_id": session_id, "version": version},
                )
                raise GalleryItemNotFound(session_id, version)
            entry_id = entry.id

            existing = (
                await session.execute(
                    select(UpvoteRecord.voter_id).where(
                        UpvoteRecord.gallery_item_id == entry_id,
                        UpvoteRecord.voter_id == voter_id,
                    )
                )
            ).scalar()
            if existing is not None:
                UPVOTES_TOTAL.labels(outcome="duplicate").inc()
                return await _count_votes(session, entry_id)

            session.add(
                UpvoteRecord(
                    gallery_item_id=entry_id,
                    voter_id=voter_id,
                    voted_at=timestamp or self._clock(),
                )
            )
            try:
                await session.flush()
            except IntegrityError:
                # A concurrent request from the same voter got there first.
                await session.rollback()
                UPVOTES_TOTAL.labels(outcome="duplicate").inc()
                return await _count_votes(session, entry_id)

            count = await _count_votes(session, entry_id)
            entry.upvotes = count
            await session.commit()

        self._cache.invalidate()
        UPVOTES_TOTAL.labels(outcome="counted").inc()
        logger.info(
            "Upvote recorded",
            extra={"session_id": session_id, "version": version, "voter": voter_id, "count": count},
        )
        return count

    async def count(self, session_id: str, version: str) -> int:
        """Ledger count for the entry; 0 when it does not exist."""
        async with self._session_factory() as session:
            entry = await _find_entry(session, session_id, version)
            if entry is None:
                return 0
            return await _count_votes(session, entry.id)

    async def recount_all(self) -> int:
        """Rewrite every denormalized count from the ledger. Returns rows changed."""
        async with self._session_factory() as session:
            counts = dict(
                (
                    await session.execute(
                        select(UpvoteRecord.gallery_item_id, func.count())
                        .group_by(UpvoteRecord.gallery_item_id)
                    )
                ).all()
            )
            entries = (await session.execute(select(GalleryEntry))).scalars().all()
            changed = 0
            for entry in entries:
                fresh = int(counts.get(entry.id, 0))
                if entry.upvotes != fresh:
                    entry.upvotes = fresh
                    changed += 1
            await session.commit()

        if changed:
            self._cache.invalidate()
            logger.info("Upvote counts repaired", extra={"changed": changed})
        return changed
