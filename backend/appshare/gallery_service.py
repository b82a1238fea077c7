"""Gallery directory: listing views, add and owner-authorized removal."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from appshare.core.clock import Clock, ensure_utc, utcnow
from appshare.core.ip_hash import hash_ip
from appshare.gallery_cache import GalleryCache
from appshare.metrics import GALLERY_WRITES_TOTAL
from appshare.models.gallery import GalleryEntry, UpvoteRecord
from appshare.schemas.apps import GalleryItem, GalleryView

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
TRENDING_WINDOW = timedelta(hours=24)


def to_gallery_item(row: GalleryEntry) -> GalleryItem:
    return GalleryItem(
        id=row.id,
        session_id=row.session_id,
        version=row.version,
        title=row.title or "",
        description=row.description or "",
        signature=row.signature or "",
        created_at=ensure_utc(row.created_at),
        creator_ip_hash=row.creator_ip_hash or "",
        upvote_count=row.upvotes or 0,
    )


def apply_view(
    items: Iterable[GalleryItem],
    view: GalleryView | str = GalleryView.POPULAR,
    *,
    now: datetime | None = None,
    trending_window: timedelta = TRENDING_WINDOW,
) -> list[GalleryItem]:
    """Order (and for trending, filter) a gallery snapshot for one view."""
    try:
        view = GalleryView(view)
    except ValueError:
        view = GalleryView.POPULAR

    if view == GalleryView.NEW:
        return sorted(items, key=lambda item: item.created_at, reverse=True)
    if view == GalleryView.TRENDING:
        cutoff = ensure_utc(now or utcnow()) - trending_window
        items = [item for item in items if item.created_at >= cutoff]
    return sorted(items, key=lambda item: item.upvote_count, reverse=True)


class GalleryDirectory:
    """CRUD over `gallery_items`; every successful write invalidates the cache."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: GalleryCache,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        trending_window: timedelta = TRENDING_WINDOW,
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self.cache = cache
        self.page_size = page_size
        self.trending_window = trending_window
        self._clock = clock

    async def fetch_all(self) -> list[GalleryItem]:
        """Read every entry in fixed-size pages until a short page comes back."""
        items: list[GalleryItem] = []
        offset = 0
        async with self._session_factory() as session:
            while True:
                rows = (
                    await session.execute(
                        select(GalleryEntry)
                        .order_by(GalleryEntry.created_at.desc(), GalleryEntry.id.desc())
                        .offset(offset)
                        .limit(self.page_size)
                    )
                ).scalars().all()
                items.extend(to_gallery_item(row) for row in rows)
                if len(rows) < self.page_size:
                    break
                offset += self.page_size
        return items

    async def list(self) -> Sequence[GalleryItem]:
        return await self.cache.read(self.fetch_all)

    async def list_view(self, view: GalleryView | str = GalleryView.POPULAR) -> list[GalleryItem]:
        return apply_view(
            await self.list(),
            view,
            now=self._clock(),
            trending_window=self.trending_window,
        )

    async def get_entry(self, session_id: str, version: str) -> GalleryItem | None:
        async with self._session_factory() as session:
            row = await self._find(session, session_id, version)
        return to_gallery_item(row) if row is not None else None

    async def add(
        self,
        *,
        session_id: str,
        version: str,
        title: str,
        description: str,
        signature: str,
        creator_ip: str,
        created_at: datetime | None = None,
    ) -> bool:
        """Insert a new entry. False when (session_id, version) is already listed."""
        async with self._session_factory() as session:
            if await self._find(session, session_id, version) is not None:
                GALLERY_WRITES_TOTAL.labels(operation="add", outcome="duplicate").inc()
                return False

            session.add(
                GalleryEntry(
                    session_id=session_id,
                    version=version,
                    title=title,
                    description=description,
                    signature=signature,
                    created_at=created_at or self._clock(),
                    creator_ip_hash=hash_ip(creator_ip),
                    upvotes=0,
                )
            )
            try:
                await session.commit()
            except IntegrityError:
                # Lost a race against an identical insert.
                await session.rollback()
                GALLERY_WRITES_TOTAL.labels(operation="add", outcome="duplicate").inc()
                return False

        self.cache.invalidate()
        GALLERY_WRITES_TOTAL.labels(operation="add", outcome="ok").inc()
        logger.info(
            "Gallery entry added",
            extra={"session_id": session_id, "version": version},
        )
        return True

    async def remove(self, session_id: str, version: str, request_ip: str) -> bool:
        """Delete the entry and its votes if `request_ip` hashes to the creator hash.

        Hash equality is the only ownership check there is; shared or rotating
        IPs make it a weak credential.
        """
        async with self._session_factory() as session:
            row = await self._find(session, session_id, version)
            if row is None:
                GALLERY_WRITES_TOTAL.labels(operation="remove", outcome="not_found").inc()
                return False
            if row.creator_ip_hash != hash_ip(request_ip):
                GALLERY_WRITES_TOTAL.labels(operation="remove", outcome="unauthorized").inc()
                logger.warning(
                    "Unauthorized gallery delete: IP does not match creator",
                    extra={"session_id": session_id, "version": version},
                )
                return False

            await session.execute(delete(UpvoteRecord).where(UpvoteRecord.gallery_item_id == row.id))
            await session.delete(row)
            await session.commit()

        self.cache.invalidate()
        GALLERY_WRITES_TOTAL.labels(operation="remove", outcome="ok").inc()
        logger.info(
            "Gallery entry removed",
            extra={"session_id": session_id, "version": version},
        )
        return True

    @staticmethod
    async def _find(session: AsyncSession, session_id: str, version: str) -> GalleryEntry | None:
        return (
            await session.execute(
                select(GalleryEntry).where(
                    GalleryEntry.session_id == session_id,
                    GalleryEntry.version == version,
                )
            )
        ).scalar()
