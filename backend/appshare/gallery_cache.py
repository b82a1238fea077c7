"""Process-local, time-bounded cache of the full gallery listing."""
from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Sequence

from appshare.metrics import GALLERY_CACHE_TOTAL
from appshare.schemas.apps import GalleryItem

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30.0

Loader = Callable[[], Awaitable[Sequence[GalleryItem]]]


class GalleryCache:
    """All-or-nothing snapshot of the gallery plus its fetch time.

    No lock: `read` and `invalidate` each swap a single attribute, so the
    worst race is a refresh installing a stale snapshot for one TTL.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._monotonic = monotonic
        self._snapshot: tuple[tuple[GalleryItem, ...], float] | None = None

    async def read(self, loader: Loader) -> tuple[GalleryItem, ...]:
        cached = self._snapshot
        now = self._monotonic()
        if cached is not None and (now - cached[1]) < self.ttl_seconds:
            GALLERY_CACHE_TOTAL.labels(result="hit").inc()
            return cached[0]

        GALLERY_CACHE_TOTAL.labels(result="miss").inc()
        items = tuple(await loader())
        self._snapshot = (items, now)
        logger.debug("Gallery cache refreshed", extra={"items": len(items)})
        return items

    def invalidate(self) -> None:
        GALLERY_CACHE_TOTAL.labels(result="invalidate").inc()
        self._snapshot = None

    @property
    def is_warm(self) -> bool:
        return self._snapshot is not None
