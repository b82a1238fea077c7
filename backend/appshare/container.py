"""Service wiring shared by the API process and the admin CLI."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from appshare.config import Settings, settings as default_settings
from appshare.core.clock import Clock, utcnow
from appshare.core.signing import HmacSignatureVerifier, SignatureVerifier
from appshare.gallery_cache import GalleryCache
from appshare.gallery_service import GalleryDirectory
from appshare.moderation import ModerationGuard
from appshare.rate_limiter import FixedWindowRateLimiter
from appshare.snapshot_store import AppSnapshotStore
from appshare.submission_service import SubmissionService
from appshare.upvote_ledger import UpvoteLedger


@dataclass(slots=True)
class Services:
    cache: GalleryCache
    store: AppSnapshotStore
    directory: GalleryDirectory
    guard: ModerationGuard
    ledger: UpvoteLedger
    submissions: SubmissionService
    global_limiter: FixedWindowRateLimiter
    sensitive_limiter: FixedWindowRateLimiter
    admin_token: str = ""


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    config: Settings = default_settings,
    verifier: SignatureVerifier | None = None,
    cache: GalleryCache | None = None,
    clock: Clock = utcnow,
) -> Services:
    cache = cache or GalleryCache(ttl_seconds=config.GALLERY_CACHE_TTL_S)
    store = AppSnapshotStore(session_factory, clock=clock)
    directory = GalleryDirectory(
        session_factory,
        cache,
        page_size=config.GALLERY_PAGE_SIZE,
        trending_window=timedelta(hours=config.TRENDING_WINDOW_H),
        clock=clock,
    )
    guard = ModerationGuard(session_factory, clock=clock)
    ledger = UpvoteLedger(session_factory, cache, clock=clock)
    submissions = SubmissionService(
        store=store,
        directory=directory,
        guard=guard,
        verifier=verifier or HmacSignatureVerifier(config.SIGNING_SECRET),
        clock=clock,
    )
    return Services(
        cache=cache,
        store=store,
        directory=directory,
        guard=guard,
        ledger=ledger,
        submissions=submissions,
        global_limiter=FixedWindowRateLimiter(
            config.RATE_LIMIT_POINTS, config.RATE_LIMIT_WINDOW_S, name="global"
        ),
        sensitive_limiter=FixedWindowRateLimiter(
            config.RATE_LIMIT_SENSITIVE_POINTS, config.RATE_LIMIT_WINDOW_S, name="sensitive"
        ),
        admin_token=config.ADMIN_TOKEN,
    )
