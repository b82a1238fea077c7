"""Submission orchestration: moderation, signature, snapshot upsert, gallery add."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from appshare.core.clock import Clock, utcnow
from appshare.core.ip_hash import hash_ip
from appshare.core.keys import WILDCARD_VERSION
from appshare.core.signing import SignatureVerifier
from appshare.gallery_service import GalleryDirectory
from appshare.metrics import SUBMISSIONS_TOTAL
from appshare.moderation import ModerationGuard
from appshare.schemas.apps import AppSubmitPayload, SnapshotData
from appshare.snapshot_store import AppSnapshotStore

logger = logging.getLogger(__name__)

GALLERY_ADD_WARNING = "App saved, but it could not be added to the gallery"


class SubmitStatus(str, enum.Enum):
    SAVED = "SAVED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    STORE_FAILED = "STORE_FAILED"


@dataclass(slots=True)
class SubmitResult:
    status: SubmitStatus
    warning: str | None = None
    gallery_added: bool = False

    @property
    def success(self) -> bool:
        return self.status == SubmitStatus.SAVED


class SubmissionService:
    def __init__(
        self,
        *,
        store: AppSnapshotStore,
        directory: GalleryDirectory,
        guard: ModerationGuard,
        verifier: SignatureVerifier,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.directory = directory
        self.guard = guard
        self.verifier = verifier
        self._clock = clock

    async def submit(
        self,
        session_id: str,
        version: str,
        payload: AppSubmitPayload,
        ip: str,
    ) -> SubmitResult:
        """Save the snapshot and, unless opted out, list it in the gallery.

        A snapshot saved without its gallery entry still counts as success;
        the caller gets a warning instead.
        """
        if await self.guard.is_blocked(ip):
            SUBMISSIONS_TOTAL.labels(outcome="forbidden").inc()
            return SubmitResult(SubmitStatus.FORBIDDEN)

        if not self.verifier.verify(payload.html, payload.signature):
            SUBMISSIONS_TOTAL.labels(outcome="invalid_signature").inc()
            logger.info(
                "Rejected submission with invalid signature",
                extra={"session_id": session_id, "version": version},
            )
            return SubmitResult(SubmitStatus.INVALID_SIGNATURE)

        now = self._clock()
        snapshot = SnapshotData(
            html=payload.html,
            signature=payload.signature,
            title=payload.title,
            description=payload.description,
            created_at=now,
            creator_ip_hash=hash_ip(ip),
        )
        if not await self.store.put(session_id, version, snapshot):
            SUBMISSIONS_TOTAL.labels(outcome="store_failed").inc()
            return SubmitResult(SubmitStatus.STORE_FAILED)

        result = SubmitResult(SubmitStatus.SAVED)
        if not payload.avoid_gallery:
            result.gallery_added = await self.directory.add(
                session_id=session_id,
                version=version,
                title=payload.title,
                description=payload.description,
                signature=payload.signature,
                creator_ip=ip,
                created_at=now,
            )
            if not result.gallery_added:
                result.warning = GALLERY_ADD_WARNING

        SUBMISSIONS_TOTAL.labels(outcome="saved_with_warning" if result.warning else "saved").inc()
        return result

    async def fetch_snapshot(self, session_id: str, version: str) -> SnapshotData | None:
        """Exact (session, version) match, else the latest version of the session.

        Looks up by the raw ids; they are opaque and may contain the key
        delimiter.
        """
        snapshot = await self.store.get(session_id, version)
        if snapshot is None:
            snapshot = await self.store.get(session_id, WILDCARD_VERSION)
        return snapshot
