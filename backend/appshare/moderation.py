"""IP block-list gate for anonymous write paths."""
from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from appshare.core.clock import Clock, utcnow
from appshare.metrics import BLOCKED_REQUESTS_TOTAL
from appshare.models.blocked_ip import BlockedIP

logger = logging.getLogger(__name__)


class ModerationGuard:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    async def is_blocked(self, ip: str) -> bool:
        """Exact match of the raw IP against the block list."""
        async with self._session_factory() as session:
            count = (
                await session.execute(
                    select(func.count()).select_from(BlockedIP).where(BlockedIP.ip_address == ip)
                )
            ).scalar() or 0
        if count:
            BLOCKED_REQUESTS_TOTAL.inc()
            logger.warning("Write attempt from blocked IP", extra={"ip": ip})
        return count > 0

    async def block(self, ip: str, reason: str | None = None) -> bool:
        """Add `ip` to the block list. False if it was already there."""
        async with self._session_factory() as session:
            session.add(BlockedIP(ip_address=ip, reason=reason, blocked_at=self._clock()))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
        logger.info("IP blocked", extra={"ip": ip, "reason": reason})
        return True

    async def unblock(self, ip: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(BlockedIP).where(BlockedIP.ip_address == ip))
            await session.commit()
        removed = (result.rowcount or 0) > 0
        if removed:
            logger.info("IP unblocked", extra={"ip": ip})
        return removed

    async def list_blocked(self) -> list[BlockedIP]:
        async with self._session_factory() as session:
            return list(
                (
                    await session.execute(
                        select(BlockedIP).order_by(BlockedIP.blocked_at.desc(), BlockedIP.id.desc())
                    )
                ).scalars().all()
            )
