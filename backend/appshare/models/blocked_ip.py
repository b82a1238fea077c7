"""BlockedIP model: raw addresses barred from writing."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from appshare.db import Base


class BlockedIP(Base):
    __tablename__ = "blocked_ips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Stored unhashed: looked up by equality against the incoming request IP.
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    blocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<BlockedIP id={self.id} ip={self.ip_address!r}>"
