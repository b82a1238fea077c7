"""GalleryEntry and UpvoteRecord models."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from appshare.db import Base


class GalleryEntry(Base):
    """Publicly listed promotion of a snapshot.

    `creator_ip_hash` is written once at insert and doubles as the deletion
    credential. `upvotes` is a denormalized copy of the ledger count and is
    only written by the recount step.
    """

    __tablename__ = "gallery_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(128), nullable=False)
    version: Mapped[str] = mapped_column(String(128), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="Untitled")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    signature: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    creator_ip_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("session_id", "version", name="uq_gallery_items_session_version"),
    )

    def __repr__(self) -> str:
        return f"<GalleryEntry id={self.id} session={self.session_id!r} version={self.version!r}>"


class UpvoteRecord(Base):
    """One vote per (gallery item, hashed voter IP)."""

    __tablename__ = "upvotes"

    gallery_item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("gallery_items.id", ondelete="CASCADE"), primary_key=True
    )
    # Composite primary key rejects a second vote from the same hash.
    voter_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    voted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<UpvoteRecord item={self.gallery_item_id} voter={self.voter_id}>"
