"""Request/response and stored-blob schemas for apps and the gallery."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from appshare.core.ip_hash import hash_ip


class GalleryView(str, enum.Enum):
    POPULAR = "popular"
    NEW = "new"
    TRENDING = "trending"


class AppSubmitPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    html: str = Field(min_length=1)
    signature: str = Field(min_length=1)
    title: str = Field(default="Untitled", min_length=1, max_length=255)
    description: str = Field(default="", max_length=1000)
    avoid_gallery: bool = Field(default=False, alias="avoidGallery")


class SnapshotData(BaseModel):
    """Serialized form of an AppSnapshot as stored and served."""

    model_config = ConfigDict(populate_by_name=True)

    html: str
    signature: str = ""
    title: str = "Untitled"
    description: str = ""
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    creator_ip_hash: Optional[str] = Field(default=None, alias="creatorIpHash")
    creator_ip: Optional[str] = Field(default=None, alias="creatorIP", exclude=True)

    @model_validator(mode="after")
    def _hash_legacy_creator_ip(self) -> "SnapshotData":
        if self.creator_ip_hash is None and self.creator_ip is not None:
            self.creator_ip_hash = hash_ip(self.creator_ip)
        self.creator_ip = None
        return self

    def to_public(self) -> dict:
        return {
            "html": self.html,
            "signature": self.signature,
            "title": self.title,
            "description": self.description,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True, slots=True)
class GalleryItem:
    """Immutable row held by the gallery cache."""

    id: int
    session_id: str
    version: str
    title: str
    description: str
    signature: str
    created_at: datetime
    creator_ip_hash: str
    upvote_count: int


class GalleryItemOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    session_id: str = Field(serialization_alias="sessionId")
    version: str
    title: str
    description: str
    signature: str
    created_at: datetime = Field(serialization_alias="createdAt")
    creator_ip_hash: str = Field(serialization_alias="creatorIpHash")
    upvote_count: int = Field(serialization_alias="upvoteCount")

    @classmethod
    def from_item(cls, item: GalleryItem) -> "GalleryItemOut":
        return cls(
            id=item.id,
            session_id=item.session_id,
            version=item.version,
            title=item.title,
            description=item.description,
            signature=item.signature,
            created_at=item.created_at,
            creator_ip_hash=item.creator_ip_hash,
            upvote_count=item.upvote_count,
        )


class SubmitResponse(BaseModel):
    success: bool
    warning: Optional[str] = None


class UpvoteResponse(BaseModel):
    success: bool = True
    upvote_count: int = Field(serialization_alias="upvoteCount")


class BlockIPPayload(BaseModel):
    ip: str = Field(min_length=1, max_length=64)
    reason: Optional[str] = Field(default=None, max_length=1000)
