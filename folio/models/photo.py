"""Photo and engagement event models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Photo(SQLModel, table=True):
    __tablename__ = "photos"

    id: str = Field(default_factory=lambda: f"pho_{secrets.token_hex(6)}", primary_key=True)
    owner_id: str = Field(foreign_key="profiles.id", index=True)
    url: str
    thumbnail_url: Optional[str] = None
    storage_path: str  # object store key, private to this photo
    thumbnail_path: Optional[str] = None
    caption: Optional[str] = None
    sort_order: int = Field(default=0, ge=0, index=True)
    is_visible: bool = Field(default=True)
    view_count: int = Field(default=0, ge=0)
    click_count: int = Field(default=0, ge=0)
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PhotoEvent(SQLModel, table=True):
    __tablename__ = "photo_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    photo_id: str = Field(foreign_key="photos.id", index=True)
    owner_id: str = Field(foreign_key="profiles.id", index=True)
    event_type: str  # 'view' | 'click' | 'expand'
    viewer_id: Optional[str] = None
    viewer_ip_hash: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
