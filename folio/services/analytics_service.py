"""Photo engagement recording (view / click / expand) and per-photo stats."""

import hashlib
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, func, select

from folio.config import settings
from folio.models.photo import Photo, PhotoEvent

logger = logging.getLogger(__name__)

EVENT_TYPES = ("view", "click", "expand")

# Event type -> counter column on the photo row
COUNTER_FIELDS = {
    "view": "view_count",
    "click": "click_count",
}

HEADER_LIMIT = 500


@dataclass
class TrackResult:
    tracked: bool
    reason: str | None = None


def hash_viewer_ip(ip: str | None) -> str:
    """Salted, truncated SHA-256 of the viewer IP; raw addresses are never stored."""
    return hashlib.sha256(((ip or "unknown") + settings.analytics_salt).encode()).hexdigest()[:16]


def record_event(
    session: Session,
    photo: Photo,
    event_type: str,
    viewer_id: str | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
    referrer: str | None = None,
) -> TrackResult:
    """Store one engagement event and bump the photo's counter.

    The owner looking at their own photos is not counted. Storage errors are
    reported as ``tracked=False`` rather than raised.
    """
    if viewer_id is not None and viewer_id == photo.owner_id:
        return TrackResult(tracked=False, reason="Owner views not tracked")

    try:
        session.add(PhotoEvent(
            photo_id=photo.id,
            owner_id=photo.owner_id,
            event_type=event_type,
            viewer_id=viewer_id,
            viewer_ip_hash=hash_viewer_ip(ip),
            user_agent=user_agent[:HEADER_LIMIT] if user_agent else None,
            referrer=referrer[:HEADER_LIMIT] if referrer else None,
        ))
        counter = COUNTER_FIELDS.get(event_type)
        if counter:
            # SQL-side increment so concurrent events do not lose counts
            setattr(photo, counter, getattr(Photo, counter) + 1)
            session.add(photo)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Error inserting photo analytics for %s: %s", photo.id, e)
        return TrackResult(tracked=False, reason="Database error")

    return TrackResult(tracked=True)


def photo_stats(session: Session, photo: Photo) -> dict:
    """Totals, unique viewers and a daily breakdown for the recent window."""
    unique_viewers = session.exec(
        select(func.count(func.distinct(PhotoEvent.viewer_ip_hash))).where(
            PhotoEvent.photo_id == photo.id,
            PhotoEvent.event_type == "view",
        )
    ).one()
    last_viewed = session.exec(
        select(func.max(PhotoEvent.created_at)).where(
            PhotoEvent.photo_id == photo.id,
            PhotoEvent.event_type == "view",
        )
    ).one()

    since = datetime.now(timezone.utc) - timedelta(days=settings.analytics_window_days)
    recent = session.exec(
        select(PhotoEvent.event_type, PhotoEvent.created_at)
        .where(PhotoEvent.photo_id == photo.id, PhotoEvent.created_at >= since)
        .order_by(col(PhotoEvent.created_at).desc())
        .limit(100)
    ).all()

    daily: dict[str, dict[str, int]] = defaultdict(lambda: {"views": 0, "clicks": 0})
    for event_type, created_at in recent:
        day = created_at.date().isoformat()
        if event_type == "view":
            daily[day]["views"] += 1
        elif event_type == "click":
            daily[day]["clicks"] += 1

    return {
        "photo_id": photo.id,
        "total_views": photo.view_count,
        "total_clicks": photo.click_count,
        "unique_viewers": unique_viewers,
        "last_viewed_at": last_viewed.isoformat() if last_viewed else None,
        "daily_stats": dict(daily),
    }
