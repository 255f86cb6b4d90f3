"""Photo engagement counting endpoint."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlmodel import Session

from folio.api.deps import get_current_owner, get_optional_viewer
from folio.database import get_session
from folio.models.photo import Photo
from folio.models.profile import Profile
from folio.schemas.analytics import PhotoEventRequest, PhotoEventResponse, PhotoStatsResponse
from folio.services.analytics_service import EVENT_TYPES, photo_stats, record_event

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("/photo-event", response_model=PhotoEventResponse, response_model_exclude_none=True)
def track_photo_event(
    body: PhotoEventRequest,
    request: Request,
    viewer: Profile | None = Depends(get_optional_viewer),
    session: Session = Depends(get_session),
):
    """Count a view, click or expand on a portfolio photo.

    Tracking problems past input validation answer ``tracked: false`` instead
    of an error status, so a visitor's page never sees a failure.
    """
    if not body.photo_id:
        raise HTTPException(status_code=400, detail="photoId is required")
    if body.event_type not in EVENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"eventType must be one of: {', '.join(EVENT_TYPES)}",
        )

    photo = session.get(Photo, body.photo_id)
    if not photo:
        raise HTTPException(status_code=404, detail="Photo not found")

    result = record_event(
        session,
        photo,
        body.event_type,
        viewer_id=viewer.id if viewer else None,
        ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
    )
    return PhotoEventResponse(success=True, tracked=result.tracked, reason=result.reason)


@router.get("/photo-event", response_model=PhotoStatsResponse)
def get_photo_stats(
    photo_id: str = Query(default="", alias="photoId"),
    owner: Profile = Depends(get_current_owner),
    session: Session = Depends(get_session),
):
    """Engagement stats for one photo, visible to its owner only."""
    if not photo_id:
        raise HTTPException(status_code=400, detail="photoId is required")

    photo = session.get(Photo, photo_id)
    if not photo:
        raise HTTPException(status_code=404, detail="Photo not found")
    if photo.owner_id != owner.id:
        raise HTTPException(status_code=403, detail="Not authorized to view these stats")

    return photo_stats(session, photo)
