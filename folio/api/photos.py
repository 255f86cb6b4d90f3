"""Media library API endpoints."""

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlmodel import Session, select

from folio.api.deps import get_current_owner, get_library, raise_library_error
from folio.database import get_session
from folio.models.photo import Photo
from folio.models.profile import Profile
from folio.schemas.photo import (
    BulkUploadResponse,
    LibraryInsightsResponse,
    PhotoListResponse,
    PhotoOrderRequest,
    PhotoResponse,
    PhotoUpdateRequest,
    PortfolioPhotosResponse,
    PublicPhotoResponse,
    UploadResult,
    VisibilityBatchRequest,
)
from folio.services import library as library_module
from folio.services.errors import UploadValidationError
from folio.services.library import INSIGHT_SORTS, MediaLibrary

router = APIRouter(prefix="/photos", tags=["photos"])
portfolio_router = APIRouter(prefix="/portfolio", tags=["portfolio"])


def _photo_to_response(p: Photo) -> PhotoResponse:
    return PhotoResponse(
        id=p.id,
        owner_id=p.owner_id,
        url=p.url,
        thumbnail_url=p.thumbnail_url,
        caption=p.caption,
        sort_order=p.sort_order,
        is_visible=bool(p.is_visible),
        view_count=p.view_count,
        click_count=p.click_count,
        mime_type=p.mime_type,
        size_bytes=p.size_bytes,
        width=p.width,
        height=p.height,
        created_at=p.created_at.isoformat() if p.created_at else "",
    )


def _list_response(photos: list[Photo]) -> PhotoListResponse:
    return PhotoListResponse(
        photos=[_photo_to_response(p) for p in photos],
        total_count=len(photos),
    )


def _read_upload(file: UploadFile) -> library_module.UploadFile:
    return library_module.UploadFile(
        filename=file.filename or "photo",
        content_type=file.content_type,
        data=file.file.read(),
    )


@router.get("", response_model=PhotoListResponse)
def list_photos(
    owner: Profile = Depends(get_current_owner),
    library: MediaLibrary = Depends(get_library),
):
    """List the owner's photos in portfolio order."""
    outcome = library.list_photos(owner.id)
    if not outcome.ok:
        raise_library_error(outcome.error)
    return _list_response(outcome.value)


@router.post("", response_model=PhotoResponse, status_code=status.HTTP_201_CREATED)
def upload(
    file: UploadFile = File(...),
    owner: Profile = Depends(get_current_owner),
    library: MediaLibrary = Depends(get_library),
):
    """Upload one photo; it is appended to the end of the library."""
    outcome = library.upload(owner.id, _read_upload(file))
    if not outcome.ok:
        raise_library_error(outcome.error)
    return _photo_to_response(outcome.value)


@router.post("/bulk", response_model=BulkUploadResponse)
def upload_bulk(
    files: list[UploadFile] = File(...),
    owner: Profile = Depends(get_current_owner),
    library: MediaLibrary = Depends(get_library),
):
    """Upload several photos sequentially, reporting each file separately."""
    uploads = [_read_upload(f) for f in files]
    outcomes = library.upload_many(owner.id, uploads)

    results = []
    for upload_file, outcome in zip(uploads, outcomes):
        if outcome.ok:
            results.append(UploadResult(
                filename=upload_file.filename,
                status="uploaded",
                photo=_photo_to_response(outcome.value),
            ))
        else:
            rejected = isinstance(outcome.error, UploadValidationError)
            results.append(UploadResult(
                filename=upload_file.filename,
                status="rejected" if rejected else "failed",
                message=outcome.error.message,
            ))

    uploaded = sum(1 for r in results if r.status == "uploaded")
    return BulkUploadResponse(
        results=results,
        uploaded_count=uploaded,
        failed_count=len(results) - uploaded,
    )


@router.get("/insights", response_model=LibraryInsightsResponse)
def insights(
    sort: str = Query(default="views", pattern=f"^({'|'.join(INSIGHT_SORTS)})$"),
    owner: Profile = Depends(get_current_owner),
    library: MediaLibrary = Depends(get_library),
):
    """Engagement overview of the owner's library."""
    outcome = library.insights(owner.id, sort)
    if not outcome.ok:
        raise_library_error(outcome.error)
    data = outcome.value
    return LibraryInsightsResponse(
        photos=[_photo_to_response(p) for p in data.photos],
        total_views=data.total_views,
        total_clicks=data.total_clicks,
        visible_count=data.visible_count,
        hidden_count=data.hidden_count,
    )


@router.put("/order", response_model=PhotoListResponse)
def reorder(
    request: PhotoOrderRequest,
    owner: Profile = Depends(get_current_owner),
    library: MediaLibrary = Depends(get_library),
):
    """Persist a full ordering of the owner's photos."""
    outcome = library.reorder(owner.id, request.photo_ids)
    if not outcome.ok:
        raise_library_error(outcome.error)
    return _list_response(outcome.value)


@router.post("/visibility", response_model=PhotoListResponse)
def set_visibility_batch(
    request: VisibilityBatchRequest,
    owner: Profile = Depends(get_current_owner),
    library: MediaLibrary = Depends(get_library),
):
    """Show or hide several photos at once."""
    changes = {c.id: c.is_visible for c in request.changes}
    outcome = library.set_visibility_batch(owner.id, changes)
    if not outcome.ok:
        raise_library_error(outcome.error)
    return _list_response(outcome.value)


@router.patch("/{photo_id}", response_model=PhotoResponse)
def update_photo(
    photo_id: str,
    request: PhotoUpdateRequest,
    owner: Profile = Depends(get_current_owner),
    library: MediaLibrary = Depends(get_library),
):
    """Update a photo's caption and/or visibility."""
    if request.caption is None and request.is_visible is None:
        raise HTTPException(status_code=400, detail="Nothing to update")

    outcome = library.update(owner.id, photo_id, caption=request.caption, is_visible=request.is_visible)
    if not outcome.ok:
        raise_library_error(outcome.error)
    return _photo_to_response(outcome.value)


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_photo(
    photo_id: str,
    owner: Profile = Depends(get_current_owner),
    library: MediaLibrary = Depends(get_library),
):
    """Delete a photo and its stored file; the remaining photos close the gap."""
    outcome = library.delete(owner.id, photo_id)
    if not outcome.ok:
        raise_library_error(outcome.error)


@portfolio_router.get("/{username}/photos", response_model=PortfolioPhotosResponse)
def public_photos(
    username: str,
    session: Session = Depends(get_session),
    library: MediaLibrary = Depends(get_library),
):
    """Visible photos of a public portfolio, no sign-in required."""
    profile = session.exec(select(Profile).where(Profile.username == username)).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Portfolio not found")

    outcome = library.list_public_photos(profile.id)
    if not outcome.ok:
        raise_library_error(outcome.error)
    return PortfolioPhotosResponse(
        username=profile.username,
        display_name=profile.display_name,
        photos=[
            PublicPhotoResponse(
                id=p.id,
                url=p.url,
                thumbnail_url=p.thumbnail_url,
                caption=p.caption,
                width=p.width,
                height=p.height,
            )
            for p in outcome.value
        ],
    )
