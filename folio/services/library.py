"""Media library controller: the only sanctioned way to mutate an owner's photos.

Coordinates the object store and the photo record store, and keeps each
owner's ``sort_order`` values dense (exactly 0..N-1) after every mutation.
Operations never raise across this boundary; they return an ``Outcome``.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from folio.config import settings
from folio.models.photo import Photo
from folio.services import photo_store
from folio.services.errors import (
    NotAuthenticated,
    NotFound,
    Outcome,
    StaleList,
    StorageFailure,
    UploadValidationError,
)
from folio.services.ordering import densify
from folio.services.validator import IMAGE_TYPES, validate_upload
from folio.utils.image import generate_thumbnail, get_image_dimensions
from folio.utils.storage import LocalObjectStore, StorageError, new_object_path

logger = logging.getLogger(__name__)

INSIGHT_SORTS = ("views", "clicks", "recent", "order")


@dataclass
class UploadFile:
    filename: str
    content_type: str | None
    data: bytes


@dataclass
class LibraryInsights:
    photos: list[Photo] = field(default_factory=list)
    total_views: int = 0
    total_clicks: int = 0
    visible_count: int = 0
    hidden_count: int = 0


class MediaLibrary:
    """Photo library operations scoped to a single owner per call."""

    def __init__(self, session: Session, store: LocalObjectStore | None = None):
        self.session = session
        self.store = store or LocalObjectStore()

    # --- Upload ---

    def upload(self, owner_id: str | None, file: UploadFile) -> Outcome[Photo]:
        """Validate, store the binary, then insert the record at the end of the library.

        If the insert fails after the binary was written, the stored objects
        are removed before the error is returned.
        """
        if not owner_id:
            return Outcome.failure(NotAuthenticated())

        check = validate_upload(file.content_type, len(file.data))
        if not check.ok:
            return Outcome.failure(UploadValidationError(check.reason))

        content_type = (file.content_type or "").lower()
        ext = IMAGE_TYPES.get(content_type, Path(file.filename).suffix or ".bin")
        path = new_object_path(owner_id, ext)
        try:
            self.store.put(path, file.data)
        except StorageError as e:
            logger.error("Upload to object store failed for %s: %s", owner_id, e)
            return Outcome.failure(StorageFailure("Failed to upload photo"))

        width, height = None, None
        try:
            width, height = get_image_dimensions(file.data)
        except Exception as e:
            logger.debug("Could not read dimensions of %s: %s", file.filename, e)

        thumb_path = None
        try:
            thumb = generate_thumbnail(file.data, settings.thumbnail_size)
            thumb_path = new_object_path(owner_id, ".webp", folder="thumbs")
            self.store.put(thumb_path, thumb)
        except Exception as e:
            logger.debug("Thumbnail generation failed for %s: %s", file.filename, e)
            thumb_path = None

        try:
            # Read-then-write: two concurrent uploads for one owner can pick the same rank
            current_max = photo_store.max_sort_order(self.session, owner_id)
            photo = Photo(
                owner_id=owner_id,
                url=self.store.public_url(path),
                thumbnail_url=self.store.public_url(thumb_path) if thumb_path else None,
                storage_path=path,
                thumbnail_path=thumb_path,
                sort_order=0 if current_max is None else current_max + 1,
                mime_type=content_type,
                size_bytes=len(file.data),
                width=width,
                height=height,
            )
            photo_store.insert(self.session, photo)
            self.session.commit()
            self.session.refresh(photo)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Insert photo failed for %s: %s", owner_id, e)
            self._remove_objects(path, thumb_path)
            return Outcome.failure(StorageFailure("Failed to save photo"))

        logger.info("Uploaded photo %s for %s at rank %d", photo.id, owner_id, photo.sort_order)
        return Outcome.success(photo)

    def upload_many(self, owner_id: str | None, files: list[UploadFile]) -> list[Outcome[Photo]]:
        """Upload files one at a time so each rank read sees the previous insert."""
        return [self.upload(owner_id, f) for f in files]

    # --- Read ---

    def list_photos(self, owner_id: str | None) -> Outcome[list[Photo]]:
        if not owner_id:
            return Outcome.failure(NotAuthenticated())
        try:
            return Outcome.success(photo_store.select_all_by_owner(self.session, owner_id))
        except SQLAlchemyError as e:
            logger.error("Get photos error for %s: %s", owner_id, e)
            return Outcome.failure(StorageFailure("Failed to fetch photos"))

    def list_public_photos(self, owner_id: str) -> Outcome[list[Photo]]:
        """Visible photos only, in portfolio order."""
        try:
            return Outcome.success(
                photo_store.select_all_by_owner(self.session, owner_id, visible_only=True)
            )
        except SQLAlchemyError as e:
            logger.error("Get public photos error for %s: %s", owner_id, e)
            return Outcome.failure(StorageFailure("Failed to fetch photos"))

    def insights(self, owner_id: str | None, sort: str = "views") -> Outcome[LibraryInsights]:
        """Photos with engagement totals, sorted for the media library dashboard."""
        listed = self.list_photos(owner_id)
        if not listed.ok:
            return Outcome.failure(listed.error)

        photos = listed.value
        if sort == "views":
            photos = sorted(photos, key=lambda p: p.view_count, reverse=True)
        elif sort == "clicks":
            photos = sorted(photos, key=lambda p: p.click_count, reverse=True)
        elif sort == "recent":
            photos = sorted(photos, key=lambda p: p.created_at, reverse=True)

        visible = sum(1 for p in photos if p.is_visible)
        return Outcome.success(LibraryInsights(
            photos=photos,
            total_views=sum(p.view_count for p in photos),
            total_clicks=sum(p.click_count for p in photos),
            visible_count=visible,
            hidden_count=len(photos) - visible,
        ))

    # --- Mutations ---

    def reorder(self, owner_id: str | None, ordered_ids: list[str]) -> Outcome[list[Photo]]:
        """Assign ``sort_order = index`` for a full permutation of the owner's ids.

        A list with a missing, extra or repeated id is rejected as stale. All
        rank updates land in one transaction.
        """
        if not owner_id:
            return Outcome.failure(NotAuthenticated())
        try:
            photos = photo_store.select_all_by_owner(self.session, owner_id)
            if len(set(ordered_ids)) != len(ordered_ids) or {p.id for p in photos} != set(ordered_ids):
                logger.info("Rejected stale reorder for %s", owner_id)
                return Outcome.failure(StaleList())

            by_id = {p.id: p for p in photos}
            self._apply_ranks(densify(ordered_ids), by_id)
            self.session.commit()
            return Outcome.success(photo_store.select_all_by_owner(self.session, owner_id))
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Update order error for %s: %s", owner_id, e)
            return Outcome.failure(StorageFailure("Failed to update photo order"))

    def set_visibility(self, owner_id: str | None, photo_id: str, visible: bool) -> Outcome[Photo]:
        return self._update_one(owner_id, photo_id, "Failed to update visibility", is_visible=visible)

    def set_visibility_batch(self, owner_id: str | None, changes: dict[str, bool]) -> Outcome[list[Photo]]:
        """Apply several visibility flags at once, all or nothing."""
        if not owner_id:
            return Outcome.failure(NotAuthenticated())
        try:
            by_id = {p.id: p for p in photo_store.select_all_by_owner(self.session, owner_id)}
            if any(pid not in by_id for pid in changes):
                return Outcome.failure(NotFound())

            now = datetime.now(timezone.utc)
            for pid, visible in changes.items():
                photo = by_id[pid]
                if photo.is_visible != visible:
                    photo.is_visible = visible
                    photo.updated_at = now
                    self.session.add(photo)
            self.session.commit()
            return Outcome.success(photo_store.select_all_by_owner(self.session, owner_id))
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Update visibility error for %s: %s", owner_id, e)
            return Outcome.failure(StorageFailure("Failed to update visibility"))

    def set_caption(self, owner_id: str | None, photo_id: str, caption: str | None) -> Outcome[Photo]:
        """Store the trimmed caption; blank text clears it."""
        normalized = (caption or "").strip() or None
        return self._update_one(owner_id, photo_id, "Failed to update caption", caption=normalized)

    def update(
        self,
        owner_id: str | None,
        photo_id: str,
        caption: str | None = None,
        is_visible: bool | None = None,
    ) -> Outcome[Photo]:
        """Change caption and visibility together; both land or neither does."""
        fields = {}
        if caption is not None:
            fields["caption"] = caption.strip() or None
        if is_visible is not None:
            fields["is_visible"] = is_visible
        return self._update_one(owner_id, photo_id, "Failed to update photo", **fields)

    def delete(self, owner_id: str | None, photo_id: str) -> Outcome[list[Photo]]:
        """Remove the record, close the rank gap, then remove the stored objects.

        Object removal is best-effort: a dangling file is logged, a dangling
        row is never left behind.
        """
        if not owner_id:
            return Outcome.failure(NotAuthenticated())
        try:
            photo = photo_store.delete_by_id(self.session, owner_id, photo_id)
            if photo is None:
                return Outcome.failure(NotFound())
            stored_paths = (photo.storage_path, photo.thumbnail_path)
            survivors = photo_store.select_all_by_owner(self.session, owner_id)
            self._apply_ranks(densify([p.id for p in survivors]), {p.id: p for p in survivors})
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Delete photo error for %s: %s", photo_id, e)
            return Outcome.failure(StorageFailure("Failed to delete photo"))

        self._remove_objects(*stored_paths)
        logger.info("Deleted photo %s for %s", photo_id, owner_id)
        try:
            return Outcome.success(photo_store.select_all_by_owner(self.session, owner_id))
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Reload after deleting %s failed: %s", photo_id, e)
            return Outcome.failure(StorageFailure("Photo deleted, but the library could not be reloaded"))

    # --- Helpers ---

    def _update_one(self, owner_id: str | None, photo_id: str, failure_message: str, **fields) -> Outcome[Photo]:
        if not owner_id:
            return Outcome.failure(NotAuthenticated())
        try:
            photo = photo_store.update_by_id(self.session, owner_id, photo_id, **fields)
            if photo is None:
                return Outcome.failure(NotFound())
            self.session.commit()
            self.session.refresh(photo)
            return Outcome.success(photo)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("%s (%s): %s", failure_message, photo_id, e)
            return Outcome.failure(StorageFailure(failure_message))

    def _apply_ranks(self, ranks: list[tuple[str, int]], by_id: dict[str, Photo]) -> None:
        now = datetime.now(timezone.utc)
        for pid, rank in ranks:
            photo = by_id[pid]
            if photo.sort_order != rank:
                photo.sort_order = rank
                photo.updated_at = now
                self.session.add(photo)

    def _remove_objects(self, *paths: str | None) -> None:
        for path in paths:
            if not path:
                continue
            try:
                self.store.remove(path)
            except StorageError as e:
                logger.warning("Storage delete error for %s: %s", path, e)
