"""Drag-to-reorder photo grid with an optimistic local copy.

Drags and visibility toggles change only the local copy and mark it dirty;
``save`` sends them as one reorder plus one visibility batch. The local copy
is replaced wholesale by the server's list after a save, or refetched when a
save fails; edits made while a save is pending are kept on top as unsaved
changes. Captions and deletes persist immediately, one photo at a time.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from folio.schemas.photo import PhotoResponse
from folio.services.errors import LibraryError, NotFound, Outcome, PartialBatchFailure
from folio.services.ordering import compute_ranks, densify

logger = logging.getLogger(__name__)


class LibraryBackend(Protocol):
    async def list_photos(self) -> Outcome[list[PhotoResponse]]: ...

    async def reorder(self, photo_ids: list[str]) -> Outcome[list[PhotoResponse]]: ...

    async def set_visibility_batch(self, changes: dict[str, bool]) -> Outcome[list[PhotoResponse]]: ...

    async def set_caption(self, photo_id: str, caption: str) -> Outcome[PhotoResponse]: ...

    async def delete(self, photo_id: str) -> Outcome[list[PhotoResponse]]: ...


class SaveStatus(str, Enum):
    SAVED = "saved"
    NO_CHANGES = "no_changes"
    BUSY = "busy"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class SaveResult:
    status: SaveStatus
    error: LibraryError | None = None

    @property
    def ok(self) -> bool:
        return self.status in (SaveStatus.SAVED, SaveStatus.NO_CHANGES)


class RowBusy(LibraryError):
    status_code = 409
    default_message = "This photo is still being updated"


class PhotoGridSurface:
    def __init__(self, backend: LibraryBackend, photos: list[PhotoResponse]):
        self.backend = backend
        self.active_id: str | None = None
        self.is_saving = False
        self.busy_ids: set[str] = set()
        # Bumped by every local drag or toggle
        self._revision = 0
        self._reset(photos)

    # --- Local state ---

    def _reset(self, photos: list[PhotoResponse]) -> None:
        """Adopt a server list as the new local copy and baseline."""
        self.photos = sorted(photos, key=lambda p: p.sort_order)
        self._set_baseline(self.photos)

    def _rebase(self, photos: list[PhotoResponse]) -> None:
        """Adopt a server list as the baseline but keep local order and visibility on top.

        Photos the server no longer has are dropped; photos only the server
        has are appended. Ranks stay dense.
        """
        server = {p.id: p for p in photos}
        ids = [p.id for p in self.photos if p.id in server]
        known = set(ids)
        ids += [p.id for p in sorted(photos, key=lambda p: p.sort_order) if p.id not in known]
        visible = {p.id: p.is_visible for p in self.photos}
        self.photos = [
            server[pid].model_copy(update={
                "sort_order": rank,
                "is_visible": visible.get(pid, server[pid].is_visible),
            })
            for pid, rank in densify(ids)
        ]
        self._set_baseline(sorted(photos, key=lambda p: p.sort_order))

    def _set_baseline(self, photos: list[PhotoResponse]) -> None:
        self._server_photos = list(photos)
        self._saved_visibility = {p.id: p.is_visible for p in photos}

    @property
    def order(self) -> list[str]:
        return [p.id for p in self.photos]

    @property
    def order_changed(self) -> bool:
        return self.order != [p.id for p in self._server_photos]

    @property
    def has_changes(self) -> bool:
        """True while the local copy differs from the last server state."""
        return self.order_changed or bool(self.pending_visibility())

    @property
    def visible_count(self) -> int:
        return sum(1 for p in self.photos if p.is_visible)

    @property
    def hidden_count(self) -> int:
        return len(self.photos) - self.visible_count

    def pending_ranks(self) -> dict[str, int]:
        """Rank of every photo as the next save will send it."""
        return {p.id: p.sort_order for p in self.photos}

    def pending_visibility(self) -> dict[str, bool]:
        """Visibility flags that differ from the last server state."""
        return {
            p.id: p.is_visible
            for p in self.photos
            if self._saved_visibility.get(p.id) != p.is_visible
        }

    # --- Drag interaction ---

    def drag_start(self, photo_id: str) -> None:
        if photo_id not in self.order:
            raise ValueError(f"unknown photo {photo_id!r}")
        self.active_id = photo_id

    def drag_cancel(self) -> None:
        self.active_id = None

    def drag_end(self, over_id: str | None) -> bool:
        """Drop the active photo onto ``over_id``'s position.

        Returns True if the local order changed. Dropping outside any target
        or onto the source itself is a no-op.
        """
        active_id, self.active_id = self.active_id, None
        if active_id is None or over_id is None or over_id == active_id:
            return False

        ids = self.order
        if active_id not in ids or over_id not in ids:
            return False

        ranks = compute_ranks(ids, active_id, ids.index(active_id), ids.index(over_id))
        by_id = {p.id: p for p in self.photos}
        self.photos = [by_id[pid].model_copy(update={"sort_order": rank}) for pid, rank in ranks]
        self._revision += 1
        return True

    def toggle_visibility(self, photo_id: str) -> bool:
        """Flip one photo's visibility locally; returns the new flag."""
        for i, p in enumerate(self.photos):
            if p.id == photo_id:
                self.photos[i] = p.model_copy(update={"is_visible": not p.is_visible})
                self._revision += 1
                return not p.is_visible
        raise ValueError(f"unknown photo {photo_id!r}")

    # --- Persistence ---

    async def save(self) -> SaveResult:
        """Persist pending order and visibility in one batch.

        Refused while a previous save is in flight. Drags and toggles made
        while the save is pending stay on top of the server's answer and
        remain unsaved.
        """
        if self.is_saving:
            return SaveResult(SaveStatus.BUSY)
        if not self.has_changes:
            return SaveResult(SaveStatus.NO_CHANGES)

        self.is_saving = True
        started_at = self._revision
        try:
            visibility = self.pending_visibility()
            latest = None
            if self.order_changed:
                outcome = await self.backend.reorder(self.order)
                if not outcome.ok:
                    logger.warning("Failed to save photo order: %s", outcome.error.message)
                    await self._refetch()
                    return SaveResult(SaveStatus.FAILED, outcome.error)
                latest = outcome.value

            if visibility:
                vis_outcome = await self.backend.set_visibility_batch(visibility)
                if not vis_outcome.ok:
                    await self._refetch()
                    if latest is None:
                        logger.warning("Failed to save visibility: %s", vis_outcome.error.message)
                        return SaveResult(SaveStatus.FAILED, vis_outcome.error)
                    logger.warning("Order saved but visibility failed: %s", vis_outcome.error.message)
                    return SaveResult(SaveStatus.PARTIAL, PartialBatchFailure())
                latest = vis_outcome.value

            if self._revision == started_at:
                self._reset(latest)
            else:
                logger.info("Local edits made during save kept as unsaved changes")
                self._rebase(latest)
            return SaveResult(SaveStatus.SAVED)
        finally:
            self.is_saving = False

    async def _refetch(self) -> None:
        """Discard local mutations and resynchronise with the server."""
        outcome = await self.backend.list_photos()
        if outcome.ok:
            self._reset(outcome.value)
        else:
            logger.warning("Refetch failed, reverting to last saved state: %s", outcome.error.message)
            self._reset(self._server_photos)

    async def update_caption(self, photo_id: str, caption: str) -> Outcome[PhotoResponse]:
        """Save one caption immediately; the local edit is reverted on failure."""
        index = self._index_of(photo_id)
        if index is None:
            return Outcome.failure(NotFound())
        if photo_id in self.busy_ids:
            return Outcome.failure(RowBusy())

        previous = self.photos[index].caption
        self.photos[index] = self.photos[index].model_copy(update={"caption": caption.strip() or None})
        self.busy_ids.add(photo_id)
        try:
            outcome = await self.backend.set_caption(photo_id, caption)
        finally:
            self.busy_ids.discard(photo_id)

        index = self._index_of(photo_id)
        if index is not None:
            restored = outcome.value.caption if outcome.ok else previous
            self.photos[index] = self.photos[index].model_copy(update={"caption": restored})
        if not outcome.ok:
            logger.warning("Failed to update caption for %s: %s", photo_id, outcome.error.message)
        return outcome

    async def delete(self, photo_id: str) -> Outcome[list[PhotoResponse]]:
        """Delete one photo; other rows stay interactive while it is pending."""
        if self._index_of(photo_id) is None:
            return Outcome.failure(NotFound())
        if photo_id in self.busy_ids:
            return Outcome.failure(RowBusy())

        self.busy_ids.add(photo_id)
        try:
            outcome = await self.backend.delete(photo_id)
        finally:
            self.busy_ids.discard(photo_id)

        if not outcome.ok:
            logger.warning("Failed to delete photo %s: %s", photo_id, outcome.error.message)
            return outcome

        # Unsaved local arrangement survives, minus the deleted photo
        self._rebase(outcome.value)
        return outcome

    def _index_of(self, photo_id: str) -> int | None:
        for i, p in enumerate(self.photos):
            if p.id == photo_id:
                return i
        return None
