"""Drag surface: optimistic local order, batched save, rollback and reconciliation."""

import asyncio

import httpx
import pytest

from conftest import make_jpeg
from folio.client.api import HttpEventSender, LibraryClient
from folio.client.engagement import EngagementCounter
from folio.client.surface import PhotoGridSurface, SaveStatus
from folio.schemas.photo import PhotoResponse
from folio.services.errors import NotFound, Outcome, PartialBatchFailure, StaleList, StorageFailure
from folio.utils.security import create_access_token


def _photo(pid: str, rank: int, visible: bool = True, caption: str | None = None) -> PhotoResponse:
    return PhotoResponse(
        id=pid,
        owner_id="prf_test",
        url=f"/media/prf_test/{pid}.jpg",
        thumbnail_url=None,
        caption=caption,
        sort_order=rank,
        is_visible=visible,
        view_count=0,
        click_count=0,
        mime_type="image/jpeg",
        size_bytes=10,
        width=None,
        height=None,
        created_at="2026-01-01T00:00:00",
    )


class FakeBackend:
    """In-memory library that records every call."""

    def __init__(self, ids):
        self.rows = {pid: _photo(pid, i) for i, pid in enumerate(ids)}
        self.calls: list[tuple] = []
        self.fail: dict[str, Exception] = {}
        self.gate: asyncio.Event | None = None

    def _list(self):
        return sorted(self.rows.values(), key=lambda p: p.sort_order)

    async def list_photos(self):
        self.calls.append(("list",))
        if "list" in self.fail:
            return Outcome.failure(self.fail["list"])
        return Outcome.success(self._list())

    async def reorder(self, photo_ids):
        self.calls.append(("reorder", list(photo_ids)))
        if self.gate is not None:
            await self.gate.wait()
        if "reorder" in self.fail:
            return Outcome.failure(self.fail["reorder"])
        for rank, pid in enumerate(photo_ids):
            self.rows[pid] = self.rows[pid].model_copy(update={"sort_order": rank})
        return Outcome.success(self._list())

    async def set_visibility_batch(self, changes):
        self.calls.append(("visibility", dict(changes)))
        if "visibility" in self.fail:
            return Outcome.failure(self.fail["visibility"])
        for pid, visible in changes.items():
            self.rows[pid] = self.rows[pid].model_copy(update={"is_visible": visible})
        return Outcome.success(self._list())

    async def set_caption(self, photo_id, caption):
        self.calls.append(("caption", photo_id, caption))
        if "caption" in self.fail:
            return Outcome.failure(self.fail["caption"])
        self.rows[photo_id] = self.rows[photo_id].model_copy(update={"caption": caption.strip() or None})
        return Outcome.success(self.rows[photo_id])

    async def delete(self, photo_id):
        self.calls.append(("delete", photo_id))
        if "delete" in self.fail:
            return Outcome.failure(self.fail["delete"])
        del self.rows[photo_id]
        for rank, p in enumerate(self._list()):
            self.rows[p.id] = p.model_copy(update={"sort_order": rank})
        return Outcome.success(self._list())


@pytest.fixture
def backend():
    return FakeBackend(["A", "B", "C"])


@pytest.fixture
def surface(backend):
    return PhotoGridSurface(backend, backend._list())


async def test_drag_then_save(surface, backend):
    surface.drag_start("C")
    assert surface.drag_end("A") is True

    assert surface.order == ["C", "A", "B"]
    assert surface.pending_ranks() == {"C": 0, "A": 1, "B": 2}
    assert surface.has_changes
    assert backend.calls == []

    result = await surface.save()
    assert result.status == SaveStatus.SAVED
    assert backend.calls == [("reorder", ["C", "A", "B"])]
    assert not surface.has_changes
    assert [(p.id, p.sort_order) for p in surface.photos] == [("C", 0), ("A", 1), ("B", 2)]


async def test_drop_on_self_or_outside_is_noop(surface):
    surface.drag_start("B")
    assert surface.drag_end("B") is False
    surface.drag_start("B")
    assert surface.drag_end(None) is False
    surface.drag_start("B")
    surface.drag_cancel()
    assert surface.drag_end("A") is False
    assert not surface.has_changes
    assert (await surface.save()).status == SaveStatus.NO_CHANGES


async def test_visibility_batched_with_order(surface, backend):
    surface.toggle_visibility("B")
    surface.drag_start("A")
    surface.drag_end("C")
    assert surface.pending_visibility() == {"B": False}
    assert surface.hidden_count == 1

    assert (await surface.save()).ok
    assert backend.calls == [("reorder", ["B", "C", "A"]), ("visibility", {"B": False})]
    assert surface.pending_visibility() == {}


async def test_toggling_back_leaves_nothing_pending(surface, backend):
    surface.toggle_visibility("A")
    assert surface.has_changes
    surface.toggle_visibility("A")
    assert surface.pending_visibility() == {}
    assert not surface.has_changes
    assert (await surface.save()).status == SaveStatus.NO_CHANGES
    assert backend.calls == []


async def test_dragging_back_to_saved_order_is_clean(surface):
    surface.drag_start("C")
    surface.drag_end("A")
    surface.drag_start("C")
    surface.drag_end("B")
    assert surface.order == ["A", "B", "C"]
    assert not surface.has_changes


async def test_visibility_only_save_skips_reorder(surface, backend):
    surface.toggle_visibility("B")
    assert (await surface.save()).status == SaveStatus.SAVED
    assert backend.calls == [("visibility", {"B": False})]
    assert surface.hidden_count == 1


async def test_visibility_only_failure_is_not_partial(surface, backend):
    backend.fail["visibility"] = StorageFailure()
    surface.toggle_visibility("B")
    result = await surface.save()
    assert result.status == SaveStatus.FAILED
    assert isinstance(result.error, StorageFailure)
    assert surface.hidden_count == 0


async def test_second_save_while_in_flight_is_refused(surface, backend):
    backend.gate = asyncio.Event()
    surface.drag_start("C")
    surface.drag_end("A")

    first = asyncio.create_task(surface.save())
    await asyncio.sleep(0)
    assert surface.is_saving
    assert (await surface.save()).status == SaveStatus.BUSY

    backend.gate.set()
    assert (await first).status == SaveStatus.SAVED
    assert [c[0] for c in backend.calls] == ["reorder"]


async def test_edits_during_in_flight_save_are_kept(surface, backend):
    backend.gate = asyncio.Event()
    surface.drag_start("C")
    surface.drag_end("A")

    first = asyncio.create_task(surface.save())
    await asyncio.sleep(0)
    surface.drag_start("B")
    surface.drag_end("C")
    surface.toggle_visibility("A")
    assert (await surface.save()).status == SaveStatus.BUSY

    backend.gate.set()
    assert (await first).status == SaveStatus.SAVED
    assert surface.order == ["B", "C", "A"]
    assert [p.sort_order for p in surface.photos] == [0, 1, 2]
    assert surface.has_changes
    assert surface.pending_visibility() == {"A": False}

    backend.gate = None
    assert (await surface.save()).status == SaveStatus.SAVED
    assert backend.calls[-2:] == [("reorder", ["B", "C", "A"]), ("visibility", {"A": False})]
    assert not surface.has_changes


async def test_failed_save_discards_local_change_and_refetches(surface, backend):
    backend.fail["reorder"] = StaleList()
    surface.drag_start("C")
    surface.drag_end("A")

    result = await surface.save()
    assert result.status == SaveStatus.FAILED
    assert isinstance(result.error, StaleList)
    assert surface.order == ["A", "B", "C"]
    assert not surface.has_changes
    assert backend.calls[-1] == ("list",)


async def test_partial_batch_failure_resyncs_from_server(surface, backend):
    backend.fail["visibility"] = StorageFailure()
    surface.drag_start("C")
    surface.drag_end("A")
    surface.toggle_visibility("A")

    result = await surface.save()
    assert result.status == SaveStatus.PARTIAL
    assert isinstance(result.error, PartialBatchFailure)
    # Order landed on the server, visibility did not
    assert surface.order == ["C", "A", "B"]
    assert all(p.is_visible for p in surface.photos)


async def test_failed_refetch_falls_back_to_last_saved_state(surface, backend):
    backend.fail["reorder"] = StorageFailure()
    backend.fail["list"] = StorageFailure()
    surface.drag_start("B")
    surface.drag_end("A")
    await surface.save()
    assert surface.order == ["A", "B", "C"]


async def test_caption_persists_immediately(surface, backend):
    outcome = await surface.update_caption("B", "  Backstage  ")
    assert outcome.ok
    assert backend.calls == [("caption", "B", "  Backstage  ")]
    assert surface.photos[1].caption == "Backstage"
    assert not surface.has_changes


async def test_caption_rolls_back_on_failure(surface, backend):
    backend.fail["caption"] = StorageFailure()
    outcome = await surface.update_caption("B", "New")
    assert not outcome.ok
    assert surface.photos[1].caption is None


async def test_delete_redensifies_and_keeps_unsaved_order(surface, backend):
    surface.drag_start("C")
    surface.drag_end("A")
    outcome = await surface.delete("A")
    assert outcome.ok
    assert [(p.id, p.sort_order) for p in surface.photos] == [("C", 0), ("B", 1)]
    assert surface.has_changes


async def test_delete_unknown_photo(surface):
    assert isinstance((await surface.delete("Z")).error, NotFound)


async def test_row_busy_during_delete(surface, backend):
    gate = asyncio.Event()
    original = backend.delete

    async def slow_delete(photo_id):
        await gate.wait()
        return await original(photo_id)

    backend.delete = slow_delete
    pending = asyncio.create_task(surface.delete("B"))
    await asyncio.sleep(0)
    assert "B" in surface.busy_ids
    assert not (await surface.delete("B")).ok
    # Other rows stay interactive
    assert (await surface.update_caption("A", "still editable")).ok
    gate.set()
    assert (await pending).ok
    assert surface.busy_ids == set()


# --- Against the real API ---


@pytest.fixture
def app_client():
    from folio.main import app

    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://folio.test")


async def test_surface_over_http(app_client, owner):
    token = create_access_token(owner.id)
    async with app_client as http:
        library = LibraryClient(http, token)
        for _ in range(3):
            assert (await library.upload("p.jpg", "image/jpeg", make_jpeg())).ok
        photos = (await library.list_photos()).value

        surface = PhotoGridSurface(library, photos)
        a, b, c = surface.order
        surface.drag_start(c)
        surface.drag_end(a)
        surface.toggle_visibility(b)
        assert (await surface.save()).status == SaveStatus.SAVED

        fresh = (await library.list_photos()).value
        assert [p.id for p in fresh] == [c, a, b]
        assert [p.sort_order for p in fresh] == [0, 1, 2]
        assert [p.is_visible for p in fresh] == [True, True, False]

        rejected = await library.upload("x.gif", "image/gif", b"GIF89a")
        assert rejected.error.message == "Invalid file type. Please upload JPEG, PNG, or WebP."


async def test_stale_list_over_http(app_client, owner):
    async with app_client as http:
        library = LibraryClient(http, create_access_token(owner.id))
        await library.upload("p.jpg", "image/jpeg", make_jpeg())
        outcome = await library.reorder(["pho_unknown"])
        assert isinstance(outcome.error, StaleList)


async def test_engagement_over_http(app_client, make_owner):
    model = make_owner()
    async with app_client as http:
        photo = (await LibraryClient(http, create_access_token(model.id)).upload("p.jpg", "image/jpeg", make_jpeg())).value
        counter = EngagementCounter(HttpEventSender(http))
        assert await counter.track(photo.id, "view") is True
        assert await counter.track(photo.id, "view") is False
        assert await counter.track_click(photo.id) is True
        assert await counter.track("pho_missing", "click") is False

        photos = (await LibraryClient(http, create_access_token(model.id)).list_photos()).value
        assert (photos[0].view_count, photos[0].click_count) == (1, 1)
