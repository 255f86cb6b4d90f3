"""Object store adapter: put / public_url / remove by path on the local disk."""

import secrets
import shutil
import time
from pathlib import Path, PurePosixPath

from folio.config import settings


class StorageError(Exception):
    """The object store could not complete a write or removal."""


class LocalObjectStore:
    """Stores binary objects under a root directory.

    Objects are addressed by relative POSIX paths (``owner/name.ext``) and are
    served publicly under ``url_prefix``.
    """

    def __init__(self, root: Path | None = None, url_prefix: str | None = None):
        self.root = Path(root or settings.storage_dir)
        self.url_prefix = (url_prefix if url_prefix is not None else settings.media_url_prefix).rstrip("/")

    def _resolve(self, path: str) -> Path:
        rel = PurePosixPath(path)
        if rel.is_absolute() or ".." in rel.parts or not rel.parts:
            raise StorageError(f"Invalid object path: {path!r}")
        return self.root.joinpath(*rel.parts)

    def put(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def public_url(self, path: str) -> str:
        return f"{self.url_prefix}/{path}"

    def remove(self, path: str) -> None:
        """Delete an object. Removing a missing path is not an error."""
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def usage(self) -> dict:
        """Object count and byte totals for the store, plus free disk space."""
        objects = [p for p in self.root.rglob("*") if p.is_file()] if self.root.exists() else []
        disk = shutil.disk_usage(self.root)
        return {
            "objects": len(objects),
            "stored_bytes": sum(p.stat().st_size for p in objects),
            "free_bytes": disk.free,
        }


def new_object_path(owner_id: str, ext: str, folder: str = "") -> str:
    """Collision-resistant object key scoped to the owner.

    Structure: {owner_id}/[folder/]{ms-timestamp}-{random}{ext}
    """
    name = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"
    parts = [owner_id, folder, name] if folder else [owner_id, name]
    return "/".join(parts)
