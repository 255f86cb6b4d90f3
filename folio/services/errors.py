"""Media library error taxonomy and the tagged outcome returned by the controller."""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class LibraryError(Exception):
    """Base class for every failure the media library reports to its callers.

    ``message`` is short and user-facing; ``status_code`` is the HTTP status
    the API layer answers with.
    """

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UploadValidationError(LibraryError):
    status_code = 400
    default_message = "Invalid upload"


class NotAuthenticated(LibraryError):
    status_code = 401
    default_message = "Not authenticated"


class NotFound(LibraryError):
    # Same message whether the photo is gone or belongs to someone else
    status_code = 404
    default_message = "Photo not found"


class StaleList(LibraryError):
    status_code = 409
    default_message = "Your photo list is out of date. Refresh and try again."


class StorageFailure(LibraryError):
    status_code = 503
    default_message = "Storage is unavailable. Please try again."


class PartialBatchFailure(LibraryError):
    status_code = 500
    default_message = "Some changes were not saved. Your photos have been reloaded."


@dataclass
class Outcome(Generic[T]):
    """Result of one library operation: either ``value`` or ``error`` is set."""

    value: Optional[T] = None
    error: Optional[LibraryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, error: LibraryError) -> "Outcome":
        return cls(error=error)
