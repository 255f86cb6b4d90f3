"""Folio Database Models."""

from folio.models.profile import Profile
from folio.models.photo import Photo, PhotoEvent

__all__ = [
    "Profile",
    "Photo",
    "PhotoEvent",
]
