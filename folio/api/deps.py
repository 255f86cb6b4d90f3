"""Common API dependencies: owner resolution, library construction, error mapping."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from folio.database import get_session
from folio.models.profile import Profile
from folio.services.errors import LibraryError, NotAuthenticated
from folio.services.library import MediaLibrary
from folio.utils.security import decode_token
from folio.utils.storage import LocalObjectStore

bearer_scheme = HTTPBearer(auto_error=False)


def _resolve_profile(
    credentials: HTTPAuthorizationCredentials | None,
    session: Session,
) -> Profile | None:
    if credentials is None:
        return None
    try:
        payload = decode_token(credentials.credentials)
    except Exception:
        return None
    if payload.get("type") != "access":
        return None
    return session.get(Profile, payload.get("sub", ""))


def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Profile:
    """Extract the owner profile from the bearer token, 401 if it cannot be resolved."""
    profile = _resolve_profile(credentials, session)
    if profile is None:
        raise_library_error(NotAuthenticated())
    return profile


def get_optional_viewer(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> Profile | None:
    """Signed-in viewer if any; anonymous visitors are allowed."""
    return _resolve_profile(credentials, session)


def get_object_store() -> LocalObjectStore:
    return LocalObjectStore()


def get_library(
    session: Session = Depends(get_session),
    store: LocalObjectStore = Depends(get_object_store),
) -> MediaLibrary:
    return MediaLibrary(session, store)


def raise_library_error(error: LibraryError):
    headers = {"WWW-Authenticate": "Bearer"} if error.status_code == status.HTTP_401_UNAUTHORIZED else None
    raise HTTPException(status_code=error.status_code, detail=error.message, headers=headers)
