"""Shared fixtures: temp storage, database, owners and an API client."""

import os
import secrets
import tempfile
from io import BytesIO

# Point settings at throwaway directories before folio is imported
os.environ["FOLIO_DATA_DIR"] = tempfile.mkdtemp()
os.environ["FOLIO_STORAGE_DIR"] = tempfile.mkdtemp()
os.environ["FOLIO_DB_PATH"] = os.path.join(os.environ["FOLIO_DATA_DIR"], "test.db")

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlmodel import Session

from folio.database import engine, init_db
from folio.models.profile import Profile
from folio.services.library import MediaLibrary, UploadFile
from folio.utils.security import create_access_token
from folio.utils.storage import LocalObjectStore

init_db()


def make_jpeg(width: int = 64, height: int = 48) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), (200, 80, 40)).save(buf, "JPEG")
    return buf.getvalue()


def jpeg_file(name: str = "photo.jpg") -> UploadFile:
    return UploadFile(filename=name, content_type="image/jpeg", data=make_jpeg())


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def make_owner(session):
    def _make(username: str | None = None) -> Profile:
        profile = Profile(username=username or f"model_{secrets.token_hex(4)}", display_name="Test Model")
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile
    return _make


@pytest.fixture
def owner(make_owner):
    return make_owner()


@pytest.fixture
def store():
    return LocalObjectStore()


@pytest.fixture
def library(session, store):
    return MediaLibrary(session, store)


@pytest.fixture
def auth_headers():
    def _headers(profile: Profile) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(profile.id)}"}
    return _headers


@pytest.fixture
def client():
    from folio.main import app

    with TestClient(app) as c:
        yield c
