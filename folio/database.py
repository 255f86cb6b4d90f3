"""SQLite engine for the photo record store."""

from sqlalchemy import event
from sqlmodel import SQLModel, Session, create_engine

from folio.config import settings

# Registers Profile, Photo and PhotoEvent on SQLModel.metadata
import folio.models  # noqa: F401

engine = create_engine(
    f"sqlite:///{settings.db_path}",
    echo=settings.debug,
    connect_args={"check_same_thread": False},
)


@event.listens_for(engine, "connect")
def _configure_connection(dbapi_connection, connection_record):
    # foreign_keys and synchronous are per connection; WAL sticks to the file
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_db() -> None:
    """Create the photos, photo_events and profiles tables if missing."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """FastAPI dependency: one session per request."""
    with Session(engine) as session:
        yield session
