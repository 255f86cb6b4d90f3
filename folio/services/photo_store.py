"""Photo record store: owner-scoped row CRUD over the photos table.

Every read and write takes the owner id, so a caller can never touch another
owner's rows through this module. Nothing here commits; the controller owns
the transaction.
"""

from datetime import datetime, timezone

from sqlmodel import Session, col, func, select

from folio.models.photo import Photo, PhotoEvent


def select_all_by_owner(session: Session, owner_id: str, visible_only: bool = False) -> list[Photo]:
    query = select(Photo).where(Photo.owner_id == owner_id)
    if visible_only:
        query = query.where(Photo.is_visible == True)  # noqa: E712
    query = query.order_by(col(Photo.sort_order).asc(), col(Photo.created_at).asc())
    return list(session.exec(query).all())


def get_by_id(session: Session, owner_id: str, photo_id: str) -> Photo | None:
    return session.exec(
        select(Photo).where(Photo.id == photo_id, Photo.owner_id == owner_id)
    ).first()


def max_sort_order(session: Session, owner_id: str) -> int | None:
    """Highest rank for the owner, or None when the library is empty."""
    return session.exec(
        select(func.max(Photo.sort_order)).where(Photo.owner_id == owner_id)
    ).one()


def insert(session: Session, photo: Photo) -> Photo:
    session.add(photo)
    session.flush()
    return photo


def update_by_id(session: Session, owner_id: str, photo_id: str, **fields) -> Photo | None:
    """Partial update of one row. Returns None if the owner has no such photo."""
    photo = get_by_id(session, owner_id, photo_id)
    if photo is None:
        return None
    for name, value in fields.items():
        setattr(photo, name, value)
    photo.updated_at = datetime.now(timezone.utc)
    session.add(photo)
    return photo


def delete_by_id(session: Session, owner_id: str, photo_id: str) -> Photo | None:
    """Delete one row and its engagement events. Returns the removed row."""
    photo = get_by_id(session, owner_id, photo_id)
    if photo is None:
        return None
    events = session.exec(select(PhotoEvent).where(PhotoEvent.photo_id == photo_id)).all()
    for event in events:
        session.delete(event)
    session.flush()
    session.delete(photo)
    session.flush()
    return photo
