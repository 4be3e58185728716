"""Tag vocabulary: find-or-create, image association and provenance."""

import logging
from typing import Iterable, List

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from photomind.metadata import TAG_SOURCE_AI, TAG_SOURCE_USER, Image, Tag, image_tags


logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 100


def normalize_tag_name(name: str) -> str:
    """Strip a tag name and reject empty or oversized values."""
    normalized = (name or "").strip()
    if not normalized:
        raise ValueError("Tag name cannot be empty")
    if len(normalized) > MAX_TAG_LENGTH:
        raise ValueError(f"Tag name exceeds {MAX_TAG_LENGTH} characters")
    return normalized


def get_tag_by_name(db: Session, name: str):
    return db.query(Tag).filter(Tag.name == name).first()


def find_or_create_tag(db: Session, name: str, source: str = TAG_SOURCE_USER) -> Tag:
    """Return the tag with this exact name, creating it with the given provenance.

    The insert runs in a savepoint; a lost creation race rolls back only that
    insert and leaves the rest of the transaction intact.
    """
    normalized = normalize_tag_name(name)
    tag = get_tag_by_name(db, normalized)
    if tag:
        return tag

    tag = Tag(name=normalized, source=source)
    try:
        with db.begin_nested():
            db.add(tag)
            db.flush()
    except IntegrityError:
        # Another request created the same name first.
        tag = get_tag_by_name(db, normalized)
        if tag is None:
            raise
    return tag


def mark_tag_ai(db: Session, tag: Tag) -> bool:
    """Upgrade a tag's provenance to 'ai'. Never downgrades."""
    if tag.source == TAG_SOURCE_AI:
        return False
    tag.source = TAG_SOURCE_AI
    db.flush()
    return True


def has_tag(db: Session, image_id: int, tag_id: int) -> bool:
    count = db.execute(
        select(func.count()).select_from(image_tags).where(
            and_(image_tags.c.image_id == image_id, image_tags.c.tag_id == tag_id)
        )
    ).scalar_one()
    return count > 0


def attach_tag(db: Session, image: Image, tag: Tag) -> bool:
    """Associate a tag with an image; returns False when already associated."""
    if tag.id is None:
        db.flush()
    if has_tag(db, image.id, tag.id):
        return False
    image.tags.append(tag)
    db.flush()
    return True


def detach_tag(db: Session, image: Image, tag_id: int) -> bool:
    """Remove one image-tag association; a missing pair is not an error."""
    result = db.execute(
        image_tags.delete().where(
            and_(image_tags.c.image_id == image.id, image_tags.c.tag_id == tag_id)
        )
    )
    db.expire(image, ["tags"])
    return (result.rowcount or 0) > 0


def add_user_tag(db: Session, image: Image, name: str) -> Tag:
    """Attach a user-entered tag to an image."""
    tag = find_or_create_tag(db, name, source=TAG_SOURCE_USER)
    attach_tag(db, image, tag)
    return tag


def apply_ai_tags(db: Session, image: Image, names: Iterable[str]) -> List[Tag]:
    """Attach AI-proposed tags, upgrading existing user tags to 'ai'.

    Returns the tags that were newly attached to the image.
    """
    added: List[Tag] = []
    seen = set()
    for raw_name in names:
        try:
            name = normalize_tag_name(raw_name)
        except ValueError as exc:
            logger.warning(f"Skipping AI tag {raw_name!r}: {exc}")
            continue
        if name in seen:
            continue
        seen.add(name)

        tag = find_or_create_tag(db, name, source=TAG_SOURCE_AI)
        mark_tag_ai(db, tag)
        if attach_tag(db, image, tag):
            added.append(tag)
    return added


def list_user_tags(db: Session, user_id: int) -> List[Tag]:
    """Tags associated with at least one of the user's images, by name."""
    return (
        db.query(Tag)
        .join(image_tags, image_tags.c.tag_id == Tag.id)
        .join(Image, Image.id == image_tags.c.image_id)
        .filter(Image.user_id == user_id)
        .distinct()
        .order_by(Tag.name.asc())
        .all()
    )


def list_user_tag_names(db: Session, user_id: int) -> List[str]:
    return [tag.name for tag in list_user_tags(db, user_id)]
