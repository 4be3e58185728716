"""Image query engine: tag intersection, keyword, month and camera filters."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import distinct, func, or_, select
from sqlalchemy.orm import Query, Session, selectinload

from photomind.metadata import Image, Tag, image_tags


logger = logging.getLogger(__name__)

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_month(month: str) -> Tuple[datetime, datetime]:
    """Parse 'YYYY-MM' into a half-open [start, next_month_start) range.

    Raises:
        ValueError: when the value is not a valid year-month
    """
    match = _MONTH_RE.match((month or "").strip())
    if not match:
        raise ValueError(f"invalid month {month!r}, expected YYYY-MM")
    year, month_number = int(match.group(1)), int(match.group(2))
    if not 1 <= month_number <= 12:
        raise ValueError(f"invalid month {month!r}, month must be 01-12")

    start = datetime(year, month_number, 1)
    if month_number == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month_number + 1, 1)
    return start, end


def _clean_terms(values: Iterable[str]) -> List[str]:
    terms: List[str] = []
    for value in values or []:
        term = (value or "").strip()
        if term and term not in terms:
            terms.append(term)
    return terms


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class ImageFilter:
    """Filter criteria for one user's image library. Empty fields do not filter."""

    tags: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    month: str = ""
    camera: str = ""

    @classmethod
    def from_params(
        cls,
        tags: Optional[str] = None,
        month: Optional[str] = None,
        camera: Optional[str] = None,
    ) -> "ImageFilter":
        """Build from query-string params; tags are comma-separated."""
        return cls(
            tags=_clean_terms((tags or "").split(",")),
            month=(month or "").strip(),
            camera=(camera or "").strip(),
        )

    @classmethod
    def from_condition(cls, condition) -> "ImageFilter":
        """Build from a translated QueryCondition."""
        return cls(
            tags=_clean_terms(condition.tags),
            keywords=_clean_terms(condition.keywords),
            month=(condition.month or "").strip(),
            camera=(condition.camera or "").strip(),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.tags or self.keywords or self.month or self.camera)


def tag_intersection_subquery(tag_names: List[str]):
    """Image ids carrying every one of the given tag names."""
    names = _clean_terms(tag_names)
    return (
        select(image_tags.c.image_id)
        .join(Tag, Tag.id == image_tags.c.tag_id)
        .where(Tag.name.in_(names))
        .group_by(image_tags.c.image_id)
        .having(func.count(distinct(Tag.id)) >= len(names))
    )


def keyword_subquery(keywords: List[str]):
    """Image ids with any tag whose name contains one of the keywords."""
    clauses = [Tag.name.ilike(f"%{_escape_like(keyword)}%", escape="\\") for keyword in keywords]
    return (
        select(image_tags.c.image_id)
        .join(Tag, Tag.id == image_tags.c.tag_id)
        .where(or_(*clauses))
    )


def apply_filter(query: Query, image_filter: ImageFilter) -> Query:
    """Apply an ImageFilter to a query over Image."""
    tags = _clean_terms(image_filter.tags)
    keywords = _clean_terms(image_filter.keywords)

    # Tags and keywords widen each other: full tag match OR any keyword hit.
    tag_clauses = []
    if tags:
        tag_clauses.append(Image.id.in_(tag_intersection_subquery(tags)))
    if keywords:
        tag_clauses.append(Image.id.in_(keyword_subquery(keywords)))
    if tag_clauses:
        query = query.filter(or_(*tag_clauses))

    if image_filter.month:
        try:
            start, end = parse_month(image_filter.month)
        except ValueError as exc:
            logger.warning(f"Ignoring month filter: {exc}")
        else:
            query = query.filter(Image.taken_at >= start, Image.taken_at < end)

    if image_filter.camera:
        pattern = f"%{_escape_like(image_filter.camera)}%"
        query = query.filter(Image.camera_make.ilike(pattern, escape="\\"))

    return query


def query_images(db: Session, user_id: int, image_filter: Optional[ImageFilter] = None) -> List[Image]:
    """Return the user's images matching the filter, newest upload first."""
    query = db.query(Image).filter(Image.user_id == user_id)
    if image_filter is not None:
        query = apply_filter(query, image_filter)
    return (
        query.options(selectinload(Image.tags))
        .order_by(Image.created_at.desc(), Image.id.desc())
        .all()
    )
