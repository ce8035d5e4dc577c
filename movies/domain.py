"""Plain domain types shared by the stores, validators and services.

Nothing here touches Django; the ORM rows in `movies.models` are mapped to and
from these types inside the repositories.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

ALLOWED_SORT_FIELDS = ("title", "year")


def make_slug(title: str, year: int) -> str:
    """`"The Matrix", 1999` -> `"the-matrix-1999"`."""
    return f"{title.lower().replace(' ', '-')}-{year}"


@dataclass
class Movie:
    title: str
    year: int
    genres: List[str] = field(default_factory=list)
    id: Optional[uuid.UUID] = None
    # Enrichment only, never persisted
    rating: Optional[float] = None
    user_rating: Optional[int] = None

    @property
    def slug(self) -> str:
        return make_slug(self.title, self.year)


@dataclass(frozen=True)
class MovieRating:
    movie_id: uuid.UUID
    slug: str
    rating: int


class SortOrder(enum.Enum):
    UNSORTED = "unsorted"
    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass
class GetAllMoviesOptions:
    title: Optional[str] = None
    year: Optional[int] = None
    user_id: Optional[int] = None
    sort_field: Optional[str] = None
    sort_order: SortOrder = SortOrder.UNSORTED
    page: int = 1
    page_size: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size
