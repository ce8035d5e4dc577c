"""List-backed stores with the same contract as `movies.repositories`.

Used to exercise the services and validators without a database. Not thread
safe and not meant for production traffic.
"""

import copy
from typing import Dict, List, Optional, Tuple

from .domain import GetAllMoviesOptions, Movie, MovieRating, SortOrder


class InMemoryRatingRepository:

    def __init__(self):
        self.rows: Dict[Tuple[object, object], int] = {}
        self.slugs: Dict[object, str] = {}

    def upsert(self, movie_id, user_id, rating: int) -> bool:
        self.rows[(movie_id, user_id)] = rating
        return True

    def delete_rating(self, movie_id, user_id) -> bool:
        return self.rows.pop((movie_id, user_id), None) is not None

    def delete_movie(self, movie_id) -> None:
        for key in [k for k in self.rows if k[0] == movie_id]:
            del self.rows[key]

    def get_aggregate_rating(self, movie_id) -> Optional[float]:
        values = [r for (m, _), r in self.rows.items() if m == movie_id]
        return round(sum(values) / len(values), 1) if values else None

    def get_rating_pair(self, movie_id, user_id) -> Tuple[Optional[float], Optional[int]]:
        return self.get_aggregate_rating(movie_id), self.rows.get((movie_id, user_id))

    def get_ratings_by_user(self, user_id) -> List[MovieRating]:
        return sorted(
            (MovieRating(movie_id=m, slug=self.slugs.get(m, ''), rating=r)
             for (m, u), r in self.rows.items() if u == user_id),
            key=lambda r: r.slug,
        )


class InMemoryMovieRepository:

    def __init__(self, ratings: Optional[InMemoryRatingRepository] = None):
        self.movies: List[Movie] = []
        self.ratings = ratings or InMemoryRatingRepository()

    def _find(self, movie_id) -> Optional[Movie]:
        return next((m for m in self.movies if m.id == movie_id), None)

    def _enrich(self, movie: Movie, user_id=None) -> Movie:
        found = copy.deepcopy(movie)
        found.rating, found.user_rating = self.ratings.get_rating_pair(movie.id, user_id)
        if user_id is None:
            found.user_rating = None
        return found

    def _matching(self, title=None, year=None) -> List[Movie]:
        return [
            m for m in self.movies
            if (not title or title.lower() in m.title.lower()) and (year is None or m.year == year)
        ]

    def get_by_id(self, movie_id, user_id=None) -> Optional[Movie]:
        movie = self._find(movie_id)
        return self._enrich(movie, user_id) if movie else None

    def get_by_slug(self, slug: str, user_id=None) -> Optional[Movie]:
        movie = next((m for m in self.movies if m.slug == slug.lower()), None)
        return self._enrich(movie, user_id) if movie else None

    def get_all(self, options: GetAllMoviesOptions) -> List[Movie]:
        found = sorted(self._matching(options.title, options.year), key=lambda m: str(m.id))
        if options.sort_field and options.sort_order is not SortOrder.UNSORTED:
            found.sort(
                key=lambda m: getattr(m, options.sort_field.lower()),
                reverse=options.sort_order is SortOrder.DESCENDING,
            )
        window = found[options.offset:options.offset + options.page_size]
        return [self._enrich(m, options.user_id) for m in window]

    def get_count(self, title=None, year=None) -> int:
        return len(self._matching(title, year))

    def exists_by_id(self, movie_id) -> bool:
        return self._find(movie_id) is not None

    def create(self, movie: Movie) -> bool:
        if self._find(movie.id) or any(m.slug == movie.slug for m in self.movies):
            return False
        stored = copy.deepcopy(movie)
        stored.genres = list(dict.fromkeys(movie.genres))
        stored.rating = stored.user_rating = None
        self.movies.append(stored)
        self.ratings.slugs[movie.id] = movie.slug
        return True

    def update(self, movie: Movie) -> bool:
        stored = self._find(movie.id)
        if stored is None or any(m.slug == movie.slug and m.id != movie.id for m in self.movies):
            return False
        stored.title, stored.year = movie.title, movie.year
        stored.genres = list(dict.fromkeys(movie.genres))
        self.ratings.slugs[movie.id] = movie.slug
        return True

    def delete(self, movie_id) -> bool:
        stored = self._find(movie_id)
        if stored is None:
            return False
        self.movies.remove(stored)
        self.ratings.delete_movie(movie_id)
        self.ratings.slugs.pop(movie_id, None)
        return True
