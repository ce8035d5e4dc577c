"""Database-backed movie and rating stores.

All ORM access lives here; validators and services only see the plain types
from `movies.domain`.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from django.db import IntegrityError
from django.db.models import Avg, Max, OuterRef, Prefetch, Q, Subquery
from django.db.models.functions import Round

from . import models
from .database import ConnectionProvider
from .domain import GetAllMoviesOptions, Movie, MovieRating, SortOrder

logger = logging.getLogger(__name__)


def _round_rating(value) -> Optional[float]:
    # Postgres hands back Decimal, SQLite a float
    return None if value is None else round(float(value), 1)


def _unique(names: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(names))


def filter_movies(queryset, title: Optional[str] = None, year: Optional[int] = None):
    """Apply the listing filters; shared by the page query and the count."""
    if title:
        queryset = queryset.filter(title__icontains=title)
    if year is not None:
        queryset = queryset.filter(year=year)
    return queryset


def movie_ordering(options: GetAllMoviesOptions) -> Tuple[str, ...]:
    # Primary key always breaks ties so page windows stay stable
    if not options.sort_field or options.sort_order is SortOrder.UNSORTED:
        return ('id',)
    prefix = '-' if options.sort_order is SortOrder.DESCENDING else ''
    return (f'{prefix}{options.sort_field.lower()}', 'id')


class MovieRepository:
    """CRUD and listing queries for movies and their genre rows."""

    def __init__(self, db: Optional[ConnectionProvider] = None):
        self._db = db or ConnectionProvider()

    # ───────────────────────────── look-ups ──────────────────────────
    def _enriched(self, user_id=None):
        queryset = (
            models.Movie.objects.using(self._db.alias)
            .annotate(rating=Round(Avg('ratings__rating'), 1))
            .prefetch_related(Prefetch('genres', queryset=models.Genre.objects.order_by('id')))
        )
        if user_id is not None:
            own = models.Rating.objects.filter(movie=OuterRef('pk'), user_id=user_id).values('rating')[:1]
            queryset = queryset.annotate(user_rating=Subquery(own))
        return queryset

    @staticmethod
    def _to_domain(row) -> Movie:
        return Movie(
            id=row.id,
            title=row.title,
            year=row.year,
            genres=[g.name for g in row.genres.all()],
            rating=_round_rating(row.rating),
            user_rating=getattr(row, 'user_rating', None),
        )

    def get_by_id(self, movie_id, user_id=None) -> Optional[Movie]:
        row = self._enriched(user_id).filter(pk=movie_id).first()
        return self._to_domain(row) if row else None

    def get_by_slug(self, slug: str, user_id=None) -> Optional[Movie]:
        # Stored slugs are always lowercase
        row = self._enriched(user_id).filter(slug=slug.lower()).first()
        return self._to_domain(row) if row else None

    def get_all(self, options: GetAllMoviesOptions) -> List[Movie]:
        queryset = filter_movies(self._enriched(options.user_id), options.title, options.year)
        queryset = queryset.order_by(*movie_ordering(options))
        window = queryset[options.offset:options.offset + options.page_size]
        return [self._to_domain(row) for row in window]

    def get_count(self, title: Optional[str] = None, year: Optional[int] = None) -> int:
        return filter_movies(models.Movie.objects.using(self._db.alias), title, year).count()

    def exists_by_id(self, movie_id) -> bool:
        return models.Movie.objects.using(self._db.alias).filter(pk=movie_id).exists()

    # ───────────────────────────── writers ──────────────────────────
    def _insert_genres(self, movie: Movie) -> None:
        models.Genre.objects.using(self._db.alias).bulk_create(
            [models.Genre(movie_id=movie.id, name=name) for name in _unique(movie.genres)]
        )

    def create(self, movie: Movie) -> bool:
        """Insert the movie row and its genres in one transaction.

        Returns False when a unique constraint (id or slug) rejects the row;
        any other database error propagates after the rollback.
        """
        try:
            with self._db.atomic():
                models.Movie.objects.using(self._db.alias).create(
                    id=movie.id, title=movie.title, slug=movie.slug, year=movie.year,
                )
                self._insert_genres(movie)
        except IntegrityError:
            logger.warning("Movie %s (%s) rejected by a unique constraint", movie.id, movie.slug)
            return False
        logger.debug("Created movie %s (%s)", movie.id, movie.slug)
        return True

    def update(self, movie: Movie) -> bool:
        """Rewrite title/year/slug and replace every genre row of *movie*."""
        try:
            with self._db.atomic():
                updated = models.Movie.objects.using(self._db.alias).filter(pk=movie.id).update(
                    title=movie.title, slug=movie.slug, year=movie.year,
                )
                if updated:
                    models.Genre.objects.using(self._db.alias).filter(movie_id=movie.id).delete()
                    self._insert_genres(movie)
        except IntegrityError:
            logger.warning("Update of movie %s to slug %s rejected by a unique constraint", movie.id, movie.slug)
            return False
        return updated > 0

    def delete(self, movie_id) -> bool:
        """Delete the movie; genres and ratings go with it."""
        _, per_model = models.Movie.objects.using(self._db.alias).filter(pk=movie_id).delete()
        return per_model.get(models.Movie._meta.label, 0) > 0


class RatingRepository:
    """Persistence for the (movie, user) -> rating relation."""

    def __init__(self, db: Optional[ConnectionProvider] = None):
        self._db = db or ConnectionProvider()

    def _ratings(self):
        return models.Rating.objects.using(self._db.alias)

    def upsert(self, movie_id, user_id, rating: int) -> bool:
        """Insert or replace the rating keyed by (movie_id, user_id)."""
        try:
            with self._db.atomic():
                self._ratings().bulk_create(
                    [models.Rating(movie_id=movie_id, user_id=user_id, rating=rating)],
                    update_conflicts=True,
                    unique_fields=['user_id', 'movie'],
                    update_fields=['rating'],
                )
        except IntegrityError:
            logger.warning("Rating of movie %s by user %s rejected by the database", movie_id, user_id)
            return False
        return True

    def delete_rating(self, movie_id, user_id) -> bool:
        deleted, _ = self._ratings().filter(movie_id=movie_id, user_id=user_id).delete()
        return deleted > 0

    def get_aggregate_rating(self, movie_id) -> Optional[float]:
        row = self._ratings().filter(movie_id=movie_id).aggregate(avg_rating=Round(Avg('rating'), 1))
        return _round_rating(row['avg_rating'])

    def get_rating_pair(self, movie_id, user_id) -> Tuple[Optional[float], Optional[int]]:
        """Aggregate and *user_id*'s own rating in a single query."""
        row = self._ratings().filter(movie_id=movie_id).aggregate(
            avg_rating=Round(Avg('rating'), 1),
            own_rating=Max('rating', filter=Q(user_id=user_id)),
        )
        return _round_rating(row['avg_rating']), row['own_rating']

    def get_ratings_by_user(self, user_id) -> List[MovieRating]:
        rows = (
            self._ratings()
            .filter(user_id=user_id)
            .order_by('movie__slug')
            .values_list('movie_id', 'movie__slug', 'rating')
        )
        return [MovieRating(movie_id=movie_id, slug=slug, rating=rating) for movie_id, slug, rating in rows]
