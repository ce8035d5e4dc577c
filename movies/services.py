"""Movie and rating lifecycle.

Services are coroutines; every store call goes through `sync_to_async`, so
cancelling the awaiting task stops the operation at the next store call.
A write already running finishes or rolls back inside its own transaction.
"""

import logging
import uuid
from typing import List, Optional, Union

from asgiref.sync import sync_to_async

from .domain import GetAllMoviesOptions, Movie, MovieRating
from .repositories import MovieRepository, RatingRepository
from .results import FieldError, Result
from .validators import GetAllMoviesOptionsValidator, MovieValidator

logger = logging.getLogger(__name__)


def _unique_genres(genres) -> List[str]:
    # Same collapse the stores apply, so callers see what was written
    return list(dict.fromkeys(genres))


class MovieService:

    def __init__(self, movies, ratings, validator=None, options_validator=None):
        self._movies = movies
        self._ratings = ratings
        self._validator = validator or MovieValidator(movies)
        self._options_validator = options_validator or GetAllMoviesOptionsValidator()

    async def create(self, movie: Movie) -> Result[bool]:
        """Validate and persist a new movie, assigning its id if missing."""
        if movie.id is None:
            movie.id = uuid.uuid4()
        movie.genres = _unique_genres(movie.genres)
        checked = await sync_to_async(self._validator.validate)(movie)
        if not checked.ok:
            logger.info("Rejected movie %s: %s", movie.slug, [e.field for e in checked.errors])
            return Result.failure(*checked.errors)
        created = await sync_to_async(self._movies.create)(movie)
        return Result.success(created)

    async def get_by_id(self, movie_id, user_id=None) -> Optional[Movie]:
        return await sync_to_async(self._movies.get_by_id)(movie_id, user_id)

    async def get_by_slug(self, slug: str, user_id=None) -> Optional[Movie]:
        return await sync_to_async(self._movies.get_by_slug)(slug, user_id)

    async def get_all(self, options: GetAllMoviesOptions) -> Result[List[Movie]]:
        checked = self._options_validator.validate(options)
        if not checked.ok:
            return Result.failure(*checked.errors)
        movies = await sync_to_async(self._movies.get_all)(options)
        return Result.success(movies)

    async def get_count(self, title: Optional[str] = None, year: Optional[int] = None) -> int:
        return await sync_to_async(self._movies.get_count)(title, year)

    async def update(self, movie: Movie, user_id=None) -> Result[Union[Movie, bool, None]]:
        """Replace a movie's fields and genres.

        A successful result holding None means the movie does not exist (or
        vanished before the write landed). False means the row still exists
        but the write lost a slug race to another movie.
        """
        movie.genres = _unique_genres(movie.genres)
        checked = await sync_to_async(self._validator.validate)(movie)
        if not checked.ok:
            logger.info("Rejected update of movie %s: %s", movie.id, [e.field for e in checked.errors])
            return Result.failure(*checked.errors)

        if not await sync_to_async(self._movies.exists_by_id)(movie.id):
            return Result.success(None)
        if not await sync_to_async(self._movies.update)(movie):
            if await sync_to_async(self._movies.exists_by_id)(movie.id):
                return Result.success(False)
            return Result.success(None)

        if user_id is not None:
            movie.rating, movie.user_rating = await sync_to_async(self._ratings.get_rating_pair)(movie.id, user_id)
        else:
            movie.rating = await sync_to_async(self._ratings.get_aggregate_rating)(movie.id)
            movie.user_rating = None
        logger.debug("Updated movie %s (%s)", movie.id, movie.slug)
        return Result.success(movie)

    async def delete(self, movie_id) -> bool:
        return await sync_to_async(self._movies.delete)(movie_id)


class RatingService:

    def __init__(self, ratings, movies):
        self._ratings = ratings
        self._movies = movies

    async def rate_movie(self, movie_id, user_id, rating: int) -> Result[bool]:
        errors = []
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            errors.append(FieldError("rating", "Rating must be between 1 and 5"))
        if not user_id:
            errors.append(FieldError("user_id", "User ID must be provided"))
        if errors:
            return Result.failure(*errors)

        if not await sync_to_async(self._movies.exists_by_id)(movie_id):
            return Result.success(False)
        saved = await sync_to_async(self._ratings.upsert)(movie_id, user_id, rating)
        return Result.success(saved)

    async def delete_rating(self, movie_id, user_id) -> bool:
        if not await sync_to_async(self._movies.exists_by_id)(movie_id):
            return False
        return await sync_to_async(self._ratings.delete_rating)(movie_id, user_id)

    async def get_ratings_by_user(self, user_id) -> List[MovieRating]:
        return await sync_to_async(self._ratings.get_ratings_by_user)(user_id)


def build_services(db=None):
    """Wire the database-backed stores into a (MovieService, RatingService) pair."""
    movies = MovieRepository(db)
    ratings = RatingRepository(db)
    return MovieService(movies, ratings), RatingService(ratings, movies)
