import uuid

from django.utils import timezone

from .domain import ALLOWED_SORT_FIELDS, GetAllMoviesOptions, Movie
from .results import FieldError, Result

NIL_UUID = uuid.UUID(int=0)


def current_year() -> int:
    return timezone.now().year


class MovieValidator:
    """Structural and cross-movie rules checked before any write.

    The slug rule needs a store with `get_by_slug`, so the validator is bound
    to one at construction.
    """

    def __init__(self, movies):
        self._movies = movies

    def validate(self, movie: Movie) -> Result[Movie]:
        errors = []
        if movie.id is None or movie.id == NIL_UUID:
            errors.append(FieldError("id", "Movie id must not be empty."))
        if not movie.genres:
            errors.append(FieldError("genres", "At least one genre is required."))
        if not movie.title or not movie.title.strip():
            errors.append(FieldError("title", "Title must not be empty."))
        if movie.year > current_year():
            errors.append(FieldError("year", f"Year must be less than or equal to {current_year()}."))
        if not self._slug_is_free(movie):
            errors.append(FieldError("slug", "The movie already exists."))

        if errors:
            return Result.failure(*errors)
        return Result.success(movie)

    def _slug_is_free(self, movie: Movie) -> bool:
        # A movie may keep its own slug when title and year are unchanged
        existing = self._movies.get_by_slug(movie.slug)
        return existing is None or existing.id == movie.id


class GetAllMoviesOptionsValidator:

    def validate(self, options: GetAllMoviesOptions) -> Result[GetAllMoviesOptions]:
        errors = []
        if options.year is not None and options.year > current_year():
            errors.append(FieldError("year", f"Year must be less than or equal to {current_year()}."))
        if options.sort_field is not None and options.sort_field.lower() not in ALLOWED_SORT_FIELDS:
            errors.append(FieldError(
                "sort_field",
                f"Invalid sort field. Allowed values are: {', '.join(ALLOWED_SORT_FIELDS)}",
            ))
        if options.page < 1:
            errors.append(FieldError("page", "Page must be at least 1."))
        if options.page_size < 1:
            errors.append(FieldError("page_size", "Page size must be greater than 0."))

        if errors:
            return Result.failure(*errors)
        return Result.success(options)
