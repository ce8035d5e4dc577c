import pytest

from movies.domain import GetAllMoviesOptions, Movie, make_slug
from movies.results import FieldError, Result


@pytest.mark.parametrize("title, year, expected", [
    ("Inception", 2010, "inception-2010"),
    ("The Dark Knight", 2008, "the-dark-knight-2008"),
    ("  Spaced  Out", 1999, "--spaced--out-1999"),
    ("WALL·E", 2008, "wall·e-2008"),
])
def test_make_slug(title, year, expected):
    assert make_slug(title, year) == expected


def test_slug_follows_title_and_year():
    movie = Movie(title="Alien", year=1979, genres=["Horror"])
    assert movie.slug == "alien-1979"
    movie.title, movie.year = "Aliens", 1986
    assert movie.slug == "aliens-1986"
    assert movie.slug == movie.slug


def test_options_offset():
    assert GetAllMoviesOptions().offset == 0
    assert GetAllMoviesOptions(page=3, page_size=20).offset == 40


def test_result_failure_needs_errors():
    with pytest.raises(ValueError):
        Result.failure()


def test_result_as_dict():
    result = Result.failure(FieldError("year", "too late"))
    assert not result.ok
    assert result.as_dict() == {"errors": [{"field": "year", "message": "too late"}]}
