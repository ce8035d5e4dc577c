import pytest
from django.core.cache import cache

from movies.memory import InMemoryMovieRepository, InMemoryRatingRepository
from movies.repositories import MovieRepository, RatingRepository
from movies.services import MovieService, RatingService


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def memory_ratings():
    return InMemoryRatingRepository()


@pytest.fixture
def memory_movies(memory_ratings):
    return InMemoryMovieRepository(memory_ratings)


@pytest.fixture
def memory_movie_service(memory_movies, memory_ratings):
    return MovieService(memory_movies, memory_ratings)


@pytest.fixture
def memory_rating_service(memory_movies, memory_ratings):
    return RatingService(memory_ratings, memory_movies)


@pytest.fixture
def movie_repo():
    return MovieRepository()


@pytest.fixture
def rating_repo():
    return RatingRepository()


@pytest.fixture
def users(django_user_model):
    return [django_user_model.objects.create_user(username=name, password='pass-1234') for name in ('ann', 'bob', 'cid')]
