import uuid

import pytest
from asgiref.sync import async_to_sync

from movies.domain import Movie, MovieRating
from movies.services import build_services

pytestmark = pytest.mark.django_db


@pytest.fixture
def services():
    return build_services()


def test_movie_rating_lifecycle(services, users):
    movie_service, rating_service = services
    ann, bob, cid = users

    inception = Movie(title="Inception", year=2010, genres=["Sci-Fi"])
    assert async_to_sync(movie_service.create)(inception).value is True
    assert inception.slug == "inception-2010"

    assert async_to_sync(rating_service.rate_movie)(inception.id, ann.pk, 5).value is True
    assert async_to_sync(rating_service.rate_movie)(inception.id, bob.pk, 3).value is True

    as_ann = async_to_sync(movie_service.get_by_id)(inception.id, ann.pk)
    assert (as_ann.rating, as_ann.user_rating) == (4.0, 5)

    as_cid = async_to_sync(movie_service.get_by_slug)("inception-2010", cid.pk)
    assert (as_cid.rating, as_cid.user_rating) == (4.0, None)

    anonymous = async_to_sync(movie_service.get_by_id)(inception.id)
    assert (anonymous.rating, anonymous.user_rating) == (4.0, None)

    assert async_to_sync(movie_service.delete)(inception.id) is True
    assert async_to_sync(movie_service.get_by_id)(inception.id) is None
    assert async_to_sync(movie_service.get_by_slug)("inception-2010") is None
    assert async_to_sync(rating_service.get_ratings_by_user)(ann.pk) == []


def test_update_enriches_with_ratings(services, users):
    movie_service, rating_service = services
    ann, bob, _ = users
    heat = Movie(title="Heat", year=1995, genres=["Crime"])
    async_to_sync(movie_service.create)(heat)
    async_to_sync(rating_service.rate_movie)(heat.id, ann.pk, 4)
    async_to_sync(rating_service.rate_movie)(heat.id, bob.pk, 5)

    result = async_to_sync(movie_service.update)(
        Movie(id=heat.id, title="Heat", year=1995, genres=["Crime", "Drama"]), ann.pk,
    )
    assert result.ok
    assert (result.value.rating, result.value.user_rating) == (4.5, 4)
    assert async_to_sync(movie_service.get_by_id)(heat.id).genres == ["Crime", "Drama"]


def test_unknown_movie_is_never_written(services, users):
    movie_service, rating_service = services
    missing = uuid.uuid4()

    assert async_to_sync(rating_service.rate_movie)(missing, users[0].pk, 3).value is False
    assert async_to_sync(rating_service.delete_rating)(missing, users[0].pk) is False
    result = async_to_sync(movie_service.update)(Movie(id=missing, title="Ghost", year=1990, genres=["Drama"]))
    assert result.ok and result.value is None
    assert async_to_sync(movie_service.get_count)() == 0


@pytest.mark.django_db(transaction=True)
def test_rating_by_user_id_without_account_is_stored(services):
    movie_service, rating_service = services
    heat = Movie(title="Heat", year=1995, genres=["Crime"])
    async_to_sync(movie_service.create)(heat)

    result = async_to_sync(rating_service.rate_movie)(heat.id, 987654, 4)
    assert result.ok and result.value is True
    assert async_to_sync(rating_service.get_ratings_by_user)(987654) == [MovieRating(heat.id, "heat-1995", 4)]
    assert async_to_sync(movie_service.get_by_id)(heat.id, 987654).user_rating == 4
