import uuid
from unittest import mock

import pytest
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from movies import models
from movies.results import Result
from movies.validators import MovieValidator

pytestmark = pytest.mark.django_db


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def staff(django_user_model):
    return django_user_model.objects.create_user(username='admin', password='pass-1234', is_staff=True)


@pytest.fixture
def trusted(django_user_model):
    user = django_user_model.objects.create_user(username='curator', password='pass-1234')
    user.groups.add(Group.objects.create(name='trusted'))
    return user


@pytest.fixture
def member(django_user_model):
    return django_user_model.objects.create_user(username='viewer', password='pass-1234')


def create_movie(client, user, title='Inception', year=2010, genres=('Sci-Fi',)):
    client.force_authenticate(user=user)
    response = client.post('/api/movies/', {'title': title, 'year': year, 'genres': list(genres)}, format='json')
    client.force_authenticate(user=None)
    return response


def test_trusted_user_creates_movie(client, trusted):
    response = create_movie(client, trusted)
    assert response.status_code == 201
    assert response.data['slug'] == 'inception-2010'
    assert response.data['genres'] == ['Sci-Fi']
    assert models.Movie.objects.filter(pk=response.data['id']).exists()


def test_plain_member_cannot_create(client, member):
    assert create_movie(client, member).status_code == 403
    assert create_movie(client, None).status_code in (401, 403)


def test_create_reports_field_errors(client, staff):
    create_movie(client, staff)
    response = create_movie(client, staff, genres=())
    assert response.status_code == 400
    assert {e['field'] for e in response.data['errors']} == {'genres', 'slug'}


def test_list_pages_and_filters(client, staff):
    for title in ('Alien', 'Aliens', 'Brazil'):
        create_movie(client, staff, title=title, year=1986)

    response = client.get('/api/movies/', {'title': 'alien', 'sort_by': '-title', 'page_size': 1})
    assert response.status_code == 200
    assert response.data['total'] == 2
    assert response.data['has_next_page'] is True
    assert [m['title'] for m in response.data['items']] == ['Aliens']

    response = client.get('/api/movies/', {'sort_by': 'rating'})
    assert response.status_code == 400
    assert response.data['errors'][0]['field'] == 'sort_field'


def test_list_cache_is_evicted_on_write(client, staff):
    create_movie(client, staff, title='Alien')
    assert client.get('/api/movies/').data['total'] == 1
    create_movie(client, staff, title='Brazil')
    assert client.get('/api/movies/').data['total'] == 2


def test_retrieve_by_id_or_slug(client, staff):
    movie_id = create_movie(client, staff).data['id']
    assert client.get(f'/api/movies/{movie_id}/').data['title'] == 'Inception'
    assert client.get('/api/movies/inception-2010/').data['id'] == movie_id
    assert client.get('/api/movies/nothing-1900/').status_code == 404


def test_update(client, staff):
    movie_id = create_movie(client, staff).data['id']
    client.force_authenticate(user=staff)

    response = client.put(f'/api/movies/{movie_id}/', {'title': 'Inception', 'year': 2010, 'genres': ['Thriller']}, format='json')
    assert response.status_code == 200
    assert response.data['genres'] == ['Thriller']

    response = client.put(f'/api/movies/{uuid.uuid4()}/', {'title': 'Ghost', 'year': 1990, 'genres': ['Drama']}, format='json')
    assert response.status_code == 404


def test_rating_flow(client, staff, member):
    movie_id = create_movie(client, staff).data['id']
    client.force_authenticate(user=member)

    assert client.post(f'/api/movies/{movie_id}/rating/', {'rating': 6}, format='json').status_code == 400
    assert client.post(f'/api/movies/{movie_id}/rating/', {'rating': 4}, format='json').status_code == 200
    assert client.post(f'/api/movies/{uuid.uuid4()}/rating/', {'rating': 4}, format='json').status_code == 404

    detail = client.get(f'/api/movies/{movie_id}/').data
    assert (detail['rating'], detail['user_rating']) == (4.0, 4)

    mine = client.get('/api/ratings/me/').data['ratings']
    assert mine == [{'movie_id': movie_id, 'slug': 'inception-2010', 'rating': 4}]

    assert client.delete(f'/api/movies/{movie_id}/rating/').status_code == 204
    assert client.delete(f'/api/movies/{movie_id}/rating/').status_code == 404


def test_rating_requires_login(client, staff):
    movie_id = create_movie(client, staff).data['id']
    assert client.post(f'/api/movies/{movie_id}/rating/', {'rating': 4}, format='json').status_code in (401, 403)


def test_delete_needs_admin_or_api_key(client, staff, trusted, settings):
    settings.MOVIES_API_KEY = 'service-key'
    movie_id = create_movie(client, staff).data['id']

    client.force_authenticate(user=trusted)
    assert client.delete(f'/api/movies/{movie_id}/').status_code == 403
    client.force_authenticate(user=None)

    assert client.delete(f'/api/movies/{movie_id}/', HTTP_X_API_KEY='wrong').status_code in (401, 403)
    assert client.delete(f'/api/movies/{movie_id}/', HTTP_X_API_KEY='service-key').status_code == 204
    assert client.delete(f'/api/movies/{movie_id}/', HTTP_X_API_KEY='service-key').status_code == 404


def test_health(client):
    response = client.get('/_health/')
    assert response.status_code == 200
    assert response.data == {'database': 'healthy'}


def test_update_losing_slug_race_answers_conflict(client, staff):
    create_movie(client, staff, title='Heat', year=1995)
    ronin_id = create_movie(client, staff, title='Ronin', year=1998).data['id']
    client.force_authenticate(user=staff)

    with mock.patch.object(MovieValidator, 'validate', lambda self, movie: Result.success(movie)):
        response = client.put(f'/api/movies/{ronin_id}/', {'title': 'Heat', 'year': 1995, 'genres': ['Action']}, format='json')
    assert response.status_code == 409
    assert client.get(f'/api/movies/{ronin_id}/').data['slug'] == 'ronin-1998'


def test_update_response_matches_stored_genres(client, staff):
    movie_id = create_movie(client, staff, genres=('Sci-Fi', 'Sci-Fi')).data['id']
    client.force_authenticate(user=staff)

    response = client.put(f'/api/movies/{movie_id}/', {'title': 'Inception', 'year': 2010, 'genres': ['Heist', 'Heist']}, format='json')
    assert response.data['genres'] == ['Heist']
    assert client.get(f'/api/movies/{movie_id}/').data['genres'] == ['Heist']
