import logging
import uuid

from asgiref.sync import async_to_sync
from django.apps import apps
from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from .database import ConnectionProvider
from .permissions import HasApiKey, IsTrustedUser
from .serializers import (
    MovieRatingSerializer, MovieRequestSerializer, MovieSerializer,
    MoviesQuerySerializer, RateMovieSerializer,
    page_response, to_movie, to_options,
)

logger = logging.getLogger(__name__)

CACHE_GENERATION_KEY = 'movies:generation'


def _services():
    config = apps.get_app_config('movies')
    return config.movie_service, config.rating_service


def _caller_id(request):
    return request.user.pk if request.user.is_authenticated else None


def _parse_uuid(value):
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


# -------------------------------
# RESPONSE CACHE
# -------------------------------

def _cache_key(*parts):
    generation = cache.get_or_set(CACHE_GENERATION_KEY, 1, timeout=None)
    return 'movies:{}:{}'.format(generation, ':'.join(str(p) for p in parts))


def evict_movie_cache():
    """Invalidate every cached movie response by moving to a new generation."""
    try:
        cache.incr(CACHE_GENERATION_KEY)
    except ValueError:
        cache.set(CACHE_GENERATION_KEY, 2, timeout=None)


# -------------------------------
# MOVIE VIEWSET
# -------------------------------

class MovieViewSet(viewsets.ViewSet):
    lookup_field = 'identity'
    lookup_value_regex = '[^/]+'

    def get_permissions(self):
        if self.action in ('list', 'retrieve'):
            return [AllowAny()]
        if self.action in ('create', 'update'):
            return [IsTrustedUser()]
        if self.action == 'destroy':
            return [(IsAdminUser | HasApiKey)()]
        return [IsAuthenticated()]

    @swagger_auto_schema(query_serializer=MoviesQuerySerializer)
    def list(self, request):
        query = MoviesQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        user_id = _caller_id(request)

        cache_key = _cache_key('list', user_id, request.query_params.urlencode())
        cached = cache.get(cache_key)
        if cached:
            return Response(cached)

        movie_service, _ = _services()
        options = to_options(query.validated_data, user_id)
        result = async_to_sync(movie_service.get_all)(options)
        if not result.ok:
            return Response(result.as_dict(), status=status.HTTP_400_BAD_REQUEST)
        total = async_to_sync(movie_service.get_count)(options.title, options.year)

        payload = page_response(MovieSerializer(result.value, many=True).data,
                                options.page, options.page_size, total)
        cache.set(cache_key, payload, timeout=settings.MOVIES_CACHE_SECONDS)
        return Response(payload)

    def retrieve(self, request, identity=None):
        """Look a movie up by its id, or by its slug when *identity* is not a UUID."""
        user_id = _caller_id(request)
        cache_key = _cache_key('movie', user_id, identity)
        cached = cache.get(cache_key)
        if cached:
            return Response(cached)

        movie_service, _ = _services()
        movie_id = _parse_uuid(identity)
        if movie_id is not None:
            movie = async_to_sync(movie_service.get_by_id)(movie_id, user_id)
        else:
            movie = async_to_sync(movie_service.get_by_slug)(identity, user_id)
        if movie is None:
            return Response({'detail': 'Movie not found'}, status=status.HTTP_404_NOT_FOUND)

        data = MovieSerializer(movie).data
        cache.set(cache_key, data, timeout=settings.MOVIES_CACHE_SECONDS)
        return Response(data)

    @swagger_auto_schema(request_body=MovieRequestSerializer, responses={201: MovieSerializer})
    def create(self, request):
        serializer = MovieRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        movie = to_movie(serializer.validated_data)

        movie_service, _ = _services()
        result = async_to_sync(movie_service.create)(movie)
        if not result.ok:
            return Response(result.as_dict(), status=status.HTTP_400_BAD_REQUEST)
        if not result.value:
            return Response({'detail': 'Movie could not be saved, please retry'}, status=status.HTTP_409_CONFLICT)

        evict_movie_cache()
        return Response(MovieSerializer(movie).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(request_body=MovieRequestSerializer, responses={200: MovieSerializer})
    def update(self, request, identity=None):
        movie_id = _parse_uuid(identity)
        if movie_id is None:
            return Response({'detail': 'Movie not found'}, status=status.HTTP_404_NOT_FOUND)
        serializer = MovieRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        movie_service, _ = _services()
        result = async_to_sync(movie_service.update)(to_movie(serializer.validated_data, movie_id),
                                                     _caller_id(request))
        if not result.ok:
            return Response(result.as_dict(), status=status.HTTP_400_BAD_REQUEST)
        if result.value is None:
            return Response({'detail': 'Movie not found'}, status=status.HTTP_404_NOT_FOUND)
        if result.value is False:
            return Response({'detail': 'Movie could not be saved, please retry'}, status=status.HTTP_409_CONFLICT)

        evict_movie_cache()
        return Response(MovieSerializer(result.value).data)

    def destroy(self, request, identity=None):
        movie_id = _parse_uuid(identity)
        movie_service, _ = _services()
        if movie_id is None or not async_to_sync(movie_service.delete)(movie_id):
            return Response({'detail': 'Movie not found'}, status=status.HTTP_404_NOT_FOUND)
        evict_movie_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @swagger_auto_schema(methods=['post'], request_body=RateMovieSerializer)
    @action(detail=True, methods=['post', 'delete'], url_path='rating')
    def rating(self, request, identity=None):
        movie_id = _parse_uuid(identity)
        if movie_id is None:
            return Response({'detail': 'Movie not found'}, status=status.HTTP_404_NOT_FOUND)
        _, rating_service = _services()

        if request.method == 'DELETE':
            if not async_to_sync(rating_service.delete_rating)(movie_id, request.user.pk):
                return Response({'detail': 'Rating not found'}, status=status.HTTP_404_NOT_FOUND)
            evict_movie_cache()
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = RateMovieSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = async_to_sync(rating_service.rate_movie)(movie_id, request.user.pk,
                                                          serializer.validated_data['rating'])
        if not result.ok:
            return Response(result.as_dict(), status=status.HTTP_400_BAD_REQUEST)
        if not result.value:
            return Response({'detail': 'Movie not found'}, status=status.HTTP_404_NOT_FOUND)
        evict_movie_cache()
        return Response(status=status.HTTP_200_OK)


# -------------------------------
# USER RATINGS & HEALTH
# -------------------------------

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_ratings(request):
    """List every rating the caller has given."""
    _, rating_service = _services()
    ratings = async_to_sync(rating_service.get_ratings_by_user)(request.user.pk)
    return Response({'ratings': MovieRatingSerializer(ratings, many=True).data})


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    try:
        ConnectionProvider().acquire()
    except DatabaseError as e:
        logger.error("Database health check failed: %s", e)
        return Response({'database': 'unhealthy', 'error': str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response({'database': 'healthy'})
