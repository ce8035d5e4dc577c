from rest_framework import serializers

from .domain import GetAllMoviesOptions, Movie, SortOrder


class MovieRequestSerializer(serializers.Serializer):
    # Shape only; business rules are checked by movies.validators
    title = serializers.CharField(max_length=255, allow_blank=True)
    year = serializers.IntegerField()
    genres = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=True)


class MovieSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    title = serializers.CharField()
    slug = serializers.CharField()
    year = serializers.IntegerField()
    rating = serializers.FloatField(allow_null=True)
    user_rating = serializers.IntegerField(allow_null=True)
    genres = serializers.ListField(child=serializers.CharField())


class MoviesQuerySerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=True)
    year = serializers.IntegerField(required=False)
    sort_by = serializers.CharField(required=False, allow_blank=True,
                                    help_text="Field to sort by; prefix with '-' for descending.")
    page = serializers.IntegerField(required=False, default=1)
    page_size = serializers.IntegerField(required=False, default=10)


class RateMovieSerializer(serializers.Serializer):
    rating = serializers.IntegerField()


class MovieRatingSerializer(serializers.Serializer):
    movie_id = serializers.UUIDField()
    slug = serializers.CharField()
    rating = serializers.IntegerField()


# -------------------------------
# MAPPING
# -------------------------------

def to_movie(data, movie_id=None):
    return Movie(id=movie_id, title=data['title'], year=data['year'], genres=list(data['genres']))


def to_options(data, user_id=None):
    sort_by = data.get('sort_by') or None
    sort_field, sort_order = None, SortOrder.UNSORTED
    if sort_by:
        sort_order = SortOrder.DESCENDING if sort_by.startswith('-') else SortOrder.ASCENDING
        sort_field = sort_by.lstrip('+-')
    return GetAllMoviesOptions(
        title=data.get('title') or None,
        year=data.get('year'),
        user_id=user_id,
        sort_field=sort_field,
        sort_order=sort_order,
        page=data['page'],
        page_size=data['page_size'],
    )


def page_response(items, page, page_size, total):
    return {
        'items': items,
        'page': page,
        'page_size': page_size,
        'total': total,
        'has_next_page': total > page * page_size,
    }
