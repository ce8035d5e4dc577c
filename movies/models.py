import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Movie(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    # Always title + year, lowercased; kept as a column for the unique index
    slug = models.CharField(max_length=300, unique=True)
    year = models.IntegerField()

    class Meta:
        db_table = 'movies'

    def __str__(self):
        return f"{self.title} ({self.year})"


class Genre(models.Model):
    movie = models.ForeignKey(Movie, on_delete=models.CASCADE, related_name='genres')
    name = models.CharField(max_length=100)

    class Meta:
        db_table = 'genres'
        constraints = [
            models.UniqueConstraint(fields=['movie', 'name'], name='unique_genre_per_movie'),
        ]

    def __str__(self):
        return self.name


class Rating(models.Model):
    # Caller id as handed in by the service layer; not tied to an auth row
    user_id = models.BigIntegerField(db_index=True)
    movie = models.ForeignKey(Movie, on_delete=models.CASCADE, related_name='ratings')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])

    class Meta:
        db_table = 'ratings'
        constraints = [
            models.UniqueConstraint(fields=['user_id', 'movie'], name='unique_rating_per_user_movie'),
            models.CheckConstraint(
                condition=models.Q(rating__gte=1) & models.Q(rating__lte=5),
                name='rating_between_1_and_5',
            ),
        ]

    def __str__(self):
        return f"user {self.user_id} → {self.movie} = {self.rating}"
