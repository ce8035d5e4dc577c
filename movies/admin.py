from django.contrib import admin
from .domain import make_slug
from .models import Genre, Movie, Rating


class GenreInline(admin.TabularInline):
    model = Genre
    extra = 1


class RatingInline(admin.TabularInline):
    model = Rating
    extra = 0


@admin.register(Movie)
class MovieAdmin(admin.ModelAdmin):
    list_display = ('title', 'year', 'slug')
    list_filter = ('year',)
    search_fields = ('title', 'slug')
    readonly_fields = ('id', 'slug')
    inlines = (GenreInline, RatingInline)

    fieldsets = (
        ('Basic Information', {
            'fields': ('id', 'title', 'year', 'slug')
        }),
    )

    def save_model(self, request, obj, form, change):
        # Slug is derived, never edited by hand
        obj.slug = make_slug(obj.title, obj.year)
        super().save_model(request, obj, form, change)


@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    list_display = ('movie', 'user_id', 'rating')
    list_filter = ('rating',)
    search_fields = ('movie__title',)
    raw_id_fields = ('movie',)
