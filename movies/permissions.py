from django.conf import settings
from django.utils.crypto import constant_time_compare
from rest_framework.permissions import BasePermission

API_KEY_HEADER = 'X-Api-Key'


class HasApiKey(BasePermission):
    """Service callers holding the configured API key act as admins."""

    def has_permission(self, request, view):
        expected = settings.MOVIES_API_KEY
        supplied = request.headers.get(API_KEY_HEADER, '')
        return bool(expected) and constant_time_compare(supplied, expected)


class IsTrustedUser(BasePermission):
    """Staff, or members of the trusted group, may create and edit movies."""

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.is_staff or user.groups.filter(name=settings.MOVIES_TRUSTED_GROUP).exists()
