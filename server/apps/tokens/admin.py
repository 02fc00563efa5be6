"""Django admin configuration for tokens app."""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.tokens.models import AuthToken


@admin.register(AuthToken)
class AuthTokenAdmin(admin.ModelAdmin[AuthToken]):
    """Admin interface for AuthToken model."""

    list_display = [
        'key_short',
        'user',
        'created_at',
    ]

    list_filter = [
        'created_at',
    ]

    search_fields = [
        'user__username',
    ]

    readonly_fields = [
        'key',
        'created_at',
    ]

    def key_short(self, obj: AuthToken) -> str:
        """Display truncated token key.

        Args:
            obj: AuthToken instance.

        Returns:
            First 8 characters of the key.
        """
        return obj.key[:8]
    key_short.short_description = 'Token'  # type: ignore[attr-defined]

    def get_queryset(self, request: HttpRequest) -> QuerySet[AuthToken]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user')
