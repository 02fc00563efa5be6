"""Django admin configuration for files app.

Permanently failed thumbnail jobs are listed under Derivative Jobs,
filtered by status, with the error that stopped them.
"""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.files.models import DerivativeJob, File


@admin.register(File)
class FileAdmin(admin.ModelAdmin[File]):
    """Admin interface for File model."""

    list_display = [
        'name',
        'user',
        'kind',
        'is_public',
        'parent',
        'created_at',
    ]

    list_filter = [
        'kind',
        'is_public',
        'created_at',
    ]

    search_fields = [
        'name',
        'user__username',
        'storage_ref',
    ]

    # Ownership, kind and placement never change after creation
    readonly_fields = [
        'user',
        'kind',
        'parent',
        'storage_ref',
        'created_at',
    ]

    def get_queryset(self, request: HttpRequest) -> QuerySet[File]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user', 'parent')


@admin.register(DerivativeJob)
class DerivativeJobAdmin(admin.ModelAdmin[DerivativeJob]):
    """Admin interface for DerivativeJob model."""

    list_display = [
        'id',
        'file_id',
        'owner_id',
        'status',
        'attempts',
        'next_attempt_at',
        'error_short',
    ]

    list_filter = [
        'status',
        'created_at',
    ]

    search_fields = [
        'file_id',
        'last_error',
    ]

    readonly_fields = [
        'owner_id',
        'file_id',
        'attempts',
        'last_error',
        'created_at',
        'updated_at',
    ]

    def error_short(self, obj: DerivativeJob) -> str:
        """Display truncated last error.

        Args:
            obj: DerivativeJob instance.

        Returns:
            First 80 characters of the last error.
        """
        return obj.last_error[:80]
    error_short.short_description = 'Last error'  # type: ignore[attr-defined]
