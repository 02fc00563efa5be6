"""Database models for auth tokens."""

from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

_KEY_MAX_LENGTH: Final = 64


@final
class AuthToken(models.Model):
    """Opaque token identifying a signed-in user.

    The key is what clients send in the ``X-Token`` header. Tokens
    expire ``AUTH_TOKEN_TTL`` seconds after they were issued.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='auth_tokens',
        db_index=True,
    )

    key = models.CharField(
        max_length=_KEY_MAX_LENGTH,
        unique=True,
        help_text='Token sent by clients',
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text='Issue time, expiry is counted from here',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Auth Token'  # type: ignore[mutable-override]
        verbose_name_plural = 'Auth Tokens'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.username} ({self.key[:8]})'
