"""Issuing and resolving auth tokens.

The rest of the project only sees ``TokenCredentialStore.resolve``: a
token goes in, an identity (or nothing) comes out.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Final, final

from django.conf import settings
from django.utils import timezone

from server.apps.files.logic.access_control import UserIdentity
from server.apps.tokens.models import AuthToken

if TYPE_CHECKING:
    from django.contrib.auth.models import User

logger = logging.getLogger(__name__)

# Token length in bytes (generates 32 hex chars)
_TOKEN_BYTES: Final = 16


def get_token_ttl() -> int:
    """Get token lifetime in seconds.

    Returns:
        Lifetime from settings or default of 86400 (24 hours).
    """
    return getattr(settings, 'AUTH_TOKEN_TTL', 86400)


def _expiry_cutoff() -> datetime:
    return timezone.now() - timedelta(seconds=get_token_ttl())


def issue_token(user: 'User') -> AuthToken:
    """Create a new token for the user.

    Cleans expired tokens first.

    Args:
        user: User the token identifies.

    Returns:
        Created AuthToken instance.
    """
    cleanup_expired_tokens()

    token = AuthToken.objects.create(
        user=user,
        key=secrets.token_hex(_TOKEN_BYTES),
    )
    logger.info('Token issued for user %s: %s', user.username, token.key[:8])
    return token


def resolve_token(key: str) -> UserIdentity | None:
    """Find the identity behind a token.

    Args:
        key: Token sent by the client.

    Returns:
        UserIdentity, or None if the token is unknown, expired or
        belongs to an inactive user.
    """
    if not key:
        return None

    user_id = (
        AuthToken.objects.filter(
            key=key,
            created_at__gt=_expiry_cutoff(),
            user__is_active=True,
        )
        .values_list('user_id', flat=True)
        .first()
    )
    if user_id is None:
        logger.debug('Token rejected: %s', key[:8])
        return None
    return UserIdentity(id=user_id)


def revoke_token(key: str) -> bool:
    """Delete a token (sign out).

    Args:
        key: Token to revoke.

    Returns:
        True if the token existed.
    """
    deleted, _ = AuthToken.objects.filter(key=key).delete()

    if deleted:
        logger.info('Token revoked: %s', key[:8])

    return deleted > 0


def cleanup_expired_tokens() -> int:
    """Remove tokens past their lifetime.

    Returns:
        Number of tokens removed.
    """
    deleted, _ = AuthToken.objects.filter(
        created_at__lte=_expiry_cutoff(),
    ).delete()

    if deleted:
        logger.info('Cleaned up %d expired tokens', deleted)

    return deleted


@final
class TokenCredentialStore:
    """Credential store backed by ``AuthToken`` records."""

    def resolve(self, token: str) -> UserIdentity | None:
        """Resolve a token to an identity.

        Args:
            token: Token sent by the client.

        Returns:
            UserIdentity, or None if the token is not valid.
        """
        return resolve_token(token)
