"""Tests for auth token management."""

from datetime import timedelta

import pytest
from django.utils import timezone

from server.apps.files.logic.access_control import UserIdentity
from server.apps.tokens.logic.token_store import (
    TokenCredentialStore,
    cleanup_expired_tokens,
    get_token_ttl,
    issue_token,
    resolve_token,
    revoke_token,
)
from server.apps.tokens.models import AuthToken


def _age(token, seconds):
    AuthToken.objects.filter(id=token.id).update(
        created_at=timezone.now() - timedelta(seconds=seconds),
    )


class TestTokenConfig:
    """Tests for token configuration."""

    def test_get_token_ttl_default(self, settings):
        """Test default token lifetime."""
        del settings.AUTH_TOKEN_TTL

        assert get_token_ttl() == 86400

    def test_get_token_ttl_from_settings(self, settings):
        """Test token lifetime from settings."""
        settings.AUTH_TOKEN_TTL = 60

        assert get_token_ttl() == 60


@pytest.mark.django_db
class TestIssueToken:
    """Tests for issuing tokens."""

    def test_issue_token(self, user):
        """Test a random hex token is stored for the user."""
        token = issue_token(user)

        assert token.user == user
        assert len(token.key) == 32
        int(token.key, 16)

    def test_tokens_are_unique(self, user):
        """Test every issued token is different."""
        keys = {issue_token(user).key for _ in range(5)}

        assert len(keys) == 5

    def test_issue_cleans_expired(self, user, settings):
        """Test expired tokens are removed when a new one is issued."""
        settings.AUTH_TOKEN_TTL = 60
        old = issue_token(user)
        _age(old, 120)

        issue_token(user)

        assert not AuthToken.objects.filter(id=old.id).exists()


@pytest.mark.django_db
class TestResolveToken:
    """Tests for resolving tokens."""

    def test_resolve_valid(self, user):
        """Test a fresh token resolves to its user."""
        token = issue_token(user)

        assert resolve_token(token.key) == UserIdentity(id=user.id)

    @pytest.mark.parametrize('key', ['', 'deadbeef'])
    def test_resolve_unknown(self, db, key):
        """Test empty and unknown tokens resolve to nothing."""
        assert resolve_token(key) is None

    def test_resolve_expired(self, user, settings):
        """Test tokens past their lifetime resolve to nothing."""
        settings.AUTH_TOKEN_TTL = 60
        token = issue_token(user)
        _age(token, 61)

        assert resolve_token(token.key) is None

    def test_resolve_inactive_user(self, user):
        """Test tokens of deactivated users resolve to nothing."""
        token = issue_token(user)
        user.is_active = False
        user.save()

        assert resolve_token(token.key) is None

    def test_credential_store(self, user):
        """Test the credential store delegates to token resolution."""
        token = issue_token(user)
        store = TokenCredentialStore()

        assert store.resolve(token.key) == UserIdentity(id=user.id)
        assert store.resolve('deadbeef') is None


@pytest.mark.django_db
class TestRevokeToken:
    """Tests for revoking and cleaning up tokens."""

    def test_revoke(self, user):
        """Test a revoked token no longer resolves."""
        token = issue_token(user)

        assert revoke_token(token.key) is True
        assert resolve_token(token.key) is None

    def test_revoke_unknown(self, db):
        """Test revoking an unknown token reports nothing deleted."""
        assert revoke_token('deadbeef') is False

    def test_cleanup_expired_tokens(self, user, settings):
        """Test only expired tokens are removed."""
        settings.AUTH_TOKEN_TTL = 60
        expired = issue_token(user)
        fresh = issue_token(user)
        _age(expired, 120)

        assert cleanup_expired_tokens() == 1
        assert list(AuthToken.objects.all()) == [fresh]
