"""Tests for issue_token management command."""

from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from server.apps.tokens.logic.token_store import issue_token, resolve_token
from server.apps.tokens.models import AuthToken


@pytest.mark.django_db
class TestIssueTokenCommand:
    """Tests for issue_token management command."""

    def test_prints_usable_token(self, user):
        """Test the printed token resolves to the user."""
        out = StringIO()
        call_command('issue_token', 'testuser', stdout=out)

        identity = resolve_token(out.getvalue().strip())
        assert identity is not None
        assert identity.id == user.id

    def test_unknown_user(self, db):
        """Test unknown users are reported."""
        with pytest.raises(CommandError, match='No active user'):
            call_command('issue_token', 'nobody', stdout=StringIO())

    def test_inactive_user(self, user):
        """Test inactive users get no token."""
        user.is_active = False
        user.save()

        with pytest.raises(CommandError):
            call_command('issue_token', 'testuser', stdout=StringIO())

        assert AuthToken.objects.count() == 0

    def test_username_required(self, db):
        """Test issuing needs a username."""
        with pytest.raises(CommandError, match='username is required'):
            call_command('issue_token', stdout=StringIO())

    def test_revoke(self, user):
        """Test --revoke deletes the token."""
        token = issue_token(user)

        out = StringIO()
        call_command('issue_token', '--revoke', token.key, stdout=out)

        assert 'Token revoked' in out.getvalue()
        assert not AuthToken.objects.filter(id=token.id).exists()
