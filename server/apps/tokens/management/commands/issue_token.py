"""Management command issuing and revoking auth tokens."""

from typing import Any, final, override

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from server.apps.tokens.logic.token_store import issue_token, revoke_token


@final
class Command(BaseCommand):
    """Print a new auth token for a user, or revoke one."""

    help = 'Issue an X-Token for a user, or revoke an existing token'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            'username',
            nargs='?',
            help='User to issue the token for',
        )
        parser.add_argument(
            '--revoke',
            metavar='TOKEN',
            help='Revoke this token instead of issuing one',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the command.

        Args:
            args: Positional arguments.
            options: Keyword arguments from command line.

        Raises:
            CommandError: If the user does not exist or is inactive, or
                no username was given.
        """
        if options['revoke']:
            if revoke_token(options['revoke']):
                self.stdout.write(self.style.SUCCESS('Token revoked'))
            else:
                self.stdout.write(self.style.WARNING('Token not found'))
            return

        username = options['username']
        if not username:
            raise CommandError('A username is required')

        user = get_user_model().objects.filter(
            username=username,
            is_active=True,
        ).first()
        if user is None:
            raise CommandError(f'No active user named {username}')

        self.stdout.write(issue_token(user).key)
