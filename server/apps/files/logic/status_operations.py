"""Service health and usage statistics."""

import logging
from typing import Final

from django.contrib.auth import get_user_model
from django.core.files.storage import default_storage
from django.db import DatabaseError, connection

from server.apps.files.logic.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

# Name looked up to check the storage backend answers
_STORAGE_CHECK_NAME: Final = '.status-check'


def is_database_alive() -> bool:
    """Check that the database accepts connections.

    Returns:
        True if a connection could be established.
    """
    try:
        connection.ensure_connection()
    except DatabaseError:
        logger.warning('Database is not reachable', exc_info=True)
        return False
    return True


def is_storage_alive() -> bool:
    """Check that the default storage backend answers.

    Returns:
        True if the backend could be queried.
    """
    try:
        default_storage.exists(_STORAGE_CHECK_NAME)
    except Exception:
        logger.warning('Storage is not reachable', exc_info=True)
        return False
    return True


def get_status() -> dict[str, bool]:
    """Report whether the backing services are reachable.

    Returns:
        Dictionary with `db` and `storage` flags.
    """
    return {
        'db': is_database_alive(),
        'storage': is_storage_alive(),
    }


def get_stats() -> dict[str, int]:
    """Count users and file records.

    Returns:
        Dictionary with `users` and `files` counts.
    """
    return {
        'users': get_user_model().objects.count(),
        'files': MetadataStore().count_files(),
    }
