"""Persistence of file records."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import final

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from server.apps.files.exceptions import NotFoundError, StorageUnavailableError
from server.apps.files.logic.hierarchy import ParentKey
from server.apps.files.models import File, FileKind

logger = logging.getLogger(__name__)


def get_page_size() -> int:
    """Get number of records per listing page.

    Returns:
        Page size from settings or default of 20.
    """
    return getattr(settings, 'FILES_PAGE_SIZE', 20)


@dataclass(frozen=True, slots=True)
class NewFile:
    """Validated fields of a record about to be created."""

    owner_id: int
    name: str
    kind: FileKind
    is_public: bool = False
    parent_id: int | None = None
    storage_ref: str = ''


@contextmanager
def _database_errors() -> Iterator[None]:
    """Report an unreachable database as StorageUnavailableError."""
    try:
        yield
    except IntegrityError:
        raise
    except DatabaseError as exc:
        logger.exception('Metadata database unavailable')
        raise StorageUnavailableError() from exc


@final
class MetadataStore:
    """File records stored through the Django ORM.

    Every change touches a single row, atomicity is the database's.
    """

    def insert(self, record: NewFile) -> File:
        """Persist a new record.

        Args:
            record: Fields of the new record.

        Returns:
            Created File instance with its id.

        Raises:
            StorageUnavailableError: If the database is unreachable.
        """
        with _database_errors(), transaction.atomic():
            file_instance = File.objects.create(
                user_id=record.owner_id,
                name=record.name,
                kind=record.kind,
                is_public=record.is_public,
                parent_id=record.parent_id,
                storage_ref=record.storage_ref,
            )
        logger.info(
            'File record created: %s (ID: %d, kind: %s)',
            file_instance.name,
            file_instance.id,
            file_instance.kind,
        )
        return file_instance

    def get_by_id(self, file_id: int) -> File | None:
        """Look a record up by id.

        Args:
            file_id: Record id.

        Returns:
            File instance, or None if it does not exist.
        """
        with _database_errors():
            return File.objects.filter(id=file_id).first()

    def get_by_id_for_owner(self, file_id: int, owner_id: int) -> File | None:
        """Look a record up by id, only among one user's records.

        Args:
            file_id: Record id.
            owner_id: Owner the record must belong to.

        Returns:
            File instance, or None if the user has no such record.
        """
        with _database_errors():
            return File.objects.filter(id=file_id, user_id=owner_id).first()

    def list_files(
        self,
        owner_id: int,
        parent: int | ParentKey,
        page: int,
        page_size: int | None = None,
    ) -> list[File]:
        """List one page of a user's records.

        Records are ordered by id so pages are stable across calls.

        Args:
            owner_id: Owner of the records.
            parent: Folder id to list, ``ParentKey.ROOT`` for all the
                user's records or ``ParentKey.UNPARSABLE`` (always empty).
            page: Zero-based page number.
            page_size: Records per page, from settings if omitted.

        Returns:
            Records on the page, empty past the last page.
        """
        if parent is ParentKey.UNPARSABLE or page < 0:
            return []

        size = page_size or get_page_size()
        queryset = File.objects.filter(user_id=owner_id)
        if parent is not ParentKey.ROOT:
            queryset = queryset.filter(parent_id=parent)

        offset = page * size
        with _database_errors():
            return list(queryset.order_by('id')[offset:offset + size])

    def update_visibility(
        self,
        file_id: int,
        owner_id: int,
        *,
        is_public: bool,
    ) -> File:
        """Publish or unpublish a record.

        Only ``is_public`` is written. Setting the current value again
        succeeds without changes.

        Args:
            file_id: Record id.
            owner_id: Owner the record must belong to.
            is_public: New visibility.

        Returns:
            Record in its new state.

        Raises:
            NotFoundError: If the user has no such record.
        """
        with _database_errors():
            updated = File.objects.filter(
                id=file_id,
                user_id=owner_id,
            ).update(is_public=is_public)
            if not updated:
                raise NotFoundError()
            file_instance = File.objects.get(id=file_id)

        logger.info(
            'File visibility updated: ID=%d, public=%s',
            file_id,
            is_public,
        )
        return file_instance

    def count_files(self) -> int:
        """Count all records.

        Returns:
            Number of file and folder records.
        """
        with _database_errors():
            return File.objects.count()
