"""Byte persistence for file content."""

import logging
from typing import Any, final, override

from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage
from storages.backends.s3 import S3Storage

from server.apps.files.exceptions import ByteStoreError, NotFoundError

logger = logging.getLogger(__name__)


@final
class FileStorage(S3Storage):
    """S3 storage backend for user files, with upload logging."""

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save file to S3 with error handling and logging.

        Args:
            name: Storage path for the file.
            content: File content (file-like object).
            max_length: Optional maximum length for the filename.

        Returns:
            Actual storage path used.

        Raises:
            Exception: If S3 upload fails.
        """
        try:
            logger.debug('Uploading object to S3: %s', name)
            saved_name = super().save(name, content, max_length)
        except Exception:
            logger.exception('Failed to upload object to S3: %s', name)
            raise
        else:
            return saved_name


@final
class ByteStore:
    """Reads and writes file content through a Django storage backend.

    Names are chosen by the caller. Writing an existing name replaces the
    content, whatever the backend's own overwrite policy is.
    """

    def __init__(self, storage: Storage | None = None) -> None:
        """Initialize ByteStore.

        Args:
            storage: Storage backend, the configured default if omitted.
        """
        self._storage = default_storage if storage is None else storage

    def write(self, name: str, data: bytes) -> str:
        """Write bytes under a name.

        Args:
            name: Storage name.
            data: Content to store.

        Returns:
            Name the content was saved under.

        Raises:
            ByteStoreError: If the backend fails to store the content.
        """
        try:
            if self._storage.exists(name):
                self._storage.delete(name)
            saved_name = self._storage.save(name, ContentFile(data))
        except Exception as exc:
            logger.exception('Failed to write content: %s', name)
            raise ByteStoreError(f'Could not store content: {exc}') from exc

        if saved_name != name:
            logger.warning('Content %s was saved as %s', name, saved_name)
        logger.info('Stored %d bytes: %s', len(data), saved_name)
        return saved_name

    def read(self, name: str) -> bytes:
        """Read all bytes stored under a name.

        Args:
            name: Storage name.

        Returns:
            Stored content.

        Raises:
            NotFoundError: If nothing is stored under the name.
        """
        if not self.exists(name):
            raise NotFoundError()
        with self._storage.open(name, 'rb') as stored:
            return stored.read()

    def exists(self, name: str) -> bool:
        """Check whether content is stored under a name.

        Args:
            name: Storage name.

        Returns:
            True if the content exists.
        """
        return bool(name) and self._storage.exists(name)

    def discard(self, name: str) -> None:
        """Delete content after a failed metadata commit.

        Best effort: a failure is logged and leaves an orphaned object
        behind, no metadata points at it.

        Args:
            name: Storage name.
        """
        try:
            logger.warning('Rolling back upload, deleting content: %s', name)
            self._storage.delete(name)
        except Exception:
            logger.exception('Failed to roll back upload, orphaned: %s', name)
