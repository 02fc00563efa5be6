"""Exceptions for files app.

``NotFoundError`` is raised both for missing records and for records the
requester may not see; callers must not be able to tell them apart.
"""

from typing import ClassVar


class FileStoreError(Exception):
    """Base class for file store errors."""

    default_message: ClassVar[str] = 'File store error'

    def __init__(self, message: str | None = None) -> None:
        """Initialize FileStoreError.

        Args:
            message: Human readable message, defaults to the class message.
        """
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(FileStoreError):
    """Raised when the token is missing, unknown or expired."""

    default_message = 'Unauthorized'


class NotFoundError(FileStoreError):
    """Raised when a record or its content is absent or not visible."""

    default_message = 'Not found'


class FileValidationError(FileStoreError):
    """Raised when a request is malformed.

    The reason names the offending field, e.g. ``Missing name``.
    """

    def __init__(self, reason: str) -> None:
        """Initialize FileValidationError.

        Args:
            reason: What is missing or invalid.
        """
        self.reason = reason
        super().__init__(reason)


class ByteStoreError(FileValidationError):
    """Raised when bytes could not be written to the byte store.

    Reported like a bad request: nothing was committed.
    """


class StorageUnavailableError(FileStoreError):
    """Raised when the metadata database cannot be reached."""

    default_message = 'Storage unavailable'


class QueueUnavailableError(FileStoreError):
    """Raised when a derivative job could not be enqueued."""

    default_message = 'Job queue unavailable'


class SourceMissingError(FileStoreError):
    """Raised by the pipeline when a job's source file is gone.

    Permanent: the job is not retried.
    """

    default_message = 'Source missing'


class InvalidImageError(FileStoreError):
    """Raised by the pipeline when source bytes are not a readable image.

    Permanent: the job is not retried.
    """

    default_message = 'Source is not a readable image'
