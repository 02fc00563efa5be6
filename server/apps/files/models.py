"""Database models for files app."""

from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models
from django.utils import timezone

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_KIND_MAX_LENGTH: Final = 16
_STORAGE_REF_MAX_LENGTH: Final = 512
_STATUS_MAX_LENGTH: Final = 16


class FileKind(models.TextChoices):
    """Kinds of records in the file tree."""

    FOLDER = 'folder', 'Folder'
    FILE = 'file', 'File'
    IMAGE = 'image', 'Image'


@final
class File(models.Model):
    """File or folder owned by a user.

    Folders only group other records and never have content. Files and
    images point at their bytes through ``storage_ref``, a name in the
    byte store (e.g. ``files_manager/1c9e...``).

    ``parent`` is ``NULL`` for records at the root. A parent is checked
    to be a folder once, when the child is created; records never move,
    so the tree is acyclic by construction.
    """

    # Owner relationship, never reassigned
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    kind = models.CharField(
        max_length=_KIND_MAX_LENGTH,
        choices=FileKind.choices,
    )

    is_public = models.BooleanField(default=False)

    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        related_name='children',
        null=True,
        blank=True,
    )

    storage_ref = models.CharField(
        max_length=_STORAGE_REF_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Name of the content in the byte store (empty for folders)',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['id']

        indexes: ClassVar[list[models.Index]] = [
            # Folder listing: owner + parent, paginated by id
            models.Index(
                fields=['user', 'parent', 'id'],
                name='files_user_parent_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            # Folders have no content, everything else must have some
            models.CheckConstraint(
                condition=(
                    models.Q(kind=FileKind.FOLDER, storage_ref='')
                    | (
                        ~models.Q(kind=FileKind.FOLDER)
                        & ~models.Q(storage_ref='')
                    )
                ),
                name='files_storage_ref_matches_kind',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.username}:{self.name}'

    @property
    def is_folder(self) -> bool:
        """Whether this record is a folder."""
        return self.kind == FileKind.FOLDER


class JobStatus(models.TextChoices):
    """Lifecycle of a derivative job."""

    PENDING = 'pending', 'Pending'
    RUNNING = 'running', 'Running'
    DONE = 'done', 'Done'
    FAILED = 'failed', 'Failed'


@final
class DerivativeJob(models.Model):
    """Durable request to generate thumbnails for an uploaded image.

    Jobs reference the file by plain ids rather than foreign keys: a job
    must outlive its file so the worker can notice and report it.

    Delivery is at-least-once. A worker that dies mid-job leaves it
    ``running`` until ``next_attempt_at`` (the lease) passes, then it is
    claimed again.
    """

    owner_id = models.BigIntegerField(db_index=True)

    file_id = models.BigIntegerField(db_index=True)

    status = models.CharField(
        max_length=_STATUS_MAX_LENGTH,
        choices=JobStatus.choices,
        default=JobStatus.PENDING,
    )

    attempts = models.PositiveIntegerField(
        default=0,
        help_text='Number of times the job was claimed by a worker',
    )

    next_attempt_at = models.DateTimeField(
        default=timezone.now,
        help_text='Earliest time the job may be claimed',
    )

    last_error = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Derivative Job'  # type: ignore[mutable-override]
        verbose_name_plural = 'Derivative Jobs'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['id']

        indexes: ClassVar[list[models.Index]] = [
            # Worker polling: due jobs by status
            models.Index(
                fields=['status', 'next_attempt_at'],
                name='jobs_status_due_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'job {self.id}: file {self.file_id} ({self.status})'
