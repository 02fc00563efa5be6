"""Thumbnail generation for uploaded images.

Uploads enqueue a job per image; a worker (``process_derivatives``
management command) claims due jobs and writes one thumbnail per
configured width next to the original content.

Processing is idempotent: thumbnail names are derived from the original
name and the width, so a job that runs twice overwrites its own output.
That makes at-least-once delivery enough, no deduplication is needed.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

from django.conf import settings

from server.apps.files.exceptions import (
    InvalidImageError,
    NotFoundError,
    SourceMissingError,
)
from server.apps.files.infrastructure.job_queue import DatabaseJobQueue
from server.apps.files.infrastructure.metadata import derivative_name
from server.apps.files.infrastructure.storage import ByteStore
from server.apps.files.infrastructure.thumbnails import resize_image
from server.apps.files.logic.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

# Resizes encoded image bytes to a width
Resizer = Callable[[bytes, int], bytes]

_DEFAULT_SIZES: Final = (500, 250, 100)

# Failures that retrying cannot fix
_PERMANENT_ERRORS: Final = (SourceMissingError, InvalidImageError)


def get_thumbnail_sizes() -> tuple[int, ...]:
    """Get thumbnail widths generated for every image.

    Returns:
        Widths from settings or default of (500, 250, 100).
    """
    return tuple(getattr(settings, 'FILES_THUMBNAIL_SIZES', _DEFAULT_SIZES))


@dataclass
class JobRunSummary:
    """Outcome counts of one worker pass."""

    done: int = 0
    retried: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        """Number of jobs handled."""
        return self.done + self.retried + self.failed


def generate_derivatives(  # noqa: WPS211
    owner_id: int,
    file_id: int,
    *,
    metadata: MetadataStore,
    byte_store: ByteStore,
    resizer: Resizer = resize_image,
    sizes: tuple[int, ...] | None = None,
) -> list[str]:
    """Write every thumbnail of an image.

    Args:
        owner_id: Owner recorded in the job.
        file_id: Image to process.
        metadata: File record store.
        byte_store: Content store.
        resizer: Function producing a thumbnail of a given width.
        sizes: Widths to generate, from settings if omitted.

    Returns:
        Names of the written thumbnails.

    Raises:
        SourceMissingError: If the file, its content, or its ownership
            no longer match the job.
    """
    file_record = metadata.get_by_id(file_id)
    if file_record is None:
        raise SourceMissingError(f'File {file_id} not found')
    if file_record.user_id != owner_id:
        # Stale job: never write next to another user's content
        raise SourceMissingError(
            f'File {file_id} is not owned by user {owner_id}',
        )
    if not file_record.storage_ref:
        raise SourceMissingError(f'File {file_id} has no content')

    try:
        source = byte_store.read(file_record.storage_ref)
    except NotFoundError as exc:
        raise SourceMissingError(
            f'Content of file {file_id} not found: {file_record.storage_ref}',
        ) from exc

    written = []
    for size in sizes or get_thumbnail_sizes():
        name = derivative_name(file_record.storage_ref, size)
        byte_store.write(name, resizer(source, size))
        written.append(name)

    logger.info(
        'Generated %d thumbnails for file %d',
        len(written),
        file_id,
    )
    return written


def run_pending_jobs(  # noqa: WPS211
    batch_size: int,
    *,
    queue: DatabaseJobQueue | None = None,
    metadata: MetadataStore | None = None,
    byte_store: ByteStore | None = None,
    resizer: Resizer = resize_image,
) -> JobRunSummary:
    """Claim due jobs and process them.

    Permanent failures are marked failed right away and logged as
    errors. Anything else is retried with exponential backoff until the
    attempt limit is reached.

    Args:
        batch_size: Maximum number of jobs to claim.
        queue: Job queue, the database queue if omitted.
        metadata: File record store, the ORM store if omitted.
        byte_store: Content store, default storage if omitted.
        resizer: Function producing a thumbnail of a given width.

    Returns:
        Counts of done, retried and failed jobs.
    """
    queue = queue or DatabaseJobQueue()
    metadata = metadata or MetadataStore()
    byte_store = byte_store or ByteStore()
    summary = JobRunSummary()

    for job in queue.claim_due(batch_size):
        try:
            generate_derivatives(
                job.owner_id,
                job.file_id,
                metadata=metadata,
                byte_store=byte_store,
                resizer=resizer,
            )
        except _PERMANENT_ERRORS as exc:
            queue.mark_failed(job, exc.message)
            summary.failed += 1
        except Exception as exc:
            logger.exception('Derivative job %d raised', job.id)
            if queue.schedule_retry(job, str(exc) or type(exc).__name__):
                summary.retried += 1
            else:
                summary.failed += 1
        else:
            queue.mark_done(job)
            summary.done += 1

    return summary
