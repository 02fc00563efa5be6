"""Durable queue of derivative jobs backed by the database."""

import logging
from datetime import datetime, timedelta
from typing import final

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import F, Q
from django.utils import timezone

from server.apps.files.exceptions import QueueUnavailableError
from server.apps.files.models import DerivativeJob, JobStatus

logger = logging.getLogger(__name__)


def get_max_attempts() -> int:
    """Get how many times a job may be claimed before it fails.

    Returns:
        Attempt limit from settings or default of 5.
    """
    return getattr(settings, 'DERIVATIVE_MAX_ATTEMPTS', 5)


def get_backoff_seconds() -> float:
    """Get the base delay before the first retry.

    Returns:
        Base delay in seconds from settings or default of 2.
    """
    return getattr(settings, 'DERIVATIVE_BACKOFF_SECONDS', 2.0)


def get_lease_seconds() -> int:
    """Get how long a claimed job stays reserved for its worker.

    Returns:
        Lease in seconds from settings or default of 300 (5 min).
    """
    return getattr(settings, 'DERIVATIVE_LEASE_SECONDS', 300)


def retry_delay(attempts: int) -> timedelta:
    """Exponential backoff delay after a failed attempt.

    Args:
        attempts: Attempts made so far (1 after the first failure).

    Returns:
        Delay before the next attempt.
    """
    exponent = max(attempts - 1, 0)
    return timedelta(seconds=get_backoff_seconds() * 2 ** exponent)


@final
class DatabaseJobQueue:
    """Job queue stored in the ``DerivativeJob`` table.

    Enqueued jobs survive restarts. Jobs are claimed with row locks that
    skip rows held by other workers, so several workers can poll at once.
    """

    def enqueue(self, owner_id: int, file_id: int) -> DerivativeJob:
        """Record a job to generate thumbnails for a file.

        Args:
            owner_id: Owner of the file at upload time.
            file_id: File to process.

        Returns:
            Created DerivativeJob instance.

        Raises:
            QueueUnavailableError: If the job could not be recorded.
        """
        try:
            job = DerivativeJob.objects.create(
                owner_id=owner_id,
                file_id=file_id,
            )
        except DatabaseError as exc:
            logger.exception('Failed to enqueue job for file %d', file_id)
            raise QueueUnavailableError() from exc

        logger.info('Enqueued derivative job %d for file %d', job.id, file_id)
        return job

    def claim_due(self, batch_size: int) -> list[DerivativeJob]:
        """Claim jobs that are due, oldest first.

        Pending jobs and running jobs whose lease has expired are due.
        Claiming counts as an attempt and starts a new lease. An expired
        job that has used all its attempts is failed instead of claimed.

        Args:
            batch_size: Maximum number of jobs to claim.

        Returns:
            Claimed jobs, marked as running.
        """
        now = timezone.now()
        lease_until = now + timedelta(seconds=get_lease_seconds())

        with transaction.atomic():
            self._fail_abandoned(now)
            job_ids = list(
                DerivativeJob.objects.select_for_update(skip_locked=True)
                .filter(
                    Q(status=JobStatus.PENDING) | Q(status=JobStatus.RUNNING),
                    next_attempt_at__lte=now,
                )
                .order_by('id')
                .values_list('id', flat=True)[:batch_size],
            )
            DerivativeJob.objects.filter(id__in=job_ids).update(
                status=JobStatus.RUNNING,
                attempts=F('attempts') + 1,
                next_attempt_at=lease_until,
                updated_at=now,
            )

        if job_ids:
            logger.debug('Claimed %d derivative jobs', len(job_ids))
        return list(DerivativeJob.objects.filter(id__in=job_ids).order_by('id'))

    def mark_done(self, job: DerivativeJob) -> None:
        """Mark a job as successfully processed.

        Args:
            job: Job to update.
        """
        job.status = JobStatus.DONE
        job.last_error = ''
        job.save(update_fields=['status', 'last_error', 'updated_at'])

    def mark_failed(self, job: DerivativeJob, error: str) -> None:
        """Mark a job as permanently failed.

        Args:
            job: Job to update.
            error: Failure description shown to operators.
        """
        job.status = JobStatus.FAILED
        job.last_error = error
        job.save(update_fields=['status', 'last_error', 'updated_at'])
        logger.error(
            'Derivative job %d for file %d failed permanently: %s',
            job.id,
            job.file_id,
            error,
        )

    def schedule_retry(self, job: DerivativeJob, error: str) -> bool:
        """Put a job back in the queue after a transient failure.

        Args:
            job: Job to update.
            error: Failure description.

        Returns:
            True if the job will be retried, False if it ran out of
            attempts and was marked as failed.
        """
        if job.attempts >= get_max_attempts():
            self.mark_failed(job, error)
            return False

        delay = retry_delay(job.attempts)
        job.status = JobStatus.PENDING
        job.last_error = error
        job.next_attempt_at = timezone.now() + delay
        job.save(update_fields=[
            'status',
            'last_error',
            'next_attempt_at',
            'updated_at',
        ])
        logger.warning(
            'Derivative job %d failed (attempt %d), retrying in %s: %s',
            job.id,
            job.attempts,
            delay,
            error,
        )
        return True

    def _fail_abandoned(self, now: datetime) -> None:
        """Fail expired jobs that have no attempts left.

        A job that keeps killing its worker never reaches
        ``schedule_retry``, so its attempt limit is enforced here.

        Args:
            now: Time the claim started.
        """
        abandoned = list(
            DerivativeJob.objects.select_for_update(skip_locked=True).filter(
                status=JobStatus.RUNNING,
                next_attempt_at__lte=now,
                attempts__gte=get_max_attempts(),
            ),
        )
        for job in abandoned:
            self.mark_failed(
                job,
                f'Lease expired after {job.attempts} attempts',
            )
