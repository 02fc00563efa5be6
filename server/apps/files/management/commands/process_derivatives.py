"""Management command running the thumbnail worker."""

import logging
import time
from typing import Any, Final, final, override

from django.core.management.base import BaseCommand

from server.apps.files.logic.derivative_operations import run_pending_jobs

_DEFAULT_BATCH_SIZE: Final = 50
_DEFAULT_INTERVAL: Final = 5.0

logger = logging.getLogger(__name__)


@final
class Command(BaseCommand):
    """Generate thumbnails for uploaded images."""

    help = 'Process pending thumbnail jobs'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max jobs per pass (default: {_DEFAULT_BATCH_SIZE})',
        )
        parser.add_argument(
            '--loop',
            action='store_true',
            help='Keep polling for jobs instead of exiting after one pass',
        )
        parser.add_argument(
            '--interval',
            type=float,
            default=_DEFAULT_INTERVAL,
            help=f'Seconds between idle polls (default: {_DEFAULT_INTERVAL})',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the worker.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        batch_size = options['batch_size']

        if not options['loop']:
            self._run_pass(batch_size, report_idle=True)
            return

        logger.info('Thumbnail worker started (batch size %d)', batch_size)
        try:
            while True:
                if not self._run_pass(batch_size, report_idle=False):
                    time.sleep(options['interval'])
        except KeyboardInterrupt:
            logger.info('Thumbnail worker stopped')

    def _run_pass(self, batch_size: int, *, report_idle: bool) -> int:
        summary = run_pending_jobs(batch_size)
        if not summary.total and not report_idle:
            return 0
        self.stdout.write(
            self.style.SUCCESS(
                f'Processed {summary.total} jobs: {summary.done} done, '
                f'{summary.retried} retried, {summary.failed} failed',
            ),
        )
        return summary.total
