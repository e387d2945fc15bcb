"""Management command to delete blobs that no file record points at."""

import logging
from datetime import timedelta
from itertools import batched
from typing import Any, Final

from django.core.management.base import BaseCommand
from django.utils import timezone

from server.apps.files.infrastructure.clients import create_admin_client

_DEFAULT_MIN_AGE_MINUTES: Final = 60
_DEFAULT_BATCH_SIZE: Final = 1000

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Delete blobs left behind by failed upload rollbacks or deletes."""

    help = 'Delete blobs in storage that have no file record'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Blob keys checked per query (default: {_DEFAULT_BATCH_SIZE})',
        )
        parser.add_argument(
            '--min-age-minutes',
            type=int,
            default=_DEFAULT_MIN_AGE_MINUTES,
            help=(
                'Skip blobs modified more recently, they may belong to '
                f'an upload in progress (default: {_DEFAULT_MIN_AGE_MINUTES})'
            ),
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the cleanup command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        cutoff = timezone.now() - timedelta(minutes=options['min_age_minutes'])

        client = create_admin_client()
        storage = client.blobs

        count = 0
        failed = 0
        for batch in batched(storage.iter_refs(), batch_size):
            known = client.records.known_blob_refs(batch)
            for blob_ref in batch:
                if blob_ref in known:
                    continue
                try:
                    modified_at = storage.modified_at(blob_ref)
                except Exception:
                    # Deleted since listing, e.g. by delete_file
                    logger.warning('Blob vanished before cleanup: %s', blob_ref)
                    continue
                if modified_at > cutoff:
                    continue

                if dry_run:
                    self.stdout.write(f'Would delete: {blob_ref}')
                    count += 1
                    continue

                try:
                    storage.delete(blob_ref)
                except Exception as exc:
                    self.stderr.write(f'Failed to delete {blob_ref}: {exc}')
                    logger.exception('Failed to delete orphaned blob: %s', blob_ref)
                    failed += 1
                else:
                    logger.info('Deleted orphaned blob: %s', blob_ref)
                    count += 1

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would delete {count} orphaned blobs'),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Deleted {count} orphaned blobs, {failed} failed',
                ),
            )
