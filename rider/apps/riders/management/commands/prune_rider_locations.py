"""
Delete old rider location history, keeping each rider's newest sample.
Usage: python manage.py prune_rider_locations --hours 72
"""
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.riders.services import location_stream


class Command(BaseCommand):
    help = 'Prune rider location history older than the retention window'

    def add_arguments(self, parser):
        parser.add_argument(
            '--hours',
            type=int,
            default=settings.LOCATION_RETENTION_HOURS,
            help=f'Keep this many hours of history (default: {settings.LOCATION_RETENTION_HOURS})',
        )

    def handle(self, *args, **options):
        hours = options['hours']
        if hours < 1:
            raise CommandError('--hours must be at least 1')

        cutoff = timezone.now() - timedelta(hours=hours)
        deleted = location_stream.prune_history(cutoff)
        self.stdout.write(
            self.style.SUCCESS(f'Deleted {deleted} location sample(s) older than {cutoff.isoformat()}')
        )
