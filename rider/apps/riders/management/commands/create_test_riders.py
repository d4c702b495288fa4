"""
Management command to create test riders with initial locations.
Usage: python manage.py create_test_riders
"""
from django.core.management.base import BaseCommand

from apps.riders.models import Rider
from apps.riders.services import location_stream


class Command(BaseCommand):
    help = 'Create test riders with initial locations for testing'

    def add_arguments(self, parser):
        parser.add_argument(
            '--count',
            type=int,
            default=5,
            help='Number of test riders to create (default: 5)',
        )

    def handle(self, *args, **options):
        count = options['count']

        # Turin, around the restaurant
        default_locations = [
            {"lat": 45.0703, "lng": 7.6869, "name": "Rider Centro"},
            {"lat": 45.0781, "lng": 7.6761, "name": "Rider San Donato"},
            {"lat": 45.0579, "lng": 7.6784, "name": "Rider San Salvario"},
            {"lat": 45.0868, "lng": 7.6983, "name": "Rider Aurora"},
            {"lat": 45.0448, "lng": 7.6577, "name": "Rider Santa Rita"},
        ]

        created_count = 0

        for i in range(count):
            location_data = default_locations[i % len(default_locations)]

            rider, created = Rider.objects.get_or_create(
                phone=f"+39333000{i:04d}",
                defaults={
                    'name': location_data['name'],
                    'email': f"rider{i + 1}@test.com",
                    'is_active': True,
                    'current_status': 'available',
                }
            )

            if not created:
                self.stdout.write(
                    self.style.WARNING(f'Rider with phone {rider.phone} already exists, skipping...')
                )
                continue

            location_stream.report_location(
                rider.id,
                latitude=location_data['lat'],
                longitude=location_data['lng'],
                accuracy=10.0,
                speed=0.0,
            )
            created_count += 1
            self.stdout.write(
                self.style.SUCCESS(
                    f'Created rider: {rider.name} (Phone: {rider.phone}) at '
                    f'({location_data["lat"]}, {location_data["lng"]})'
                )
            )

        self.stdout.write(
            self.style.SUCCESS(f'\nSuccessfully created {created_count} test riders with locations!')
        )
