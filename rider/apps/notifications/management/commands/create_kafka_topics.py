"""
Django management command to create Kafka topics
"""
from confluent_kafka import KafkaException
from confluent_kafka.admin import AdminClient, NewTopic
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.notifications.constants import KAFKA_TOPICS


class Command(BaseCommand):
    help = 'Creates the Kafka topics the notification gateway publishes to'

    def add_arguments(self, parser):
        parser.add_argument(
            '--partitions',
            type=int,
            default=3,
            help='Number of partitions for each topic (default: 3)',
        )
        parser.add_argument(
            '--replication-factor',
            type=int,
            default=1,
            help='Replication factor for each topic (default: 1)',
        )

    def handle(self, *args, **options):
        if not settings.KAFKA_BOOTSTRAP_SERVERS:
            raise CommandError('KAFKA_BOOTSTRAP_SERVERS not configured in settings')

        admin_client = AdminClient({'bootstrap.servers': settings.KAFKA_BOOTSTRAP_SERVERS})

        topics = [
            NewTopic(
                topic,
                num_partitions=options['partitions'],
                replication_factor=options['replication_factor'],
            )
            for topic in KAFKA_TOPICS.values()
        ]
        futures = admin_client.create_topics(topics)

        created_count = 0
        for topic, future in futures.items():
            try:
                future.result()
            except KafkaException as e:
                if 'already exists' in str(e).lower() or 'TOPIC_ALREADY_EXISTS' in str(e):
                    self.stdout.write(self.style.WARNING(f'Topic {topic} already exists'))
                    created_count += 1
                else:
                    self.stdout.write(self.style.ERROR(f'Failed to create topic {topic}: {e}'))
                continue
            self.stdout.write(self.style.SUCCESS(f'Successfully created topic: {topic}'))
            created_count += 1

        self.stdout.write(
            self.style.SUCCESS(f'\nCompleted! {created_count}/{len(KAFKA_TOPICS)} topics created/verified.')
        )
