import json
import logging

from confluent_kafka import KafkaException, Producer
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)


class KafkaClient:
    def __init__(self):
        self.producer = Producer(
            {
                "bootstrap.servers": settings.KAFKA_BOOTSTRAP_SERVERS,
                "client.id": settings.KAFKA_CLIENT_ID,
            }
        )

    def publish(self, topic: str, event_data: dict, key=None, timeout: float = 5) -> bool:
        """Publish an event and wait for the broker acknowledgement"""
        delivery = {"failed": False, "error": None}

        def delivery_callback(err, msg):
            if err is not None:
                delivery["failed"] = True
                delivery["error"] = str(err)
                logger.error(f"Message delivery to {topic} failed: {err}")

        try:
            produce_kwargs = {
                "value": json.dumps(event_data, cls=DjangoJSONEncoder).encode("utf-8"),
                "callback": delivery_callback,
            }
            if key:
                produce_kwargs["key"] = key.encode("utf-8") if isinstance(key, str) else key

            self.producer.produce(topic, **produce_kwargs)
            self.producer.poll(0)
            remaining = self.producer.flush(timeout=timeout)
        except (KafkaException, BufferError) as e:
            logger.error(f"Kafka error publishing to {topic}: {e}")
            return False

        if remaining:
            logger.error(f"Kafka flush timed out with {remaining} message(s) pending for {topic}")
            return False
        return not delivery["failed"]

    def close(self):
        self.producer.flush()


_kafka_client = None


def get_kafka_client() -> KafkaClient:
    """Producer is created on first use so importing this module never connects"""
    global _kafka_client
    if _kafka_client is None:
        _kafka_client = KafkaClient()
    return _kafka_client
