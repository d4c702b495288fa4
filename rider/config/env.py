"""
Environment configuration for the dispatch service
"""
from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvSettings(BaseSettings):
    """Values read from the environment (or .env) once at startup"""

    # Django
    SECRET_KEY: str = "django-insecure-change-me"
    DEBUG: bool = False
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1"]
    LOG_LEVEL: str = "INFO"

    # Database
    DB_ENGINE: str = "django.db.backends.postgresql"
    DB_NAME: str = "dispatch"
    DB_USER: str = "dispatch"
    DB_PASSWORD: str = "dispatch"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    # Redis (cache + channel layer)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = "localhost:9092"
    KAFKA_CLIENT_ID: str = "dispatch-service"

    # Notifications
    NOTIFICATION_GATEWAY: str = "apps.notifications.gateways.KafkaNotificationGateway"
    NOTIFICATION_PUBLISH_TIMEOUT: float = 1.0

    # Pricing
    POS_SURCHARGE: Decimal = Decimal("1.00")
    DEFAULT_DELIVERY_FEE: Decimal = Decimal("2.50")

    # Rider tracking
    RIDER_LOCATION_TTL: int = 300
    LOCATION_STALE_AFTER: int = 30
    LOCATION_RETENTION_HOURS: int = 72
    RIDER_AVERAGE_SPEED_KMH: float = 25.0

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


env = EnvSettings()
