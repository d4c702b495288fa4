import logging

from django.conf import settings
from django.db import connection

logger = logging.getLogger(__name__)


def check_database_connection() -> bool:
    if not settings.DATABASES:
        logger.error("DATABASES setting is not configured !!")
        raise ValueError("DATABASES setting is not configured")

    try:
        connection.ensure_connection()
        logger.debug("Database connection established")
        return True
    except Exception as e:
        logger.error(f"Database connection error: {e}")
        return False
