"""
Settings used by the test suite: in-process storage, no Redis or Kafka.
"""
import os
import tempfile

from config.settings import *  # noqa: F401,F403

# File backed with IMMEDIATE transactions: concurrent writers from test
# threads wait for the write lock.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.path.join(tempfile.gettempdir(), "dispatch.sqlite3"),
        "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 20},
        "TEST": {"NAME": os.path.join(tempfile.gettempdir(), "test_dispatch.sqlite3")},
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "dispatch-tests",
    }
}

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

NOTIFICATION_GATEWAY = "apps.notifications.gateways.LoggingNotificationGateway"
