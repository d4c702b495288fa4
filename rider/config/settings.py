"""
Django settings for the dispatch service.

Every tunable comes from ``config.env.EnvSettings`` so deployments only
touch environment variables.
"""

from pathlib import Path

from config.env import env

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = env.SECRET_KEY
DEBUG = env.DEBUG
ALLOWED_HOSTS = env.ALLOWED_HOSTS

INSTALLED_APPS = [
    "daphne",
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.staticfiles",
    "channels",
    "rest_framework",
    "apps.core",
    "apps.riders",
    "apps.orders",
    "apps.events",
    "apps.dispatch",
    "apps.notifications",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
ASGI_APPLICATION = "config.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": env.DB_ENGINE,
        "NAME": env.DB_NAME,
        "USER": env.DB_USER,
        "PASSWORD": env.DB_PASSWORD,
        "HOST": env.DB_HOST,
        "PORT": env.DB_PORT,
    }
}

REDIS_HOST = env.REDIS_HOST
REDIS_PORT = env.REDIS_PORT
REDIS_DB = env.REDIS_DB

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": f"redis://{REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}",
        "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
    }
}

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels_redis.core.RedisChannelLayer",
        "CONFIG": {"hosts": [(REDIS_HOST, REDIS_PORT)]},
    }
}

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "apps.core.actors.GatewayHeaderAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "EXCEPTION_HANDLER": "apps.core.exceptions.dispatch_exception_handler",
    "UNAUTHENTICATED_USER": None,
}

KAFKA_BOOTSTRAP_SERVERS = env.KAFKA_BOOTSTRAP_SERVERS
KAFKA_CLIENT_ID = env.KAFKA_CLIENT_ID

NOTIFICATION_GATEWAY = env.NOTIFICATION_GATEWAY
NOTIFICATION_PUBLISH_TIMEOUT = env.NOTIFICATION_PUBLISH_TIMEOUT

POS_SURCHARGE = env.POS_SURCHARGE
DEFAULT_DELIVERY_FEE = env.DEFAULT_DELIVERY_FEE

RIDER_LOCATION_TTL = env.RIDER_LOCATION_TTL
LOCATION_STALE_AFTER = env.LOCATION_STALE_AFTER
LOCATION_RETENTION_HOURS = env.LOCATION_RETENTION_HOURS
RIDER_AVERAGE_SPEED_KMH = env.RIDER_AVERAGE_SPEED_KMH

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "apps": {"handlers": ["console"], "level": env.LOG_LEVEL, "propagate": False},
        "infrastructure": {
            "handlers": ["console"],
            "level": env.LOG_LEVEL,
            "propagate": False,
        },
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}
