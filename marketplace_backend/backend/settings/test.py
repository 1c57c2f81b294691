# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite (fast, isolated per run)
- Cheap password hashing
- Throttling off so API tests never trip rate limits
- Retry backoff zeroed so retry tests do not sleep
"""

from __future__ import annotations

from decimal import Decimal

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

PLATFORM_COMMISSION_RATE = Decimal("0.05")
DEFAULT_CURRENCY = "PKR"

ORDER_TRANSITION_RETRY_ATTEMPTS = 3
ORDER_TRANSITION_RETRY_BACKOFF_SECONDS = 0.0

SENTRY_DSN = ""

LOGGING = {
    **LOGGING,
    "loggers": {
        "orders": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "earnings": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}
