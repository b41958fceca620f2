# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

- In-memory SQLite
- locmem email backend (mail.outbox assertions)
- Shipping + SMS disabled; gateway credentials are dummies (tests patch the client)
- Fast password hashing
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import NOTIFICATIONS, PAYMENTS, REST_FRAMEWORK, SHIPPING

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PAYMENTS["GATEWAY"].update(
    {
        "BASE_URL": "https://pg.test.local",
        "CLIENT_ID": "test-client",
        "CLIENT_SECRET": "test-secret",
    }
)

SHIPPING["ENABLED"] = False

NOTIFICATIONS.update({"EMAIL_ENABLED": True, "SMS_ENABLED": False})

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
    "DEFAULT_THROTTLE_RATES": {
        scope: "10000/min" for scope in REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]
    },
}
