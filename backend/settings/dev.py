# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT SETTINGS

- SQLite unless DATABASE_URL says otherwise
- Emails printed to the console (EMAIL_URL=consolemail:// by default)
- Gateway sandbox; shipping off until SHIPPING_ENABLED=True
- App loggers at DEBUG so order / payment flows are visible
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, env

DEBUG = True

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])

CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=["http://localhost:5173"])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=["http://localhost:5173"])

for _app in ("orders", "coupons", "carts", "integrations"):
    LOGGING["loggers"][_app] = {"level": "DEBUG"}
