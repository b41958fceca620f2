"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + prod + test)

Operational maturity:
- Throttling (public write / poll / webhook scopes)
- Frontend redirect base (payment callback)
- Payment gateway, shipping aggregator and notification credentials
- Central API error envelope (backend.errors.api_exception_handler)
- Sentry (optional): error visibility in production
"""

from __future__ import annotations

import sys
from datetime import timedelta
from pathlib import Path

import environ
from corsheaders.defaults import default_headers, default_methods

# -----------------------------------------
# BASE DIRECTORY
# -----------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# -----------------------------------------
# TEST MODE DETECTION
# -----------------------------------------
TESTING = "test" in sys.argv or "pytest" in sys.modules

# -----------------------------------------
# ENV (django-environ)
# -----------------------------------------
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "Asia/Kolkata"),
    LOG_LEVEL=(str, "INFO"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    CORS_ALLOWED_ORIGINS=(list, ["http://localhost:5173"]),
    CSRF_TRUSTED_ORIGINS=(list, ["http://localhost:5173"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    FRONTEND_BASE_URL=(str, "http://localhost:5173"),
    API_BASE_URL=(str, "http://localhost:8000"),
    ORDER_ID_PREFIX=(str, "BG"),
    # Throttling
    THROTTLE_ANON_RATE=(str, "60/min"),
    THROTTLE_USER_RATE=(str, "600/min"),
    THROTTLE_PUBLIC_POLL_RATE=(str, "120/min"),
    THROTTLE_PUBLIC_WRITE_RATE=(str, "20/min"),
    THROTTLE_WEBHOOK_RATE=(str, "600/min"),
    # Payment gateway (Cashfree-compatible PG API)
    PAYMENT_GATEWAY_BASE_URL=(str, "https://sandbox.cashfree.com"),
    PAYMENT_GATEWAY_CLIENT_ID=(str, ""),
    PAYMENT_GATEWAY_CLIENT_SECRET=(str, ""),
    PAYMENT_GATEWAY_API_VERSION=(str, "2023-08-01"),
    PAYMENT_GATEWAY_TIMEOUT=(int, 20),
    # Shipping aggregator (ShipRocket-compatible API)
    SHIPPING_ENABLED=(bool, False),
    SHIPPING_BASE_URL=(str, "https://apiv2.shiprocket.in/v1/external"),
    SHIPPING_EMAIL=(str, ""),
    SHIPPING_PASSWORD=(str, ""),
    SHIPPING_CHANNEL_ID=(str, ""),
    SHIPPING_PICKUP_LOCATION=(str, "Primary"),
    SHIPPING_PICKUP_PINCODE=(str, ""),
    SHIPPING_TIMEOUT=(int, 15),
    # Notifications
    EMAIL_NOTIFICATIONS_ENABLED=(bool, True),
    SMS_NOTIFICATIONS_ENABLED=(bool, False),
    DEFAULT_FROM_EMAIL=(str, "orders@localhost"),
    EMAIL_URL=(str, "consolemail://"),
    TWILIO_ACCOUNT_SID=(str, ""),
    TWILIO_AUTH_TOKEN=(str, ""),
    TWILIO_FROM_NUMBER=(str, ""),
    NOTIFICATION_TIMEOUT=(int, 10),
    # Sentry (optional; enable by setting SENTRY_DSN)
    SENTRY_DSN=(str, ""),
    SENTRY_ENVIRONMENT=(str, "development"),
    SENTRY_TRACES_SAMPLE_RATE=(float, 0.0),
    SENTRY_SEND_PII=(bool, False),
)

# -----------------------------------------
# LOAD .env
# -----------------------------------------
env_file_1 = BASE_DIR / ".env"
env_file_2 = BASE_DIR.parent / ".env"

if env_file_1.exists():
    env.read_env(str(env_file_1))
elif env_file_2.exists():
    env.read_env(str(env_file_2))

# -----------------------------------------
# CORE SECURITY
# -----------------------------------------
SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")

# -----------------------------------------
# I18N / TZ
# -----------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = (env("TIME_ZONE") or "UTC").strip()
USE_I18N = True
USE_TZ = True

# -----------------------------------------
# AUTH USER MODEL (custom)
# -----------------------------------------
AUTH_USER_MODEL = "users.User"

# -----------------------------------------
# INSTALLED APPS
# -----------------------------------------
INSTALLED_APPS = [
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework_simplejwt",
    "drf_spectacular",
    "django_filters",
    "users",
    "products",
    "coupons",
    "carts",
    "orders.apps.OrdersConfig",
    "integrations.apps.IntegrationsConfig",
]

# -----------------------------------------
# MIDDLEWARE
# -----------------------------------------
MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"
APPEND_SLASH = True

# -----------------------------------------
# TEMPLATES (Django admin + notification emails)
# -----------------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [str(BASE_DIR / "templates")],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# -----------------------------------------
# REST FRAMEWORK
# -----------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "backend.errors.api_exception_handler",
    "DEFAULT_THROTTLE_CLASSES": (
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
    ),
    "DEFAULT_THROTTLE_RATES": {
        "anon": env("THROTTLE_ANON_RATE"),
        "user": env("THROTTLE_USER_RATE"),
        "public_poll": env("THROTTLE_PUBLIC_POLL_RATE"),
        "public_write": env("THROTTLE_PUBLIC_WRITE_RATE"),
        "webhook": env("THROTTLE_WEBHOOK_RATE"),
    },
}

# -----------------------------------------
# SIMPLE JWT
# -----------------------------------------
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=30),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
    "ROTATE_REFRESH_TOKENS": True,
}

# -----------------------------------------
# DATABASE
# -----------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL"),
}

# -----------------------------------------
# FRONTEND / PUBLIC API BASE URLS
# -----------------------------------------
FRONTEND_BASE_URL = (env("FRONTEND_BASE_URL") or "http://localhost:5173").strip()
API_BASE_URL = (env("API_BASE_URL") or "http://localhost:8000").strip().rstrip("/")

# -----------------------------------------
# ORDERS
# -----------------------------------------
ORDER_ID_PREFIX = (env("ORDER_ID_PREFIX") or "BG").strip().upper()

# -----------------------------------------
# PAYMENTS
# -----------------------------------------
PAYMENTS = {
    "GATEWAY": {
        "BASE_URL": (env("PAYMENT_GATEWAY_BASE_URL") or "").strip().rstrip("/"),
        "CLIENT_ID": (env("PAYMENT_GATEWAY_CLIENT_ID") or "").strip(),
        "CLIENT_SECRET": (env("PAYMENT_GATEWAY_CLIENT_SECRET") or "").strip(),
        "API_VERSION": (env("PAYMENT_GATEWAY_API_VERSION") or "2023-08-01").strip(),
        "RETURN_URL": f"{API_BASE_URL}/api/orders/payments/callback/?order_id={{order_id}}",
        "NOTIFY_URL": f"{API_BASE_URL}/api/orders/payments/webhook/",
        "TIMEOUT": env.int("PAYMENT_GATEWAY_TIMEOUT"),
    }
}

# -----------------------------------------
# SHIPPING
# -----------------------------------------
SHIPPING = {
    "ENABLED": env.bool("SHIPPING_ENABLED"),
    "BASE_URL": (env("SHIPPING_BASE_URL") or "").strip().rstrip("/"),
    "EMAIL": (env("SHIPPING_EMAIL") or "").strip(),
    "PASSWORD": (env("SHIPPING_PASSWORD") or "").strip(),
    "CHANNEL_ID": (env("SHIPPING_CHANNEL_ID") or "").strip(),
    "PICKUP_LOCATION": (env("SHIPPING_PICKUP_LOCATION") or "Primary").strip(),
    "PICKUP_PINCODE": (env("SHIPPING_PICKUP_PINCODE") or "").strip(),
    "TIMEOUT": env.int("SHIPPING_TIMEOUT"),
}

# -----------------------------------------
# NOTIFICATIONS (email + SMS)
# -----------------------------------------
vars().update(env.email_url("EMAIL_URL"))
DEFAULT_FROM_EMAIL = (env("DEFAULT_FROM_EMAIL") or "orders@localhost").strip()

NOTIFICATIONS = {
    "EMAIL_ENABLED": env.bool("EMAIL_NOTIFICATIONS_ENABLED"),
    "SMS_ENABLED": env.bool("SMS_NOTIFICATIONS_ENABLED"),
    "FROM_EMAIL": DEFAULT_FROM_EMAIL,
    "TWILIO_ACCOUNT_SID": (env("TWILIO_ACCOUNT_SID") or "").strip(),
    "TWILIO_AUTH_TOKEN": (env("TWILIO_AUTH_TOKEN") or "").strip(),
    "TWILIO_FROM_NUMBER": (env("TWILIO_FROM_NUMBER") or "").strip(),
    "TIMEOUT": env.int("NOTIFICATION_TIMEOUT"),
}

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOG_LEVEL = (env("LOG_LEVEL") or "INFO").strip().upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING" if TESTING else LOG_LEVEL,
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}

# -----------------------------------------
# SENTRY (optional)
# -----------------------------------------
SENTRY_DSN = (env("SENTRY_DSN") or "").strip()
SENTRY_ENVIRONMENT = (env("SENTRY_ENVIRONMENT") or "development").strip()
SENTRY_TRACES_SAMPLE_RATE = float(env("SENTRY_TRACES_SAMPLE_RATE"))
SENTRY_SEND_PII = env.bool("SENTRY_SEND_PII")

if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=SENTRY_ENVIRONMENT,
        integrations=[DjangoIntegration()],
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        send_default_pii=SENTRY_SEND_PII,
    )

# -----------------------------------------
# CORS / CSRF
# -----------------------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = list(default_methods)
CORS_ALLOW_HEADERS = [*default_headers, "x-guest-session-id"]

CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS")

# -----------------------------------------
# STATIC FILES
# -----------------------------------------
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# -----------------------------------------
# SWAGGER
# -----------------------------------------
SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront Orders API",
    "DESCRIPTION": "Catalog, carts, coupons, orders and payment reconciliation API",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}
