"""
Django settings for the NHI investigation service.

Values are read from the process environment (optionally seeded from .env
files, see config/env.py).
"""

from __future__ import annotations

import os
from pathlib import Path

from config.env import env_bool, env_int, load_env

BASE_DIR = Path(__file__).resolve().parent.parent

load_env(BASE_DIR)

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-secret-key")
DEBUG = env_bool("DJANGO_DEBUG", default=False)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "apps.activity",
    "apps.catalog",
    "apps.investigation",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

# ---------------------------------------------------------------------------
# Investigation
# ---------------------------------------------------------------------------

# Upper bound on simultaneously running investigations in a batch.
INVESTIGATION_MAX_CONCURRENCY = env_int("INVESTIGATION_MAX_CONCURRENCY", 5)

# "logging" or "null"
INVESTIGATION_SIGNALS_BACKEND = os.environ.get("INVESTIGATION_SIGNALS_BACKEND", "logging")

CAPABILITY_TIMEOUT_SECONDS = env_int("CAPABILITY_TIMEOUT_SECONDS", 30)

ACTIVITY_VERIFIER = {
    "driver": os.environ.get("ACTIVITY_VERIFIER_DRIVER", "static"),
    "config": {
        "endpoint": os.environ.get("ACTIVITY_VERIFIER_ENDPOINT", ""),
        "fixture_path": os.environ.get("ACTIVITY_VERIFIER_FIXTURE", ""),
        "timeout": CAPABILITY_TIMEOUT_SECONDS,
    },
}

APP_CONTEXT_RESOLVER = {
    "driver": os.environ.get("APP_CONTEXT_DRIVER", "static"),
    "config": {
        "endpoint": os.environ.get("APP_CONTEXT_ENDPOINT", ""),
        "fixture_path": os.environ.get("APP_CONTEXT_FIXTURE", ""),
        "timeout": CAPABILITY_TIMEOUT_SECONDS,
    },
}

# ---------------------------------------------------------------------------
# Celery
# ---------------------------------------------------------------------------

CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER", default=False)
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

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
        "level": LOG_LEVEL,
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
