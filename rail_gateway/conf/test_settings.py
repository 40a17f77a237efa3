from .framework_settings import *  # noqa: F403

ENVIRONMENT = "testing"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "unique-snowflake",
    }
}

GRAPHENE = {
    "SCHEMA": "tests.schema.schema",
    "MIDDLEWARE": [],
}

RAIL_GATEWAY = {
    "csrf_protection": False,
    "schema": "tests.schema.schema",
    "connection_init_timeout": 2.0,
}

CORS_ALLOWED_ORIGINS = ["https://app.example.com"]

LOGGING["loggers"]["rail_gateway"]["level"] = "WARNING"  # noqa: F405
