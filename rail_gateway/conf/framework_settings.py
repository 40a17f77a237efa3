"""
Base settings for projects using rail-gateway.
Users import * from this file in their project's settings.py.
"""

import os
from pathlib import Path

# Build paths inside the project like this: BASE_DIR / 'subdir'.
# Projects redefine BASE_DIR relative to their own settings.py.
BASE_DIR = Path(os.getcwd())

# SECURITY WARNING: keep the secret key used in production secret!
# Default fallback key - projects MUST override this or set env var.
SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "django-insecure-gateway-default-key-change-me"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get("DJANGO_DEBUG", "False").lower() == "true"


def _split_env_list(raw_value: str) -> list[str]:
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _env_flag(name: str, default: bool) -> bool:
    raw_value = os.environ.get(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


ALLOWED_HOSTS = _split_env_list(
    os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1")
)

# Application definition
INSTALLED_APPS = [
    "daphne",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.staticfiles",
    # Third-party apps
    "channels",
    "graphene_django",
    "corsheaders",
    # Framework apps
    "rail_gateway",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "rail_gateway.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
            ],
        },
    },
]

# Database
# https://docs.djangoproject.com/en/4.2/ref/settings/#databases
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files
STATIC_URL = "static/"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Channels
CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

# GraphQL settings
GRAPHENE = {
    "MIDDLEWARE": [],
}

# CORS settings. Cross-origin simple requests must pass a preflight; the
# gateway's content-type rules make sure they cannot skip it.
CORS_ALLOW_ALL_ORIGINS = _env_flag("CORS_ALLOW_ALL_ORIGINS", False)
CORS_ALLOWED_ORIGINS = _split_env_list(os.environ.get("CORS_ALLOWED_ORIGINS", ""))
CORS_ALLOW_CREDENTIALS = _env_flag("CORS_ALLOW_CREDENTIALS", True)
# Match no path: rail_gateway.signals enables the middleware per request,
# only for allow-listed origins.
CORS_URLS_REGEX = r"(?!)"

# Project overrides on top of rail_gateway.defaults. Keys left out fall
# back to the library and environment defaults.
RAIL_GATEWAY = {"gateway_settings": {}}
_gateway_settings = RAIL_GATEWAY["gateway_settings"]
if os.environ.get("RAIL_GATEWAY_CSRF_PROTECTION") is not None:
    _gateway_settings["csrf_protection"] = _env_flag("RAIL_GATEWAY_CSRF_PROTECTION", False)
if os.environ.get("RAIL_GATEWAY_ALLOWED_CONTENT_TYPES"):
    _gateway_settings["allowed_content_types"] = _split_env_list(
        os.environ["RAIL_GATEWAY_ALLOWED_CONTENT_TYPES"]
    )
for _env_name, _key in (
    ("RAIL_GATEWAY_INIT_TIMEOUT", "connection_init_timeout"),
    ("RAIL_GATEWAY_IDLE_TIMEOUT", "idle_timeout"),
    ("RAIL_GATEWAY_KEEPALIVE_INTERVAL", "keepalive_interval"),
):
    if os.environ.get(_env_name):
        try:
            _gateway_settings[_key] = float(os.environ[_env_name])
        except (TypeError, ValueError):
            pass

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "rail_gateway": {
            "handlers": ["console"],
            "level": os.environ.get("RAIL_GATEWAY_LOG_LEVEL", "INFO").upper(),
            "propagate": False,
        },
    },
}
