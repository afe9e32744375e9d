"""
Framework settings for the infra inventory service.

Read only: declare project settings in the files listed in
`apps/settings/__init__.py`, not here.

Loading order (later wins):

1. The framework defaults in this module
2. `apps/settings/defaults.py`
3. `apps/core/settings.py`, then each `apps/<app>/settings.py`
4. `apps/settings/<mode>.py` where mode is INFRA_INVENTORY_MODE
   (development, production, test; default development)
5. `settings.local.py` in the repository root, if present
6. INFRA_INVENTORY_ prefixed environment variables
7. `apps/settings/database.py` hook (DB_* -> DATABASES)

The resulting Dynaconf object is exported into this module's globals so
Django sees plain settings.
"""

import importlib
import os
from pathlib import Path

from dynaconf import Dynaconf

BASE_DIR = Path(__file__).resolve().parent.parent

ENVVAR_PREFIX = "INFRA_INVENTORY"
MODE = os.environ.get(f"{ENVVAR_PREFIX}_MODE", "development")

LOADED_APPS = ["core", "inventory"]
"""Apps whose settings.py is loaded, in order."""

# ── Framework defaults ────────────────────────────────────────────────

FRAMEWORK_DEFAULTS = {
    "BASE_DIR": BASE_DIR,
    "MODE": MODE,
    "DEBUG": False,
    "SECRET_KEY": "insecure-development-key-change-me",
    "ALLOWED_HOSTS": ["*"],
    "INSTALLED_APPS": [
        "django.contrib.admin",
        "django.contrib.auth",
        "django.contrib.contenttypes",
        "django.contrib.sessions",
        "django.contrib.messages",
        "django.contrib.staticfiles",
    ],
    "MIDDLEWARE": [
        "django.middleware.security.SecurityMiddleware",
        "django.contrib.sessions.middleware.SessionMiddleware",
        "django.middleware.common.CommonMiddleware",
        "django.middleware.csrf.CsrfViewMiddleware",
        "django.contrib.auth.middleware.AuthenticationMiddleware",
        "django.contrib.messages.middleware.MessageMiddleware",
        "apps.core.middleware.request_metrics.RequestMetricsMiddleware",
    ],
    "ROOT_URLCONF": "infra_inventory.urls",
    "WSGI_APPLICATION": "infra_inventory.wsgi.application",
    "TEMPLATES": [
        {
            "BACKEND": "django.template.backends.django.DjangoTemplates",
            "DIRS": [],
            "APP_DIRS": True,
            "OPTIONS": {
                "context_processors": [
                    "django.template.context_processors.request",
                    "django.contrib.auth.context_processors.auth",
                    "django.contrib.messages.context_processors.messages",
                ],
            },
        },
    ],
    "DATABASES": {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": str(BASE_DIR / "db.sqlite3"),
        },
    },
    "DEFAULT_AUTO_FIELD": "django.db.models.BigAutoField",
    "LANGUAGE_CODE": "en-us",
    "TIME_ZONE": "UTC",
    "USE_I18N": True,
    "USE_TZ": True,
    "STATIC_URL": "/static/",
    "STATIC_ROOT": str(BASE_DIR / "static"),
    "LOGGING": {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s",
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
            "level": "WARNING",
        },
        "loggers": {
            "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
            "apps": {"handlers": ["console"], "level": "INFO", "propagate": False},
            "inventory_sources": {"handlers": ["console"], "level": "INFO", "propagate": False},
        },
    },
}

# ── Dynaconf loading ──────────────────────────────────────────────────

DYNACONF = Dynaconf(
    envvar_prefix=ENVVAR_PREFIX,
    root_path=str(BASE_DIR),
    settings_files=[
        "apps/settings/defaults.py",
        *[f"apps/{app}/settings.py" for app in LOADED_APPS],
        f"apps/settings/{MODE}.py",
        "settings.local.py",
    ],
    environments=False,
    load_dotenv=False,
    **FRAMEWORK_DEFAULTS,
)

_mode_module = importlib.import_module(f"apps.settings.{MODE}")
DYNACONF.validators.register(*getattr(_mode_module, "validators", []))
DYNACONF.validators.validate()

from apps.settings.database import override_database_settings  # noqa: E402

override_database_settings(DYNACONF)

globals().update(DYNACONF.as_dict())
