"""Database configuration hook for the infra inventory service.

This module provides the `override_database_settings` function that maps
simple DB_* settings (loaded by Dynaconf from INFRA_INVENTORY_DB_* env
vars) into Django's DATABASES dict with PostgreSQL as the backend.

Loading order (in infra_inventory/settings.py):
  1. Framework defaults define DATABASES with a sqlite3 fallback
  2. Dynaconf loads INFRA_INVENTORY_DB_* env vars as DB_HOST, DB_PORT, etc.
  3. When DB_HOST is set, this function replaces DATABASES["default"]
     with a PostgreSQL entry built from those DB_* settings.

Environment variables:
  INFRA_INVENTORY_DB_HOST        (unset: keep SQLite)
  INFRA_INVENTORY_DB_PORT        (default: 5432)
  INFRA_INVENTORY_DB_NAME        (default: infra_inventory)
  INFRA_INVENTORY_DB_USER        (default: inventory)
  INFRA_INVENTORY_DB_PASSWORD    (required in production)
  INFRA_INVENTORY_DB_SSLMODE     (default: prefer)
  INFRA_INVENTORY_DB_STATEMENT_TIMEOUT_MS (default: 30000)

Every PostgreSQL connection gets a server-side ``statement_timeout`` so a
stuck write aborts the reconciliation cycle instead of hanging it.
"""

from dynaconf import Dynaconf


def postgres_options(statement_timeout_ms: int, sslmode: str = "prefer") -> dict:
    """libpq connection options for the default database."""
    options = {"sslmode": sslmode}
    if statement_timeout_ms and int(statement_timeout_ms) > 0:
        options["options"] = f"-c statement_timeout={int(statement_timeout_ms)}"
    return options


def override_database_settings(loaded_settings: Dynaconf) -> None:
    """Build a PostgreSQL DATABASES entry from DB_* settings loaded by Dynaconf."""
    db_host = loaded_settings.get("DB_HOST", default="")
    if not db_host:
        return

    databases = loaded_settings.get("DATABASES", {})
    default_test = (databases.get("default") or {}).get("TEST", {})

    databases["default"] = {
        "ENGINE": "django.db.backends.postgresql",
        "HOST": db_host,
        "PORT": loaded_settings.get("DB_PORT", default=5432),
        "USER": loaded_settings.get("DB_USER", default="inventory"),
        "PASSWORD": loaded_settings.get("DB_PASSWORD", default=""),
        "NAME": loaded_settings.get("DB_NAME", default="infra_inventory"),
        "OPTIONS": postgres_options(
            loaded_settings.get("DB_STATEMENT_TIMEOUT_MS", default=30000),
            sslmode=loaded_settings.get("DB_SSLMODE", default="prefer"),
        ),
        "TEST": default_test,
    }

    loaded_settings.update(
        {"DATABASES": databases},
        loader_identifier="settings:override_database_settings",
    )
