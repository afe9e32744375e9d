"""
Production environment settings.

This file is loaded when INFRA_INVENTORY_MODE=production and serves three purposes:

1. ZERO OUT SENSITIVE INFORMATION
   All sensitive settings (passwords, keys, secrets) are explicitly set to empty
   strings here, even if they already default to empty. This ensures production
   never accidentally inherits insecure defaults from development or defaults.py.
   These values MUST be provided via environment variables or external config.

2. SET PRODUCTION-APPROPRIATE DEFAULTS
   - DEBUG = False (never run debug mode in production)
   - PostgreSQL is required (DB_HOST must be set)

3. VALIDATE IMPORTANT SETTINGS
   Each critical setting has a corresponding Dynaconf Validator that runs at
   startup. If any required setting is missing or invalid, the application
   will fail to start with a clear error message.

Usage:
   export INFRA_INVENTORY_MODE=production
   export INFRA_INVENTORY_SECRET_KEY=your-secret-key
   export INFRA_INVENTORY_DB_HOST=db.internal
   export INFRA_INVENTORY_DB_PASSWORD=your-db-password
   gunicorn infra_inventory.wsgi

Validators are registered in infra_inventory/settings.py.
"""

from dynaconf import Validator

validators = []

# =============================================================================
# Django Core
# =============================================================================

DEBUG = False
validators.append(
    Validator(
        "DEBUG",
        eq=False,
        messages={"operations": "DEBUG must be False in production."},
    ),
)

SECRET_KEY = ""
validators.append(
    Validator(
        "SECRET_KEY",
        must_exist=True,
        ne="",
        messages={"operations": "SECRET_KEY must be set and not empty."},
    ),
)

# =============================================================================
# Database Credentials
# =============================================================================

DB_HOST = ""
validators.append(
    Validator(
        "DB_HOST",
        must_exist=True,
        ne="",
        messages={"operations": "DB_HOST must be set."},
    ),
)

DB_PASSWORD = ""
validators.append(
    Validator(
        "DB_PASSWORD",
        must_exist=True,
        ne="",
        messages={"operations": "DB_PASSWORD must be set."},
    ),
)

# =============================================================================
# Scheduler
# =============================================================================

validators.append(
    Validator(
        "SOURCE_TIMEOUT_SECONDS",
        gt=0,
        messages={"operations": "SOURCE_TIMEOUT_SECONDS must be positive."},
    ),
)
