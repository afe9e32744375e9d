"""
WSGI config for the infra inventory service.

Starts the inventory scheduler's interval timer once the application is
loaded, when SCHEDULER_AUTOSTART is enabled.
"""

import os

from django.apps import apps
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "infra_inventory.settings")

application = get_wsgi_application()

apps.get_app_config("inventory").start_scheduler()
