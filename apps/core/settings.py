"""
Core App Settings

This file contains settings specific to the core app: authentication
for the browsable API and the health endpoint.
"""

# Login/Logout URLs for DRF browsable API
LOGIN_URL = "/api-auth/login/"
LOGOUT_URL = "/api-auth/logout/"

HEALTH_CHECK_INCLUDE_SCHEDULER = True
"""Report the inventory scheduler state in /health/."""
