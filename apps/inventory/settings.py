"""
Inventory app settings.

These are loaded by the dynaconf framework in the order defined by
LOADED_APPS. They can be overridden by environment variables prefixed
with INFRA_INVENTORY_.

Example overrides:
    INFRA_INVENTORY_SYNC_INTERVAL_MS=300000
    INFRA_INVENTORY_STALE_AFTER_SECONDS=3600
    INFRA_INVENTORY_INVENTORY_SOURCES='@json [{"kind": "static", "name": "files", "config": {"path": "/etc/inventory.yaml"}}]'
"""

# Scheduler (used by apps/inventory/scheduler.py)
SYNC_INTERVAL_MS = 60000  # zero or negative disables automatic sync
"""Interval between automatic sync cycles, in milliseconds."""

SCHEDULER_AUTOSTART = False
"""
Start the interval timer inside the WSGI process. Leave off when the interval
sync runs from `manage.py run_dispatcher` or `manage.py run_scheduler`.
"""

SOURCE_TIMEOUT_SECONDS = 30
"""Upper bound on one source's discover() call. A timeout counts as the source being unavailable."""

SOURCE_MAX_WORKERS = 4
"""Default concurrent sub-resource fan-out (namespaces, nodes) inside a source."""

STALE_AFTER_SECONDS = 0
"""Mark hosts/workloads not seen for this long as unknown. 0 disables the sweep."""

# Sources
INVENTORY_SOURCES = []
"""
Configured source instances, each a dict::

    {"kind": "proxmox", "name": "pve-homelab", "enabled": True,
     "config": {"base_url": "...", "token_id": "...", "token_secret": "..."}}
"""

INVENTORY_SOURCES_ENABLED = []
"""Whitelist of source kinds. Empty means every registered kind."""

INVENTORY_SOURCES_DISABLED = []
"""Blacklist of source kinds."""

# Dispatcher (used by apps/inventory/dispatcher.py and `manage.py run_dispatcher`)
DISPATCHER_MIN_WORKERS = 1
"""Worker subprocesses the dispatcherd pool keeps alive."""

DISPATCHER_MAX_WORKERS = 1
"""
Upper bound on dispatcherd worker subprocesses. Each worker has its own
scheduler, so with more than one a slow cycle can overlap the next tick;
the PostgreSQL advisory lock still serializes their writes.
"""
