"""Management command: list registered inventory source kinds and configured sources.

Usage:
    python manage.py list_sources
    python manage.py list_sources --format=yml
    python manage.py list_sources --test
"""
from __future__ import annotations

import json

import yaml
from django.core.management.base import BaseCommand

from inventory_sources import InventoryError, SourceSettings

from apps.inventory.tasks import configured_sources, get_registry


class Command(BaseCommand):
    help = "List registered inventory source kinds and the configured source instances"

    def add_arguments(self, parser):
        parser.add_argument(
            "--format",
            choices=["text", "json", "yml"],
            default="text",
            help="Output format (default: text)",
        )
        parser.add_argument(
            "--test",
            action="store_true",
            help="Test connectivity for each enabled configured source",
        )

    def handle(self, **options):
        registry = get_registry()
        kinds = registry.list_sources()
        configured = [SourceSettings.from_dict(item) for item in configured_sources()]

        if options["format"] != "text":
            data = {
                "registered": kinds,
                "configured": [
                    {"name": s.name, "kind": s.kind, "enabled": s.enabled} for s in configured
                ],
            }
            if options["format"] == "json":
                self.stdout.write(json.dumps(data, indent=2))
            else:
                self.stdout.write(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
        else:
            self._print_text(kinds, configured)

        if options["test"]:
            self._test_connectivity(registry, configured)

    def _print_text(self, kinds: list[dict], configured: list[SourceSettings]):
        if not kinds:
            self.stdout.write(self.style.WARNING("No source kinds registered."))
        else:
            self.stdout.write(self.style.MIGRATE_HEADING(f"Registered Source Kinds ({len(kinds)})"))
            for info in kinds:
                self.stdout.write(f"  {info['kind']:<12} {info['display_name']}  ({info['class']})")

        self.stdout.write("")
        if not configured:
            self.stdout.write(self.style.WARNING("No sources configured (INVENTORY_SOURCES is empty)."))
            return
        self.stdout.write(self.style.MIGRATE_HEADING(f"Configured Sources ({len(configured)})"))
        for source in configured:
            state = "enabled" if source.enabled else "disabled"
            self.stdout.write(f"  {source.name:<20} {source.kind:<12} {state}")

    def _test_connectivity(self, registry, configured: list[SourceSettings]):
        """Call validate_connection() on every enabled configured source."""
        self.stdout.write("\n" + self.style.MIGRATE_HEADING("Testing Source Connections"))

        enabled = [s for s in configured if s.enabled]
        if not enabled:
            self.stdout.write(self.style.WARNING("  No enabled sources configured."))
            return

        for source_settings in enabled:
            self.stdout.write(f"\n  {source_settings.name} ({source_settings.kind})")
            try:
                source = registry.instantiate(source_settings)
                ok, msg = source.validate_connection()
            except InventoryError as exc:
                self.stdout.write(self.style.ERROR(f"    ✗ {exc}"))
                continue
            if ok:
                self.stdout.write(self.style.SUCCESS(f"    ✓ {msg}"))
            else:
                self.stdout.write(self.style.ERROR(f"    ✗ {msg}"))
