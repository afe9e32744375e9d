"""Source plugin registry -- discovery, loading, and instantiation.

The registry supports three loading mechanisms:

1. **Built-in sources** -- ``kubernetes``, ``proxmox`` and ``static``
   from this package, registered on first discovery.

2. **Entry-point sources** (for pip-installed packages)::

       # In a third-party pyproject.toml:
       [project.entry-points."inventory_sources"]
       docker = "my_package.source:DockerSource"

3. **Runtime registration** -- programmatic via ``registry.register()``

This module has no Django dependency. The inventory app calls
``registry.apply_filter()`` with its settings and then
``registry.build_sources()`` with the configured source instances.
"""
from __future__ import annotations

import importlib
import logging
from typing import Any, Iterable, Type

from .base import BaseSource, Snapshot, SourceSettings
from .errors import SourceConfigurationError

logger = logging.getLogger("inventory_sources.registry")

# Entry point group name -- external packages register under this group
ENTRY_POINT_GROUP = "inventory_sources"

BUILTIN_MODULES = (
    "inventory_sources.kubernetes",
    "inventory_sources.proxmox",
    "inventory_sources.static",
)


class MisconfiguredSource(BaseSource):
    """
    Placeholder for a configured source that could not be built.

    Keeps the source's name in the cycle: ``discover()`` raises the
    build error every time it is called.
    """

    kind = "misconfigured"
    display_name = "Misconfigured source"

    def __init__(self, settings: SourceSettings, error: SourceConfigurationError):
        super().__init__(settings)
        self.error = error

    def discover(self) -> Snapshot:
        raise self.error


class SourceRegistry:
    """Registry of source classes keyed by ``kind``."""

    def __init__(self):
        self._sources: dict[str, Type[BaseSource]] = {}
        self._discovered = False

    @property
    def sources(self) -> dict[str, Type[BaseSource]]:
        if not self._discovered:
            self.discover()
        return dict(self._sources)

    # ── Registration ──────────────────────────────────────────────────

    def register(self, source_class: Type[BaseSource]) -> None:
        """
        Register a source class.

        Raises:
            TypeError: If not a BaseSource subclass.
            ValueError: If ``kind`` is missing.
        """
        if not isinstance(source_class, type) or not issubclass(source_class, BaseSource):
            raise TypeError(f"{source_class} is not a BaseSource subclass")

        if not source_class.kind:
            raise ValueError(f"{source_class.__name__} must set the 'kind' class attribute")

        existing = self._sources.get(source_class.kind)
        if existing is not None and existing is not source_class:
            logger.warning(
                "Replacing source %s: %s → %s",
                source_class.kind,
                existing.__name__,
                source_class.__name__,
            )

        self._sources[source_class.kind] = source_class
        logger.info("Registered source: %s (%s)", source_class.kind, source_class.__name__)

    def unregister(self, kind: str) -> bool:
        """Remove a source kind from the registry. Returns True if it existed."""
        if kind in self._sources:
            del self._sources[kind]
            logger.info("Unregistered source: %s", kind)
            return True
        return False

    # ── Discovery ─────────────────────────────────────────────────────

    def discover(self) -> None:
        """
        Load the built-in sources and any entry-point sources.

        Called automatically on first access to ``.sources``.
        Safe to call multiple times.
        """
        if self._discovered:
            return

        for module_path in BUILTIN_MODULES:
            self.load_module(importlib.import_module(module_path))
        self._discover_entrypoints()
        self._discovered = True

        logger.info(
            "Source discovery complete: %d sources — %s",
            len(self._sources),
            ", ".join(sorted(self._sources)) or "(none)",
        )

    def _discover_entrypoints(self) -> None:
        """Load sources from the ``inventory_sources`` entry point group."""
        from importlib.metadata import entry_points

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                obj = ep.load()
                if isinstance(obj, type) and issubclass(obj, BaseSource):
                    self.register(obj)
                    logger.info("Loaded entry-point source: %s → %s", ep.name, obj.__name__)
                elif hasattr(obj, "__file__"):
                    self.load_module(obj)
                else:
                    logger.warning(
                        "Entry point %s resolved to %s which is not a BaseSource subclass",
                        ep.name,
                        obj,
                    )
            except Exception:
                logger.exception("Failed to load entry-point source: %s", ep.name)

    def load_module(self, module) -> int:
        """
        Scan a Python module for BaseSource subclasses and register them.

        Returns:
            Number of sources registered from this module.
        """
        count = 0
        for attr_name in dir(module):
            obj = getattr(module, attr_name)
            if (
                isinstance(obj, type)
                and issubclass(obj, BaseSource)
                and obj is not BaseSource
                and obj.kind
                and obj.__module__ == module.__name__
            ):
                self.register(obj)
                count += 1
        return count

    # ── Filtering (called by app layer with Django settings) ──────────

    def apply_filter(
        self,
        enabled: list[str] | None = None,
        disabled: list[str] | None = None,
    ) -> None:
        """
        Filter registered sources by whitelist / blacklist of kinds.

        Args:
            enabled: If set, only these kinds are kept (whitelist).
            disabled: These kinds are removed (blacklist).
        """
        _ = self.sources

        if enabled:
            enabled_set = set(enabled)
            for kind in [k for k in self._sources if k not in enabled_set]:
                del self._sources[kind]
                logger.info("Source %s filtered out (not in enabled list)", kind)

        if disabled:
            for kind in disabled:
                if kind in self._sources:
                    del self._sources[kind]
                    logger.info("Source %s disabled via disabled list", kind)

    # ── Lookup ────────────────────────────────────────────────────────

    def get(self, kind: str) -> Type[BaseSource] | None:
        return self.sources.get(kind)

    def list_sources(self) -> list[dict[str, Any]]:
        """Return metadata about all registered source classes."""
        return [cls.metadata() for _, cls in sorted(self.sources.items())]

    def instantiate(self, settings: SourceSettings) -> BaseSource:
        """
        Create the source instance for one configured source.

        Raises:
            SourceConfigurationError: If no source class matches the kind,
                or the source rejects its config.
        """
        cls = self.get(settings.kind)
        if cls is None:
            available = ", ".join(sorted(self._sources)) or "(none)"
            raise SourceConfigurationError(
                f"No source registered for kind {settings.kind!r} "
                f"(source {settings.name!r}). Available: {available}"
            )
        try:
            return cls(settings)
        except (TypeError, ValueError) as exc:
            raise SourceConfigurationError(f"Invalid config for source {settings.name!r}: {exc}") from exc

    def build_sources(
        self,
        configs: Iterable[dict[str, Any] | SourceSettings],
        strict: bool = True,
    ) -> list[BaseSource]:
        """
        Instantiate every enabled configured source.

        Source names must be unique: they label failures and log lines.

        With ``strict=False`` a source that cannot be built is replaced by a
        ``MisconfiguredSource`` carrying the error, so the remaining sources
        still run. Otherwise the first error is raised.
        """
        built: list[BaseSource] = []
        names: set[str] = set()
        for item in configs:
            settings = item if isinstance(item, SourceSettings) else SourceSettings.from_dict(item)
            if not settings.enabled:
                logger.info("Source %s (%s) is disabled — skipping", settings.name, settings.kind)
                continue
            try:
                if settings.name in names:
                    raise SourceConfigurationError(f"Duplicate source name {settings.name!r}")
                built.append(self.instantiate(settings))
            except SourceConfigurationError as exc:
                if strict:
                    raise
                logger.error("Source %s (%s) is misconfigured: %s", settings.name, settings.kind, exc)
                built.append(MisconfiguredSource(settings, exc))
            names.add(settings.name)
        return built

    # ── Utility ───────────────────────────────────────────────────────

    def reset(self) -> None:
        """Clear the registry. Primarily for testing."""
        self._sources.clear()
        self._discovered = False


# Module-level singleton
registry = SourceRegistry()
