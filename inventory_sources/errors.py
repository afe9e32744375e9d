"""Error taxonomy for discovery and reconciliation.

Callers react differently depending on where a failure happened:

    SourceUnavailable       -- one source produced nothing this cycle; the
                               cycle carries on without it.
    PartialDiscoveryFailure -- a sub-resource (namespace, node) failed; the
                               source still returns what it could read.
                               This is a record, never raised.
    PersistenceFailure      -- the store rejected or timed out a write; the
                               whole cycle rolls back.
    SourceConfigurationError -- a configured source could not be built; the
                               cycle carries on without it.
    SchedulerBusy           -- a trigger arrived while a cycle was running.

Every error names the ``stage`` it failed in: configure, discover, store, or
cycle for anything else.

Identity collisions are not detected at runtime. Each source owns the design
of its natural keys and must prefix them with a discriminator so two sources
can never produce the same key.
"""
from __future__ import annotations

from dataclasses import dataclass


class InventoryError(Exception):
    """Base class for all inventory service exceptions."""

    stage = "cycle"


class SourceUnavailable(InventoryError):
    """Raised when a source's discovery call fails entirely."""

    stage = "discover"

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


# The contract name used by source authors.
DiscoveryError = SourceUnavailable


class SourceConfigurationError(InventoryError):
    """Raised when a configured source is incomplete or names an unknown kind."""

    stage = "configure"


class PersistenceFailure(InventoryError):
    """Raised when the store rejects or times out a write during a cycle."""

    def __init__(self, operation: str, message: str, stage: str = "store"):
        super().__init__(f"{stage} {operation} failed: {message}")
        self.stage = stage
        self.operation = operation
        self.message = message


class SchedulerBusy(InventoryError):
    """Raised when a reconciliation cycle is already running."""


@dataclass(frozen=True)
class PartialDiscoveryFailure:
    """A sub-resource of a source that could not be read this cycle."""

    resource: str
    error: str

    def as_dict(self) -> dict[str, str]:
        return {"resource": self.resource, "error": self.error}
