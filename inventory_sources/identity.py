"""Deterministic identity for discovered entities.

Every Host and Workload id is derived from a *natural key*: a string that
names one real-world entity within one source, e.g.
``"proxmox-node:homelab:pve"`` or ``"k8s-pod:prod:default/web-0"``.

The derivation is a SHA-1 digest of the UTF-8 key, truncated to 128 bits,
with the version nibble set to 5 and the RFC 4122 variant bits set, so the
result is a well-formed UUID. The hash is used for determinism and collision
resistance only.

``assign_id`` does no normalization. Sources must hand it an already
canonical key: stripped, consistently cased, with no CIDR suffixes and no
DHCP-leased addresses in it.
"""
from __future__ import annotations

import hashlib
import uuid

KEY_SEPARATOR = ":"


def assign_id(natural_key: str) -> uuid.UUID:
    """Return the stable id for ``natural_key``."""
    if not isinstance(natural_key, str):
        raise TypeError(f"natural key must be a str, got {type(natural_key).__name__}")
    if not natural_key:
        raise ValueError("natural key must not be empty")
    digest = hashlib.sha1(natural_key.encode("utf-8")).digest()
    return uuid.UUID(bytes=digest[:16], version=5)


def natural_key(*parts: object) -> str:
    """
    Join key parts with ``:``.

    Parts are converted with ``str()`` and must be non-empty. Whitespace is
    rejected rather than stripped; canonicalizing a part is the caller's job.

    Example::

        natural_key("proxmox-node", "homelab", "pve")  # "proxmox-node:homelab:pve"
    """
    if not parts:
        raise ValueError("natural key needs at least one part")
    rendered = []
    for part in parts:
        text = str(part)
        if not text or text != text.strip():
            raise ValueError(f"natural key part {text!r} is empty or has surrounding whitespace")
        rendered.append(text)
    return KEY_SEPARATOR.join(rendered)


def strip_cidr(address: str) -> str:
    """Drop a ``/prefix`` suffix: ``"10.0.0.5/24"`` -> ``"10.0.0.5"``."""
    return address.split("/", 1)[0].strip()
