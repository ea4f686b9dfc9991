# netmap/core/identifiers.py
"""
Identifier helpers for topology objects.
Node and endpoint ids are random (uuid4); connection ids are derived from
the wiring so that the same pair of endpoints always maps to the same key.
"""
from typing import Dict, Optional
from uuid import uuid4


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Return a new collision-resistant identifier.
    With a prefix the id reads ``<prefix>-<hex>``.
    """
    ident = uuid4().hex
    if prefix:
        return f"{prefix}-{ident}"
    return ident


def connection_key(node_a: str, iface_a: str, node_b: str, iface_b: str) -> str:
    """
    Canonical key for a connection between two endpoints.

    Node ids and interface names are sorted independently, so the key does
    not depend on which side is called source and which target.
    """
    n1, n2 = sorted([node_a, node_b])
    i1, i2 = sorted([iface_a, iface_b])
    return f"connection:{n1}:{n2}:{i1}:{i2}"


class NodeNamer:
    """Hands out default node names of the form ``<device_type>-<n>``."""

    def __init__(self) -> None:
        self._counts: Dict[str, int] = {}

    def next_name(self, device_type: str) -> str:
        count = self._counts.get(device_type, 0) + 1
        self._counts[device_type] = count
        return f"{device_type}-{count}"

    def reset(self) -> None:
        self._counts.clear()
