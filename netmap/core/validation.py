# netmap/core/validation.py
"""
Connection rules for netmap.

`can_connect` decides whether two endpoints may be wired together without
touching the topology. `validate_topology` audits a whole store against the
integrity rules and raises TopologyError listing every violation found.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from netmap.core.config import TopologyConfig
from netmap.core.exceptions import TopologyError
from netmap.core.identifiers import connection_key
from netmap.core.topology.endpoint import Endpoint
from netmap.core.topology.store import TopologyStore

EndpointLike = Union[Endpoint, Mapping[str, Any]]
TypeStrategy = Callable[[Endpoint, TopologyStore], Optional[str]]


class RejectReason(Enum):
    MISSING_NODE_ID = "missing_node_id"
    UNKNOWN_NODE = "unknown_node"
    UNKNOWN_ENDPOINT = "unknown_endpoint"
    ENDPOINT_IN_USE = "endpoint_in_use"
    TYPE_UNDETERMINED = "type_undetermined"
    SELF_CONNECTION = "self_connection"
    INCOMPATIBLE_TYPES = "incompatible_types"
    DUPLICATE_CONNECTION = "duplicate_connection"


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[RejectReason] = None
    message: str = ""
    source_type: Optional[str] = None
    target_type: Optional[str] = None
    key: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


def _reject(reason: RejectReason, message: str, **kwargs) -> ValidationResult:
    return ValidationResult(False, reason, message, **kwargs)


# ---------------------------------------------------------------------------
# Interface type resolution. Order matters: earlier strategies win.
# ---------------------------------------------------------------------------

def explicit_type(endpoint: Endpoint, store: TopologyStore) -> Optional[str]:
    return endpoint.type


def explicit_interface_type(endpoint: Endpoint, store: TopologyStore) -> Optional[str]:
    return endpoint.interface_type


def type_from_name(endpoint: Endpoint, store: TopologyStore) -> Optional[str]:
    """GigabitEthernet0/0 -> ethernet, Serial0/1/0 -> serial."""
    name = (endpoint.name or "").lower()
    if "ethernet" in name:
        return "ethernet"
    if "serial" in name:
        return "serial"
    return None


def type_from_node_interfaces(endpoint: Endpoint, store: TopologyStore) -> Optional[str]:
    node = store.get_node(endpoint.node_id) if endpoint.node_id else None
    if node is None:
        return None
    declared = node.declared_interface(endpoint.name)
    return declared.get("type") if declared else None


TYPE_STRATEGIES: Sequence[TypeStrategy] = (
    explicit_type,
    explicit_interface_type,
    type_from_name,
    type_from_node_interfaces,
)


def resolve_endpoint_type(endpoint: Endpoint, store: TopologyStore,
                          strategies: Sequence[TypeStrategy] = TYPE_STRATEGIES) -> Optional[str]:
    """Return the normalized (trimmed, lower-case) interface type, or None."""
    for strategy in strategies:
        value = strategy(endpoint, store)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
    return None


# ---------------------------------------------------------------------------
# Connection decision
# ---------------------------------------------------------------------------

def can_connect(source: EndpointLike, target: EndpointLike, store: TopologyStore,
                config: Optional[TopologyConfig] = None) -> ValidationResult:
    """
    Decide whether ``source`` and ``target`` may be connected.

    Endpoints are matched by (node id, name) against the store, and type
    resolution runs on the stored endpoints. The function has no side
    effects, so repeated calls against an unchanged store agree.

    Returns:
        A ValidationResult; falsy results carry the RejectReason.
    """
    config = config or TopologyConfig()
    src = Endpoint.coerce(source)
    tgt = Endpoint.coerce(target)

    for side, ep in (("Source", src), ("Target", tgt)):
        if not ep.node_id:
            return _reject(RejectReason.MISSING_NODE_ID,
                           f"{side} endpoint '{ep.name}' has no node id")

    resolved: Dict[str, Endpoint] = {}
    for side, ep in (("Source", src), ("Target", tgt)):
        node = store.get_node(ep.node_id)
        if node is None:
            return _reject(RejectReason.UNKNOWN_NODE, f"{side} node '{ep.node_id}' does not exist")
        stored = node.find_endpoint(ep.name)
        if stored is None:
            return _reject(RejectReason.UNKNOWN_ENDPOINT,
                           f"{side} node '{node.name}' has no interface '{ep.name}'")
        resolved[side] = stored

    for side, ep in resolved.items():
        in_use = store.connections_for_endpoint(ep.node_id, ep.name)
        if len(in_use) >= config.max_connections_per_endpoint:
            return _reject(RejectReason.ENDPOINT_IN_USE,
                           f"{side} interface '{ep.name}' on node '{ep.node_id}' is already in use")

    src_ep, tgt_ep = resolved["Source"], resolved["Target"]
    source_type = resolve_endpoint_type(src_ep, store)
    target_type = resolve_endpoint_type(tgt_ep, store)
    if not source_type or not target_type:
        return _reject(RejectReason.TYPE_UNDETERMINED, "Unable to determine interface types",
                       source_type=source_type, target_type=target_type)

    if src_ep.node_id == tgt_ep.node_id:
        return _reject(RejectReason.SELF_CONNECTION, "A node cannot be connected to itself",
                       source_type=source_type, target_type=target_type)

    allowed = config.allowed_targets(source_type)
    if target_type not in allowed:
        return _reject(RejectReason.INCOMPATIBLE_TYPES,
                       f"Interfaces of type '{source_type}' cannot connect to '{target_type}'",
                       source_type=source_type, target_type=target_type)

    key = connection_key(src_ep.node_id, src_ep.name, tgt_ep.node_id, tgt_ep.name)
    if store.find_by_key(key) is not None:
        return _reject(RejectReason.DUPLICATE_CONNECTION, "This interface connection already exists",
                       source_type=source_type, target_type=target_type, key=key)

    return ValidationResult(True, source_type=source_type, target_type=target_type, key=key)


# ---------------------------------------------------------------------------
# Whole-topology audit
# ---------------------------------------------------------------------------

def validate_topology(store: TopologyStore, config: Optional[TopologyConfig] = None) -> None:
    """
    Check every integrity rule over the whole store.

    Raises:
        TopologyError with a descriptive message if any rule is broken.
    """
    config = config or TopologyConfig()
    errors: List[str] = []

    for node in store.all_nodes():
        names = [ep.name for ep in node.endpoints]
        if len(names) != len(set(names)):
            errors.append(f"Node '{node.name}' has duplicate interface names.")
        if not store.graph.has_node(node.id):
            errors.append(f"Graph inconsistency: node '{node.id}' missing from topology graph.")

    usage: Dict[tuple, int] = {}
    keys: Dict[str, str] = {}
    for conn in store.all_connections():
        if conn.source_node == conn.target_node:
            errors.append(f"Self-connection detected on node '{conn.source_node}'.")
        endpoints = []
        for node_id, ref in ((conn.source_node, conn.source_interface),
                             (conn.target_node, conn.target_interface)):
            node = store.get_node(node_id)
            if node is None:
                errors.append(f"Connection '{conn.id}' refers to unknown node '{node_id}'.")
                continue
            ep = node.find_endpoint(ref.name)
            if ep is None:
                errors.append(f"Connection '{conn.id}' refers to unknown interface '{ref.name}' on '{node_id}'.")
                continue
            endpoints.append(ep)
            usage[(node_id, ref.name)] = usage.get((node_id, ref.name), 0) + 1

        if conn.key in keys:
            errors.append(f"Connections '{keys[conn.key]}' and '{conn.id}' wire the same interfaces.")
        keys.setdefault(conn.key, conn.id)

        if len(endpoints) == 2:
            src_type = resolve_endpoint_type(endpoints[0], store)
            tgt_type = resolve_endpoint_type(endpoints[1], store)
            if not src_type or not tgt_type or tgt_type not in config.allowed_targets(src_type):
                errors.append(f"Connection '{conn.id}' joins incompatible types '{src_type}' and '{tgt_type}'.")

    for (node_id, name), count in usage.items():
        if count > config.max_connections_per_endpoint:
            errors.append(f"Interface '{name}' on node '{node_id}' is used by {count} connections.")

    if errors:
        raise TopologyError("Topology validation failed: " + "; ".join(errors))
