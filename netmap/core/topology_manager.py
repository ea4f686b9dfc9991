# netmap/core/topology_manager.py
"""
TopologyManager: the single entry point through which the editor changes a
topology. It validates requests, writes to its TopologyStore, tells
subscribers what changed and converts the topology to and from documents.

Rule violations a user can fix (duplicate wiring, incompatible interfaces,
unknown ids) are answered with None/False. Only inputs that could not have come
from a correct caller, such as a node without an id, raise ContractError.
"""
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

import networkx as nx

from netmap.core import serializer
from netmap.core.config import TopologyConfig
from netmap.core.events import EventBus, Topic
from netmap.core.exceptions import ContractError, DocumentError
from netmap.core.history import Action, HistoryManager
from netmap.core.identifiers import NodeNamer, generate_id
from netmap.core.topology.connection import Connection, InterfaceRef
from netmap.core.topology.endpoint import Endpoint
from netmap.core.topology.node import Node, Position, Size
from netmap.core.topology.store import TopologyStore, UIState
from netmap.core.validation import ValidationResult, can_connect
from netmap.utils.logging_config import get_logger

logger = get_logger(__name__)

NodeRef = Union[Node, str, Mapping[str, Any]]
EndpointRef = Union[Endpoint, str, Mapping[str, Any]]


class TopologyManager:
    """
    Manages nodes, endpoints and connections of one topology.

    Args:
        store: Store to operate on; a fresh one is created when omitted.
        events: Event bus used for change notifications.
        config: Connection rules and editor defaults.
        history: When given, every mutation is recorded as an undoable action.
    """
    def __init__(self, store: Optional[TopologyStore] = None, events: Optional[EventBus] = None,
                 config: Optional[TopologyConfig] = None, history: Optional[HistoryManager] = None):
        self.store = store if store is not None else TopologyStore()
        self.events = events if events is not None else EventBus()
        self.config = config or TopologyConfig()
        self.history = history
        self._namer = NodeNamer()
        self._replaying = False

    @classmethod
    def with_history(cls, config: Optional[TopologyConfig] = None) -> "TopologyManager":
        """Manager recording undoable actions, bounded by ``config.history_size``."""
        config = config or TopologyConfig()
        return cls(config=config, history=HistoryManager(config.history_size))

    # -- subscriptions -----------------------------------------------------

    def on(self, topic: Union[Topic, str], handler: Callable[[Any], None]) -> "TopologyManager":
        self.events.on(topic, handler)
        return self

    def off(self, topic: Union[Topic, str], handler: Callable[[Any], None]) -> "TopologyManager":
        self.events.off(topic, handler)
        return self

    # -- nodes -------------------------------------------------------------

    def add_node(self, spec: Union[Node, Mapping[str, Any]]) -> Node:
        """
        Insert a node built from ``spec`` and emit ``nodeAdded``.

        Endpoints listed in the spec receive generated ids (unless they
        carry one), the new node's id as ``node_id`` and their name as
        ``original_name``.

        Raises:
            ContractError: If name or type is empty, an endpoint has no
                name, endpoint names repeat, or the id is already taken.
        """
        node = self._build_node(spec)
        if self.store.has_node(node.id):
            raise ContractError(f"Node '{node.id}' already exists.")
        if any(other.name == node.name for other in self.store.all_nodes()):
            logger.warning("Another node is already named '%s'", node.name)

        self.store.put_node(node)
        logger.debug("Node added: %s (%s) with %d endpoints", node.name, node.id, len(node.endpoints))
        self.events.emit(Topic.NODE_ADDED, node)
        self._record(f"Add node {node.name}",
                     execute=lambda: self._restore(node, ()),
                     undo=lambda: self.remove_node(node.id))
        return node

    def remove_node(self, node_id: str) -> Optional[Node]:
        """
        Remove a node and every connection touching it.

        ``connectionRemoved`` is emitted for each dropped connection, then
        ``nodeRemoved``. Events fire only after the store has been fully
        updated. Returns None, changing nothing, if the node is unknown.
        """
        node, removed = self.store.delete_node(node_id)
        if node is None:
            logger.debug("remove_node: node '%s' does not exist", node_id)
            return None
        logger.debug("Node removed: %s (%s), %d connections dropped", node.name, node_id, len(removed))
        for conn in removed:
            self.events.emit(Topic.CONNECTION_REMOVED, conn)
        self.events.emit(Topic.NODE_REMOVED, node)
        self._record(f"Remove node {node.name}",
                     execute=lambda: self.remove_node(node.id),
                     undo=lambda: self._restore(node, removed))
        return node

    def move_node(self, node_id: str, x: float, y: float, snap: bool = True) -> Optional[Node]:
        """Move a node, snapping to the configured grid unless ``snap`` is False."""
        node = self.store.get_node(node_id)
        if node is None:
            return None
        if snap:
            grid = self.config.grid_size
            x = round(x / grid) * grid
            y = round(y / grid) * grid
        old_x, old_y = node.position.x, node.position.y
        node.position = Position(x, y)
        self.events.emit(Topic.NODE_MOVED, node)
        self._record(f"Move node {node.name}",
                     execute=lambda: self.move_node(node_id, x, y, snap=False),
                     undo=lambda: self.move_node(node_id, old_x, old_y, snap=False))
        return node

    def next_node_name(self, device_type: str) -> str:
        """Default name for a new node of ``device_type``: router-1, router-2, ..."""
        return self._namer.next_name(device_type)

    # -- connections -------------------------------------------------------

    def can_connect(self, source: EndpointRef, target: EndpointRef) -> ValidationResult:
        return can_connect(self._endpoint(source), self._endpoint(target), self.store, self.config)

    def create_connection(self, source_node: NodeRef, target_node: NodeRef,
                          source_endpoint: EndpointRef, target_endpoint: EndpointRef) -> Optional[Connection]:
        """
        Wire ``source_endpoint`` on ``source_node`` to ``target_endpoint``
        on ``target_node``.

        Endpoints may be given as Endpoint objects, mappings or plain
        interface names. A rejected request emits ``connectionRejected``
        with the ValidationResult and returns None.

        Raises:
            ContractError: If a node reference carries no id or an endpoint
                has no name.
        """
        src_id = self._node_id(source_node)
        tgt_id = self._node_id(target_node)
        src = self._endpoint(source_endpoint, src_id)
        tgt = self._endpoint(target_endpoint, tgt_id)

        result = can_connect(src, tgt, self.store, self.config)
        if not result:
            logger.warning("Connection %s.%s -> %s.%s rejected (%s): %s",
                           src_id, src.name, tgt_id, tgt.name, result.reason.value, result.message)
            self.events.emit(Topic.CONNECTION_REJECTED, result)
            return None

        conn = Connection(
            id=result.key,
            source_node=src_id,
            target_node=tgt_id,
            source_interface=InterfaceRef(src.name, result.source_type),
            target_interface=InterfaceRef(tgt.name, result.target_type),
        )
        self.store.put_connection(conn)
        logger.debug("Connection created: %s", conn.id)
        self.events.emit(Topic.CONNECTION_ADDED, conn)
        self._record(f"Connect {src_id}.{src.name} to {tgt_id}.{tgt.name}",
                     execute=lambda: self._restore(None, [conn]),
                     undo=lambda: self.remove_connection(conn.id))
        return conn

    def remove_connection(self, connection_id: str) -> Optional[Connection]:
        conn = self.store.delete_connection(connection_id)
        if conn is None:
            return None
        logger.debug("Connection removed: %s", connection_id)
        self.events.emit(Topic.CONNECTION_REMOVED, conn)
        self._record(f"Disconnect {connection_id}",
                     execute=lambda: self.remove_connection(connection_id),
                     undo=lambda: self._restore(None, [conn]))
        return conn

    # -- whole topology ----------------------------------------------------

    def reset_topology(self) -> None:
        """Clear everything. Emits a single ``topologyReset`` and drops undo history."""
        self.store.reset()
        if self.history is not None:
            self.history.clear()
        logger.debug("Topology reset")
        self.events.emit(Topic.TOPOLOGY_RESET, None)

    def serialize(self) -> Dict[str, Any]:
        return serializer.to_document(self.store, self.config.document_version)

    def deserialize(self, document: Union[Mapping[str, Any], str]) -> bool:
        """
        Replace the current topology with the one described by ``document``.

        A document without ``nodes`` or ``connections`` (or with a malformed
        node entry) is rejected and the current topology is left untouched.
        Connections that reference missing nodes or would break a wiring
        rule are skipped with a warning.

        Returns:
            True if the document was loaded.
        """
        try:
            if isinstance(document, str):
                document = serializer.loads(document)
            doc = serializer.validate_document(document)
            nodes = serializer.parse_nodes(doc, self.config.default_node_size)
            ui_state = serializer.parse_ui_state(doc)
        except DocumentError as exc:
            logger.error("Invalid topology document: %s", exc)
            return False

        self.store.reset()
        for node in nodes:
            self.store.put_node(node)

        skipped: List[str] = []
        for conn_id, data in doc["connections"].items():
            try:
                conn = serializer.parse_connection(conn_id, data)
            except DocumentError as exc:
                logger.warning("Skipping connection: %s", exc)
                skipped.append(conn_id)
                continue
            if not self.store.has_node(conn.source_node) or not self.store.has_node(conn.target_node):
                logger.warning("Skipping connection '%s' due to missing nodes (%s, %s)",
                               conn_id, conn.source_node, conn.target_node)
                skipped.append(conn_id)
                continue
            result = self._check_existing(conn)
            if not result:
                logger.warning("Skipping connection '%s': %s", conn_id, result.message)
                skipped.append(conn_id)
                continue
            self.store.put_connection(conn)

        self.store.ui_state = ui_state
        if self.history is not None:
            self.history.clear()
        logger.info("Topology loaded: %d nodes, %d connections, %d skipped",
                    len(self.store.nodes), len(self.store.connections), len(skipped))
        self.events.emit(Topic.TOPOLOGY_LOADED, {
            "nodes": list(self.store.nodes),
            "connections": list(self.store.connections),
            "skipped": skipped,
            "uiState": ui_state,
        })
        return True

    # -- queries -----------------------------------------------------------

    @property
    def ui_state(self) -> UIState:
        return self.store.ui_state

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.store.get_node(node_id)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self.store.get_connection(connection_id)

    def get_all_nodes(self) -> List[Node]:
        return self.store.all_nodes()

    def get_all_connections(self) -> List[Connection]:
        return self.store.all_connections()

    def get_all_endpoints(self) -> List[Endpoint]:
        return self.store.all_endpoints()

    def get_node_connections(self, node_id: str) -> List[Connection]:
        return self.store.connections_for_node(node_id)

    def is_endpoint_available(self, endpoint: EndpointRef) -> bool:
        ep = self._endpoint(endpoint)
        if not ep.node_id:
            logger.warning("Endpoint availability check on '%s' without node id", ep.name)
            return False
        in_use = self.store.connections_for_endpoint(ep.node_id, ep.name)
        return len(in_use) < self.config.max_connections_per_endpoint

    def get_available_endpoints(self, node_id: str) -> List[Endpoint]:
        node = self.store.get_node(node_id)
        if node is None:
            logger.warning("Available endpoints requested for unknown node '%s'", node_id)
            return []
        return [ep for ep in node.endpoints if self.is_endpoint_available(ep)]

    def get_statistics(self) -> Dict[str, int]:
        return {
            "totalNodes": len(self.store.nodes),
            "totalConnections": len(self.store.connections),
            "totalEndpoints": sum(len(node.endpoints) for node in self.store.nodes.values()),
        }

    def get_connectivity(self) -> Dict[str, Any]:
        """Number of connected islands and the ids of nodes with no wiring."""
        graph = self.store.graph
        return {
            "components": nx.number_connected_components(graph) if graph.number_of_nodes() else 0,
            "isolatedNodes": sorted(nx.isolates(graph)),
        }

    # -- helpers -----------------------------------------------------------

    def _build_node(self, spec: Union[Node, Mapping[str, Any]]) -> Node:
        data = dict(spec.to_dict() if isinstance(spec, Node) else spec)
        for key in ("name", "type"):
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ContractError(f"Node requires a non-empty '{key}'.")
        node_id = data.get("id") or generate_id("node")
        data["id"] = node_id
        for key in ("position", "size"):
            if isinstance(data.get(key), (Position, Size)):
                data[key] = data[key].to_dict()
        if "position" not in data and ("x" in data or "y" in data):
            data["position"] = {"x": data.pop("x", 0), "y": data.pop("y", 0)}

        endpoints = []
        seen = set()
        taken_ids = {ep.id for ep in self.store.all_endpoints()}
        for raw in data.get("endpoints") or []:
            if isinstance(raw, str):
                raw = {"name": raw}
            elif not isinstance(raw, (Endpoint, Mapping)):
                raise ContractError(f"Endpoint {raw!r} on node '{data['name']}' is not a name or mapping.")
            ep = Endpoint.coerce(raw, node_id=node_id)
            if not ep.name:
                raise ContractError(f"Endpoint on node '{data['name']}' has no name.")
            if ep.name in seen:
                raise ContractError(f"Node '{data['name']}' declares interface '{ep.name}' twice.")
            seen.add(ep.name)
            ep_data = ep.to_dict()
            # endpoint ids are unique across the topology; copies get fresh ones
            if ep_data["id"] in taken_ids:
                ep_data["id"] = generate_id("ep")
            taken_ids.add(ep_data["id"])
            endpoints.append(ep_data)
        data["endpoints"] = endpoints
        return Node.from_dict(data, default_size=self.config.default_node_size)

    @staticmethod
    def _node_id(node: NodeRef) -> str:
        if isinstance(node, Node):
            node_id = node.id
        elif isinstance(node, str):
            node_id = node
        elif isinstance(node, Mapping):
            node_id = node.get("id")
        else:
            node_id = None
        if not node_id:
            raise ContractError(f"Node reference {node!r} has no id.")
        return node_id

    @staticmethod
    def _endpoint(endpoint: EndpointRef, node_id: Optional[str] = None) -> Endpoint:
        if isinstance(endpoint, str):
            endpoint = {"name": endpoint}
        ep = Endpoint.coerce(endpoint, node_id=node_id)
        if not ep.name:
            raise ContractError(f"Endpoint {endpoint!r} has no name.")
        return ep

    def _check_existing(self, conn: Connection) -> ValidationResult:
        return can_connect(
            Endpoint(name=conn.source_interface.name, node_id=conn.source_node),
            Endpoint(name=conn.target_interface.name, node_id=conn.target_node),
            self.store, self.config)

    def _restore(self, node: Optional[Node], connections: Iterable[Connection]) -> None:
        """Put back a node and/or connections removed earlier (undo/redo)."""
        if node is not None and not self.store.has_node(node.id):
            self.store.put_node(node)
            self.events.emit(Topic.NODE_ADDED, node)
        for conn in connections:
            result = self._check_existing(conn)
            if not result:
                logger.warning("Cannot restore connection '%s': %s", conn.id, result.message)
                continue
            self.store.put_connection(conn)
            self.events.emit(Topic.CONNECTION_ADDED, conn)

    def _record(self, description: str, execute: Callable[[], Any], undo: Callable[[], Any]) -> None:
        if self.history is None or self._replaying:
            return
        self.history.add_action(Action(self._replayed(execute), self._replayed(undo), description))

    def _replayed(self, fn: Callable[[], Any]) -> Callable[[], Any]:
        def run():
            self._replaying = True
            try:
                return fn()
            finally:
                self._replaying = False
        return run
