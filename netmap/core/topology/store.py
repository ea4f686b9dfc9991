# netmap/core/topology/store.py
"""
In-memory storage for a topology: nodes, connections and the opaque UI state
that travels with them. The store performs no validation of its own; its only
caller is the TopologyManager, which validates before writing.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import networkx as nx

from netmap.core.topology.connection import Connection
from netmap.core.topology.endpoint import Endpoint
from netmap.core.topology.node import Node


@dataclass
class UIState:
    theme: Optional[str] = None
    zoom_level: Optional[float] = None
    pan_position: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"theme": self.theme, "zoomLevel": self.zoom_level, "panPosition": self.pan_position}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UIState":
        data = data or {}
        return cls(data.get("theme"), data.get("zoomLevel"), data.get("panPosition"))


class TopologyStore:
    """
    Holds the canonical topology.

    Adjacency lives in a networkx MultiGraph whose nodes are node ids and
    whose edges are keyed by connection id, so the connections touching a
    node are found without scanning every connection.
    """
    def __init__(self):
        self.nodes: Dict[str, Node] = {}
        self.connections: Dict[str, Connection] = {}
        self.graph = nx.MultiGraph()
        self.ui_state = UIState()
        # canonical connection key -> connection id
        self._keys: Dict[str, str] = {}

    # -- nodes -----------------------------------------------------------

    def put_node(self, node: Node) -> None:
        self.nodes[node.id] = node
        self.graph.add_node(node.id)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def delete_node(self, node_id: str) -> Tuple[Optional[Node], List[Connection]]:
        """
        Remove a node together with every connection touching it.
        Returns the removed node (or None) and the removed connections.
        """
        node = self.nodes.pop(node_id, None)
        if node is None:
            return None, []
        removed = [self.delete_connection(conn.id) for conn in self.connections_for_node(node_id)]
        if self.graph.has_node(node_id):
            self.graph.remove_node(node_id)
        return node, [c for c in removed if c is not None]

    def all_nodes(self) -> List[Node]:
        return list(self.nodes.values())

    # -- connections -----------------------------------------------------

    def put_connection(self, conn: Connection) -> None:
        self.connections[conn.id] = conn
        self.graph.add_edge(conn.source_node, conn.target_node, key=conn.id)
        self._keys[conn.key] = conn.id

    def get_connection(self, conn_id: str) -> Optional[Connection]:
        return self.connections.get(conn_id)

    def delete_connection(self, conn_id: str) -> Optional[Connection]:
        conn = self.connections.pop(conn_id, None)
        if conn is None:
            return None
        if self.graph.has_edge(conn.source_node, conn.target_node, key=conn_id):
            self.graph.remove_edge(conn.source_node, conn.target_node, key=conn_id)
        if self._keys.get(conn.key) == conn_id:
            del self._keys[conn.key]
        return conn

    def find_by_key(self, key: str) -> Optional[Connection]:
        conn_id = self._keys.get(key)
        return self.connections.get(conn_id) if conn_id else None

    def connections_for_node(self, node_id: str) -> List[Connection]:
        if not self.graph.has_node(node_id):
            return []
        seen = set()
        result = []
        for _, _, conn_id in self.graph.edges(node_id, keys=True):
            if conn_id not in seen:
                seen.add(conn_id)
                result.append(self.connections[conn_id])
        return result

    def connections_for_endpoint(self, node_id: str, endpoint_name: str) -> List[Connection]:
        return [c for c in self.connections_for_node(node_id) if c.uses_endpoint(node_id, endpoint_name)]

    def all_connections(self) -> List[Connection]:
        return list(self.connections.values())

    # -- aggregate -------------------------------------------------------

    def all_endpoints(self) -> List[Endpoint]:
        return [ep for node in self.nodes.values() for ep in node.endpoints]

    def reset(self) -> None:
        self.nodes.clear()
        self.connections.clear()
        self.graph.clear()
        self._keys.clear()
        self.ui_state = UIState()

    def __repr__(self) -> str:
        return f"<TopologyStore nodes={len(self.nodes)} connections={len(self.connections)}>"
