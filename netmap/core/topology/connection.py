# netmap/core/topology/connection.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from netmap.core.identifiers import connection_key


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class InterfaceRef:
    """Reference to an endpoint by name, with the type it was wired as."""
    name: str
    type: Optional[str] = None


@dataclass
class Connection:
    """
    A wire between two endpoints on two different nodes.
    Source/target order only matters for display.
    """
    id: str
    source_node: str
    target_node: str
    source_interface: InterfaceRef
    target_interface: InterfaceRef
    timestamp: str = field(default_factory=utc_timestamp)
    connection_style: Dict[str, Any] = field(default_factory=dict)
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Canonical key of the wiring, independent of ``id``."""
        return connection_key(self.source_node, self.source_interface.name,
                              self.target_node, self.target_interface.name)

    def involves(self, node_id: str) -> bool:
        return node_id in (self.source_node, self.target_node)

    def uses_endpoint(self, node_id: str, endpoint_name: str) -> bool:
        return ((self.source_node == node_id and self.source_interface.name == endpoint_name) or
                (self.target_node == node_id and self.target_interface.name == endpoint_name))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], conn_id: Optional[str] = None) -> "Connection":
        src = data["sourceNode"]
        tgt = data["targetNode"]
        return cls(
            id=data.get("id") or conn_id,
            source_node=src["id"],
            target_node=tgt["id"],
            source_interface=InterfaceRef(src.get("interface"), src.get("interfaceType")),
            target_interface=InterfaceRef(tgt.get("interface"), tgt.get("interfaceType")),
            timestamp=data.get("timestamp") or utc_timestamp(),
            connection_style=dict(data.get("connectionStyle") or {}),
            properties=dict(data.get("properties") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sourceNode": {
                "id": self.source_node,
                "interface": self.source_interface.name,
                "interfaceType": self.source_interface.type,
            },
            "targetNode": {
                "id": self.target_node,
                "interface": self.target_interface.name,
                "interfaceType": self.target_interface.type,
            },
            "connectionStyle": self.connection_style,
            "properties": self.properties,
            "timestamp": self.timestamp,
        }

    def __repr__(self):
        return (f"<Connection {self.id} {self.source_node}.{self.source_interface.name} -> "
                f"{self.target_node}.{self.target_interface.name}>")
