# netmap/core/topology/node.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from netmap.core.topology.endpoint import Endpoint

_KNOWN_KEYS = {"id", "type", "name", "position", "size", "icon",
               "endpoints", "properties", "interfaces"}


@dataclass
class Position:
    """Canvas coordinates of a node."""
    x: float = 0
    y: float = 0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class Size:
    width: float = 100
    height: float = 100

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height}


@dataclass
class Node:
    """
    A device on the canvas.

    Attributes:
        id: Unique, immutable node identifier.
        type: Device category tag (router, switch, server, ...).
        name: Human-readable label.
        position: Canvas coordinates.
        size: Rendered size, 100x100 unless given.
        icon: Opaque icon reference used by the renderer.
        endpoints: Interfaces owned by this node, in display order.
        interfaces: Interfaces declared by the device template.
        properties: Opaque key/value bag passed through unchanged.
    """
    id: str
    type: str
    name: str
    position: Position = field(default_factory=Position)
    size: Size = field(default_factory=Size)
    icon: Optional[str] = None
    endpoints: List[Endpoint] = field(default_factory=list)
    interfaces: List[Dict[str, Any]] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def find_endpoint(self, name: str) -> Optional[Endpoint]:
        return next((ep for ep in self.endpoints if ep.name == name), None)

    def declared_interface(self, name: str) -> Optional[Dict[str, Any]]:
        return next((iface for iface in self.interfaces
                     if isinstance(iface, Mapping) and iface.get("name") == name), None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], node_id: Optional[str] = None,
                  default_size: Optional[Size] = None) -> "Node":
        """
        Rebuild a node from its document form. Missing position, size and
        collections fall back to their defaults.
        """
        nid = data.get("id") or node_id
        position = data.get("position") or {}
        size = data.get("size")
        if size:
            size_obj = Size(size.get("width", 100), size.get("height", 100))
        else:
            size_obj = Size(default_size.width, default_size.height) if default_size else Size()
        return cls(
            id=nid,
            type=data.get("type"),
            name=data.get("name"),
            position=Position(position.get("x", 0), position.get("y", 0)),
            size=size_obj,
            icon=data.get("icon"),
            endpoints=[Endpoint.from_dict(ep, node_id=nid) for ep in data.get("endpoints") or []],
            interfaces=list(data.get("interfaces") or []),
            properties=dict(data.get("properties") or {}),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data.update({
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "position": self.position.to_dict(),
            "size": self.size.to_dict(),
            "icon": self.icon,
            "endpoints": [ep.to_dict() for ep in self.endpoints],
            "properties": self.properties,
            "interfaces": self.interfaces,
        })
        return data

    def __repr__(self):
        return (f"<Node {self.name} (id={self.id}, type={self.type}, "
                f"endpoints={[ep.name for ep in self.endpoints]})>")
