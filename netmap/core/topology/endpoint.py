# netmap/core/topology/endpoint.py
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from netmap.core.identifiers import generate_id

# Keys written by to_dict(); anything else found on input is kept in `extra`.
_KNOWN_KEYS = {"id", "name", "type", "interfaceType", "nodeId", "originalName"}


@dataclass
class Endpoint:
    """
    A typed interface (port) on a node, e.g. ``Gig0/0``.

    ``type`` and ``interface_type`` are both optional explicit type fields;
    when neither is set the effective type is inferred by the validator.
    """
    name: str
    node_id: Optional[str] = None
    type: Optional[str] = None
    interface_type: Optional[str] = None
    id: str = field(default_factory=lambda: generate_id("ep"))
    original_name: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.original_name is None:
            self.original_name = self.name

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], node_id: Optional[str] = None) -> "Endpoint":
        """
        Build an endpoint from its document form (camelCase keys).
        ``node_id`` overrides any ``nodeId`` found in the data.
        """
        kwargs: Dict[str, Any] = {
            "name": data.get("name"),
            "node_id": node_id if node_id is not None else data.get("nodeId"),
            "type": data.get("type"),
            "interface_type": data.get("interfaceType"),
            "original_name": data.get("originalName"),
            "extra": {k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)

    @classmethod
    def coerce(cls, value: Union["Endpoint", Mapping[str, Any]], node_id: Optional[str] = None) -> "Endpoint":
        """Accept an Endpoint or a mapping and return an Endpoint bound to ``node_id``."""
        if isinstance(value, Endpoint):
            if node_id is None or value.node_id == node_id:
                return value
            return Endpoint(
                name=value.name,
                node_id=node_id,
                type=value.type,
                interface_type=value.interface_type,
                id=value.id,
                original_name=value.original_name,
                extra=dict(value.extra),
            )
        return cls.from_dict(value, node_id=node_id)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data.update({
            "name": self.name,
            "type": self.type,
            "id": self.id,
            "nodeId": self.node_id,
            "originalName": self.original_name,
        })
        if self.interface_type is not None:
            data["interfaceType"] = self.interface_type
        return data

    def __repr__(self):
        return f"<Endpoint {self.name} (id={self.id}, node={self.node_id}, type={self.type})>"
