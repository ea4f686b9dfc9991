# netmap/core/serializer.py
"""
Conversion between a TopologyStore and the versioned JSON topology document.
"""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from cerberus import Validator

from netmap.core.exceptions import DocumentError
from netmap.core.topology.connection import Connection
from netmap.core.topology.node import Node, Size
from netmap.core.topology.store import TopologyStore, UIState

DOCUMENT_VERSION = "1.0"

# Only the envelope is checked here; connection entries are parsed one by one
# so that a single corrupt entry can be skipped instead of failing the load.
DOCUMENT_SCHEMA: Dict[str, Any] = {
    "version": {"type": "string", "required": False},
    "timestamp": {"type": "string", "required": False, "nullable": True},
    "nodes": {"type": "dict", "required": True, "valuesrules": {"type": "dict"}},
    "connections": {"type": "dict", "required": True},
    "uiState": {"type": "dict", "required": False, "nullable": True},
}

NODE_SCHEMA: Dict[str, Any] = {
    "id": {"type": "string", "required": False},
    "position": {"type": "dict", "required": False, "nullable": True},
    "size": {"type": "dict", "required": False, "nullable": True},
    "endpoints": {"type": "list", "required": False, "nullable": True,
                  "schema": {"type": "dict"}},
    "interfaces": {"type": "list", "required": False, "nullable": True},
    "properties": {"type": "dict", "required": False, "nullable": True},
}

_CONNECTION_SIDE: Dict[str, Any] = {
    "type": "dict",
    "required": True,
    "allow_unknown": True,
    "schema": {
        "id": {"type": "string", "required": True, "empty": False},
        "interface": {"type": "string", "required": True, "empty": False},
        "interfaceType": {"type": "string", "required": False, "nullable": True},
    },
}

CONNECTION_SCHEMA: Dict[str, Any] = {
    "id": {"type": "string", "required": False, "nullable": True},
    "sourceNode": _CONNECTION_SIDE,
    "targetNode": _CONNECTION_SIDE,
    "timestamp": {"type": "string", "required": False, "nullable": True},
    "connectionStyle": {"type": "dict", "required": False, "nullable": True},
    "properties": {"type": "dict", "required": False, "nullable": True},
}


def to_document(store: TopologyStore, version: str = DOCUMENT_VERSION) -> Dict[str, Any]:
    """
    Convert the store to a dictionary suitable for JSON serialization.

    Args:
        store: The TopologyStore to serialize.
        version: Document version string.

    Returns:
        The topology document.
    """
    return {
        "version": version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "nodes": {node_id: node.to_dict() for node_id, node in store.nodes.items()},
        "connections": {conn_id: conn.to_dict() for conn_id, conn in store.connections.items()},
        "uiState": store.ui_state.to_dict(),
    }


def validate_document(document: Any) -> Dict[str, Any]:
    """
    Check the document envelope and every node entry.

    Raises:
        DocumentError: If ``nodes`` or ``connections`` is missing or malformed.
    """
    if not isinstance(document, Mapping):
        raise DocumentError(f"Topology document must be a mapping, got {type(document).__name__}")
    v = Validator(DOCUMENT_SCHEMA, allow_unknown=True)
    if not v.validate(dict(document)):
        raise DocumentError(f"Topology document schema violations: {v.errors}")
    node_validator = Validator(NODE_SCHEMA, allow_unknown=True)
    for node_id, node_data in document["nodes"].items():
        if not node_validator.validate(node_data):
            raise DocumentError(f"Node '{node_id}' is malformed: {node_validator.errors}")
    return v.document


def parse_nodes(document: Mapping[str, Any], default_size: Optional[Size] = None) -> List[Node]:
    return [Node.from_dict(data, node_id=node_id, default_size=default_size)
            for node_id, data in document["nodes"].items()]


def parse_connection(conn_id: str, data: Any) -> Connection:
    """
    Build a Connection from one entry of the ``connections`` mapping.

    Raises:
        DocumentError: If the entry is not a mapping or its node and
            interface references are missing or not strings.
    """
    if not isinstance(data, Mapping):
        raise DocumentError(f"Connection '{conn_id}' is not a mapping")
    v = Validator(CONNECTION_SCHEMA, allow_unknown=True)
    if not v.validate(dict(data)):
        raise DocumentError(f"Connection '{conn_id}' is malformed: {v.errors}")
    conn = Connection.from_dict(v.document, conn_id=conn_id)
    # the mapping key is the id the rest of the document refers to
    conn.id = conn_id
    return conn


def parse_ui_state(document: Mapping[str, Any]) -> UIState:
    return UIState.from_dict(document.get("uiState"))


def dumps(document: Mapping[str, Any], indent: int = 2) -> str:
    return json.dumps(document, indent=indent)


def loads(text: str) -> Dict[str, Any]:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentError(f"Topology document is not valid JSON: {exc}")


def to_json_file(manager, path: Union[str, Path]) -> None:
    """
    Write the manager's topology document to a file.

    Args:
        manager: The TopologyManager.
        path: The file path where the JSON should be written.
    """
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps(manager.serialize()))


def from_json_file(manager, path: Union[str, Path]) -> bool:
    """
    Load a JSON topology file into the manager.

    Returns:
        The deserialize result; False for a file that is not valid JSON.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    return manager.deserialize(text)
