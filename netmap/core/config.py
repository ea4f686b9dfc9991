# netmap/core/config.py
"""
Editor-wide settings for the topology core, optionally loaded from YAML.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Union

import yaml
from cerberus import Validator

from netmap.core.exceptions import ConfigError
from netmap.core.topology.node import Size

DEFAULT_COMPATIBILITY: Dict[str, FrozenSet[str]] = {
    "ethernet": frozenset({"ethernet"}),
    "serial": frozenset({"serial"}),
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "compatibility": {
        "type": "dict", "required": False,
        "keysrules": {"type": "string"},
        "valuesrules": {"type": "list", "schema": {"type": "string"}},
    },
    "max_connections_per_endpoint": {"type": "integer", "required": False, "min": 1, "coerce": int},
    "grid_size": {"type": "integer", "required": False, "min": 1, "coerce": int},
    "default_node_size": {
        "type": "dict", "required": False,
        "schema": {
            "width": {"type": "number", "required": True, "min": 1},
            "height": {"type": "number", "required": True, "min": 1},
        },
    },
    "document_version": {"type": "string", "required": False},
    "history_size": {"type": "integer", "required": False, "min": 1, "coerce": int},
}


@dataclass
class TopologyConfig:
    """
    Attributes:
        compatibility: Normalized source type -> set of allowed target types.
        max_connections_per_endpoint: How many connections one endpoint may carry.
        grid_size: Snap distance for node moves.
        default_node_size: Size given to nodes that declare none.
        document_version: Version string written into topology documents.
        history_size: Maximum number of undoable actions kept.
    """
    compatibility: Dict[str, FrozenSet[str]] = field(default_factory=lambda: dict(DEFAULT_COMPATIBILITY))
    max_connections_per_endpoint: int = 1
    grid_size: int = 20
    default_node_size: Size = field(default_factory=Size)
    document_version: str = "1.0"
    history_size: int = 50

    def allowed_targets(self, source_type: str) -> FrozenSet[str]:
        return self.compatibility.get(source_type.strip().lower(), frozenset())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopologyConfig":
        v = Validator(CONFIG_SCHEMA, allow_unknown=False)
        if not v.validate(data):
            raise ConfigError(f"Configuration schema violations: {v.errors}")
        doc = v.document
        config = cls()
        if "compatibility" in doc:
            config.compatibility = {
                src.strip().lower(): frozenset(t.strip().lower() for t in targets)
                for src, targets in doc["compatibility"].items()
            }
        for key in ("max_connections_per_endpoint", "grid_size", "document_version", "history_size"):
            if key in doc:
                setattr(config, key, doc[key])
        if "default_node_size" in doc:
            size = doc["default_node_size"]
            config.default_node_size = Size(size["width"], size["height"])
        return config


def load_config(path: Union[str, Path]) -> TopologyConfig:
    """Read a YAML configuration file. An empty file yields the defaults."""
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read configuration '{path}': {exc}")
    if raw is None:
        return TopologyConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration '{path}' must be a mapping, got {type(raw).__name__}")
    return TopologyConfig.from_dict(raw)
