# netmap/inout/device_templates.py
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from cerberus import Validator

from netmap.utils.logging_config import get_logger

logger = get_logger(__name__)

TEMPLATE_EXTENSIONS = (".json", ".yaml", ".yml")

# Schema for a device template. Extra keys (model, vendor, ...) are allowed.
TEMPLATE_SCHEMA: Dict[str, Any] = {
    'interfaces': {
        'type': 'list',
        'required': True,
        'schema': {
            'type': 'dict',
            'allow_unknown': True,
            'schema': {
                'name': {
                    'type': 'string',
                    'required': True,
                    'empty': False,
                },
                'type': {
                    'type': 'string',
                    'required': False,
                },
            },
        },
    },
}


def template_name(template_key: str) -> str:
    """
    Reduce an icon path or template key to a bare device type.
    "/assets/icons/router.svg" -> "router"
    """
    base = template_key.replace("\\", "/").rstrip("/").split("/")[-1]
    return re.sub(r"\.(svg|png|json|ya?ml)$", "", base, flags=re.IGNORECASE)


def load_device_endpoints(template_key: str, directory: Union[str, Path]) -> Optional[Dict[str, Any]]:
    """
    Load the interface list declared by a device template.

    Args:
        template_key: Device type or icon path identifying the template.
        directory: Directory holding ``<device>.json`` / ``.yaml`` / ``.yml`` files.

    Returns:
        ``{"interfaces": [...]}`` or None when the template is missing or invalid.
    """
    name = template_name(template_key)
    directory = Path(directory)
    path = next((directory / f"{name}{ext}" for ext in TEMPLATE_EXTENSIONS
                 if (directory / f"{name}{ext}").is_file()), None)
    if path is None:
        logger.error("No device template for '%s' in %s", template_key, directory)
        return None

    try:
        # JSON templates are valid YAML as well.
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.error("Failed to read device template '%s': %s", path, exc)
        return None

    v = Validator(TEMPLATE_SCHEMA, allow_unknown=True)
    if not isinstance(data, dict) or not v.validate(data):
        logger.error("Device template '%s' is invalid: %s", path, v.errors if isinstance(data, dict) else data)
        return None

    logger.debug("Loaded device template '%s' with %d interfaces", name, len(v.document['interfaces']))
    return {"interfaces": v.document['interfaces']}


def endpoints_from_template(template: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Endpoint specs for TopologyManager.add_node from a loaded template."""
    if not template:
        return []
    return [{"name": iface["name"], "type": iface.get("type")} for iface in template["interfaces"]]
