# netmap/inout/diagram_files.py
"""
File-backed storage for topology documents: one JSON file per diagram in a
single directory. This module only moves documents in and out of files; it
never interprets nodes or connections beyond counting them.
"""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from netmap.core.exceptions import DocumentError, NetMapError
from netmap.core.serializer import dumps, loads
from netmap.utils.logging_config import get_logger

logger = get_logger(__name__)


def default_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat().replace(":", "-").replace(".", "-").replace("+", "-")
    return f"network-topology-{stamp}.json"


def _check_document(document: Any) -> None:
    if not isinstance(document, Mapping) or "nodes" not in document or "connections" not in document:
        raise DocumentError("Invalid topology configuration: 'nodes' and 'connections' are required")


class DiagramDirectory:
    """Save, load and list topology documents under ``root``."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _path(self, filename: str) -> Path:
        if not filename or Path(filename).name != filename:
            raise NetMapError(f"Invalid diagram filename '{filename}'")
        return self.root / filename

    def save(self, document: Mapping[str, Any], filename: Optional[str] = None) -> Path:
        """
        Write a document and return the path written.

        Raises:
            DocumentError: If the document lacks ``nodes`` or ``connections``.
        """
        _check_document(document)
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(filename or default_filename())
        path.write_text(dumps(document), encoding="utf-8")
        logger.info("Topology saved to %s", path)
        return path

    def load(self, filename: str) -> Dict[str, Any]:
        """
        Read a document back.

        Raises:
            NetMapError: If the file does not exist.
            DocumentError: If it is not JSON or lacks ``nodes``/``connections``.
        """
        path = self._path(filename)
        if not path.is_file():
            raise NetMapError(f"Topology file '{filename}' not found")
        document = loads(path.read_text(encoding="utf-8"))
        _check_document(document)
        return document

    def list(self) -> List[Dict[str, Any]]:
        """Describe every ``.json`` file, newest first."""
        if not self.root.is_dir():
            return []
        files = []
        for path in self.root.iterdir():
            if not path.is_file() or path.suffix.lower() != ".json":
                continue
            stats = path.stat()
            created = getattr(stats, "st_birthtime", stats.st_mtime)
            info: Dict[str, Any] = {
                "filename": path.name,
                "size": stats.st_size,
                "created": datetime.fromtimestamp(created, timezone.utc).isoformat(),
                "nodeCount": 0,
                "connectionCount": 0,
            }
            try:
                content = json.loads(path.read_text(encoding="utf-8"))
                info["nodeCount"] = len(content.get("nodes") or {})
                info["connectionCount"] = len(content.get("connections") or {})
            except (OSError, ValueError, AttributeError, TypeError) as exc:
                logger.warning("Failed to parse topology file %s: %s", path.name, exc)
                info["error"] = "Invalid or corrupted file"
            files.append((created, info))
        files.sort(key=lambda item: (item[0], item[1]["filename"]), reverse=True)
        return [info for _, info in files]
