# netmap/cli.py
"""
Command-line inspection of saved topology diagrams.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from netmap.core.config import TopologyConfig, load_config
from netmap.core.events import Topic
from netmap.core.exceptions import NetMapError
from netmap.core.serializer import from_json_file
from netmap.core.topology_manager import TopologyManager
from netmap.core.validation import validate_topology
from netmap.inout.diagram_files import DiagramDirectory
from netmap.utils.logging_config import setup_logging


def _load(path: Path, config: TopologyConfig):
    manager = TopologyManager(config=config)
    loaded: Dict[str, Any] = {}
    manager.on(Topic.TOPOLOGY_LOADED, loaded.update)
    if not from_json_file(manager, path):
        raise NetMapError(f"'{path}' is not a valid topology document")
    return manager, loaded.get("skipped", [])


def _cmd_stats(args, config: TopologyConfig) -> int:
    manager, skipped = _load(args.file, config)
    stats = manager.get_statistics()
    connectivity = manager.get_connectivity()
    print(f"Nodes:       {stats['totalNodes']}")
    print(f"Connections: {stats['totalConnections']}")
    print(f"Endpoints:   {stats['totalEndpoints']}")
    print(f"Islands:     {connectivity['components']}")
    if connectivity["isolatedNodes"]:
        print("Unwired nodes: " + ", ".join(connectivity["isolatedNodes"]))
    if skipped:
        print(f"Skipped connections: {', '.join(skipped)}")
    return 0


def _cmd_validate(args, config: TopologyConfig) -> int:
    manager, skipped = _load(args.file, config)
    validate_topology(manager.store, config)
    if skipped:
        print(f"Loaded with {len(skipped)} skipped connection(s): {', '.join(skipped)}")
        return 1
    print("Topology is valid.")
    return 0


def _cmd_list(args, config: TopologyConfig) -> int:
    files = DiagramDirectory(args.directory).list()
    if not files:
        print("No topology files found.")
        return 0
    for info in files:
        line = (f"{info['filename']}  {info['size']}B  {info['created']}  "
                f"nodes={info['nodeCount']} connections={info['connectionCount']}")
        if "error" in info:
            line += f"  ({info['error']})"
        print(line)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="netmap", description="Inspect network topology diagrams")
    parser.add_argument("--config", type=Path, help="Optional YAML configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_stats = sub.add_parser("stats", help="Print node/connection statistics for a diagram")
    p_stats.add_argument("file", type=Path)
    p_stats.set_defaults(func=_cmd_stats)

    p_validate = sub.add_parser("validate", help="Check a diagram against the wiring rules")
    p_validate.add_argument("file", type=Path)
    p_validate.set_defaults(func=_cmd_validate)

    p_list = sub.add_parser("list", help="List saved diagrams in a directory")
    p_list.add_argument("directory", type=Path)
    p_list.set_defaults(func=_cmd_list)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        config = load_config(args.config) if args.config else TopologyConfig()
        return args.func(args, config)
    except (NetMapError, OSError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
