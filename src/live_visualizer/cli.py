"""Command-line entry point for inspecting a live visualizer service."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from .client import VisualizerClient
from .config import load_settings
from .logging_utils import configure_logging, console_level_for, parse_level
from .protocol import NODE_NOT_CREATED, StructureKind

_LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and drive a live data structure visualizer")
    parser.add_argument("--url", help="Base URL of the visualizer service")
    parser.add_argument("--verbose", action="store_true", help="Log failed requests")
    parser.add_argument("--debug", action="store_true", help="Enable full debug logging output")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Check whether the service answers")
    commands.add_parser("list", help="Print every structure")
    show = commands.add_parser("show", help="Print one structure")
    show.add_argument("name")
    commands.add_parser("matrix", help="Print the aggregate matrix view")
    delete = commands.add_parser("delete", help="Delete a structure")
    delete.add_argument("name")
    demo = commands.add_parser("demo", help="Narrate a short linked list session")
    demo.add_argument("--name", default="cli_demo")
    demo.add_argument("--kind", default=StructureKind.LINKED_LIST.value, choices=[kind.value for kind in StructureKind])
    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def run_demo(client: VisualizerClient, name: str, kind: str) -> bool:
    """Create a structure, mutate one node through its life and delete it."""
    with client.structure(name, kind=kind) as structure:
        if not structure.created:
            _LOGGER.error("Could not create structure '%s'", name)
            return False
        node_id = structure.add_node(42)
        if node_id == NODE_NOT_CREATED:
            _LOGGER.error("Server did not return a node id")
            return False
        _LOGGER.info("Added node %d to '%s'", node_id, name)
        updated = structure.update_node(node_id, 99, metadata={"color": "red"})
        removed = structure.remove_node(node_id)
        _print_json(structure.get_structure())
        _LOGGER.info("Update %s, removal %s", "accepted" if updated else "rejected", "accepted" if removed else "rejected")
        return updated and removed


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = load_settings()
        configured_level = parse_level(settings.log_level)
    except (RuntimeError, ValueError) as exc:
        parser.error(f"invalid configuration: {exc}")
    if args.url:
        settings.client.base_url = args.url
    if args.verbose:
        settings.client.verbose = True

    configure_logging(
        console_level_for(configured_level, verbose=settings.client.verbose, debug=args.debug),
        log_path=settings.log_path,
        debug=args.debug,
    )

    with VisualizerClient(settings.client) as client:
        if args.command == "status":
            connected = client.is_connected()
            print(f"{client.base_url}: {'reachable' if connected else 'unreachable'}")
            return 0 if connected else 1
        if args.command == "list":
            _print_json(client.get_all_structures())
            return 0
        if args.command == "show":
            _print_json(client.get_structure(args.name))
            return 0
        if args.command == "matrix":
            _print_json(client.get_matrix())
            return 0
        if args.command == "delete":
            return 0 if client.delete_structure(args.name) else 1
        if args.command == "demo":
            return 0 if run_demo(client, args.name, args.kind) else 1
    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
