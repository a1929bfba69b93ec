import argparse
import json
import logging
import sys
from typing import Any

from ._loader import Loader
from ._models import RunResult
from .engine import Engine
from .manifest import MANIFEST_FILE


def plan(
    path: str,
    manifest: str,
) -> dict[str, Any]:
    """
    infragraph Plan
    """
    loader = Loader(path=path, manifest=manifest)
    graph = loader.load_graph()
    levels = graph.depth_levels()
    return {
        "order": [node.id for level in levels for node in level],
        "levels": [[node.id for node in level] for level in levels],
        "groups": {
            id: group.member_ids for id, group in graph.groups.items()
        },
    }


def apply(
    path: str,
    manifest: str,
    provisioner: str | None,
    max_workers: int | None,
) -> RunResult:
    """
    infragraph Apply
    """
    loader = Loader(path=path, manifest=manifest)
    graph = loader.load_graph()
    engine = Engine(
        provisioner=loader.load_provisioner(type=provisioner),
        max_workers=(
            max_workers if max_workers is not None else loader.load_max_workers()
        ),
    )
    return engine.run(graph)


def main():
    parser = argparse.ArgumentParser(description="infragraph")
    subparsers = parser.add_subparsers(dest="command", help="Commands")
    plan_parser = subparsers.add_parser(
        "plan", help="Print the creation order"
    )
    apply_parser = subparsers.add_parser(
        "apply", help="Provision every resource in the manifest"
    )
    common_arguments = [
        ("--path", str, ".", "Project directory"),
        ("--manifest", str, MANIFEST_FILE, "Manifest filename"),
        ("--log-level", str, "WARNING", "Logging level"),
    ]
    apply_arguments = [
        ("--provisioner", str, None, "Provider type override"),
        ("--max-workers", int, None, "Concurrent provisioner calls"),
    ]
    for arg in common_arguments:
        for sub_parser in (plan_parser, apply_parser):
            sub_parser.add_argument(
                arg[0], type=arg[1], default=arg[2], help=arg[3]
            )
    for arg in apply_arguments:
        apply_parser.add_argument(
            arg[0], type=arg[1], default=arg[2], help=arg[3]
        )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        return
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "plan":
        print(json.dumps(plan(path=args.path, manifest=args.manifest), indent=2))
    elif args.command == "apply":
        try:
            result = apply(
                path=args.path,
                manifest=args.manifest,
                provisioner=args.provisioner,
                max_workers=args.max_workers,
            )
        except KeyboardInterrupt:
            sys.exit(130)
        print(result.to_json(indent=2))
        if result.failed:
            sys.exit(1)


if __name__ == "__main__":
    main()
