"""Command-line access to the local document-pilot data directory."""
from __future__ import annotations
import argparse
import asyncio
import json
import sys
from pathlib import Path

import logging_bus
from .config import load_config
from .errors import StorageError
from .models import Target, to_json
from .storage import ProjectStorage
from .workspace import Workspace


def _target(args) -> Target:
    return Target.project(args.project) if args.project else Target.thread(args.thread)


def _print_warnings(evt: logging_bus.LogEvent) -> None:
    if evt.level in ("WARN", "ERROR"):
        print(f"[{evt.level}] {evt.kind}: {evt.msg} {evt.meta}", file=sys.stderr)


async def _run(args, storage: ProjectStorage) -> int:
    try:
        if args.cmd == "show":
            state = await storage.load_app_state()
            print(to_json(state) if state else "null")
        elif args.cmd == "projects":
            state = await storage.load_app_state()
            for summary in state.project_index if state else []:
                marker = "*" if summary.id == state.active_project_id else " "
                print(f"{marker} {summary.id}\t{summary.name}")
        elif args.cmd == "migrate":
            legacy = Path(args.legacy).read_text(encoding="utf-8")
            state = await storage.migrate_legacy_state(legacy)
            print(f"Migrated {len(state.project_index)} project(s)")
        elif args.cmd == "attach":
            path = Path(args.file)
            workspace = await Workspace.open(storage)
            stored = await workspace.attach_document(_target(args), path.name, path.read_bytes())
            print(to_json(stored))
        elif args.cmd == "read":
            blob = await storage.read_document(_target(args), args.stored_name)
            out = Path(args.out or blob.original_file_name)
            out.write_bytes(blob.data)
            print(f"{blob.original_file_name} ({blob.kind}, {len(blob.data)} bytes) -> {out}")
        elif args.cmd == "delete-project":
            workspace = await Workspace.open(storage)
            await workspace.delete_project(args.project_id)
            print(f"Deleted {args.project_id}")
        return 0
    except (StorageError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        await storage.flush()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="pilot-store")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--data-dir", help="override the data directory")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("show")
    sub.add_parser("projects")

    mig = sub.add_parser("migrate")
    mig.add_argument("legacy", help="legacy state JSON file")

    for name in ("attach", "read"):
        p = sub.add_parser(name)
        owner = p.add_mutually_exclusive_group(required=True)
        owner.add_argument("--project")
        owner.add_argument("--thread")
        if name == "attach":
            p.add_argument("file")
        else:
            p.add_argument("stored_name")
            p.add_argument("--out")

    rm = sub.add_parser("delete-project")
    rm.add_argument("project_id")

    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        return 2

    config = load_config(args.config)
    if args.data_dir:
        config.base_dir = Path(args.data_dir)
    logging_bus.subscribe(_print_warnings)
    logging_bus.start_dispatcher()
    storage = ProjectStorage.from_config(config)
    try:
        return asyncio.run(_run(args, storage))
    finally:
        logging_bus.drain()


if __name__ == "__main__":
    sys.exit(main())
