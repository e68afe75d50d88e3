"""
Command-line interface for resolving the export surface of npm package modules.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List

from cjs_lexer import BridgeOptions, NodeCJSLexer
from resolver import ExportsError, load_package_descriptor, resolve_esm_entry
from surface import resolve_exports


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def exports_command(args: argparse.Namespace) -> int:
    work_dir = Path(args.work_dir).resolve()
    if not work_dir.is_dir():
        sys.stderr.write(f"ERROR: Working directory not found: {work_dir}\n")
        return 1

    try:
        options = BridgeOptions.from_env()
    except ValueError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 1
    if args.no_dynamic_load:
        options = dataclasses.replace(options, allow_dynamic_load=False)

    try:
        result = resolve_exports(
            work_dir, args.specifier, env=args.env, lexer=NodeCJSLexer(options)
        )
    except ExportsError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 1

    if args.json:
        sys.stdout.write(json.dumps(result.to_dict(), ensure_ascii=False) + "\n")
    else:
        for name in result.names:
            sys.stdout.write(name + "\n")

    if result.error:
        sys.stderr.write(f"ERROR {args.specifier}: {result.error}\n")
        return 1
    return 0


def entry_command(args: argparse.Namespace) -> int:
    try:
        descriptor = load_package_descriptor(args.manifest)
    except ExportsError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 1

    entry = resolve_esm_entry(descriptor)
    if entry is None:
        sys.stderr.write(f"INFO {args.manifest}: no ES module entry point\n")
        return 1
    sys.stdout.write(entry + "\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="esm-exports", description="Resolve the named exports of npm package modules"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command")

    exports_parser = subparsers.add_parser("exports", help="List the exports of a module")
    exports_parser.add_argument(
        "specifier",
        help="Module specifier relative to node_modules (e.g. react, lodash/fp) or an absolute path",
    )
    exports_parser.add_argument(
        "--work-dir",
        default=".",
        help="Build directory containing node_modules (defaults to the current directory)",
    )
    exports_parser.add_argument(
        "--env",
        default="production",
        help="NODE_ENV used when inspecting CommonJS modules.",
    )
    exports_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as a JSON document.",
    )
    exports_parser.add_argument(
        "--no-dynamic-load",
        action="store_true",
        help="Never require() CommonJS modules; rely on static analysis only.",
    )
    exports_parser.set_defaults(func=exports_command)

    entry_parser = subparsers.add_parser("entry", help="Print the ES module entry of a package.json")
    entry_parser.add_argument("manifest", help="Path to a package.json file")
    entry_parser.set_defaults(func=entry_command)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
