"""tsgraph CLI — Command-line interface for the TypeScript lowering pass.

Commands:
  tsgraph lower <path>... [--lib FILE]   — Lower files/directories to the graph vocabulary
  tsgraph lower -                         — Lower TypeScript read from stdin
  tsgraph types <file> [--lib FILE]      — Print the lowered type of every annotation
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from tsgraph import __version__
from tsgraph.ast_nodes import TVar
from tsgraph.config import load_config
from tsgraph.driver import lower_files, lower_source
from tsgraph.errors import LoweringError, LoweringFailure
from tsgraph.formatters import FORMATTERS, format_failure, render_type, dim, red
from tsgraph.parallel import parallel_lower
from tsgraph.provider import ParseContext, line_of, node_text
from tsgraph.scanner import expand_paths
from tsgraph.types import lower_type

logger = logging.getLogger("tsgraph")


def _setup_logging(level_name: str, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s",
                        stream=sys.stderr)


def cmd_lower(args: argparse.Namespace) -> int:
    """Lower TypeScript sources and print the resulting modules."""
    config = load_config(args.config)
    _setup_logging(config.log_level, args.verbose)
    fmt = args.format or config.format
    if fmt not in FORMATTERS:
        print(json.dumps({"error": f"Unknown format: {fmt}"}))
        return 1

    libraries = config.libraries + (args.lib or [])
    for lib in libraries:
        if not os.path.isfile(lib):
            print(json.dumps({"error": f"Library file not found: {lib}"}))
            return 1

    try:
        if args.paths == ["-"]:
            modules = [lower_source(sys.stdin.read(), "<stdin>")]
        else:
            missing = [p for p in args.paths if not os.path.exists(p)]
            if missing:
                print(json.dumps({"error": f"File not found: {missing[0]}"}))
                return 1
            files = expand_paths(args.paths, config)
            if not files:
                print(json.dumps({"error": "No TypeScript files found"}))
                return 1
            if args.parallel or config.parallel:
                workers = args.workers or config.parallel_workers
                modules = parallel_lower(files, libraries, workers=workers)
            else:
                modules = lower_files(files, libraries)
    except LoweringFailure as e:
        print(format_failure(e, as_json=fmt == "json"))
        return 1
    except LoweringError as e:
        print(e.to_json())
        return 1

    output = FORMATTERS[fmt](modules)
    if args.output:
        with open(args.output, "w") as f:
            f.write(output)
        logger.info("wrote %d module(s) to %s", len(modules), args.output)
    else:
        print(output)
    return 0


def cmd_types(args: argparse.Namespace) -> int:
    """Print the lowered type of every type annotation in a file."""
    _setup_logging("warning", args.verbose)
    if not os.path.exists(args.file):
        print(json.dumps({"error": f"File not found: {args.file}"}))
        return 1

    try:
        ctx = ParseContext.from_paths([args.file], args.lib or [])
    except LoweringError as e:
        print(e.to_json())
        return 1

    tree = ctx.source_file(args.file)
    failures = 0
    for node in _annotations(tree.root_node):
        text = " ".join(node_text(node).lstrip(":").split())
        try:
            ty = lower_type(node)
        except LoweringError as e:
            failures += 1
            print(f"{line_of(node):>5}  {text}  {red(e.message)}")
            continue
        origin = ""
        if isinstance(ty, TVar):
            library = ctx.oracle.library_of(ty.name)
            if library:
                origin = dim(f"  ({os.path.basename(library)})")
        print(f"{line_of(node):>5}  {text}  ->  {render_type(ty)}{origin}")
    return 1 if failures else 0


def _annotations(root):
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "type_annotation":
            yield node
        stack.extend(reversed(node.named_children))


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="tsgraph",
        description="tsgraph — lower TypeScript into a closed graph vocabulary",
    )
    parser.add_argument("--version", action="version", version=f"tsgraph {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    # lower
    p_lower = subparsers.add_parser("lower", help="Lower TypeScript files or directories")
    p_lower.add_argument("paths", nargs="+", help="Source files or directories ('-' reads stdin)")
    p_lower.add_argument("--lib", action="append", default=[],
                         help="Library declaration file (.d.ts); may be repeated")
    p_lower.add_argument("--format", choices=sorted(FORMATTERS), default=None,
                         help="Output format (default: json, or the config's format)")
    p_lower.add_argument("--output", "-o", default="", help="Output file path (default: stdout)")
    p_lower.add_argument("--parallel", action="store_true", help="Lower files in worker processes")
    p_lower.add_argument("--workers", type=int, default=0, help="Number of parallel workers (0=auto)")
    p_lower.add_argument("--config", default=None, help="Config file (default: nearest .tsgraphrc.yml)")
    p_lower.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    p_lower.set_defaults(func=cmd_lower)

    # types
    p_types = subparsers.add_parser("types", help="Show the lowered type of each annotation")
    p_types.add_argument("file", help="TypeScript source file")
    p_types.add_argument("--lib", action="append", default=[],
                         help="Library declaration file (.d.ts); may be repeated")
    p_types.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    p_types.set_defaults(func=cmd_types)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
