"""tsgraph Directory Scanner — TypeScript source discovery.

Expands the paths given on the command line into the list of source files
to lower. Directories are walked recursively, `.gitignore` patterns are
respected and `.d.ts` declaration files are left to the library list.

Usage:
    from tsgraph.scanner import expand_paths
    files = expand_paths(["src/", "scripts/build.ts"])
"""

from __future__ import annotations

import fnmatch
import logging
import os
from typing import Optional, List, Iterable, Set

from tsgraph.config import TsGraphConfig

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = {".ts", ".tsx"}

DECLARATION_SUFFIX = ".d.ts"


# ---------------------------------------------------------------------------
# Gitignore Parser
# ---------------------------------------------------------------------------

def _parse_gitignore(root: str) -> List[str]:
    """Parse .gitignore patterns from a directory."""
    patterns: List[str] = []
    gitignore_path = os.path.join(root, ".gitignore")
    if os.path.isfile(gitignore_path):
        with open(gitignore_path, "r") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#"):
                    patterns.append(line)
    # Always ignore common directories
    patterns.extend([".git", "node_modules", "dist", "build", "out", "coverage"])
    return patterns


def _is_ignored(path: str, patterns: List[str], root: str) -> bool:
    """Check if a path matches any gitignore pattern."""
    rel = os.path.relpath(path, root)
    basename = os.path.basename(path)
    for pattern in patterns:
        if fnmatch.fnmatch(basename, pattern):
            return True
        if fnmatch.fnmatch(rel, pattern):
            return True
        if fnmatch.fnmatch(rel, pattern.rstrip("/") + "/*"):
            return True
    return False


def is_source_file(path: str, extensions: Optional[Set[str]] = None) -> bool:
    if path.endswith(DECLARATION_SUFFIX):
        return False
    return os.path.splitext(path)[1] in (extensions or SOURCE_EXTENSIONS)


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

def discover_files(root: str, extensions: Optional[Set[str]] = None,
                   ignore_patterns: Optional[List[str]] = None) -> List[str]:
    """Discover TypeScript source files in a directory tree.

    Args:
        root: Root directory to scan
        extensions: File extensions to include (default: .ts and .tsx)
        ignore_patterns: Gitignore-style patterns to exclude
    """
    if ignore_patterns is None:
        ignore_patterns = _parse_gitignore(root)

    files: List[str] = []
    root = os.path.abspath(root)

    for dirpath, dirnames, filenames in os.walk(root):
        # Filter out ignored directories (in-place to prevent os.walk descent)
        dirnames[:] = [
            d for d in dirnames
            if not _is_ignored(os.path.join(dirpath, d), ignore_patterns, root)
        ]

        for filename in filenames:
            filepath = os.path.join(dirpath, filename)
            if is_source_file(filename, extensions) \
                    and not _is_ignored(filepath, ignore_patterns, root):
                files.append(filepath)

    return sorted(files)


def expand_paths(paths: Iterable[str], config: Optional[TsGraphConfig] = None) -> List[str]:
    """Files named directly are kept as given; directories are scanned.

    Scanned files are filtered by the config's include/exclude patterns,
    matched against the path relative to the scanned directory.
    """
    config = config or TsGraphConfig()
    files: List[str] = []
    for path in paths:
        if os.path.isdir(path):
            found = [f for f in discover_files(path)
                     if config.accepts(os.path.relpath(f, os.path.abspath(path)))]
            logger.debug("found %d source file(s) under %s", len(found), path)
            files.extend(found)
        else:
            files.append(path)
    return files
