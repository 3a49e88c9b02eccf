"""tsgraph Configuration — Project-level .tsgraphrc.yml support.

Loads configuration from .tsgraphrc.yml (or .tsgraphrc.yaml, .tsgraphrc.json)
found by walking up from the working directory. Allows projects to set:
  - Library declaration files handed to the parser
  - File include/exclude patterns
  - Parallel lowering and the output format

Example .tsgraphrc.yml:
    libraries:
      - lib/lib.es5.d.ts
      - lib/lib.dom.d.ts
    include:
      - "src/**/*.ts"
    exclude:
      - "**/*.spec.ts"
    parallel: true
    format: summary
    log_level: info
"""

from __future__ import annotations

import fnmatch
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

import yaml

logger = logging.getLogger(__name__)


@dataclass
class TsGraphConfig:
    """Project-level tsgraph configuration."""
    # Library declaration files (.d.ts)
    libraries: List[str] = field(default_factory=list)
    # File patterns
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    # Features
    parallel: bool = False
    parallel_workers: int = 0  # 0 = auto (cpu_count)
    # Output
    format: str = "json"  # "json", "pretty", "summary"
    log_level: str = "warning"

    def should_include(self, filepath: str) -> bool:
        if not self.include:
            return True
        return any(fnmatch.fnmatch(filepath, p) for p in self.include)

    def should_exclude(self, filepath: str) -> bool:
        return any(fnmatch.fnmatch(filepath, p) for p in self.exclude)

    def accepts(self, filepath: str) -> bool:
        """True if `filepath` passes both the include and exclude patterns."""
        return self.should_include(filepath) and not self.should_exclude(filepath)


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".tsgraphrc.yml",
    ".tsgraphrc.yaml",
    ".tsgraphrc.json",
    "tsgraph.config.yml",
    "tsgraph.config.json",
]


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> TsGraphConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    If no config file is found, or it cannot be read, returns defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return TsGraphConfig()

    try:
        with open(path, "r") as f:
            content = f.read()
    except (IOError, OSError):
        logger.warning("could not read config file %s", path)
        return TsGraphConfig()

    try:
        if path.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning("ignoring malformed config file %s: %s", path, e)
        return TsGraphConfig()

    if not isinstance(data, dict):
        return TsGraphConfig()

    config = _dict_to_config(data)
    # relative library paths are resolved against the config file
    base = os.path.dirname(os.path.abspath(path))
    config.libraries = [p if os.path.isabs(p) else os.path.join(base, p)
                        for p in config.libraries]
    return config


def _dict_to_config(data: Dict[str, Any]) -> TsGraphConfig:
    """Convert a parsed dict to TsGraphConfig; unknown keys are ignored."""
    config = TsGraphConfig()

    if "libraries" in data and isinstance(data["libraries"], list):
        config.libraries = [str(p) for p in data["libraries"]]
    if "include" in data and isinstance(data["include"], list):
        config.include = [str(p) for p in data["include"]]
    if "exclude" in data and isinstance(data["exclude"], list):
        config.exclude = [str(p) for p in data["exclude"]]
    if "parallel" in data:
        config.parallel = bool(data["parallel"])
    if "parallel_workers" in data:
        config.parallel_workers = int(data["parallel_workers"])
    if "format" in data:
        config.format = str(data["format"])
    if "log_level" in data:
        config.log_level = str(data["log_level"])

    return config
