"""tsgraph Parallel Lowering — Multi-process file lowering.

Lowers multiple files in parallel using Python's multiprocessing. Files are
independent of each other, so each worker parses its file and the shared
library declarations on its own and returns a finished `Module`.

Usage:
    from tsgraph.parallel import parallel_lower
    modules = parallel_lower(files, libraries, workers=4)
"""

from __future__ import annotations

import logging
from multiprocessing import Pool, cpu_count
from typing import List, Sequence, Tuple

from tsgraph.ast_nodes import Module
from tsgraph.driver import lower_files

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Worker function (must be top-level for pickling)
# ---------------------------------------------------------------------------

def _lower_single_file(args: Tuple[str, Tuple[str, ...]]) -> Module:
    """Lower a single file (worker function for multiprocessing).

    Args:
        args: (filepath, library paths)
    """
    filepath, libraries = args
    return lower_files([filepath], libraries)[0]


# ---------------------------------------------------------------------------
# Parallel Driver
# ---------------------------------------------------------------------------

def parallel_lower(source_paths: Sequence[str], library_paths: Sequence[str] = (),
                   workers: int = 0) -> List[Module]:
    """Lower files in parallel; results keep the order of `source_paths`.

    The first `LoweringFailure` raised by a worker aborts the batch and is
    re-raised here.

    Args:
        source_paths: Files to lower
        library_paths: Library declaration files shared by every worker
        workers: Number of worker processes (0 = auto = cpu_count)
    """
    files = list(source_paths)
    if not files:
        return []

    # Determine worker count
    if workers <= 0:
        workers = min(cpu_count(), len(files), 8)  # Cap at 8 workers
    workers = max(1, workers)

    work_items = [(f, tuple(library_paths)) for f in files]

    if workers == 1 or len(files) <= 2:
        # Sequential for small sets (avoid multiprocessing overhead)
        return lower_files(files, library_paths)

    logger.debug("lowering %d file(s) with %d workers", len(files), workers)
    with Pool(processes=workers) as pool:
        return pool.map(_lower_single_file, work_items)
