"""tsgraph Module Driver.

Parses a batch of source files together with their library declaration
files and lowers every file into a `Module`. A failure anywhere inside a
file aborts the batch with a `LoweringFailure` that names the file, the line
and the syntax-kind path of the statement being lowered.

Usage:
    from tsgraph.driver import lower_files, lower_source
    modules = lower_files(["src/app.ts"], ["lib/lib.es5.d.ts"])
    module = lower_source("let x = 1;", "inline.ts")
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from tree_sitter import Node, Tree

from tsgraph.ast_nodes import Module, Stmt
from tsgraph.errors import LoweringError, LoweringFailure, UnsupportedSyntax
from tsgraph.provider import (
    ParseContext, TypeOracle, ast_path, line_of, location_of, named_children, node_text,
)
from tsgraph.statements import StatementLowerer

logger = logging.getLogger(__name__)


def lower_files(source_paths: Sequence[str],
                library_paths: Sequence[str] = ()) -> List[Module]:
    """Lower each source file, in the order given."""
    ctx = ParseContext.from_paths(list(source_paths), list(library_paths))
    return [lower_tree(path, ctx.source_file(path), ctx.oracle) for path in source_paths]


def lower_source(text: str, name: str = "<stdin>", tsx: Optional[bool] = None) -> Module:
    """Lower in-memory source text as if it were the file `name`."""
    if tsx is None:
        tsx = name.endswith(".tsx")
    ctx = ParseContext.from_source(name, text, tsx=tsx)
    return lower_tree(name, ctx.source_file(name), ctx.oracle)


def lower_tree(name: str, tree: Tree, oracle: TypeOracle) -> Module:
    root = tree.root_node
    if root.has_error:
        _raise_syntax_error(name, root)
    lowerer = StatementLowerer(oracle)
    stmts: List[Stmt] = []
    for node in named_children(root):
        try:
            stmts.extend(lowerer.lower_stmt(node))
        except LoweringError as e:
            failing = lowerer.failing_node or node
            _fail(name, failing, e)
    logger.debug("lowered %s: %d top-level statement(s), %d lambda(s)",
                 name, len(stmts), lowerer.lambda_count)
    return Module(name, tuple(stmts))


def _first_syntax_error(node: Node) -> Optional[Node]:
    """First ERROR or MISSING node in source order."""
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_syntax_error(child)
            if found is not None:
                return found
    return None


def _raise_syntax_error(name: str, root: Node) -> None:
    bad = _first_syntax_error(root) or root
    if bad.is_missing:
        error = UnsupportedSyntax(f"MISSING {bad.type}", node_text(bad.parent or bad))
    else:
        error = UnsupportedSyntax(bad.type, node_text(bad))
    _fail(name, bad, error)


def _fail(name: str, failing: Node, error: LoweringError) -> None:
    error.location = location_of(failing, name)
    path = ast_path(failing)
    logger.debug("lowering failed in %s at line %d\nstatement: %s\nast path: %s",
                 name, line_of(failing), node_text(failing), " -> ".join(path))
    raise LoweringFailure(name, line_of(failing), path, error) from error
