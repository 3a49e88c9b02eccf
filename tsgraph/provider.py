"""tsgraph syntax provider — tree-sitter parsing for TypeScript sources.

Parses source and library declaration files with `tree-sitter` and
`tree-sitter-typescript` and hands the lowering passes one tree per file
together with a shared, best-effort `TypeOracle`.

Usage:
    from tsgraph.provider import ParseContext
    ctx = ParseContext.from_paths(["src/app.ts"], ["lib/lib.es5.d.ts"])
    tree = ctx.source_file("src/app.ts")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Iterator

import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser, Tree

from tsgraph.errors import SourceLocation, StructuralViolation, must_exist

logger = logging.getLogger(__name__)

TS_LANGUAGE = Language(tsts.language_typescript())
TSX_LANGUAGE = Language(tsts.language_tsx())

_parsers: Dict[bool, Parser] = {}


def get_parser(tsx: bool = False) -> Parser:
    parser = _parsers.get(tsx)
    if parser is None:
        parser = Parser(TSX_LANGUAGE if tsx else TS_LANGUAGE)
        _parsers[tsx] = parser
    return parser


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------

def node_text(node: Node) -> str:
    return node.text.decode("utf-8")


def line_of(node: Node) -> int:
    """1-based line of the node's first character."""
    return node.start_point[0] + 1


def location_of(node: Node, file: str = "<stdin>") -> SourceLocation:
    return SourceLocation(line=line_of(node), column=node.start_point[1], file=file)


def named_children(node: Node) -> List[Node]:
    """Named children without comments."""
    return [c for c in node.named_children if c.type != "comment"]


def ast_path(node: Node) -> List[str]:
    """Syntax kinds from the root down to `node`."""
    path = []
    current: Optional[Node] = node
    while current is not None:
        path.append(current.type)
        current = current.parent
    path.reverse()
    return path


def has_keyword(node: Node, keyword: str) -> bool:
    """True if `node` has an anonymous child token spelled `keyword`."""
    return any(not c.is_named and c.type == keyword for c in node.children)


# ---------------------------------------------------------------------------
# Type oracle
# ---------------------------------------------------------------------------

class TypeOracle:
    """Best-effort name queries over the parsed program.

    Never performs inference: declarations in library files are indexed by
    name so callers can ask whether a name is provided by a library, and
    qualified names fall back to the literal identifier text.
    """

    def __init__(self, library_trees: Optional[Dict[str, Tree]] = None):
        self._library_names: Dict[str, str] = {}
        for path, tree in (library_trees or {}).items():
            for name in _declared_names(tree.root_node):
                self._library_names.setdefault(name, path)

    def qualified_name(self, node: Node) -> str:
        return must_exist(node_text(node), "declaration name", node.type)

    def library_of(self, name: str) -> Optional[str]:
        """Library file declaring `name`, if any."""
        return self._library_names.get(name)


_DECLARATION_TYPES = {
    "function_declaration", "function_signature", "class_declaration",
    "abstract_class_declaration", "interface_declaration",
    "type_alias_declaration", "enum_declaration", "module", "internal_module",
}


def _declared_names(root: Node) -> Iterator[str]:
    for stmt in named_children(root):
        if stmt.type in ("ambient_declaration", "export_statement", "expression_statement"):
            inner = named_children(stmt)
            if not inner:
                continue
            stmt = inner[0]
        if stmt.type in _DECLARATION_TYPES:
            name = stmt.child_by_field_name("name")
            if name is not None:
                yield node_text(name)
        elif stmt.type in ("lexical_declaration", "variable_declaration"):
            for decl in named_children(stmt):
                name = decl.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    yield node_text(name)


# ---------------------------------------------------------------------------
# Parse context
# ---------------------------------------------------------------------------

def parse_source(source: str | bytes, tsx: bool = False) -> Tree:
    if isinstance(source, str):
        source = source.encode("utf-8")
    return get_parser(tsx).parse(source)


def parse_file(path: str) -> Tree:
    with open(path, "rb") as f:
        source = f.read()
    return parse_source(source, tsx=path.endswith(".tsx"))


@dataclass
class ParseContext:
    """Parsed source files plus the oracle built from library files."""
    trees: Dict[str, Tree] = field(default_factory=dict)
    oracle: TypeOracle = field(default_factory=TypeOracle)

    @classmethod
    def from_paths(cls, source_paths: List[str], library_paths: List[str]) -> ParseContext:
        library_trees = {}
        for path in library_paths:
            library_trees[path] = parse_file(path)
        logger.debug("parsed %d library file(s)", len(library_trees))

        trees = {}
        for path in source_paths:
            if not os.path.isfile(path):
                raise StructuralViolation(f"getSourceFile failed for: {path}")
            trees[path] = parse_file(path)
            if trees[path].root_node.has_error:
                logger.warning("syntax errors reported while parsing %s", path)
        return cls(trees=trees, oracle=TypeOracle(library_trees))

    @classmethod
    def from_source(cls, name: str, source: str, tsx: bool = False) -> ParseContext:
        tree = parse_source(source, tsx=tsx)
        if tree.root_node.has_error:
            logger.warning("syntax errors reported while parsing %s", name)
        return cls(trees={name: tree}, oracle=TypeOracle())

    def source_file(self, path: str) -> Tree:
        tree = self.trees.get(path)
        if tree is None:
            raise StructuralViolation(f"getSourceFile failed for: {path}")
        return tree
