"""tsgraph Binding Pattern Resolver.

Expands `var`/`let`/`const` declarators into flat `VarDef` sequences.
Object patterns bind each field to `Access(init, key)`; array patterns bind
each present element to `$ArrayAccess(init)`. Nested patterns recurse on
the rewritten initializer and default values are ignored.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from tree_sitter import Node

from tsgraph.ast_nodes import Expr, GType, VarDef, Access, FuncCall, ARRAY_ACCESS, UNDEFINED_VALUE
from tsgraph.errors import UnsupportedSyntax, StructuralViolation
from tsgraph.provider import node_text, named_children, has_keyword
from tsgraph.types import lower_type_annotation

LowerExpr = Callable[[Node], Expr]

DECLARATION_KINDS = {"lexical_declaration", "variable_declaration"}


def lower_variable_declaration(decl: Node, lower: LowerExpr,
                               modifiers: Sequence[str] = ()) -> List[VarDef]:
    """All bindings introduced by one declaration list, in source order."""
    is_const = decl.type == "lexical_declaration" and has_keyword(decl, "const")
    defs: List[VarDef] = []
    for declarator in named_children(decl):
        if declarator.type != "variable_declarator":
            continue
        target = declarator.child_by_field_name("name")
        if target is None:
            raise StructuralViolation(f"declarator without a name: {node_text(declarator)}",
                                      node_kind=declarator.type)
        value = declarator.child_by_field_name("value")
        init = lower(value) if value is not None else UNDEFINED_VALUE
        mark = lower_type_annotation(declarator.child_by_field_name("type"))
        defs.extend(resolve_binding(target, init, is_const, modifiers, mark))
    return defs


def resolve_binding(target: Node, init: Expr, is_const: bool,
                    modifiers: Sequence[str] = (),
                    mark: Optional[GType] = None) -> List[VarDef]:
    kind = target.type

    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        return [VarDef(node_text(target), mark, init, is_const, tuple(modifiers))]

    if kind == "object_pattern":
        defs = []
        for element in named_children(target):
            key, bound = _object_element(element)
            defs.extend(resolve_binding(bound, Access(init, key), is_const, modifiers))
        return defs

    if kind == "array_pattern":
        accessed = FuncCall(ARRAY_ACCESS, (init,))
        defs = []
        # holes produce no child nodes
        for element in named_children(target):
            defs.extend(resolve_binding(element, accessed, is_const, modifiers))
        return defs

    if kind == "assignment_pattern":
        return resolve_binding(_field(target, "left"), init, is_const, modifiers, mark)

    if kind == "rest_pattern":
        return resolve_binding(_rest_target(target), init, is_const, modifiers, mark)

    raise UnsupportedSyntax(kind, node_text(target), context="binding pattern")


def _object_element(element: Node):
    """(field name, node to bind) for one member of an object pattern."""
    kind = element.type
    if kind == "shorthand_property_identifier_pattern":
        return node_text(element), element
    if kind == "pair_pattern":
        return node_text(_field(element, "key")), _field(element, "value")
    if kind == "object_assignment_pattern":
        left = _field(element, "left")
        if left.type == "shorthand_property_identifier_pattern":
            return node_text(left), left
        return _object_element(left)
    if kind == "rest_pattern":
        target = _rest_target(element)
        return node_text(target), target
    raise UnsupportedSyntax(kind, node_text(element), context="binding pattern")


def _rest_target(rest: Node) -> Node:
    children = named_children(rest)
    if not children:
        raise StructuralViolation(f"empty rest pattern: {node_text(rest)}", node_kind=rest.type)
    return children[0]


def _field(node: Node, name: str) -> Node:
    child = node.child_by_field_name(name)
    if child is None:
        raise StructuralViolation(f"{node.type} without {name}: {node_text(node)}",
                                  node_kind=node.type)
    return child
