"""tsgraph Expression Lowering.

Every operator becomes a call: binary operators are method calls on the
left operand named by the operator token, unary operators are calls of a
variable named by the token (``POST_`` prefixed for postfix forms). Literal
values are replaced by typed placeholder constants and type assertions are
transparent. Function literals are never inlined; they are handed to the
caller's `allocate_lambda` callback, which hoists them and returns a `Var`.
"""

from __future__ import annotations

from typing import Callable, List

from tree_sitter import Node

from tsgraph.ast_nodes import (
    Expr, Var, Const, FuncCall, ObjLiteral, Access, IfExpr, NamedValue, TVar,
    ANY, THIS, SUPER, SPREAD, TYPE_OF, DELETE, YIELD,
)
from tsgraph.errors import UnsupportedSyntax, StructuralViolation
from tsgraph.provider import TypeOracle, node_text, named_children, line_of

AllocateLambda = Callable[[Node], Var]


_CONST_TYPES = {
    "number": "number",
    "string": "string",
    "template_string": "string",
    "regex": "RegExpr",
    "true": "bool",
    "false": "bool",
    "array": "array",
    # destructuring targets on the left of `=`
    "array_pattern": "array",
}

LAMBDA_KINDS = {"arrow_function", "function_expression", "function", "generator_function"}

_TRANSPARENT_KINDS = {"as_expression", "satisfies_expression", "non_null_expression"}

_UNARY_SENTINELS = {"typeof": TYPE_OF, "delete": DELETE}


def lower_expr(node: Node, oracle: TypeOracle, allocate_lambda: AllocateLambda) -> Expr:
    """Lower one expression node, hoisting any function literals it contains."""

    def const(n: Node, type_name: str, value: str = "???") -> Const:
        return Const(value, TVar(type_name), line_of(n))

    def operand(n: Node) -> Node:
        children = named_children(n)
        if not children:
            raise StructuralViolation(f"missing operand in: {node_text(n)}", node_kind=n.type)
        return children[0]

    def field(n: Node, name: str) -> Node:
        child = n.child_by_field_name(name)
        if child is None:
            raise StructuralViolation(f"{n.type} without {name}: {node_text(n)}",
                                      node_kind=n.type)
        return child

    def binary(left: Node, op: str, right: Node) -> Expr:
        return FuncCall(Access(rec(left), op), (rec(right),))

    def rec(n: Node) -> Expr:
        kind = n.type

        if kind in ("identifier", "undefined"):
            return Var(oracle.qualified_name(n))
        if kind == "this":
            return THIS
        if kind == "super":
            return SUPER

        if kind == "call_expression":
            callee = rec(field(n, "function"))
            arguments = field(n, "arguments")
            if arguments.type != "arguments":
                raise UnsupportedSyntax("tagged_template", node_text(n), context="expression")
            return FuncCall(callee, tuple(rec(a) for a in named_children(arguments)))

        if kind == "new_expression":
            arguments = n.child_by_field_name("arguments")
            args = tuple(rec(a) for a in named_children(arguments)) if arguments else ()
            return FuncCall(Access(rec(field(n, "constructor")), "CONSTRUCTOR"), args)

        if kind == "object":
            return ObjLiteral(tuple(
                NamedValue(property_name(p.child_by_field_name("key")),
                           rec(field(p, "value")))
                for p in named_children(n) if p.type == "pair"
            ))
        if kind == "object_pattern":
            return ObjLiteral(tuple(
                NamedValue(property_name(p.child_by_field_name("key")),
                           rec(field(p, "value")))
                for p in named_children(n) if p.type == "pair_pattern"
            ))

        if kind == "member_expression":
            return Access(rec(field(n, "object")), node_text(field(n, "property")))

        if kind == "subscript_expression":
            index = rec(field(n, "index"))
            return FuncCall(Access(rec(field(n, "object")), "access"), (index,))

        if kind == "ternary_expression":
            return IfExpr(rec(field(n, "condition")),
                          rec(field(n, "consequence")),
                          rec(field(n, "alternative")))

        if kind == "parenthesized_expression":
            return rec(operand(n))

        # constants
        if kind in _CONST_TYPES:
            return const(n, _CONST_TYPES[kind])
        if kind == "null":
            return const(n, ANY.name, "null")

        # operators
        if kind == "binary_expression":
            op = node_text(field(n, "operator"))
            return binary(field(n, "left"), op, field(n, "right"))
        if kind == "assignment_expression":
            return binary(field(n, "left"), "=", field(n, "right"))
        if kind == "augmented_assignment_expression":
            op = node_text(field(n, "operator"))
            return binary(field(n, "left"), op, field(n, "right"))
        if kind == "sequence_expression":
            items = named_children(n)
            result = rec(items[0])
            for item in items[1:]:
                result = FuncCall(Access(result, ","), (rec(item),))
            return result

        if kind == "unary_expression":
            op = node_text(field(n, "operator"))
            if op == "void":
                return const(n, ANY.name, "void")
            arg = rec(field(n, "argument"))
            if op in _UNARY_SENTINELS:
                return FuncCall(_UNARY_SENTINELS[op], (arg,))
            return FuncCall(Var(op), (arg,))
        if kind == "update_expression":
            op = node_text(field(n, "operator"))
            is_prefix = n.children[0].type == op
            fixity = "" if is_prefix else "POST_"
            return FuncCall(Var(fixity + op), (rec(field(n, "argument")),))

        if kind in LAMBDA_KINDS:
            return allocate_lambda(n)

        # special treatments
        if kind == "spread_element":
            return FuncCall(SPREAD, (rec(operand(n)),))
        if kind == "yield_expression":
            return FuncCall(YIELD, (rec(operand(n)),))

        # type assertions are ignored
        if kind in _TRANSPARENT_KINDS:
            return rec(operand(n))
        if kind == "type_assertion":
            return rec(named_children(n)[-1])

        raise UnsupportedSyntax(kind, node_text(n), context="expression")

    return rec(node)


def property_name(key: Node) -> str:
    """Field name of an object-literal key; string keys lose their quotes."""
    if key is None:
        raise StructuralViolation("object member without a key")
    if key.type == "string":
        fragments: List[str] = [node_text(c) for c in key.named_children]
        return "".join(fragments) or node_text(key)[1:-1]
    return node_text(key)
