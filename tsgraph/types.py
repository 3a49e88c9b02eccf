"""tsgraph Type Lowering.

Maps syntactic TypeScript type annotations onto the closed type vocabulary
(TVar, AnyType, FuncType, ObjectType). Type arguments are discarded, unions
other than `T | null` / `T | undefined` collapse to `any`, and generic
parameters are erased by name at the declaration that introduces them.
"""

from __future__ import annotations

from typing import Optional, List, Iterable

from tree_sitter import Node

from tsgraph.ast_nodes import GType, TVar, AnyType, ANY, FuncType, ObjectType, NamedValue
from tsgraph.errors import UnsupportedSyntax, StructuralViolation
from tsgraph.provider import node_text, named_children


_PRIMITIVE_TYPES = {
    "boolean", "number", "string", "symbol", "void", "object", "bigint", "enum",
}

_ERASED_PREDEFINED = {"any", "unknown", "never", "undefined"}

_ERASED_TYPES = {
    "intersection_type", "conditional_type", "this_type", "lookup_type",
    "type_query", "mapped_type_clause",
}

_NAMED_TYPES = {"type_identifier", "nested_type_identifier"}

_NULLISH = {"null", "undefined"}


def lower_type(node: Node) -> GType:
    kind = node.type

    if kind == "type_annotation":
        return lower_type(_only_child(node))

    if kind == "predefined_type":
        name = node_text(node)
        if name in _ERASED_PREDEFINED:
            return ANY
        if name in _PRIMITIVE_TYPES:
            return TVar(name)
        raise UnsupportedSyntax(kind, name, context="type")

    if kind in _NAMED_TYPES:
        return TVar(node_text(node))
    if kind == "generic_type":
        return TVar(node_text(node.child_by_field_name("name")))

    if kind in ("array_type", "tuple_type"):
        return TVar("Array")

    if kind in ("function_type", "constructor_type"):
        return lower_signature_type(node, default_return=None)

    if kind in ("object_type", "interface_body"):
        members = named_children(node)
        if any(_is_mapped_signature(m) for m in members):
            return ANY
        return ObjectType(lower_type_members(members))

    if kind == "union_type":
        members = list(_union_members(node))
        if len(members) == 2:
            first, second = members
            if _is_nullish(second):
                return lower_type(first)
            if _is_nullish(first):
                return lower_type(second)
        return ANY

    if kind in _ERASED_TYPES:
        return ANY

    if kind == "literal_type":
        literal = _only_child(node)
        if literal.type == "string":
            return TVar("string")
        if literal.type in ("true", "false"):
            return TVar("boolean")
        if literal.type == "number":
            return TVar("number")
        return ANY

    if kind in ("type_predicate", "type_predicate_annotation", "asserts", "asserts_annotation"):
        return TVar("boolean")

    if kind == "parenthesized_type":
        return lower_type(_only_child(node))

    raise UnsupportedSyntax(kind, node_text(node), context="type")


def lower_type_annotation(node: Optional[Node]) -> Optional[GType]:
    if node is None:
        return None
    return lower_type(node)


def erase_type_params(ty: GType, names: Iterable[str]) -> GType:
    """Replace every TVar named in `names` with `any`, recursively."""
    names = set(names)
    if not names:
        return ty
    if isinstance(ty, TVar):
        return ANY if ty.name in names else ty
    if isinstance(ty, FuncType):
        return FuncType(tuple(erase_type_params(a, names) for a in ty.args),
                        erase_type_params(ty.to, names))
    if isinstance(ty, ObjectType):
        return ObjectType(tuple(NamedValue(f.name, erase_type_params(f.value, names))
                                for f in ty.fields))
    if isinstance(ty, AnyType):
        return ty
    raise StructuralViolation(f"Unknown type category: {ty!r}")


def collect_type_param_names(decl: Node) -> List[str]:
    """Names introduced by a declaration's `<...>` type parameter list."""
    params = decl.child_by_field_name("type_parameters")
    if params is None:
        return []
    names = []
    for p in named_children(params):
        name = p.child_by_field_name("name")
        if name is None:
            raise StructuralViolation("type parameter without a name", node_kind=p.type)
        names.append(node_text(name))
    return names


# ---------------------------------------------------------------------------
# Signatures and members
# ---------------------------------------------------------------------------

def lower_signature_type(sig: Node, default_return: Optional[GType] = TVar("void")) -> FuncType:
    """FuncType of a call-like signature, with its own type parameters erased."""
    tvars = collect_type_param_names(sig)

    params = sig.child_by_field_name("parameters")
    arg_types = []
    if params is not None:
        for p in named_children(params):
            annotation = p.child_by_field_name("type")
            if annotation is None:
                raise StructuralViolation(
                    f"parameter without a type in signature: {node_text(sig)}",
                    node_kind=p.type)
            arg_types.append(lower_type(annotation))

    ret_node = sig.child_by_field_name("return_type") or sig.child_by_field_name("type")
    if ret_node is not None:
        ret = lower_type(ret_node)
    elif default_return is not None:
        ret = default_return
    else:
        raise StructuralViolation(f"signature without a return type: {node_text(sig)}",
                                  node_kind=sig.type)

    return erase_type_params(FuncType(tuple(arg_types), ret), tvars)


_SIGNATURE_FIELD_NAMES = {
    "call_signature": "call",
    "construct_signature": "CONSTRUCTOR",
}


def lower_type_members(members: Iterable[Node]) -> List[NamedValue]:
    """Lower interface / object-literal type members to named fields."""
    fields = []
    for m in members:
        kind = m.type
        if kind == "property_signature":
            name = _member_name(m)
            annotation = m.child_by_field_name("type")
            fields.append(NamedValue(name, lower_type(annotation) if annotation else ANY))
        elif kind in ("method_signature", "abstract_method_signature"):
            fields.append(NamedValue(_member_name(m), lower_signature_type(m)))
        elif kind == "index_signature":
            fields.append(NamedValue("access", _lower_index_signature(m)))
        elif kind in _SIGNATURE_FIELD_NAMES:
            fields.append(NamedValue(_SIGNATURE_FIELD_NAMES[kind], lower_signature_type(m)))
        else:
            raise UnsupportedSyntax(kind, node_text(m), context="type member")
    return fields


def _lower_index_signature(sig: Node) -> FuncType:
    index_type = sig.child_by_field_name("index_type")
    value_type = sig.child_by_field_name("type")
    if index_type is None or value_type is None:
        raise StructuralViolation(f"incomplete index signature: {node_text(sig)}",
                                  node_kind=sig.type)
    return FuncType((lower_type(index_type),), lower_type(value_type))


def _member_name(member: Node) -> str:
    name = member.child_by_field_name("name")
    if name is None:
        raise UnsupportedSyntax(member.type, node_text(member), context="unnamed type member")
    return node_text(name)


def _is_mapped_signature(member: Node) -> bool:
    return member.type == "index_signature" and any(
        c.type == "mapped_type_clause" for c in member.named_children)


def _union_members(node: Node):
    for c in named_children(node):
        if c.type == "union_type":
            yield from _union_members(c)
        else:
            yield c


def _is_nullish(node: Node) -> bool:
    if node.type == "literal_type":
        return _only_child(node).type in _NULLISH
    return node.type == "predefined_type" and node_text(node) in _NULLISH


def _only_child(node: Node) -> Node:
    children = named_children(node)
    if not children:
        raise StructuralViolation(f"empty {node.type}", node_kind=node.type)
    return children[0]
