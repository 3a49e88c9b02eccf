"""tsgraph Statement Lowering.

Maps TypeScript statements and declarations onto the closed statement
vocabulary. One `StatementLowerer` is created per source file; it owns the
`$Lambda<n>` counter so synthesized names are deterministic within a file.
Each `lower_stmt` call collects the function literals hoisted out of its
expressions and emits them immediately before the statements it produces.

Lowering rules that lose information on purpose:
  - `try A catch B finally C` becomes `A ++ C`; the catch clause and its
    binding are dropped because exceptions are not modelled.
  - namespaces, ambient declarations, `for-of`/`for-in`, `import x = ...`,
    `break` and `continue` are kept only as raw-text `CommentStmt`s.
"""

from __future__ import annotations

import logging
from typing import Optional, List, Sequence, Tuple

from tree_sitter import Node

from tsgraph.ast_nodes import (
    Stmt, Expr, Var, Const, FuncCall, ObjLiteral, NamedValue, TVar, GType,
    VarDef, AssignStmt, ExprStmt, IfStmt, WhileStmt, BlockStmt, ImportStmt,
    ExportStmt, CommentStmt, TypeAliasStmt, FuncDef, Constructor, ClassDef,
    SWITCH, CASE, flatten_block,
)
from tsgraph.bindings import DECLARATION_KINDS, lower_variable_declaration
from tsgraph.errors import UnsupportedSyntax, StructuralViolation, must_exist
from tsgraph.expressions import lower_expr
from tsgraph.provider import TypeOracle, node_text, named_children, line_of, has_keyword
from tsgraph.types import lower_type, lower_type_annotation, collect_type_param_names

logger = logging.getLogger(__name__)


_FUNCTION_DECLARATIONS = {
    "function_declaration", "generator_function_declaration", "function_signature",
}

_CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}

_METHOD_MEMBERS = {"method_definition", "method_signature", "abstract_method_signature"}

_COMMENTED_KINDS = {
    "ambient_declaration", "module", "internal_module", "for_in_statement",
    "import_alias", "break_statement", "continue_statement",
}

_SKIPPED_KINDS = {"empty_statement", "hash_bang_line"}


class _Hoisting:
    """Expression lowering for one `lower_stmt` call.

    Function literals met while lowering are turned into `FuncDef`s and
    collected in `hoisted`, in encounter order.
    """

    def __init__(self, lowerer: StatementLowerer):
        self.lowerer = lowerer
        self.hoisted: List[FuncDef] = []

    def expr(self, node: Node) -> Expr:
        return lower_expr(node, self.lowerer.oracle, self.allocate_lambda)

    def allocate_lambda(self, fn: Node) -> Var:
        name_node = fn.child_by_field_name("name")
        if name_node is not None:
            name = node_text(name_node)
        else:
            name = self.lowerer.next_lambda_name()
        self.hoisted.append(self.lowerer.lower_function(name, fn, ()))
        return Var(name)

    def along_with(self, stmts: Sequence[Stmt]) -> Tuple[Stmt, ...]:
        return tuple(self.hoisted) + tuple(stmts)


class StatementLowerer:
    """Lowers the statements of one source file."""

    def __init__(self, oracle: Optional[TypeOracle] = None):
        self.oracle = oracle or TypeOracle()
        self.lambda_count = 0
        self._active: List[Node] = []

    def next_lambda_name(self) -> str:
        name = f"$Lambda{self.lambda_count}"
        self.lambda_count += 1
        return name

    @property
    def failing_node(self) -> Optional[Node]:
        """Innermost statement whose lowering did not complete."""
        return self._active[-1] if self._active else None

    def lower_stmt(self, node: Node, modifiers: Sequence[str] = ()) -> Tuple[Stmt, ...]:
        """Lower one statement to zero or more statements, hoisted lambdas first."""
        self._active.append(node)
        scope = _Hoisting(self)
        result = scope.along_with(self._dispatch(node, scope, list(modifiers)))
        self._active.pop()
        return result

    def lower_block(self, node: Node) -> List[Stmt]:
        """Statements of a body: a block's items, or the single statement."""
        if node.type == "statement_block":
            stmts: List[Stmt] = []
            for child in named_children(node):
                stmts.extend(self.lower_stmt(child))
            return stmts
        return list(self.lower_stmt(node))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, node: Node, ep: _Hoisting, modifiers: List[str]) -> List[Stmt]:
        kind = node.type

        if kind in ("expression_statement", "throw_statement"):
            expr = _first_child(node)
            if expr.type in ("module", "internal_module"):
                return [CommentStmt(node_text(node))]
            if expr.type == "assignment_expression":
                lhs = ep.expr(_field(expr, "left"))
                rhs = ep.expr(_field(expr, "right"))
                return [AssignStmt(lhs, rhs)]
            return [ExprStmt(ep.expr(expr), expr.type == "yield_expression")]

        if kind == "return_statement":
            children = named_children(node)
            if not children:
                return [CommentStmt("return;")]
            return [ExprStmt(ep.expr(children[0]), True)]

        if kind in DECLARATION_KINDS:
            return list(lower_variable_declaration(node, ep.expr, modifiers))

        if kind == "if_statement":
            cond = ep.expr(_field(node, "condition"))
            then = flatten_block(self.lower_block(_field(node, "consequence")))
            alternative = node.child_by_field_name("alternative")
            if alternative is None:
                otherwise: Stmt = BlockStmt(())
            else:
                otherwise = flatten_block(self.lower_block(_first_child(alternative)))
            return [IfStmt(cond, then, otherwise)]

        if kind == "while_statement":
            cond = ep.expr(_field(node, "condition"))
            body = flatten_block(self.lower_block(_field(node, "body")))
            return [WhileStmt(cond, body)]

        if kind == "for_statement":
            return self._lower_for(node, ep)

        if kind == "statement_block":
            return [BlockStmt(tuple(self.lower_block(node)))]

        if kind in _FUNCTION_DECLARATIONS:
            name = self.oracle.qualified_name(_field(node, "name"))
            return [self.lower_function(name, node, modifiers)]

        if kind in _CLASS_DECLARATIONS:
            return [self._lower_class(node, modifiers)]

        if kind == "switch_statement":
            return self._lower_switch(node, ep)

        if kind == "import_statement":
            if any(c.type == "import_require_clause" for c in node.named_children):
                return [CommentStmt(node_text(node))]
            return [ImportStmt(node_text(node))]

        if kind == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is None:
                return [ExportStmt(node_text(node))]
            tags = ["export", "default"] if has_keyword(node, "default") else ["export"]
            return list(self.lower_stmt(declaration, tags))

        if kind == "enum_declaration":
            return [self._lower_enum(node, modifiers)]

        if kind == "interface_declaration":
            name = node_text(_field(node, "name"))
            ty = lower_type(_field(node, "body"))
            return [TypeAliasStmt(name, tuple(collect_type_param_names(node)), ty,
                                  tuple(modifiers))]

        if kind == "type_alias_declaration":
            name = node_text(_field(node, "name"))
            ty = lower_type(_field(node, "value"))
            return [TypeAliasStmt(name, tuple(collect_type_param_names(node)), ty,
                                  tuple(modifiers))]

        if kind == "try_statement":
            stmts = self.lower_block(_field(node, "body"))
            finalizer = node.child_by_field_name("finalizer")
            if finalizer is not None:
                stmts.extend(self.lower_block(_field(finalizer, "body")))
            return stmts

        if kind in _COMMENTED_KINDS:
            return [CommentStmt(node_text(node))]

        if kind in _SKIPPED_KINDS:
            return []

        raise UnsupportedSyntax(kind, node_text(node), context="stmt")

    # ------------------------------------------------------------------
    # Loops and switch
    # ------------------------------------------------------------------

    def _lower_for(self, node: Node, ep: _Hoisting) -> List[Stmt]:
        cond = _expression_part(node, "condition")
        if cond is None:
            raise StructuralViolation(f"for loop without a condition: {node_text(node)}",
                                      node_kind=node.type)

        stmts: List[Stmt] = []
        init = _field_node(node, "initializer")
        if init is not None and init.type in DECLARATION_KINDS:
            stmts.extend(lower_variable_declaration(init, ep.expr))
        else:
            init_expr = _expression_part(node, "initializer")
            if init_expr is not None:
                stmts.append(ExprStmt(ep.expr(init_expr), False))

        # condition and increment take their lambda numbers before the body
        cond_expr = ep.expr(cond)
        increment = _expression_part(node, "increment")
        step = ExprStmt(ep.expr(increment), False) if increment is not None else None
        body = self.lower_block(_field(node, "body"))
        if step is not None:
            body.append(step)

        stmts.append(WhileStmt(cond_expr, flatten_block(body)))
        return stmts

    def _lower_switch(self, node: Node, ep: _Hoisting) -> List[Stmt]:
        stmts: List[Stmt] = [ExprStmt(FuncCall(SWITCH, (ep.expr(_field(node, "value")),)), False)]
        for clause in named_children(_field(node, "body")):
            if clause.type == "switch_case":
                guard = _field(clause, "value")
                stmts.append(ExprStmt(FuncCall(CASE, (ep.expr(guard),)), False))
                body = [c for c in named_children(clause) if c != guard]
            elif clause.type == "switch_default":
                body = named_children(clause)
            else:
                raise UnsupportedSyntax(clause.type, node_text(clause), context="switch clause")
            for s in body:
                stmts.extend(self.lower_stmt(s))
        return stmts

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def lower_function(self, name: str, node: Node, modifiers: Sequence[str],
                       is_constructor: bool = False) -> FuncDef:
        """Shared lowering of functions, lambdas, methods, accessors and constructors."""
        params: List[NamedValue] = []
        public_vars: List[str] = []

        single = node.child_by_field_name("parameter")
        if single is not None:
            params.append(NamedValue(node_text(single), None))
        formal = node.child_by_field_name("parameters")
        if formal is not None:
            for p in named_children(formal):
                if p.type not in ("required_parameter", "optional_parameter"):
                    raise UnsupportedSyntax(p.type, node_text(p), context="parameter")
                param_name = _parameter_name(p)
                if any(c.type == "accessibility_modifier" for c in p.children):
                    public_vars.append(param_name)
                params.append(NamedValue(
                    param_name, lower_type_annotation(p.child_by_field_name("type"))))

        if is_constructor:
            return_type: Optional[GType] = TVar("void")
        else:
            return_type = lower_type_annotation(node.child_by_field_name("return_type"))

        body_node = node.child_by_field_name("body")
        if body_node is None:
            body: List[Stmt] = []
        elif body_node.type == "statement_block":
            body = self.lower_block(body_node)
        else:
            # concise arrow body
            scope = _Hoisting(self)
            body = list(scope.along_with([ExprStmt(scope.expr(body_node), True)]))

        type_params = tuple(collect_type_param_names(node))
        if is_constructor:
            return Constructor(name, tuple(params), return_type, flatten_block(body),
                               tuple(modifiers), type_params, tuple(public_vars))
        return FuncDef(name, tuple(params), return_type, flatten_block(body),
                       tuple(modifiers), type_params)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _lower_class(self, node: Node, modifiers: Sequence[str]) -> ClassDef:
        name = self.oracle.qualified_name(_field(node, "name"))

        superclass = None
        for heritage in node.named_children:
            if heritage.type != "class_heritage":
                continue
            for clause in heritage.named_children:
                if clause.type == "extends_clause":
                    superclass = node_text(_field(clause, "value"))

        fields: List[Tuple[NamedValue, bool]] = []
        methods: List[Tuple[FuncDef, bool]] = []
        constructor: Optional[Constructor] = None

        for member in named_children(_field(node, "body")):
            kind = member.type
            is_static = has_keyword(member, "static")
            if kind == "decorator":
                continue
            if kind == "public_field_definition":
                field_name = must_exist(node_text(_field(member, "name")), "field name", kind)
                mark = lower_type_annotation(member.child_by_field_name("type"))
                fields.append((NamedValue(field_name, mark), is_static))
            elif kind in _METHOD_MEMBERS and _is_constructor(member):
                if constructor is not None:
                    raise StructuralViolation(
                        f"Multiple constructors in class {name}", node_kind=kind,
                        text=node_text(member))
                self._active.append(member)
                constructor = self.lower_function(
                    "Constructor", member, _member_modifiers(member), is_constructor=True)
                self._active.pop()
                for p in constructor.params:
                    if p.name in constructor.public_vars:
                        fields.append((p, False))
            elif kind in _METHOD_MEMBERS:
                self._active.append(member)
                method_name = self.oracle.qualified_name(_field(member, "name"))
                methods.append((self.lower_function(
                    method_name, member, _member_modifiers(member)), is_static))
                self._active.pop()
            else:
                raise UnsupportedSyntax(kind, node_text(member), context="class member")

        logger.debug("lowered class %s: %d field(s), %d method(s)", name, len(fields), len(methods))
        return ClassDef(name, constructor, tuple(fields), tuple(methods), superclass,
                        tuple(modifiers), tuple(collect_type_param_names(node)))

    def _lower_enum(self, node: Node, modifiers: Sequence[str]) -> VarDef:
        name = node_text(_field(node, "name"))
        line = line_of(node)
        members = []
        for member in named_children(_field(node, "body")):
            member_name = member.child_by_field_name("name") if member.type == "enum_assignment" \
                else member
            members.append(NamedValue(node_text(member_name), Const("ENUM", TVar("number"), line)))
        tags = list(modifiers)
        if has_keyword(node, "const"):
            tags.append("const")
        return VarDef(name, None, ObjLiteral(tuple(members)), True, tuple(tags))


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------

def _field(node: Node, name: str) -> Node:
    child = node.child_by_field_name(name)
    if child is None:
        raise StructuralViolation(f"{node.type} without {name}: {node_text(node)}",
                                  node_kind=node.type)
    return child


def _first_child(node: Node) -> Node:
    children = named_children(node)
    if not children:
        raise StructuralViolation(f"empty {node.type}: {node_text(node)}", node_kind=node.type)
    return children[0]


def _field_node(node: Node, name: str) -> Optional[Node]:
    """First named node carrying field `name`; punctuation is skipped."""
    for child in node.children_by_field_name(name):
        if child.is_named and child.type != "comment":
            return child
    return None


def _expression_part(node: Node, name: str) -> Optional[Node]:
    """Expression held by a `for` header part, or None when the part is empty."""
    part = _field_node(node, name)
    if part is None or part.type == "empty_statement":
        return None
    if part.type == "expression_statement":
        return _first_child(part)
    return part


def _parameter_name(param: Node) -> str:
    pattern = _field(param, "pattern")
    if pattern.type == "rest_pattern":
        pattern = _first_child(pattern)
    return must_exist(node_text(pattern), "parameter name", param.type)


def _is_constructor(member: Node) -> bool:
    name = member.child_by_field_name("name")
    return name is not None and node_text(name) == "constructor"


def _member_modifiers(member: Node) -> List[str]:
    tags = []
    for c in member.children:
        if c.type == "static" and not c.is_named:
            tags.append("static")
        elif c.type == "accessibility_modifier" and node_text(c) == "public":
            tags.append("public")
    if has_keyword(member, "get"):
        tags.append("get")
    elif has_keyword(member, "set"):
        tags.append("set")
    return tags
