"""tsgraph graph vocabulary.

The closed set of types, expressions and statements every TypeScript
construct is lowered onto. Nodes are frozen; sequences are stored as tuples.
`to_dict()` produces the JSON layout consumed by the graph builder: each
object carries a ``category`` tag and the field names that consumer expects.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from tsgraph.errors import StructuralViolation, must_exist


def _freeze(node, *names: str) -> None:
    for name in names:
        object.__setattr__(node, name, tuple(getattr(node, name)))


def _mark_dict(mark: Optional[GType]) -> Optional[dict[str, Any]]:
    return mark.to_dict() if mark is not None else None


@dataclass(frozen=True)
class NamedValue:
    """A (name, value) pair used for object fields and parameters."""
    name: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        value = self.value.to_dict() if hasattr(self.value, "to_dict") else self.value
        return {"name": self.name, "value": value}


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GType:
    pass


@dataclass(frozen=True)
class TVar(GType):
    name: str = ""

    def __post_init__(self):
        must_exist(self.name, "type variable name")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "TVar", "name": self.name}

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class AnyType(GType):
    """The erased/unknown type. Use the `ANY` instance."""

    name = "any"

    def to_dict(self) -> dict[str, Any]:
        return {"category": "AnyType", "name": self.name}

    def __str__(self) -> str:
        return self.name


ANY = AnyType()


@dataclass(frozen=True)
class FuncType(GType):
    args: tuple[GType, ...] = ()
    to: GType = ANY

    def __post_init__(self):
        _freeze(self, "args")

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": "FuncType",
            "args": [a.to_dict() for a in self.args],
            "to": self.to.to_dict(),
        }

    def __str__(self) -> str:
        return f"({', '.join(str(a) for a in self.args)}) -> {self.to}"


@dataclass(frozen=True)
class ObjectType(GType):
    fields: tuple[NamedValue, ...] = ()

    def __post_init__(self):
        _freeze(self, "fields")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "ObjectType", "fields": [f.to_dict() for f in self.fields]}

    def __str__(self) -> str:
        return "{" + ", ".join(f"{f.name}: {f.value}" for f in self.fields) + "}"


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Expr:
    pass


@dataclass(frozen=True)
class Var(Expr):
    name: str = ""

    def __post_init__(self):
        must_exist(self.name, "variable name")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "Var", "name": self.name}


@dataclass(frozen=True)
class Const(Expr):
    value: str = "???"
    ty: GType = ANY
    line: int = -1

    def __post_init__(self):
        must_exist(self.value, "constant value")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "Const", "value": self.value,
                "ty": self.ty.to_dict(), "line": self.line}


@dataclass(frozen=True)
class FuncCall(Expr):
    callee: Expr = field(default_factory=Expr)
    args: tuple[Expr, ...] = ()

    def __post_init__(self):
        _freeze(self, "args")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "FuncCall", "f": self.callee.to_dict(),
                "args": [a.to_dict() for a in self.args]}


@dataclass(frozen=True)
class ObjLiteral(Expr):
    fields: tuple[NamedValue, ...] = ()

    def __post_init__(self):
        _freeze(self, "fields")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "ObjLiteral", "fields": [f.to_dict() for f in self.fields]}


@dataclass(frozen=True)
class Access(Expr):
    base: Expr = field(default_factory=Expr)
    field_name: str = ""

    def __post_init__(self):
        must_exist(self.field_name, "field name")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "Access", "expr": self.base.to_dict(), "field": self.field_name}


@dataclass(frozen=True)
class IfExpr(Expr):
    cond: Expr = field(default_factory=Expr)
    then: Expr = field(default_factory=Expr)
    otherwise: Expr = field(default_factory=Expr)

    def to_dict(self) -> dict[str, Any]:
        return {"category": "IfExpr", "cond": self.cond.to_dict(),
                "e1": self.then.to_dict(), "e2": self.otherwise.to_dict()}


# Pre-interned sentinel variables.
THIS = Var("this")
SUPER = Var("super")
SPREAD = Var("$Spread")
TYPE_OF = Var("$TypeOf")
DELETE = Var("$Delete")
YIELD = Var("$Yield")
SWITCH = Var("$Switch")
CASE = Var("$Case")
ARRAY_ACCESS = Var("$ArrayAccess")

UNDEFINED_VALUE = Const("undefined", ANY, -1)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Stmt:
    pass


@dataclass(frozen=True)
class VarDef(Stmt):
    name: str = ""
    mark: Optional[GType] = None
    init: Expr = UNDEFINED_VALUE
    is_const: bool = False
    modifiers: tuple[str, ...] = ()

    def __post_init__(self):
        must_exist(self.name, "variable name")
        _freeze(self, "modifiers")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "VarDef", "x": self.name, "mark": _mark_dict(self.mark),
                "init": self.init.to_dict(), "isConst": self.is_const,
                "modifiers": list(self.modifiers)}


@dataclass(frozen=True)
class AssignStmt(Stmt):
    lhs: Expr = field(default_factory=Expr)
    rhs: Expr = field(default_factory=Expr)

    def to_dict(self) -> dict[str, Any]:
        return {"category": "AssignStmt", "lhs": self.lhs.to_dict(), "rhs": self.rhs.to_dict()}


@dataclass(frozen=True)
class ExprStmt(Stmt):
    expr: Expr = field(default_factory=Expr)
    is_return: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"category": "ExprStmt", "expr": self.expr.to_dict(), "isReturn": self.is_return}


@dataclass(frozen=True)
class IfStmt(Stmt):
    cond: Expr = field(default_factory=Expr)
    then: Stmt = field(default_factory=Stmt)
    otherwise: Stmt = field(default_factory=Stmt)

    def to_dict(self) -> dict[str, Any]:
        return {"category": "IfStmt", "cond": self.cond.to_dict(),
                "branch1": self.then.to_dict(), "branch2": self.otherwise.to_dict()}


@dataclass(frozen=True)
class WhileStmt(Stmt):
    cond: Expr = field(default_factory=Expr)
    body: Stmt = field(default_factory=Stmt)

    def to_dict(self) -> dict[str, Any]:
        return {"category": "WhileStmt", "cond": self.cond.to_dict(), "body": self.body.to_dict()}


@dataclass(frozen=True)
class BlockStmt(Stmt):
    stmts: tuple[Stmt, ...] = ()

    def __post_init__(self):
        _freeze(self, "stmts")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "BlockStmt", "stmts": [s.to_dict() for s in self.stmts]}


@dataclass(frozen=True)
class ImportStmt(Stmt):
    text: str = ""

    def __post_init__(self):
        must_exist(self.text, "import text")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "ImportStmt", "text": self.text}


@dataclass(frozen=True)
class ExportStmt(Stmt):
    text: str = ""

    def __post_init__(self):
        must_exist(self.text, "export text")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "ExportStmt", "text": self.text}


@dataclass(frozen=True)
class CommentStmt(Stmt):
    """Opaque placeholder for constructs the vocabulary does not model."""
    text: str = ""

    def __post_init__(self):
        must_exist(self.text, "comment text")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "CommentStmt", "text": self.text}


@dataclass(frozen=True)
class TypeAliasStmt(Stmt):
    name: str = ""
    type_params: tuple[str, ...] = ()
    ty: GType = ANY
    modifiers: tuple[str, ...] = ()

    def __post_init__(self):
        must_exist(self.name, "type alias name")
        _freeze(self, "type_params", "modifiers")

    def to_dict(self) -> dict[str, Any]:
        return {"category": "TypeAliasStmt", "name": self.name,
                "tyVars": list(self.type_params), "type": self.ty.to_dict(),
                "modifiers": list(self.modifiers)}


@dataclass(frozen=True)
class FuncDef(Stmt):
    name: str = ""
    params: tuple[NamedValue, ...] = ()
    return_type: Optional[GType] = None
    body: Stmt = field(default_factory=lambda: BlockStmt(()))
    modifiers: tuple[str, ...] = ()
    type_params: tuple[str, ...] = ()

    def __post_init__(self):
        must_exist(self.name, "function name")
        _freeze(self, "params", "modifiers", "type_params")
        if self.name == "Constructor" and self.return_type is not None \
                and self.return_type != TVar("void"):
            raise StructuralViolation(
                f"Wrong return type for constructor. Got: {self.return_type}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": "FuncDef",
            "name": self.name,
            "args": [{"name": p.name, "value": _mark_dict(p.value)} for p in self.params],
            "returnType": _mark_dict(self.return_type),
            "body": self.body.to_dict(),
            "modifiers": list(self.modifiers),
            "tyVars": list(self.type_params),
        }


@dataclass(frozen=True)
class Constructor(FuncDef):
    """A class constructor; `public_vars` are parameters promoted to fields."""
    public_vars: tuple[str, ...] = ()

    def __post_init__(self):
        super().__post_init__()
        _freeze(self, "public_vars")

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["publicVars"] = list(self.public_vars)
        return d


@dataclass(frozen=True)
class ClassDef(Stmt):
    name: str = ""
    constructor: Optional[Constructor] = None
    fields: tuple[tuple[NamedValue, bool], ...] = ()
    methods: tuple[tuple[FuncDef, bool], ...] = ()
    superclass: Optional[str] = None
    modifiers: tuple[str, ...] = ()
    type_params: tuple[str, ...] = ()

    def __post_init__(self):
        must_exist(self.name, "class name")
        object.__setattr__(self, "fields", tuple((f, bool(s)) for f, s in self.fields))
        object.__setattr__(self, "methods", tuple((m, bool(s)) for m, s in self.methods))
        _freeze(self, "modifiers", "type_params")

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": "ClassDef",
            "name": self.name,
            "constructor": self.constructor.to_dict() if self.constructor else None,
            "vars": [[{"name": f.name, "value": _mark_dict(f.value)}, s] for f, s in self.fields],
            "funcDefs": [[m.to_dict(), s] for m, s in self.methods],
            "superType": self.superclass,
            "modifiers": list(self.modifiers),
            "tyVars": list(self.type_params),
        }


def flatten_block(stmts) -> Stmt:
    """A single statement stands for itself; anything else becomes a block."""
    stmts = tuple(stmts)
    if len(stmts) == 1:
        return stmts[0]
    return BlockStmt(stmts)


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Module:
    name: str
    stmts: tuple[Stmt, ...] = ()

    def __post_init__(self):
        _freeze(self, "stmts")

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "stmts": [s.to_dict() for s in self.stmts]}

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
