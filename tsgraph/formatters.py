"""tsgraph Output Formatters — Human-friendly terminal output.

Provides multiple output modes:
    json     — machine-readable module trees (default)
    pretty   — colored, indented pseudo-code per module
    summary  — one line per module with statement counts
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Sequence

from tsgraph.ast_nodes import (
    Module, GType, TVar, AnyType, FuncType, ObjectType,
    Expr, Var, Const, FuncCall, ObjLiteral, Access, IfExpr,
    Stmt, VarDef, AssignStmt, ExprStmt, IfStmt, WhileStmt, BlockStmt, ImportStmt,
    ExportStmt, CommentStmt, TypeAliasStmt, FuncDef, Constructor, ClassDef,
)
from tsgraph.errors import LoweringFailure


# ── ANSI color helpers ───────────────────────────────────────────────────

_NO_COLOR = os.environ.get("NO_COLOR") is not None or not sys.stdout.isatty()


def _c(code: str, text: str) -> str:
    if _NO_COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def red(t: str) -> str:
    return _c("31", t)


def green(t: str) -> str:
    return _c("32", t)


def cyan(t: str) -> str:
    return _c("36", t)


def bold(t: str) -> str:
    return _c("1", t)


def dim(t: str) -> str:
    return _c("2", t)


def magenta(t: str) -> str:
    return _c("35", t)


ICON_ERROR = red("✖")
ICON_OK = green("✔")


# ── JSON formatter ──────────────────────────────────────────────────────

def format_json(modules: Sequence[Module], indent: int = 2) -> str:
    return json.dumps([m.to_dict() for m in modules], indent=indent)


# ── Pretty formatter ────────────────────────────────────────────────────

def render_type(ty: GType) -> str:
    if isinstance(ty, TVar):
        return ty.name
    if isinstance(ty, AnyType):
        return "any"
    if isinstance(ty, FuncType):
        args = ", ".join(render_type(a) for a in ty.args)
        return f"({args}) -> {render_type(ty.to)}"
    if isinstance(ty, ObjectType):
        fields = ", ".join(f"{f.name}: {render_type(f.value)}" for f in ty.fields)
        return "{" + fields + "}"
    return repr(ty)


def render_expr(e: Expr) -> str:
    if isinstance(e, Var):
        return e.name
    if isinstance(e, Const):
        return f"{e.value}:{render_type(e.ty)}"
    if isinstance(e, FuncCall):
        return f"{render_expr(e.callee)}({', '.join(render_expr(a) for a in e.args)})"
    if isinstance(e, Access):
        return f"{render_expr(e.base)}.{e.field_name}"
    if isinstance(e, ObjLiteral):
        return "{" + ", ".join(f"{f.name}: {render_expr(f.value)}" for f in e.fields) + "}"
    if isinstance(e, IfExpr):
        return f"({render_expr(e.cond)} ? {render_expr(e.then)} : {render_expr(e.otherwise)})"
    return repr(e)


def _mark(ty) -> str:
    return f": {cyan(render_type(ty))}" if ty is not None else ""


def _mods(modifiers) -> str:
    return "".join(dim(m) + " " for m in modifiers)


def _render_func(f: FuncDef) -> str:
    params = ", ".join(f"{p.name}{_mark(p.value)}" for p in f.params)
    tvars = f"<{', '.join(f.type_params)}>" if f.type_params else ""
    head = f"{_mods(f.modifiers)}{magenta('function')} {bold(f.name)}{tvars}({params})"
    head += _mark(f.return_type)
    if isinstance(f, Constructor) and f.public_vars:
        head += dim(f"  [public: {', '.join(f.public_vars)}]")
    return head


def render_stmt(s: Stmt, depth: int = 0) -> List[str]:
    pad = "  " * depth

    def block(body: Stmt) -> List[str]:
        if isinstance(body, BlockStmt):
            lines = []
            for inner in body.stmts:
                lines.extend(render_stmt(inner, depth + 1))
            return lines
        return render_stmt(body, depth + 1)

    if isinstance(s, VarDef):
        kw = "const" if s.is_const else "let"
        return [f"{pad}{_mods(s.modifiers)}{magenta(kw)} {s.name}{_mark(s.mark)} = "
                f"{render_expr(s.init)}"]
    if isinstance(s, AssignStmt):
        return [f"{pad}{render_expr(s.lhs)} = {render_expr(s.rhs)}"]
    if isinstance(s, ExprStmt):
        prefix = magenta("return ") if s.is_return else ""
        return [f"{pad}{prefix}{render_expr(s.expr)}"]
    if isinstance(s, IfStmt):
        return ([f"{pad}{magenta('if')} {render_expr(s.cond)}"] + block(s.then)
                + [f"{pad}{magenta('else')}"] + block(s.otherwise))
    if isinstance(s, WhileStmt):
        return [f"{pad}{magenta('while')} {render_expr(s.cond)}"] + block(s.body)
    if isinstance(s, BlockStmt):
        return [f"{pad}{{"] + block(s) + [f"{pad}}}"]
    if isinstance(s, (ImportStmt, ExportStmt, CommentStmt)):
        return [f"{pad}{dim('// ' + ' '.join(s.text.split()))}"]
    if isinstance(s, TypeAliasStmt):
        tvars = f"<{', '.join(s.type_params)}>" if s.type_params else ""
        return [f"{pad}{_mods(s.modifiers)}{magenta('type')} {bold(s.name)}{tvars} = "
                f"{cyan(render_type(s.ty))}"]
    if isinstance(s, FuncDef):
        return [pad + _render_func(s)] + block(s.body)
    if isinstance(s, ClassDef):
        extends = f" extends {s.superclass}" if s.superclass else ""
        lines = [f"{pad}{_mods(s.modifiers)}{magenta('class')} {bold(s.name)}{extends}"]
        inner = "  " * (depth + 1)
        for f, is_static in s.fields:
            lines.append(f"{inner}{dim('static ') if is_static else ''}{f.name}{_mark(f.value)}")
        if s.constructor is not None:
            lines.extend(render_stmt(s.constructor, depth + 1))
        for m, is_static in s.methods:
            lines.extend(render_stmt(m, depth + 1))
        return lines
    return [pad + repr(s)]


def format_pretty(modules: Sequence[Module]) -> str:
    lines: List[str] = []
    for m in modules:
        lines.append(f"\n {ICON_OK}  {bold(m.name)}")
        for s in m.stmts:
            lines.extend(render_stmt(s, 2))
    lines.append("")
    return "\n".join(lines)


# ── Summary formatter ───────────────────────────────────────────────────

def _count(stmts, counts: Dict[str, int]) -> None:
    for s in stmts:
        counts["statements"] += 1
        if isinstance(s, FuncDef):
            counts["functions"] += 1
            if s.name.startswith("$Lambda"):
                counts["lambdas"] += 1
        elif isinstance(s, ClassDef):
            counts["classes"] += 1


def format_summary(modules: Sequence[Module]) -> str:
    lines = []
    total = 0
    for m in modules:
        counts = {"statements": 0, "functions": 0, "classes": 0, "lambdas": 0}
        _count(m.stmts, counts)
        total += counts["statements"]
        lines.append(
            f" {ICON_OK}  {m.name}: {counts['statements']} statements, "
            f"{counts['functions']} functions ({counts['lambdas']} lambdas), "
            f"{counts['classes']} classes")
    lines.append(dim(f"\n   {len(modules)} module(s), {total} top-level statement(s)"))
    return "\n".join(lines)


# ── Failures ────────────────────────────────────────────────────────────

def format_failure(failure: LoweringFailure, as_json: bool = True) -> str:
    if as_json:
        return failure.to_json()
    d: Dict[str, Any] = failure.to_dict()
    lines = [f"\n {ICON_ERROR}  {bold(failure.file)}:{failure.line}"]
    if "error" in d:
        lines.append(f"   {red(d['error']['message'])}")
    lines.append(f"   {dim(' -> '.join(failure.ast_path))}")
    return "\n".join(lines)


FORMATTERS = {
    "json": format_json,
    "pretty": format_pretty,
    "summary": format_summary,
}
