"""tsgraph Statement Lowering Tests — STMT-001 through STMT-009.

Covers control flow desugaring, destructuring, and the statements that are
kept only as raw text.
"""

import pytest

from tsgraph.ast_nodes import (
    Var, Const, FuncCall, Access, TVar, ANY,
    VarDef, AssignStmt, ExprStmt, IfStmt, WhileStmt, BlockStmt, CommentStmt, FuncDef,
    SWITCH, CASE, ARRAY_ACCESS, UNDEFINED_VALUE,
)
from tsgraph.driver import lower_source
from tsgraph.errors import LoweringFailure, UnsupportedSyntax, StructuralViolation


def lower(source: str):
    return lower_source(source, "stmt.ts").stmts


def call(name: str, *args):
    return ExprStmt(FuncCall(Var(name), tuple(args)), False)


def num(line: int = 1) -> Const:
    return Const("???", TVar("number"), line)


class TestSTMT001:
    """STMT-001: Expression statements, assignment and throw.
    Priority: P0
    """

    def test_assignment_statement(self):
        """priority_p0: A top-level = becomes AssignStmt."""
        assert lower("x.y = z;") == (AssignStmt(Access(Var("x"), "y"), Var("z")),)

    def test_call_statement(self):
        assert lower("f();") == (call("f"),)

    def test_throw(self):
        assert lower("throw err;") == (ExprStmt(Var("err"), False),)

    def test_empty_statement(self):
        assert lower(";") == ()


class TestSTMT002:
    """STMT-002: Returns.
    Priority: P0
    """

    def test_return_value(self):
        fn = lower("function f() { return x; }")[0]
        assert fn.body == ExprStmt(Var("x"), True)

    def test_bare_return(self):
        fn = lower("function f() { return; }")[0]
        assert fn.body == CommentStmt("return;")


class TestSTMT003:
    """STMT-003: if and while flatten their bodies.
    Priority: P0
    """

    def test_if_else(self):
        assert lower("if (a) { b(); } else { c(); d(); }") == (IfStmt(
            Var("a"), call("b"), BlockStmt((call("c"), call("d")))),)

    def test_missing_else_is_empty_block(self):
        """priority_p0: A missing else branch becomes BlockStmt([])."""
        assert lower("if (a) b();") == (IfStmt(Var("a"), call("b"), BlockStmt(())),)

    def test_else_if_chain(self):
        stmt = lower("if (a) b(); else if (c) d();")[0]
        assert stmt.otherwise == IfStmt(Var("c"), call("d"), BlockStmt(()))

    def test_while(self):
        assert lower("while (a) { b(); }") == (WhileStmt(Var("a"), call("b")),)

    def test_break_and_continue_are_comments(self):
        assert lower("while (a) { if (b) continue; break; }") == (WhileStmt(Var("a"), BlockStmt((
            IfStmt(Var("b"), CommentStmt("continue;"), BlockStmt(())),
            CommentStmt("break;"),
        ))),)


class TestSTMT004:
    """STMT-004: for loops desugar to an initializer plus while.
    Priority: P0
    """

    def test_for_with_declaration(self):
        """priority_p0: for(init; cond; incr) body → [init, while(cond) {body; incr}]."""
        assert lower("for (let i = 0; i < n; i++) { f(i); }") == (
            VarDef("i", None, num(), False, ()),
            WhileStmt(
                FuncCall(Access(Var("i"), "<"), (Var("n"),)),
                BlockStmt((
                    call("f", Var("i")),
                    ExprStmt(FuncCall(Var("POST_++"), (Var("i"),)), False),
                )),
            ),
        )

    def test_for_with_expression_initializer(self):
        stmts = lower("for (i = 0; i < 3;) x();")
        assert stmts == (
            ExprStmt(FuncCall(Access(Var("i"), "="), (num(),)), False),
            WhileStmt(FuncCall(Access(Var("i"), "<"), (num(),)), call("x")),
        )

    def test_for_without_initializer(self):
        stmts = lower("for (; a;) x();")
        assert stmts == (WhileStmt(Var("a"), call("x")),)

    def test_for_without_condition_fails(self):
        """priority_p0: A missing loop condition is a structural violation."""
        with pytest.raises(LoweringFailure) as info:
            lower("for (;;) { x(); }")
        assert isinstance(info.value.cause, StructuralViolation)

    def test_lambdas_numbered_in_source_order(self):
        stmts = lower("for (let i = g(() => 0); c(() => 1); s(() => 2)) { h(() => 3); }")
        assert [s.name for s in stmts[:3]] == ["$Lambda0", "$Lambda1", "$Lambda2"]
        loop = stmts[-1]
        assert loop.cond == FuncCall(Var("c"), (Var("$Lambda1"),))
        assert loop.body.stmts[0].name == "$Lambda3"
        assert loop.body.stmts[1] == call("h", Var("$Lambda3"))
        assert loop.body.stmts[2] == call("s", Var("$Lambda2"))

    def test_for_of_is_a_comment(self):
        source = "for (const x of xs) { f(x); }"
        assert lower(source) == (CommentStmt(source),)


class TestSTMT005:
    """STMT-005: switch becomes a flat $Switch/$Case sequence.
    Priority: P0
    """

    def test_switch_sequence(self):
        """priority_p0: Six statements in source order, default without a guard."""
        stmts = lower("switch (x) { case 1: a(); case 2: b(); default: c(); }")
        assert stmts == (
            ExprStmt(FuncCall(SWITCH, (Var("x"),)), False),
            ExprStmt(FuncCall(CASE, (num(),)), False),
            call("a"),
            ExprStmt(FuncCall(CASE, (num(),)), False),
            call("b"),
            call("c"),
        )

    def test_clause_with_several_statements(self):
        stmts = lower("switch (x) { case y: a(); b(); break; }")
        assert stmts[1:] == (
            ExprStmt(FuncCall(CASE, (Var("y"),)), False),
            call("a"),
            call("b"),
            CommentStmt("break;"),
        )


class TestSTMT006:
    """STMT-006: Destructuring expands into one VarDef per binding.
    Priority: P0
    """

    def test_object_pattern(self):
        """priority_p0: const {a, b} = obj binds a and b through Access."""
        assert lower("const {a, b} = obj;") == (
            VarDef("a", None, Access(Var("obj"), "a"), True, ()),
            VarDef("b", None, Access(Var("obj"), "b"), True, ()),
        )

    def test_array_pattern_skips_holes(self):
        accessed = FuncCall(ARRAY_ACCESS, (Var("arr"),))
        assert lower("let [x, , y] = arr;") == (
            VarDef("x", None, accessed, False, ()),
            VarDef("y", None, accessed, False, ()),
        )

    def test_nested_patterns_and_defaults(self):
        assert lower("const {a: {c}, d = 1, e: f} = o;") == (
            VarDef("c", None, Access(Access(Var("o"), "a"), "c"), True, ()),
            VarDef("d", None, Access(Var("o"), "d"), True, ()),
            VarDef("f", None, Access(Var("o"), "e"), True, ()),
        )

    def test_array_inside_object(self):
        assert lower("var {p: [q]} = o;") == (
            VarDef("q", None, FuncCall(ARRAY_ACCESS, (Access(Var("o"), "p"),)), False, ()),
        )

    def test_declarator_without_initializer(self):
        assert lower("let x;") == (VarDef("x", None, UNDEFINED_VALUE, False, ()),)
        assert UNDEFINED_VALUE == Const("undefined", ANY, -1)

    def test_several_declarators(self):
        stmts = lower("let a: number = 1, b;")
        assert stmts == (
            VarDef("a", TVar("number"), num(), False, ()),
            VarDef("b", None, UNDEFINED_VALUE, False, ()),
        )


class TestSTMT007:
    """STMT-007: try keeps the protected block and finally, not catch.
    Priority: P0
    """

    def test_try_catch_finally(self):
        """priority_p0: try {s1} catch(e) {s2} finally {s3} → [s1, s3]."""
        assert lower("try { s1(); } catch (e) { s2(); } finally { s3(); }") == \
            (call("s1"), call("s3"))

    def test_try_catch(self):
        assert lower("try { s1(); s2(); } catch { s3(); }") == (call("s1"), call("s2"))


class TestSTMT008:
    """STMT-008: Blocks and opaque statements.
    Priority: P1
    """

    def test_nested_block(self):
        assert lower("{ a(); }") == (BlockStmt((call("a"),)),)

    @pytest.mark.parametrize("source", [
        "namespace N { let x = 1; }",
        "module M { }",
        "declare const x: number;",
        "for (const k in obj) { }",
        "import A = B.C;",
        'import fs = require("fs");',
    ])
    def test_kept_as_comments(self, source):
        assert lower(source) == (CommentStmt(source),)


class TestSTMT009:
    """STMT-009: Unsupported statements fail with the statement kind.
    Priority: P0
    """

    def test_do_while(self):
        with pytest.raises(LoweringFailure) as info:
            lower("do { x(); } while (a);")
        assert isinstance(info.value.cause, UnsupportedSyntax)
        assert info.value.cause.node_kind == "do_statement"

    def test_labeled(self):
        with pytest.raises(LoweringFailure) as info:
            lower("outer: while (a) { break outer; }")
        assert info.value.cause.node_kind == "labeled_statement"
