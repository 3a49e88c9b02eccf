"""tsgraph Type Lowering Tests — TYPE-001 through TYPE-008.

Each test lowers a one-line declaration and inspects the `mark` of the
resulting VarDef, so annotations go through the same path as real code.
"""

import pytest

from tsgraph.ast_nodes import TVar, ANY, FuncType, ObjectType, NamedValue, VarDef, TypeAliasStmt
from tsgraph.driver import lower_source
from tsgraph.errors import LoweringFailure, StructuralViolation
from tsgraph.types import erase_type_params


def mark_of(annotation: str):
    stmts = lower_source(f"let a: {annotation};", "types.ts").stmts
    assert len(stmts) == 1 and isinstance(stmts[0], VarDef)
    return stmts[0].mark


class TestTYPE001:
    """TYPE-001: Primitive keywords and type references become TVar.
    Priority: P0
    """

    @pytest.mark.parametrize("keyword", ["number", "string", "boolean", "symbol", "void", "object"])
    def test_primitive_keywords(self, keyword):
        """priority_p0: Primitive keyword types keep their name."""
        assert mark_of(keyword) == TVar(keyword)

    @pytest.mark.parametrize("keyword", ["any", "unknown", "never"])
    def test_erased_keywords(self, keyword):
        """priority_p0: any/unknown/never collapse to AnyType."""
        assert mark_of(keyword) == ANY

    def test_plain_reference(self):
        assert mark_of("Foo") == TVar("Foo")

    def test_dotted_reference(self):
        assert mark_of("ns.Foo") == TVar("ns.Foo")

    def test_generic_reference_drops_arguments(self):
        """priority_p0: Type arguments are discarded."""
        assert mark_of("Map<string, number>") == TVar("Map")

    def test_missing_annotation_is_absent(self):
        stmts = lower_source("let a = 1;", "types.ts").stmts
        assert stmts[0].mark is None


class TestTYPE002:
    """TYPE-002: Arrays and tuples become TVar("Array").
    Priority: P1
    """

    def test_array(self):
        assert mark_of("string[]") == TVar("Array")

    def test_tuple(self):
        assert mark_of("[number, string]") == TVar("Array")


class TestTYPE003:
    """TYPE-003: Unions keep only the non-null half of `T | null`.
    Priority: P0
    """

    def test_nullable_suffix(self):
        """priority_p0: string | null lowers to string."""
        assert mark_of("string | null") == TVar("string")

    def test_nullable_prefix(self):
        assert mark_of("null | Foo") == TVar("Foo")

    def test_undefined_member(self):
        assert mark_of("number | undefined") == TVar("number")

    def test_two_named_members(self):
        """priority_p0: A | B lowers to any."""
        assert mark_of("A | B") == ANY

    def test_three_members_with_null(self):
        """priority_p0: Nested unions are flattened before counting."""
        assert mark_of("A | B | null") == ANY

    def test_intersection(self):
        assert mark_of("A & B") == ANY


class TestTYPE004:
    """TYPE-004: Function type literals.
    Priority: P0
    """

    def test_simple_function_type(self):
        assert mark_of("(x: number, y: string) => boolean") == \
            FuncType((TVar("number"), TVar("string")), TVar("boolean"))

    def test_generic_function_type_is_erased(self):
        """priority_p0: The literal's own type parameters become any."""
        assert mark_of("<T>(x: T, n: number) => T") == FuncType((ANY, TVar("number")), ANY)

    def test_untyped_parameter_fails(self):
        """priority_p0: An untyped parameter is a structural violation."""
        with pytest.raises(LoweringFailure) as info:
            mark_of("(x) => void")
        assert isinstance(info.value.cause, StructuralViolation)


class TestTYPE005:
    """TYPE-005: Object type literals.
    Priority: P1
    """

    def test_members(self):
        assert mark_of("{ x: number; f(y: string): boolean; g(): void }") == ObjectType((
            NamedValue("x", TVar("number")),
            NamedValue("f", FuncType((TVar("string"),), TVar("boolean"))),
            NamedValue("g", FuncType((), TVar("void"))),
        ))

    def test_untyped_property_is_any(self):
        assert mark_of("{ x }") == ObjectType((NamedValue("x", ANY),))

    def test_index_signature(self):
        assert mark_of("{ [k: string]: number }") == ObjectType((
            NamedValue("access", FuncType((TVar("string"),), TVar("number"))),
        ))

    def test_call_and_construct_signatures(self):
        ty = mark_of("{ (x: number): string; new (s: string): Foo }")
        assert [f.name for f in ty.fields] == ["call", "CONSTRUCTOR"]
        assert ty.fields[1].value == FuncType((TVar("string"),), TVar("Foo"))

    def test_generic_method_is_erased(self):
        ty = mark_of("{ m<T>(x: T): T }")
        assert ty == ObjectType((NamedValue("m", FuncType((ANY,), ANY)),))

    def test_mapped_type_is_any(self):
        assert mark_of("{ [K in keyof T]: number }") == ANY


class TestTYPE006:
    """TYPE-006: Literal types and parentheses.
    Priority: P2
    """

    def test_string_literal(self):
        assert mark_of('"left"') == TVar("string")

    def test_number_literal(self):
        assert mark_of("3") == TVar("number")

    def test_boolean_literal(self):
        assert mark_of("true") == TVar("boolean")

    def test_parenthesized(self):
        assert mark_of("(string)") == TVar("string")


class TestTYPE007:
    """TYPE-007: Type parameter erasure is scoped to the given names.
    Priority: P0
    """

    def test_erases_named_variables_only(self):
        ty = FuncType((TVar("T"), TVar("U")), ObjectType((NamedValue("x", TVar("T")),)))
        assert erase_type_params(ty, ["T"]) == \
            FuncType((ANY, TVar("U")), ObjectType((NamedValue("x", ANY),)))

    def test_no_names_is_identity(self):
        ty = FuncType((TVar("T"),), TVar("T"))
        assert erase_type_params(ty, []) is ty


class TestTYPE008:
    """TYPE-008: Type aliases record their parameters without erasing them.
    Priority: P1
    """

    def test_alias_of_nullable(self):
        stmts = lower_source("type Id = string | undefined;", "types.ts").stmts
        assert stmts == (TypeAliasStmt("Id", (), TVar("string"), ()),)

    def test_generic_alias(self):
        stmts = lower_source("type Box<T> = { value: T };", "types.ts").stmts
        assert stmts == (TypeAliasStmt(
            "Box", ("T",), ObjectType((NamedValue("value", TVar("T")),)), ()),)
