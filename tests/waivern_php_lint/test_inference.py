"""Tests for local type inference of expressions."""

import pytest

from waivern_php_lint.inference import InferenceContext, infer_expression
from waivern_php_lint.syntax.nodes import (
    ArrayLiteral,
    AssignExpr,
    BinaryExpr,
    CallExpr,
    CastExpr,
    ClosureExpr,
    MatchExpr,
    NewExpr,
    OpaqueExpr,
    TernaryExpr,
    UnaryExpr,
)
from waivern_php_lint.types import (
    NULL,
    UNKNOWN,
    InferredArray,
    InferredBool,
    InferredNullable,
    InferredObject,
    InferredScalar,
    InferredUnion,
)

from .conftest import at, bool_lit, float_lit, function, int_lit, null_lit, str_lit, var

INT = InferredScalar("int")
FLOAT = InferredScalar("float")
STRING = InferredScalar("string")
BOOL = InferredScalar("bool")


def binary(operator: str, left: object, right: object) -> BinaryExpr:
    return BinaryExpr(operator, left, right, at(1))


class TestInferLiterals:
    """Test inference for literal-like expressions."""

    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            (int_lit("7"), INT),
            (float_lit("2.5"), FLOAT),
            (str_lit("'x'"), STRING),
            (bool_lit("false"), InferredBool(False)),
            (null_lit(), NULL),
            (ArrayLiteral(at(1)), InferredArray()),
            (NewExpr("Foo", at(1)), InferredObject("Foo")),
            (NewExpr(None, at(1)), InferredObject(None)),
            (ClosureExpr(function("", kind="closure"), at(1)), InferredObject("Closure")),
        ],
        ids=[
            "int",
            "float",
            "string",
            "bool",
            "null",
            "array",
            "new",
            "anonymous-class",
            "closure",
        ],
    )
    def test_infers_literal(self, expr: object, expected: object) -> None:
        """Test that literals and instantiations have a fixed type."""
        assert infer_expression(expr) == expected

    def test_new_self_uses_context_class(self) -> None:
        """Test that new self/static resolves through the inference context."""
        context = InferenceContext(self_class="Example")

        assert infer_expression(NewExpr("static", at(1)), context) == InferredObject(
            "Example"
        )

    def test_this_uses_context_class(self) -> None:
        """Test that $this is an object of the bound class."""
        assert infer_expression(var("this"), InferenceContext("Example")) == InferredObject(
            "Example"
        )
        assert infer_expression(var("this")) == UNKNOWN

    def test_variables_are_unknown(self) -> None:
        """Test that variables are not tracked."""
        assert infer_expression(var("value")) == UNKNOWN

    def test_opaque_expressions_are_unknown(self) -> None:
        """Test that unmodelled expressions are unknown."""
        assert infer_expression(OpaqueExpr("member_call_expression", at(1))) == UNKNOWN


class TestInferOperators:
    """Test inference for operators and casts."""

    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            (binary(".", var("a"), var("b")), STRING),
            (binary("===", var("a"), var("b")), BOOL),
            (binary("&&", var("a"), var("b")), BOOL),
            (binary("<=>", var("a"), var("b")), INT),
            (binary("+", int_lit(), int_lit()), INT),
            (binary("*", int_lit(), float_lit()), FLOAT),
            (binary("%", float_lit(), float_lit()), INT),
            (binary("+", int_lit(), var("x")), UNKNOWN),
            (binary("/", int_lit(), int_lit()), UNKNOWN),
            (binary("**", int_lit(), int_lit()), UNKNOWN),
            (binary("??", var("x"), int_lit()), UNKNOWN),
            (binary("|", int_lit(), int_lit()), INT),
            (UnaryExpr("!", var("x"), at(1)), BOOL),
            (UnaryExpr("-", float_lit(), at(1)), FLOAT),
            (UnaryExpr("-", var("x"), at(1)), UNKNOWN),
            (CastExpr("int", var("x"), at(1)), INT),
            (CastExpr("boolean", var("x"), at(1)), BOOL),
            (CastExpr("unset", var("x"), at(1)), UNKNOWN),
        ],
        ids=[
            "concat",
            "identity",
            "logical-and",
            "spaceship",
            "int-plus-int",
            "int-times-float",
            "modulo",
            "unknown-operand",
            "division",
            "power",
            "coalesce",
            "bitwise-or",
            "not",
            "negate-float",
            "negate-unknown",
            "cast-int",
            "cast-boolean",
            "cast-unknown",
        ],
    )
    def test_infers_operator(self, expr: object, expected: object) -> None:
        """Test each operator's result type."""
        assert infer_expression(expr) == expected

    def test_assignment_yields_assigned_value(self) -> None:
        """Test that an assignment evaluates to its right-hand side."""
        assignment = AssignExpr("=", var("x"), str_lit(), at(1))

        assert infer_expression(assignment) == STRING
        assert infer_expression(AssignExpr(".=", var("x"), var("y"), at(1))) == STRING
        assert infer_expression(AssignExpr("+=", var("x"), int_lit(), at(1))) == UNKNOWN


class TestInferConditionals:
    """Test inference for ternaries, match and calls."""

    def test_ternary_joins_both_arms(self) -> None:
        """Test that a ternary's type covers both arms."""
        ternary = TernaryExpr(var("c"), int_lit(), null_lit(), at(1))

        assert infer_expression(ternary) == InferredNullable(INT)

    def test_short_ternary_is_unknown(self) -> None:
        """Test that ?: depends on the untracked left operand."""
        ternary = TernaryExpr(var("c"), None, int_lit(), at(1))

        assert infer_expression(ternary) == UNKNOWN

    def test_match_joins_arms(self) -> None:
        """Test that a match expression's type covers every arm."""
        match = MatchExpr(
            var("x"), (int_lit("1"),), (str_lit(), int_lit()), True, at(1)
        )

        assert infer_expression(match) == InferredUnion(frozenset({STRING, INT}))

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("implode", STRING),
            ("\\count", INT),
            ("IS_ARRAY", BOOL),
            ("array_map", InferredArray()),
            ("user_function", UNKNOWN),
            (None, UNKNOWN),
        ],
        ids=["implode", "fully-qualified", "case-insensitive", "array", "user", "dynamic"],
    )
    def test_builtin_calls(self, name: str | None, expected: object) -> None:
        """Test that only built-ins with fixed return types are inferred."""
        assert infer_expression(CallExpr(name, (), at(1))) == expected
