"""Tests for lowering statements into the flow model."""

import pytest

from waivern_php_lint.flow import (
    Branch,
    Exit,
    Guarded,
    Halt,
    Jump,
    Loop,
    Switch,
    Unparsed,
    is_always_true,
    lower_block,
)
from waivern_php_lint.syntax.nodes import (
    BlockStmt,
    BreakStmt,
    ConditionalBranch,
    ContinueStmt,
    DoWhileStmt,
    ExitStmt,
    ExpressionStmt,
    ForeachStmt,
    ForStmt,
    IfStmt,
    MalformedDecl,
    ScalarLiteral,
    SwitchCase,
    SwitchStmt,
    ThrowStmt,
    TryStmt,
    WhileStmt,
)

from .conftest import at, bool_lit, function, int_lit, ret, str_lit, var


class TestLowerBlock:
    """Test lowering of individual statement kinds."""

    def test_statements_without_flow_effect_are_dropped(self) -> None:
        """Test that expression statements and nested declarations vanish."""
        block = lower_block(
            [ExpressionStmt(var("x"), at(1)), function("nested"), ret(int_lit(), line=3)]
        )

        assert block == (Exit(int_lit(), at(3)),)

    def test_throw_and_exit_halt(self) -> None:
        """Test that throw and exit become halts."""
        block = lower_block([ThrowStmt(var("e"), at(1)), ExitStmt(at(2))])

        assert block == (Halt(at(1)), Halt(at(2)))

    def test_jumps_keep_their_level(self) -> None:
        """Test that break and continue levels are carried over (minimum 1)."""
        block = lower_block([BreakStmt(2, at(1)), ContinueStmt(0, at(2))])

        assert block == (Jump("break", 2, at(1)), Jump("continue", 1, at(2)))

    def test_nested_block_is_flattened(self) -> None:
        """Test that a bare block is inlined into the enclosing sequence."""
        block = lower_block([BlockStmt((ret(line=2),), at(1))])

        assert block == (Exit(None, at(2)),)

    def test_if_without_else_is_not_exhaustive(self) -> None:
        """Test that an if without else may skip every arm."""
        statement = IfStmt(
            (ConditionalBranch(var("c"), (ret(int_lit()),), at(1)),), None, at(1)
        )

        (node,) = lower_block([statement])

        assert isinstance(node, Branch)
        assert not node.exhaustive
        assert len(node.arms) == 1

    def test_if_with_else_is_exhaustive(self) -> None:
        """Test that an else arm makes the branch exhaustive."""
        statement = IfStmt(
            (
                ConditionalBranch(var("a"), (), at(1)),
                ConditionalBranch(var("b"), (), at(2)),
            ),
            (ret(),),
            at(1),
        )

        (node,) = lower_block([statement])

        assert isinstance(node, Branch)
        assert node.exhaustive
        assert len(node.arms) == 3

    @pytest.mark.parametrize(
        ("statement", "runs_at_least_once", "unbounded"),
        [
            (WhileStmt(var("c"), (), at(1)), False, False),
            (WhileStmt(bool_lit("true"), (), at(1)), False, True),
            (DoWhileStmt((), var("c"), at(1)), True, False),
            (DoWhileStmt((), int_lit("1"), at(1)), True, True),
            (ForStmt(None, (), at(1)), False, True),
            (ForStmt(var("c"), (), at(1)), False, False),
            (ForeachStmt(var("items"), (), at(1)), False, False),
        ],
        ids=[
            "while",
            "while-true",
            "do-while",
            "do-while-true",
            "for-without-condition",
            "for",
            "foreach",
        ],
    )
    def test_loop_shapes(
        self, statement: object, runs_at_least_once: bool, unbounded: bool
    ) -> None:
        """Test how each loop statement is classified."""
        (node,) = lower_block([statement])

        assert node == Loop((), runs_at_least_once, unbounded)

    def test_switch_keeps_cases_separate(self) -> None:
        """Test that switch cases are lowered one arm per case."""
        statement = SwitchStmt(
            var("x"),
            (
                SwitchCase(False, (), at(2)),
                SwitchCase(True, (ret(int_lit()),), at(3)),
            ),
            at(1),
        )

        (node,) = lower_block([statement])

        assert node == Switch(((), (Exit(int_lit(), at(1)),)), has_default=True)

    def test_try_becomes_guarded(self) -> None:
        """Test that try/catch/finally becomes a guarded region."""
        statement = TryStmt((ret(int_lit()),), ((), ()), (ThrowStmt(var("e"), at(4)),), at(1))

        (node,) = lower_block([statement])

        assert node == Guarded(
            (Exit(int_lit(), at(1)),), ((), ()), (Halt(at(4)),)
        )

    def test_malformed_statement_is_unparsed(self) -> None:
        """Test that unreadable statements are kept as unparsed regions."""
        block = lower_block([MalformedDecl("statement", None, "syntax error", at(5))])

        assert block == (Unparsed(at(5)),)


class TestIsAlwaysTrue:
    """Test recognition of literal loop conditions."""

    @pytest.mark.parametrize(
        ("condition", "expected"),
        [
            (bool_lit("true"), True),
            (bool_lit("TRUE"), True),
            (bool_lit("false"), False),
            (int_lit("1"), True),
            (int_lit("0"), False),
            (int_lit("0x10"), True),
            (int_lit("1_000"), True),
            (str_lit("'yes'"), False),
            (var("running"), False),
            (ScalarLiteral("null", "null", at(1)), False),
        ],
        ids=[
            "true",
            "true-uppercase",
            "false",
            "one",
            "zero",
            "hex",
            "separators",
            "string",
            "variable",
            "null",
        ],
    )
    def test_is_always_true(self, condition: object, expected: bool) -> None:
        """Test each literal condition."""
        assert is_always_true(condition) is expected
