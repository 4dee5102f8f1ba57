"""Rule flagging assignments used as conditions."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import ClassVar

from waivern_php_lint.config import LintConfig
from waivern_php_lint.diagnostics import Diagnostic, Severity
from waivern_php_lint.symbols import SymbolModel
from waivern_php_lint.syntax.nodes import (
    ArrayLiteral,
    AssignExpr,
    BinaryExpr,
    BlockStmt,
    CallExpr,
    CastExpr,
    CompilationUnit,
    DoWhileStmt,
    Expr,
    ExpressionStmt,
    ForeachStmt,
    ForStmt,
    IfStmt,
    MatchExpr,
    NewExpr,
    OpaqueExpr,
    OtherStmt,
    ReturnStmt,
    Stmt,
    SwitchStmt,
    TernaryExpr,
    ThrowStmt,
    TryStmt,
    UnaryExpr,
    WhileStmt,
)


def find_assignment(condition: Expr) -> AssignExpr | None:
    """Find an assignment used as (part of) a condition.

    Looks at the condition itself and, recursively, at the operands of
    operators and casts. Call arguments and other nested expressions are
    not searched.
    """
    match condition:
        case AssignExpr():
            return condition
        case BinaryExpr(left=left, right=right):
            return find_assignment(left) or find_assignment(right)
        case UnaryExpr(operand=operand) | CastExpr(operand=operand):
            return find_assignment(operand)
        case _:
            return None


class AssignmentInConditionRule:
    """Reports ``if ($a = $b)`` and similar, which usually mean ``==``."""

    rule_id: ClassVar[str] = "assignment-in-condition"
    description: ClassVar[str] = "Assignment used as a condition"
    severity: ClassVar[Severity] = Severity.WARNING
    default_enabled: ClassVar[bool] = True

    def __init__(self, config: LintConfig) -> None:
        pass

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Check conditions in function bodies and top-level code."""
        diagnostics: list[Diagnostic] = []
        for function in model.functions:
            if function.body is None:
                continue
            for assignment in _in_block(function.body):
                diagnostics.append(self._diagnostic(assignment, function.display_name))
        for assignment in _in_block(unit.statements):
            diagnostics.append(self._diagnostic(assignment, None))
        return diagnostics

    def _diagnostic(self, assignment: AssignExpr, symbol: str | None) -> Diagnostic:
        return Diagnostic(
            rule_id=self.rule_id,
            severity=self.severity,
            message=f"Assignment '{assignment.operator}' used as a condition",
            position=assignment.position,
            symbol=symbol,
        )


# Closures are separate functions in the symbol model, so the walkers below
# never descend into them.


def _in_block(statements: tuple[Stmt, ...]) -> Iterator[AssignExpr]:
    for statement in statements:
        yield from _in_statement(statement)


def _in_condition(condition: Expr) -> Iterator[AssignExpr]:
    assignment = find_assignment(condition)
    if assignment is not None:
        yield assignment
    yield from _in_expression(condition)


def _in_statement(statement: Stmt) -> Iterator[AssignExpr]:
    match statement:
        case IfStmt(branches=branches, else_body=else_body):
            for branch in branches:
                yield from _in_condition(branch.condition)
                yield from _in_block(branch.body)
            if else_body is not None:
                yield from _in_block(else_body)
        case WhileStmt(condition=condition, body=body) | DoWhileStmt(
            condition=condition, body=body
        ):
            yield from _in_condition(condition)
            yield from _in_block(body)
        case ForStmt(condition=condition, body=body):
            if condition is not None:
                yield from _in_expression(condition)
            yield from _in_block(body)
        case ForeachStmt(subject=subject, body=body):
            yield from _in_expression(subject)
            yield from _in_block(body)
        case SwitchStmt(subject=subject, cases=cases):
            yield from _in_expression(subject)
            for case in cases:
                yield from _in_block(case.body)
        case TryStmt(body=body, catches=catches, finally_body=finally_body):
            yield from _in_block(body)
            for handler in catches:
                yield from _in_block(handler)
            if finally_body is not None:
                yield from _in_block(finally_body)
        case BlockStmt(body=body):
            yield from _in_block(body)
        case ExpressionStmt(expression=expression) | ThrowStmt(value=expression):
            yield from _in_expression(expression)
        case ReturnStmt(value=value):
            if value is not None:
                yield from _in_expression(value)
        case OtherStmt(expressions=expressions):
            for expression in expressions:
                yield from _in_expression(expression)
        case _:
            return


def _in_expression(expr: Expr) -> Iterator[AssignExpr]:
    """Find ternaries and matches nested in an expression and check their conditions."""
    match expr:
        case TernaryExpr(condition=condition, if_true=if_true, if_false=if_false):
            yield from _in_condition(condition)
            if if_true is not None:
                yield from _in_expression(if_true)
            yield from _in_expression(if_false)
        case MatchExpr(subject=subject, conditions=conditions, arms=arms):
            yield from _in_condition(subject)
            for condition in conditions:
                yield from _in_condition(condition)
            for arm in arms:
                yield from _in_expression(arm)
        case BinaryExpr(left=left, right=right):
            yield from _in_expression(left)
            yield from _in_expression(right)
        case UnaryExpr(operand=operand) | CastExpr(operand=operand):
            yield from _in_expression(operand)
        case AssignExpr(value=value):
            yield from _in_expression(value)
        case CallExpr(arguments=children) | ArrayLiteral(children=children) | NewExpr(
            children=children
        ) | OpaqueExpr(children=children):
            for child in children:
                yield from _in_expression(child)
        case _:
            return
