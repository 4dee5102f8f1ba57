"""Rule flagging superfluous empty statements."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import ClassVar, TypeGuard

from waivern_php_lint.config import LintConfig
from waivern_php_lint.diagnostics import Diagnostic, Severity
from waivern_php_lint.symbols import SymbolModel
from waivern_php_lint.syntax.nodes import (
    BlockStmt,
    CompilationUnit,
    DoWhileStmt,
    ForeachStmt,
    ForStmt,
    IfStmt,
    OtherStmt,
    Stmt,
    SwitchStmt,
    TryStmt,
    WhileStmt,
)

EMPTY_STATEMENT_KIND = "empty_statement"


def is_empty_statement(statement: Stmt) -> TypeGuard[OtherStmt]:
    """Check whether a statement is a lone semicolon."""
    return isinstance(statement, OtherStmt) and statement.kind == EMPTY_STATEMENT_KIND


def find_empty_statements(
    statements: tuple[Stmt, ...],
) -> Iterator[tuple[OtherStmt, str | None]]:
    """Find empty statements in a block and the blocks nested in it.

    Nested declarations are not searched; functions and methods are checked
    on their own.

    Yields:
        Each empty statement with the control keyword whose whole body it
        is, or None for a stray semicolon in a statement list

    """
    for statement in statements:
        if is_empty_statement(statement):
            yield statement, None
            continue
        for keyword, body in _bodies(statement):
            only = body[0] if keyword is not None and len(body) == 1 else None
            if only is not None and is_empty_statement(only):
                yield only, keyword
            else:
                yield from find_empty_statements(body)


def _bodies(statement: Stmt) -> Iterator[tuple[str | None, tuple[Stmt, ...]]]:
    match statement:
        case IfStmt(branches=branches, else_body=else_body):
            for index, branch in enumerate(branches):
                yield ("if" if index == 0 else "elseif"), branch.body
            if else_body is not None:
                yield "else", else_body
        case WhileStmt(body=body):
            yield "while", body
        case ForStmt(body=body):
            yield "for", body
        case ForeachStmt(body=body):
            yield "foreach", body
        case DoWhileStmt(body=body) | BlockStmt(body=body):
            yield None, body
        case SwitchStmt(cases=cases):
            for case in cases:
                yield None, case.body
        case TryStmt(body=body, catches=catches, finally_body=finally_body):
            yield None, body
            for handler in catches:
                yield None, handler
            if finally_body is not None:
                yield None, finally_body


class EmptyStatementRule:
    """Reports stray semicolons and control structures with an empty body.

    ``if ($ready);`` runs nothing conditionally: the block that follows it
    always executes.
    """

    rule_id: ClassVar[str] = "empty-statement"
    description: ClassVar[str] = "Superfluous empty statement"
    severity: ClassVar[Severity] = Severity.WARNING
    default_enabled: ClassVar[bool] = True

    def __init__(self, config: LintConfig) -> None:
        pass

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Check function bodies and top-level code."""
        diagnostics: list[Diagnostic] = []
        for function in model.functions:
            if function.body is None:
                continue
            for empty, keyword in find_empty_statements(function.body):
                diagnostics.append(self._diagnostic(empty, keyword, function.display_name))
        for empty, keyword in find_empty_statements(unit.statements):
            diagnostics.append(self._diagnostic(empty, keyword, None))
        return diagnostics

    def _diagnostic(
        self, empty: OtherStmt, keyword: str | None, symbol: str | None
    ) -> Diagnostic:
        if keyword is None:
            message = "Empty statement: superfluous semicolon"
        else:
            message = f"Empty statement used as the body of '{keyword}'"
        return Diagnostic(
            rule_id=self.rule_id,
            severity=self.severity,
            message=message,
            position=empty.position,
            symbol=symbol,
        )
