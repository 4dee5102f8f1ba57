"""Rule flagging files that both declare symbols and run top-level code."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import ClassVar, Literal

from waivern_php_lint.config import LintConfig
from waivern_php_lint.diagnostics import Diagnostic, Severity
from waivern_php_lint.symbols import SymbolModel
from waivern_php_lint.syntax.nodes import (
    BlockStmt,
    CallExpr,
    ClassLikeDecl,
    CompilationUnit,
    ExpressionStmt,
    FunctionDecl,
    IfStmt,
    MalformedDecl,
    OtherStmt,
    Stmt,
)

StatementEffect = Literal["declaration", "side_effect", "neutral"]

# Top-level statements that neither declare symbols nor have side effects
_NEUTRAL_KINDS = frozenset(
    {"namespace_use_declaration", "declare_statement", "empty_statement"}
)

_DECLARING_KINDS = frozenset({"const_declaration"})

_DEFINE_FUNCTION = "define"


def classify_statement(statement: Stmt) -> StatementEffect:
    """Classify a top-level statement.

    A conditional block counts as a declaration when its branches only
    declare symbols, as in ``if (!function_exists('f')) { function f() {} }``.
    Unreadable statements are neutral.
    """
    match statement:
        case FunctionDecl() | ClassLikeDecl():
            return "declaration"
        case MalformedDecl():
            return "neutral"
        case OtherStmt(kind=kind) if kind in _DECLARING_KINDS:
            return "declaration"
        case OtherStmt(kind=kind) if kind in _NEUTRAL_KINDS:
            return "neutral"
        case ExpressionStmt(expression=CallExpr(name=str() as name)) if (
            name.lstrip("\\").lower() == _DEFINE_FUNCTION
        ):
            return "declaration"
        case IfStmt(branches=branches, else_body=else_body):
            bodies = [branch.body for branch in branches]
            if else_body is not None:
                bodies.append(else_body)
            return _classify_block(inner for body in bodies for inner in body)
        case BlockStmt(body=body):
            return _classify_block(body)
    return "side_effect"


def _classify_block(statements: Iterable[Stmt]) -> StatementEffect:
    effects = {classify_statement(statement) for statement in statements}
    if "side_effect" in effects or "declaration" not in effects:
        return "side_effect"
    return "declaration"


class SideEffectsRule:
    """Reports a file that declares symbols and also has side effects.

    Loading such a file to use its declarations also runs its top-level code.
    """

    rule_id: ClassVar[str] = "side-effects"
    description: ClassVar[str] = (
        "File should either declare symbols or cause side effects, not both"
    )
    severity: ClassVar[Severity] = Severity.WARNING
    default_enabled: ClassVar[bool] = True

    def __init__(self, config: LintConfig) -> None:
        pass

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Classify the unit's top-level statements."""
        declares = any(
            isinstance(declaration, (FunctionDecl, ClassLikeDecl))
            for declaration in unit.declarations
        )
        first_effect: Stmt | None = None
        for statement in unit.statements:
            effect = classify_statement(statement)
            if effect == "declaration":
                declares = True
            elif effect == "side_effect" and first_effect is None:
                first_effect = statement

        if not declares or first_effect is None:
            return []
        return [
            Diagnostic(
                rule_id=self.rule_id,
                severity=self.severity,
                message=(
                    "File declares symbols and also has side effects; "
                    "a file should do one or the other"
                ),
                position=first_effect.position,
            )
        ]
