"""Control-flow model walked by the return-flow analyser.

Function bodies are lowered into a handful of flow nodes that only keep what
matters for reachability: exits, jumps, branching, loops and guarded
regions. Statements without control-flow effect are dropped, so loop and
branch handling lives in one place and can be tested without a parser.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from waivern_php_lint.syntax.nodes import (
    BlockStmt,
    BreakStmt,
    ClassLikeDecl,
    ContinueStmt,
    DoWhileStmt,
    ExitStmt,
    Expr,
    ExpressionStmt,
    ForeachStmt,
    ForStmt,
    FunctionDecl,
    IfStmt,
    MalformedDecl,
    OtherStmt,
    ReturnStmt,
    ScalarLiteral,
    SourcePosition,
    Stmt,
    SwitchStmt,
    ThrowStmt,
    TryStmt,
    WhileStmt,
)


@dataclass(frozen=True, slots=True)
class Exit:
    """A ``return``; ``value`` is None for a bare ``return;``."""

    value: Expr | None
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class Halt:
    """Leaves the function without returning (``throw``, ``exit``)."""

    position: SourcePosition


@dataclass(frozen=True, slots=True)
class Jump:
    """``break N`` or ``continue N``."""

    kind: Literal["break", "continue"]
    level: int
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class Branch:
    """Alternative arms; non-exhaustive branches may also skip every arm."""

    arms: tuple[Block, ...]
    exhaustive: bool


@dataclass(frozen=True, slots=True)
class Loop:
    """A loop body; ``unbounded`` loops only end through a jump or an exit."""

    body: Block
    runs_at_least_once: bool
    unbounded: bool


@dataclass(frozen=True, slots=True)
class Switch:
    """Case bodies in order; control falls from one case into the next."""

    arms: tuple[Block, ...]
    has_default: bool


@dataclass(frozen=True, slots=True)
class Guarded:
    """``try`` body with its ``catch`` handlers and optional ``finally``."""

    body: Block
    handlers: tuple[Block, ...]
    finally_body: Block | None


@dataclass(frozen=True, slots=True)
class Unparsed:
    """A region the front end could not read; its effect on flow is unknown."""

    position: SourcePosition


FlowNode = Exit | Halt | Jump | Branch | Loop | Switch | Guarded | Unparsed
Block = tuple[FlowNode, ...]


def lower_block(statements: Iterable[Stmt]) -> Block:
    """Lower a statement sequence into flow nodes.

    Args:
        statements: Statements of a function body or nested block

    Returns:
        Flow nodes in execution order

    """
    nodes: list[FlowNode] = []
    for statement in statements:
        nodes.extend(_lower_statement(statement))
    return tuple(nodes)


def _lower_statement(statement: Stmt) -> list[FlowNode]:
    match statement:
        case ReturnStmt(value=value, position=position):
            return [Exit(value, position)]
        case ThrowStmt(position=position) | ExitStmt(position=position):
            return [Halt(position)]
        case BreakStmt(level=level, position=position):
            return [Jump("break", max(level, 1), position)]
        case ContinueStmt(level=level, position=position):
            return [Jump("continue", max(level, 1), position)]
        case BlockStmt(body=body):
            return list(lower_block(body))
        case IfStmt(branches=branches, else_body=else_body):
            arms = [lower_block(branch.body) for branch in branches]
            if else_body is not None:
                arms.append(lower_block(else_body))
            return [Branch(tuple(arms), exhaustive=else_body is not None)]
        case WhileStmt(condition=condition, body=body):
            return [
                Loop(
                    lower_block(body),
                    runs_at_least_once=False,
                    unbounded=is_always_true(condition),
                )
            ]
        case DoWhileStmt(body=body, condition=condition):
            return [
                Loop(
                    lower_block(body),
                    runs_at_least_once=True,
                    unbounded=is_always_true(condition),
                )
            ]
        case ForStmt(condition=condition, body=body):
            unbounded = condition is None or is_always_true(condition)
            return [Loop(lower_block(body), runs_at_least_once=False, unbounded=unbounded)]
        case ForeachStmt(body=body):
            return [Loop(lower_block(body), runs_at_least_once=False, unbounded=False)]
        case SwitchStmt(cases=cases):
            return [
                Switch(
                    tuple(lower_block(case.body) for case in cases),
                    has_default=any(case.is_default for case in cases),
                )
            ]
        case TryStmt(body=body, catches=catches, finally_body=finally_body):
            return [
                Guarded(
                    lower_block(body),
                    tuple(lower_block(handler) for handler in catches),
                    lower_block(finally_body) if finally_body is not None else None,
                )
            ]
        case MalformedDecl(position=position):
            return [Unparsed(position)]
        case ExpressionStmt() | OtherStmt() | FunctionDecl() | ClassLikeDecl():
            return []
    raise TypeError(f"Unhandled statement node: {statement!r}")


def is_always_true(condition: Expr) -> bool:
    """Check for a literal loop condition such as ``true`` or ``1``."""
    if not isinstance(condition, ScalarLiteral):
        return False
    text = condition.text.strip().lower()
    if condition.kind == "bool":
        return text == "true"
    if condition.kind == "int":
        try:
            return int(text.replace("_", ""), 0) != 0
        except ValueError:
            return False
    return False
