"""Typed syntax tree consumed by the linter core.

The core never touches tree-sitter directly: a front end (see
``waivern_php_lint.syntax.parser``) lowers its concrete tree into these
immutable nodes, and everything downstream works on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ConstructKind = Literal["class", "trait", "interface", "enum"]
Visibility = Literal["public", "protected", "private"]
LiteralKind = Literal["int", "float", "string", "bool", "null"]
FunctionKind = Literal["function", "method", "closure", "arrow_function"]


@dataclass(frozen=True, slots=True, order=True)
class SourcePosition:
    """A location in a source file (1-based line and column)."""

    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


# Expressions


@dataclass(frozen=True, slots=True)
class ScalarLiteral:
    """A scalar literal: integer, float, string, boolean or null."""

    kind: LiteralKind
    text: str
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ArrayLiteral:
    """Array literal; ``children`` holds its keys and values in source order."""

    position: SourcePosition
    children: tuple[Expr, ...] = ()


@dataclass(frozen=True, slots=True)
class NewExpr:
    """Object instantiation.

    ``class_name`` is None for anonymous classes, whose body is kept in
    ``declaration``. ``children`` holds the constructor arguments.
    """

    class_name: str | None
    position: SourcePosition
    children: tuple[Expr, ...] = ()
    declaration: ClassLikeDecl | None = None


@dataclass(frozen=True, slots=True)
class CastExpr:
    """``(type) operand``."""

    target: str
    operand: Expr
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class BinaryExpr:
    """Binary operator, including comparisons and logical operators."""

    operator: str
    left: Expr
    right: Expr
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class UnaryExpr:
    """Prefix operator such as ``!`` or ``-``."""

    operator: str
    operand: Expr
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class AssignExpr:
    """Assignment (plain or compound); evaluates to the assigned value."""

    operator: str
    target: Expr
    value: Expr
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class TernaryExpr:
    """``cond ? a : b``; ``if_true`` is None for the short form ``cond ?: b``."""

    condition: Expr
    if_true: Expr | None
    if_false: Expr
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class MatchExpr:
    """``match`` expression; ``conditions`` are the arm conditions in source order."""

    subject: Expr
    conditions: tuple[Expr, ...]
    arms: tuple[Expr, ...]
    has_default: bool
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class CallExpr:
    """Call to a named function; ``name`` is None for dynamic callees."""

    name: str | None
    arguments: tuple[Expr, ...]
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class VariableExpr:
    """A variable read; ``name`` has no leading ``$``."""

    name: str
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ClosureExpr:
    """Anonymous function or arrow function used as a value."""

    function: FunctionDecl
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class OpaqueExpr:
    """Any expression the front end does not model (property reads, method calls...)."""

    kind: str
    position: SourcePosition
    children: tuple[Expr, ...] = ()


Expr = (
    ScalarLiteral
    | ArrayLiteral
    | NewExpr
    | CastExpr
    | BinaryExpr
    | UnaryExpr
    | AssignExpr
    | TernaryExpr
    | MatchExpr
    | CallExpr
    | VariableExpr
    | ClosureExpr
    | OpaqueExpr
)


# Statements


@dataclass(frozen=True, slots=True)
class ExpressionStmt:
    """An expression evaluated for its effect."""

    expression: Expr
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ReturnStmt:
    """``return`` with an optional value."""

    value: Expr | None
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ConditionalBranch:
    """One ``if`` or ``elseif`` arm."""

    condition: Expr
    body: tuple[Stmt, ...]
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class IfStmt:
    """``if``/``elseif`` branches in source order plus an optional ``else`` body."""

    branches: tuple[ConditionalBranch, ...]
    else_body: tuple[Stmt, ...] | None
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class WhileStmt:
    """``while`` loop."""

    condition: Expr
    body: tuple[Stmt, ...]
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class DoWhileStmt:
    """``do ... while`` loop; the body runs at least once."""

    body: tuple[Stmt, ...]
    condition: Expr
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ForStmt:
    """``for`` loop; ``condition`` is None when the header has no condition."""

    condition: Expr | None
    body: tuple[Stmt, ...]
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ForeachStmt:
    """``foreach`` loop over ``subject``."""

    subject: Expr
    body: tuple[Stmt, ...]
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class SwitchCase:
    """A ``case`` or ``default`` label and the statements after it."""

    is_default: bool
    body: tuple[Stmt, ...]
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class SwitchStmt:
    """``switch`` statement."""

    subject: Expr
    cases: tuple[SwitchCase, ...]
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class TryStmt:
    """``try`` with its ``catch`` bodies and an optional ``finally``."""

    body: tuple[Stmt, ...]
    catches: tuple[tuple[Stmt, ...], ...]
    finally_body: tuple[Stmt, ...] | None
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ThrowStmt:
    """``throw`` statement."""

    value: Expr
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ExitStmt:
    """``exit``/``die``: terminates the script."""

    position: SourcePosition


@dataclass(frozen=True, slots=True)
class BreakStmt:
    """``break N``; ``level`` defaults to 1."""

    level: int
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ContinueStmt:
    """``continue N``; ``level`` defaults to 1."""

    level: int
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class BlockStmt:
    """A braced block used as a statement."""

    body: tuple[Stmt, ...]
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class OtherStmt:
    """Statement without control-flow significance (echo, unset, global...).

    ``expressions`` keeps any sub-expressions so nested closures stay visible.
    """

    kind: str
    position: SourcePosition
    expressions: tuple[Expr, ...] = ()


# Declarations


@dataclass(frozen=True, slots=True)
class Parameter:
    """A function parameter; ``type`` is the declared type text."""

    name: str
    type_text: str | None
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class FunctionDecl:
    """A function, method, closure or arrow function.

    ``body`` is None for abstract and interface methods. Arrow functions are
    lowered to a body holding a single return statement.
    """

    name: str
    kind: FunctionKind
    parameters: tuple[Parameter, ...]
    return_type: str | None
    body: tuple[Stmt, ...] | None
    position: SourcePosition
    is_generator: bool = False
    is_static: bool = False
    visibility: Visibility | None = None


@dataclass(frozen=True, slots=True)
class ConstantDecl:
    """A class-like constant; ``visibility`` is None when no modifier is written."""

    name: str
    value: Expr | None
    visibility: Visibility | None
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class ClassLikeDecl:
    """A class, trait, interface or enum; ``name`` is empty for anonymous classes."""

    kind: ConstructKind
    name: str
    position: SourcePosition
    extends: tuple[str, ...] = ()
    implements: tuple[str, ...] = ()
    constants: tuple[ConstantDecl, ...] = ()
    methods: tuple[FunctionDecl, ...] = ()
    malformed_members: tuple[MalformedDecl, ...] = ()


@dataclass(frozen=True, slots=True)
class MalformedDecl:
    """A declaration the front end could not read completely."""

    kind: str
    name: str | None
    reason: str
    position: SourcePosition


Stmt = (
    ExpressionStmt
    | ReturnStmt
    | IfStmt
    | WhileStmt
    | DoWhileStmt
    | ForStmt
    | ForeachStmt
    | SwitchStmt
    | TryStmt
    | ThrowStmt
    | ExitStmt
    | BreakStmt
    | ContinueStmt
    | BlockStmt
    | OtherStmt
    | FunctionDecl
    | ClassLikeDecl
    | MalformedDecl
)

Declaration = FunctionDecl | ClassLikeDecl | MalformedDecl


@dataclass(frozen=True, slots=True)
class CompilationUnit:
    """One source file's syntax tree: the unit of independent analysis.

    ``statements`` holds top-level code outside declarations; closures found
    there are analysed like any other function.
    """

    path: str
    declarations: tuple[Declaration, ...]
    statements: tuple[Stmt, ...] = field(default=())
