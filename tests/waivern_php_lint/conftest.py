"""Shared fixtures and syntax tree builders for linter tests."""

from pathlib import Path

import pytest

from waivern_php_lint.config import LintConfig
from waivern_php_lint.engine import LintEngine
from waivern_php_lint.syntax.nodes import (
    ClassLikeDecl,
    CompilationUnit,
    ConstantDecl,
    ConstructKind,
    Declaration,
    Expr,
    FunctionDecl,
    FunctionKind,
    Parameter,
    ReturnStmt,
    ScalarLiteral,
    SourcePosition,
    Stmt,
    VariableExpr,
    Visibility,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
TEST_FILE = "test.php"


def at(line: int, column: int = 1) -> SourcePosition:
    return SourcePosition(TEST_FILE, line, column)


def int_lit(text: str = "1", line: int = 1) -> ScalarLiteral:
    return ScalarLiteral("int", text, at(line))


def float_lit(text: str = "1.5", line: int = 1) -> ScalarLiteral:
    return ScalarLiteral("float", text, at(line))


def str_lit(text: str = "'text'", line: int = 1) -> ScalarLiteral:
    return ScalarLiteral("string", text, at(line))


def bool_lit(text: str = "true", line: int = 1) -> ScalarLiteral:
    return ScalarLiteral("bool", text, at(line))


def null_lit(line: int = 1) -> ScalarLiteral:
    return ScalarLiteral("null", "null", at(line))


def var(name: str, line: int = 1) -> VariableExpr:
    return VariableExpr(name, at(line))


def ret(value: Expr | None = None, line: int = 1) -> ReturnStmt:
    return ReturnStmt(value, at(line))


def function(
    name: str = "f",
    return_type: str | None = None,
    body: tuple[Stmt, ...] | None = (),
    *,
    kind: FunctionKind = "function",
    line: int = 1,
    parameters: tuple[Parameter, ...] = (),
    is_generator: bool = False,
) -> FunctionDecl:
    return FunctionDecl(
        name=name,
        kind=kind,
        parameters=parameters,
        return_type=return_type,
        body=body,
        position=at(line),
        is_generator=is_generator,
    )


def method(
    name: str,
    return_type: str | None = None,
    body: tuple[Stmt, ...] | None = (),
    *,
    line: int = 1,
    is_generator: bool = False,
) -> FunctionDecl:
    return function(
        name, return_type, body, kind="method", line=line, is_generator=is_generator
    )


def constant(
    name: str, visibility: Visibility | None = "public", line: int = 1
) -> ConstantDecl:
    return ConstantDecl(name, int_lit(line=line), visibility, at(line))


def class_like(
    name: str = "Example",
    *,
    kind: ConstructKind = "class",
    methods: tuple[FunctionDecl, ...] = (),
    constants: tuple[ConstantDecl, ...] = (),
    extends: tuple[str, ...] = (),
    implements: tuple[str, ...] = (),
    line: int = 1,
) -> ClassLikeDecl:
    return ClassLikeDecl(
        kind=kind,
        name=name,
        position=at(line),
        extends=extends,
        implements=implements,
        constants=constants,
        methods=methods,
    )


def unit(*declarations: Declaration, statements: tuple[Stmt, ...] = ()) -> CompilationUnit:
    return CompilationUnit(TEST_FILE, declarations, statements)


@pytest.fixture
def engine() -> LintEngine:
    """Engine with the built-in rules and default configuration."""
    return LintEngine(LintConfig())


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
