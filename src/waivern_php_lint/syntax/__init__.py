"""Syntax boundary: typed syntax tree and the tree-sitter PHP front end."""

from waivern_php_lint.syntax.nodes import (
    CompilationUnit,
    Declaration,
    Expr,
    SourcePosition,
    Stmt,
)
from waivern_php_lint.syntax.parser import PHPSourceParser, parse_php

__all__ = [
    "CompilationUnit",
    "Declaration",
    "Expr",
    "PHPSourceParser",
    "SourcePosition",
    "Stmt",
    "parse_php",
]
