"""Static semantic linter for PHP.

Checks that functions return what their signatures declare and that class
constants follow the naming convention. Source files are parsed with
tree-sitter-php into compilation units, which LintEngine analyses
independently (optionally in parallel).

Usage:
    unit = parse_php(source, "src/Example.php")
    diagnostics = LintEngine(LintConfig()).lint_unit(unit)
"""

from .config import LintConfig
from .diagnostics import Diagnostic, DiagnosticCollector, Severity
from .engine import LintEngine, UnitResult
from .errors import (
    AnalysisError,
    LintConfigError,
    ParserError,
    PhpLintError,
    RuleNotFoundError,
    RuleRegistrationError,
    TypeSyntaxError,
)
from .rules import Rule, RuleRegistry, register_builtin_rules
from .syntax import CompilationUnit, PHPSourceParser, SourcePosition, parse_php

__all__ = [
    "AnalysisError",
    "CompilationUnit",
    "Diagnostic",
    "DiagnosticCollector",
    "LintConfig",
    "LintConfigError",
    "LintEngine",
    "PHPSourceParser",
    "ParserError",
    "PhpLintError",
    "Rule",
    "RuleNotFoundError",
    "RuleRegistrationError",
    "RuleRegistry",
    "Severity",
    "SourcePosition",
    "TypeSyntaxError",
    "UnitResult",
    "parse_php",
    "register_builtin_rules",
]
