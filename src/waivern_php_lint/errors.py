"""Error classes for the PHP semantic linter.

This module provides:
- PhpLintError: Base exception class for all linter errors
- LintConfigError: Rejected configuration (raised before any analysis begins)
- ParserError: Parser-related exception at the syntax boundary
- RuleRegistrationError, RuleNotFoundError: Rule registry exceptions
- AnalysisError: Internal defect surfaced while analysing a compilation unit
- TypeSyntaxError: Unparseable type annotation text
"""


class PhpLintError(Exception):
    """Base exception for all PHP semantic linter errors."""

    pass


class LintConfigError(PhpLintError):
    """Raised when lint configuration is invalid."""

    pass


class ParserError(PhpLintError):
    """Raised when source code cannot be handed to the parser."""

    pass


class RuleRegistrationError(PhpLintError):
    """Raised when a rule class cannot be registered."""

    pass


class RuleNotFoundError(PhpLintError):
    """Raised when a requested rule is not registered."""

    pass


class AnalysisError(PhpLintError):
    """Raised when analysing a compilation unit fails unexpectedly."""

    pass


class TypeSyntaxError(PhpLintError, ValueError):
    """Raised when a type annotation cannot be parsed."""

    pass
