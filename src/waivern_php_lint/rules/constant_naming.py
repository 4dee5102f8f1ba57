"""Rules enforcing the constant naming convention."""

from __future__ import annotations

from collections.abc import Sequence
from typing import ClassVar

from waivern_php_lint.config import LintConfig
from waivern_php_lint.diagnostics import Diagnostic, Severity
from waivern_php_lint.naming import ConstantNamingChecker
from waivern_php_lint.symbols import SymbolModel
from waivern_php_lint.syntax.nodes import CompilationUnit


def _checker(config: LintConfig) -> ConstantNamingChecker:
    return ConstantNamingChecker(
        pattern=config.constant_name_pattern,
        visibilities=config.constant_visibilities,
    )


class ConstantNamingRule:
    """Reports constants whose names do not follow SCREAMING_SNAKE_CASE."""

    rule_id: ClassVar[str] = "constant-naming"
    description: ClassVar[str] = "Constant name does not match the naming convention"
    severity: ClassVar[Severity] = Severity.ERROR
    default_enabled: ClassVar[bool] = True

    def __init__(self, config: LintConfig) -> None:
        self._checker = _checker(config)

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Report constants whose names do not match the pattern."""
        diagnostics: list[Diagnostic] = []
        for violation in self._checker.check(model):
            constant = violation.constant
            message = f"Constant {constant.display_name} does not match the naming convention"
            if violation.suggestion is not None:
                message += f"; expected e.g. {violation.suggestion}"
            diagnostics.append(
                Diagnostic(
                    rule_id=self.rule_id,
                    severity=self.severity,
                    message=message,
                    position=constant.position,
                    symbol=constant.display_name,
                )
            )
        return diagnostics


class AmbiguousConstantNameRule:
    """Advises on conforming names that run several words together."""

    rule_id: ClassVar[str] = "constant-naming-ambiguous"
    description: ClassVar[str] = (
        "Constant name folds words that another identifier separates"
    )
    severity: ClassVar[Severity] = Severity.WARNING
    default_enabled: ClassVar[bool] = True

    def __init__(self, config: LintConfig) -> None:
        self._checker = _checker(config)

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Report names that run together the words of another identifier."""
        return [
            Diagnostic(
                rule_id=self.rule_id,
                severity=self.severity,
                message=(
                    f"Constant {advisory.constant.display_name} runs together the "
                    f"words of '{advisory.related_identifier}'; consider "
                    f"{advisory.suggestion}"
                ),
                position=advisory.constant.position,
                symbol=advisory.constant.display_name,
            )
            for advisory in self._checker.find_ambiguous(model)
        ]
