"""Rule surfacing declarations the symbol extraction had to skip."""

from __future__ import annotations

from collections.abc import Sequence
from typing import ClassVar

from waivern_php_lint.config import LintConfig
from waivern_php_lint.diagnostics import Diagnostic, Severity
from waivern_php_lint.symbols import SymbolModel
from waivern_php_lint.syntax.nodes import CompilationUnit


class DeclarationSkippedRule:
    """Reports each skipped declaration. Disabled unless configured."""

    rule_id: ClassVar[str] = "declaration-skipped"
    description: ClassVar[str] = "Declaration could not be read and was not analysed"
    severity: ClassVar[Severity] = Severity.WARNING
    default_enabled: ClassVar[bool] = False

    def __init__(self, config: LintConfig) -> None:
        pass

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Report the declarations left out of the symbol model."""
        diagnostics: list[Diagnostic] = []
        for skipped in model.skipped:
            label = f"{skipped.kind} '{skipped.name}'" if skipped.name else skipped.kind
            diagnostics.append(
                Diagnostic(
                    rule_id=self.rule_id,
                    severity=self.severity,
                    message=f"Skipped {label}: {skipped.reason}",
                    position=skipped.position,
                    symbol=skipped.name,
                )
            )
        return diagnostics
