"""Rules checking returned values against declared return types."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import ClassVar

from waivern_php_lint.config import LintConfig
from waivern_php_lint.diagnostics import Diagnostic, Severity
from waivern_php_lint.return_flow import ReturnFlowAnalyser
from waivern_php_lint.symbols import FunctionSymbol, SymbolModel
from waivern_php_lint.syntax.nodes import CompilationUnit
from waivern_php_lint.types import UnspecifiedType, is_compatible, requires_value

logger = logging.getLogger(__name__)


def checked_functions(model: SymbolModel) -> Iterator[FunctionSymbol]:
    """Yield the functions whose returns are checked.

    Functions without a declared return type, without a body (abstract and
    interface methods) and generators are left out.
    """
    for function in model.functions:
        if isinstance(function.declared_return, UnspecifiedType):
            continue
        if function.body is None or function.is_generator:
            continue
        yield function


class ReturnTypeMismatchRule:
    """Reports each reachable return whose value contradicts the declared type."""

    rule_id: ClassVar[str] = "return-type-mismatch"
    description: ClassVar[str] = (
        "Returned value is incompatible with the declared return type"
    )
    severity: ClassVar[Severity] = Severity.ERROR
    default_enabled: ClassVar[bool] = True

    def __init__(self, config: LintConfig) -> None:
        self._analyser = ReturnFlowAnalyser()

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Check every reachable return of each checked function."""
        diagnostics: list[Diagnostic] = []
        for function in checked_functions(model):
            result = self._analyser.analyse(function)
            for exit_ in result.exits:
                if is_compatible(function.declared_return, exit_.inferred, model):
                    continue
                diagnostics.append(
                    Diagnostic(
                        rule_id=self.rule_id,
                        severity=self.severity,
                        message=(
                            f"{function.kind_label} {function.display_name} declares "
                            f"return type {function.declared_return} but returns "
                            f"{exit_.inferred}"
                        ),
                        position=exit_.position,
                        symbol=function.display_name,
                    )
                )
        return diagnostics


class MissingReturnRule:
    """Reports functions that can end without returning a value they promise."""

    rule_id: ClassVar[str] = "missing-return"
    description: ClassVar[str] = (
        "Control can reach the end of a function whose return type requires a value"
    )
    severity: ClassVar[Severity] = Severity.ERROR
    default_enabled: ClassVar[bool] = True

    def __init__(self, config: LintConfig) -> None:
        self._analyser = ReturnFlowAnalyser()

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Check whether each checked function can fall off its end."""
        diagnostics: list[Diagnostic] = []
        for function in checked_functions(model):
            if not requires_value(function.declared_return):
                continue
            result = self._analyser.analyse(function)
            if result.has_unparsed:
                logger.debug(
                    "Not checking fall-through of %s: body has unreadable regions",
                    function.display_name,
                )
                continue
            if not result.falls_through:
                continue
            diagnostics.append(
                Diagnostic(
                    rule_id=self.rule_id,
                    severity=self.severity,
                    message=(
                        f"{function.kind_label} {function.display_name} declares "
                        f"return type {function.declared_return} but can end "
                        "without returning a value"
                    ),
                    position=function.position,
                    symbol=function.display_name,
                )
            )
        return diagnostics
