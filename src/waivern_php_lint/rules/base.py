"""Rule contract shared by all lint rules."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

from waivern_php_lint.diagnostics import Diagnostic, Severity
from waivern_php_lint.symbols import SymbolModel
from waivern_php_lint.syntax.nodes import CompilationUnit

if TYPE_CHECKING:
    from waivern_php_lint.config import LintConfig


@runtime_checkable
class Rule(Protocol):
    """Structural contract for lint rules.

    A rule class declares its identity through class variables and is
    instantiated once per engine with the engine's configuration. ``run`` is
    called once per compilation unit and must not keep state between calls,
    since units may be linted concurrently.
    """

    rule_id: ClassVar[str]
    description: ClassVar[str]
    severity: ClassVar[Severity]
    default_enabled: ClassVar[bool]

    def __init__(self, config: LintConfig) -> None: ...

    def run(self, model: SymbolModel, unit: CompilationUnit) -> Sequence[Diagnostic]:
        """Check one compilation unit.

        Args:
            model: Symbol model built from ``unit``
            unit: The unit's syntax tree

        Returns:
            Diagnostics found in the unit, in any order

        """
        ...
