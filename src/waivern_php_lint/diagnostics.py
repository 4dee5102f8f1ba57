"""Diagnostic model and collector."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from waivern_php_lint.syntax.nodes import SourcePosition


class Severity(str, Enum):
    """Severity of a diagnostic."""

    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """One finding produced by a rule."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rule_id: str = Field(description="Identifier of the rule that produced the finding")
    severity: Severity
    message: str
    position: SourcePosition
    symbol: str | None = Field(
        default=None, description="Display name of the offending symbol"
    )

    @property
    def sort_key(self) -> tuple[str, int, int, str, str]:
        """Ordering key: file, line, column, then rule id, then message."""
        return (
            self.position.file,
            self.position.line,
            self.position.column,
            self.rule_id,
            self.message,
        )

    def __str__(self) -> str:
        return f"{self.position}: {self.severity.value} [{self.rule_id}] {self.message}"


class DiagnosticCollector:
    """Merges diagnostics from all rules run over one compilation unit.

    Exact duplicates are dropped and the result is sorted; nothing else is
    filtered.
    """

    def __init__(self) -> None:
        self._diagnostics: dict[Diagnostic, None] = {}

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic; exact duplicates are kept once."""
        self._diagnostics.setdefault(diagnostic, None)

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        """Add several diagnostics."""
        for diagnostic in diagnostics:
            self.add(diagnostic)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def results(self) -> tuple[Diagnostic, ...]:
        """Return the collected diagnostics in their stable order."""
        return tuple(sorted(self._diagnostics, key=lambda d: d.sort_key))
