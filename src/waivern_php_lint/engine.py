"""Lint engine: runs the enabled rules over compilation units.

Each unit is analysed independently: its symbol model is built from scratch,
every enabled rule runs over it, and the diagnostics are merged by a
DiagnosticCollector. Batches of units are spread over a thread pool.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from waivern_php_lint.config import LintConfig
from waivern_php_lint.diagnostics import Diagnostic, DiagnosticCollector
from waivern_php_lint.errors import AnalysisError
from waivern_php_lint.rules.base import Rule
from waivern_php_lint.rules.registry import RuleRegistry, register_builtin_rules
from waivern_php_lint.symbols import SymbolModelBuilder
from waivern_php_lint.syntax.nodes import CompilationUnit

logger = logging.getLogger(__name__)

UnitStatus = Literal["ok", "error", "cancelled"]


class UnitResult(BaseModel):
    """Outcome of linting one compilation unit in a batch."""

    model_config = ConfigDict(frozen=True)

    path: str
    status: UnitStatus
    diagnostics: tuple[Diagnostic, ...] = ()
    error: str | None = None
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def success(self) -> bool:
        """Whether the unit was analysed without an internal error."""
        return self.status == "ok"


class LintEngine:
    """Runs the configured rules over compilation units.

    The configuration and the set of enabled rules are fixed at construction.
    Rule instances are shared by all worker threads.
    """

    def __init__(
        self,
        config: LintConfig | None = None,
        registry: RuleRegistry | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Lint configuration, defaults when None
            registry: Rule registry; the built-in rules are registered into
                the shared registry when None

        Raises:
            LintConfigError: If the configuration enables or disables an
                unknown rule

        """
        self._config = config or LintConfig()
        if registry is None:
            register_builtin_rules()
            registry = RuleRegistry()
        self._enabled = registry.resolve_enabled(self._config)
        self._rules: tuple[Rule, ...] = tuple(
            registry.get(rule_id)(self._config) for rule_id in self._enabled
        )
        self._builder = SymbolModelBuilder()
        self._cancelled = threading.Event()
        logger.debug("Lint engine enabled rules: %s", ", ".join(self._enabled))

    @property
    def config(self) -> LintConfig:
        """The configuration the engine was built with."""
        return self._config

    @property
    def enabled_rules(self) -> tuple[str, ...]:
        """Ids of the rules this engine runs, sorted."""
        return self._enabled

    def lint_unit(self, unit: CompilationUnit) -> tuple[Diagnostic, ...]:
        """Lint one compilation unit.

        Args:
            unit: Syntax tree of one source file

        Returns:
            The unit's diagnostics, deduplicated and sorted

        Raises:
            AnalysisError: If a rule or the symbol extraction fails unexpectedly

        """
        try:
            model = self._builder.build(unit)
            collector = DiagnosticCollector()
            for rule in self._rules:
                collector.extend(rule.run(model, unit))
        except Exception as e:
            raise AnalysisError(f"Failed to analyse '{unit.path}': {e}") from e
        logger.debug("%s: %d diagnostics", unit.path, len(collector))
        return collector.results()

    def lint_units(self, units: Sequence[CompilationUnit]) -> list[UnitResult]:
        """Lint a batch of compilation units concurrently.

        One task per unit runs on a thread pool sized by ``max_workers``.
        A unit that fails is reported with status ``error`` and does not
        affect the others, unless ``fail_on_internal_error`` is set. After
        ``cancel()``, units that have not started are reported as
        ``cancelled``.

        Args:
            units: Units in discovery order

        Returns:
            One result per unit, in the order of ``units``

        Raises:
            AnalysisError: If a unit fails and ``fail_on_internal_error`` is set

        """
        self._cancelled.clear()
        start_time = time.monotonic()

        with ThreadPoolExecutor(
            max_workers=self._config.max_workers,
            thread_name_prefix="php-lint",
        ) as pool:
            futures = [pool.submit(self._run_unit, unit) for unit in units]
            results = [future.result() for future in futures]

        failed = sum(1 for result in results if result.status == "error")
        cancelled = sum(1 for result in results if result.status == "cancelled")
        logger.info(
            "Linted %d units in %.2fs (%d failed, %d cancelled)",
            len(results),
            time.monotonic() - start_time,
            failed,
            cancelled,
        )
        return results

    def cancel(self) -> None:
        """Stop starting new units in the running batch.

        Units already being analysed run to completion.
        """
        self._cancelled.set()

    def _run_unit(self, unit: CompilationUnit) -> UnitResult:
        if self._cancelled.is_set():
            logger.warning("Cancelled before analysing %s", unit.path)
            return UnitResult(path=unit.path, status="cancelled")

        start_time = time.monotonic()
        try:
            diagnostics = self.lint_unit(unit)
        except AnalysisError as e:
            if self._config.fail_on_internal_error:
                raise
            logger.error("Internal error analysing %s", unit.path, exc_info=True)
            return UnitResult(
                path=unit.path,
                status="error",
                error=str(e),
                duration_seconds=time.monotonic() - start_time,
            )
        return UnitResult(
            path=unit.path,
            status="ok",
            diagnostics=diagnostics,
            duration_seconds=time.monotonic() - start_time,
        )
