"""Rule registry for managing registered rule classes."""

from __future__ import annotations

import logging
import threading
from typing import Any, ClassVar, TypedDict

from waivern_php_lint.config import LintConfig
from waivern_php_lint.errors import (
    LintConfigError,
    RuleNotFoundError,
    RuleRegistrationError,
)
from waivern_php_lint.rules.base import Rule

logger = logging.getLogger(__name__)

_REQUIRED_CLASS_VARS = ("rule_id", "description", "severity", "default_enabled")


class RuleRegistryState(TypedDict):
    """State snapshot for RuleRegistry.

    Used for test isolation - captures and restores registry state
    to prevent test pollution.
    """

    registry: dict[str, type[Rule]]


class RuleRegistry:
    """Singleton registry of rule classes keyed by rule id."""

    _lock: ClassVar[threading.Lock] = threading.Lock()
    _instance: RuleRegistry | None = None
    _registry: dict[str, type[Rule]]

    def __new__(cls, *args: Any, **kwargs: Any) -> RuleRegistry:  # noqa: ANN401  # Singleton pattern requires flexible constructor arguments
        """Create or return the singleton instance of RuleRegistry.

        Uses double-checked locking for thread-safe lazy initialisation.

        Returns:
            The singleton RuleRegistry instance

        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._registry = {}
        return cls._instance

    def register(self, rule_class: type[Rule]) -> None:
        """Register a rule class.

        The rule id and metadata are read from the class variables
        ``rule_id``, ``description``, ``severity`` and ``default_enabled``.
        Registering the same class again is a no-op.

        Args:
            rule_class: The rule class to register

        Raises:
            RuleRegistrationError: If a class variable is missing, or a
                different class is already registered under the same id

        """
        for attribute in _REQUIRED_CLASS_VARS:
            if getattr(rule_class, attribute, None) is None:
                raise RuleRegistrationError(
                    f"Rule class {rule_class.__name__} must define '{attribute}' ClassVar"
                )

        rule_id = rule_class.rule_id
        with self._lock:
            existing = self._registry.get(rule_id)
            if existing is rule_class:
                return
            if existing is not None:
                raise RuleRegistrationError(
                    f"Rule id '{rule_id}' is already registered by {existing.__name__}"
                )
            self._registry[rule_id] = rule_class
        logger.debug("Registered rule '%s'", rule_id)

    def get(self, rule_id: str) -> type[Rule]:
        """Get a registered rule class.

        Raises:
            RuleNotFoundError: If no rule is registered under ``rule_id``

        """
        if rule_id not in self._registry:
            raise RuleNotFoundError(f"Rule '{rule_id}' not registered")
        return self._registry[rule_id]

    def is_registered(self, rule_id: str) -> bool:
        """Check whether a rule id is registered."""
        return rule_id in self._registry

    def list_rule_ids(self) -> list[str]:
        """List registered rule ids, sorted alphabetically."""
        return sorted(self._registry)

    def clear(self) -> None:
        """Clear all registered rules."""
        self._registry.clear()

    def resolve_enabled(self, config: LintConfig) -> tuple[str, ...]:
        """Work out which rules run under a configuration.

        Each rule's ``default_enabled`` is overlaid with the configuration's
        ``rules`` mapping.

        Args:
            config: Lint configuration

        Returns:
            Enabled rule ids, sorted and without duplicates

        Raises:
            LintConfigError: If the configuration names an unknown rule

        """
        unknown = sorted(set(config.rules) - set(self._registry))
        if unknown:
            raise LintConfigError(
                f"Unknown rule ids in configuration: {', '.join(unknown)}. "
                f"Available rules: {', '.join(self.list_rule_ids())}"
            )
        return tuple(
            rule_id
            for rule_id in self.list_rule_ids()
            if config.rules.get(rule_id, self._registry[rule_id].default_enabled)
        )

    @classmethod
    def snapshot_state(cls) -> RuleRegistryState:
        """Capture current RuleRegistry state for later restoration.

        Returns:
            State dictionary containing all mutable registry state

        """
        instance = cls()
        return {"registry": instance._registry.copy()}

    @classmethod
    def restore_state(cls, state: RuleRegistryState) -> None:
        """Restore RuleRegistry state from a previously captured snapshot.

        Args:
            state: State dictionary from snapshot_state()

        """
        instance = cls()
        instance._registry = state["registry"].copy()


def register_builtin_rules() -> None:
    """Register the rules shipped with the linter.

    Safe to call repeatedly; registration is idempotent.
    """
    from waivern_php_lint.rules.assignment_in_condition import (
        AssignmentInConditionRule,
    )
    from waivern_php_lint.rules.constant_naming import (
        AmbiguousConstantNameRule,
        ConstantNamingRule,
    )
    from waivern_php_lint.rules.declaration_skipped import DeclarationSkippedRule
    from waivern_php_lint.rules.empty_statement import EmptyStatementRule
    from waivern_php_lint.rules.return_type import (
        MissingReturnRule,
        ReturnTypeMismatchRule,
    )
    from waivern_php_lint.rules.side_effects import SideEffectsRule

    registry = RuleRegistry()
    for rule_class in (
        ReturnTypeMismatchRule,
        MissingReturnRule,
        ConstantNamingRule,
        AmbiguousConstantNameRule,
        DeclarationSkippedRule,
        AssignmentInConditionRule,
        EmptyStatementRule,
        SideEffectsRule,
    ):
        registry.register(rule_class)
