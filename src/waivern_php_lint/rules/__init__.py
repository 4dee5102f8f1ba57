"""Lint rules, their contract and the rule registry."""

from waivern_php_lint.rules.base import Rule
from waivern_php_lint.rules.registry import (
    RuleRegistry,
    RuleRegistryState,
    register_builtin_rules,
)

__all__ = [
    "Rule",
    "RuleRegistry",
    "RuleRegistryState",
    "register_builtin_rules",
]
