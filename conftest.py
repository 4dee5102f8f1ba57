"""Workspace-level pytest configuration and fixtures."""

import pytest

from waivern_php_lint.rules import RuleRegistry


@pytest.fixture(autouse=True, scope="function")
def isolate_rule_registry():
    """Automatically preserve and restore RuleRegistry state for each test.

    RuleRegistry is a singleton with mutable global state: a test that
    registers or clears rules would otherwise leak into the tests after it.
    """
    saved_state = RuleRegistry.snapshot_state()

    yield

    RuleRegistry.restore_state(saved_state)
