"""Configuration for the PHP semantic linter."""

import re
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from waivern_php_lint.errors import LintConfigError


class LintConfig(BaseModel):
    """Linter configuration with Pydantic validation.

    Rule overrides are validated against the rule registry when an engine is
    constructed, since the set of known rules is only known at that point.
    """

    model_config = ConfigDict(
        # Immutable - configuration cannot be modified after creation
        frozen=True,
        # Strict - extra fields not in the model are rejected
        extra="forbid",
        validate_assignment=True,
    )

    rules: dict[str, bool] = Field(
        default_factory=dict,
        description="Per-rule enable/disable overrides keyed by rule id",
    )
    constant_name_pattern: str | None = Field(
        default=None,
        description="Regular expression constant names must match (default SCREAMING_SNAKE_CASE)",
    )
    constant_visibilities: list[Literal["public", "protected", "private"]] | None = (
        Field(
            default=None,
            description="Only check constants with these visibilities (all if None)",
        )
    )
    max_workers: int | None = Field(
        default=None,
        description="Worker threads for batch linting (executor default if None)",
        gt=0,
    )
    fail_on_internal_error: bool = Field(
        default=False,
        description="Raise instead of reporting a unit as failed on internal errors",
    )

    @field_validator("constant_name_pattern")
    @classmethod
    def validate_pattern(cls, v: str | None) -> str | None:
        """Ensure the naming pattern is a valid regular expression."""
        if v is None:
            return v
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid constant name pattern '{v}': {e}") from e
        return v

    @classmethod
    def from_properties(cls, properties: dict[str, Any]) -> Self:
        """Create configuration from a properties dictionary.

        Args:
            properties: Raw configuration properties containing:
                - rules (dict[str, bool], optional): Rule overrides.
                - constant_name_pattern (str, optional): Naming regex.
                - constant_visibilities (list[str], optional): Visibility filter.
                - max_workers (int, optional): Batch worker threads.
                - fail_on_internal_error (bool, optional): Raise on defects.

        Returns:
            Validated configuration object

        Raises:
            LintConfigError: If validation fails

        """
        try:
            return cls.model_validate(properties)
        except ValidationError as e:
            raise LintConfigError(f"Invalid lint configuration: {e}") from e
        except ValueError as e:
            raise LintConfigError(f"Invalid lint configuration: {e}") from e
