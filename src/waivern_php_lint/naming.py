"""Naming-convention checks for class-like constants."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from waivern_php_lint.symbols import ConstantSymbol, SymbolModel
from waivern_php_lint.syntax.nodes import Visibility

logger = logging.getLogger(__name__)

DEFAULT_CONSTANT_PATTERN = r"^[A-Z][A-Z0-9]*(_[A-Z0-9]+)*$"

_WORD_PATTERN = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")


def split_words(identifier: str) -> list[str]:
    """Split an identifier into words at underscores and case changes.

    Example:
        ``invalidName`` -> ``["invalid", "Name"]``,
        ``HTTPStatus_code`` -> ``["HTTP", "Status", "code"]``

    """
    words: list[str] = []
    for part in identifier.split("_"):
        words.extend(_WORD_PATTERN.findall(part))
    return words


def to_screaming_snake(identifier: str) -> str | None:
    """Suggest the SCREAMING_SNAKE_CASE form of an identifier.

    Returns:
        The suggested name, or None when the identifier has no ASCII words

    """
    words = split_words(identifier)
    if not words:
        return None
    return "_".join(word.upper() for word in words)


@dataclass(frozen=True, slots=True)
class NamingViolation:
    """A constant whose name does not match the enforced pattern."""

    constant: ConstantSymbol
    suggestion: str | None


@dataclass(frozen=True, slots=True)
class AmbiguousName:
    """A conforming constant name that lost the word boundaries of a related identifier."""

    constant: ConstantSymbol
    related_identifier: str
    suggestion: str


class ConstantNamingChecker:
    """Checks constant names of a symbol model against a naming pattern.

    Class, trait, interface and enum constants are all checked the same way.
    When ``visibilities`` is given, only constants with one of those
    visibilities are checked; a constant without a modifier is public.
    """

    def __init__(
        self,
        pattern: str | None = None,
        visibilities: Iterable[Visibility] | None = None,
    ) -> None:
        """Initialise the checker.

        Args:
            pattern: Regular expression a full constant name must match
            visibilities: Visibilities to check, all when None

        """
        self._pattern = re.compile(pattern or DEFAULT_CONSTANT_PATTERN)
        self._visibilities = frozenset(visibilities) if visibilities is not None else None

    def is_conforming(self, name: str) -> bool:
        """Check a name against the naming pattern."""
        return self._pattern.fullmatch(name) is not None

    def check(self, model: SymbolModel) -> list[NamingViolation]:
        """Find constants whose names do not match the pattern.

        Args:
            model: Symbol model of one compilation unit

        Returns:
            One violation per non-conforming constant, in declaration order

        """
        violations = [
            NamingViolation(constant, to_screaming_snake(constant.name))
            for constant in self._selected(model)
            if not self.is_conforming(constant.name)
        ]
        logger.debug(
            "%d constant naming violations in %s", len(violations), model.path
        )
        return violations

    def find_ambiguous(self, model: SymbolModel) -> list[AmbiguousName]:
        """Find conforming names that fold several words of another identifier.

        ``INVALIDNAME`` matches the default pattern, but next to an
        identifier such as ``invalidName`` it reads as a mangled
        ``INVALID_NAME``. Only names without an underscore are considered.

        Args:
            model: Symbol model of one compilation unit

        Returns:
            At most one advisory per constant, naming the related identifier

        """
        folded: dict[str, tuple[str, str]] = {}
        for identifier in model.identifiers():
            words = split_words(identifier)
            if len(words) < 2:
                continue
            key = "".join(words).upper()
            suggestion = "_".join(word.upper() for word in words)
            folded.setdefault(key, (identifier, suggestion))

        advisories: list[AmbiguousName] = []
        for constant in self._selected(model):
            name = constant.name
            if "_" in name or not self.is_conforming(name):
                continue
            related = folded.get(name)
            if related is None or related[0] == name:
                continue
            advisories.append(AmbiguousName(constant, *related))
        return advisories

    def _selected(self, model: SymbolModel) -> list[ConstantSymbol]:
        if self._visibilities is None:
            return list(model.constants)
        return [
            constant
            for constant in model.constants
            if constant.effective_visibility in self._visibilities
        ]
