"""Type lattice for return-type checking.

Two closed families of frozen values live here:

- Declared types: what a signature promises (``int``, ``?Foo``, ``A|B``...).
- Inferred value types: what an expression can evaluate to, as far as a
  local, flow-insensitive look at the expression can tell.

``join`` combines inferred types, ``is_compatible`` checks an inferred type
against a declared one. Both pattern-match exhaustively over the variants.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Protocol

from waivern_php_lint.errors import TypeSyntaxError

ScalarKind = Literal[
    "int", "float", "string", "bool", "array", "object", "callable", "iterable"
]

_SCALAR_KINDS: dict[str, ScalarKind] = {
    "int": "int",
    "float": "float",
    "string": "string",
    "bool": "bool",
    "array": "array",
    "object": "object",
    "callable": "callable",
    "iterable": "iterable",
}

_CLASS_NAME_PATTERN = re.compile(
    r"^\\?[A-Za-z_\x80-\uffff][A-Za-z0-9_\x80-\uffff]*"
    r"(\\[A-Za-z_\x80-\uffff][A-Za-z0-9_\x80-\uffff]*)*$"
)


class ClassHierarchy(Protocol):
    """Answers subtype questions between class-like names."""

    def is_subtype(self, child: str, parent: str) -> bool | None:
        """Return True/False when known, None when an unknown class is reached."""
        ...


def short_class_name(name: str) -> str:
    """Strip the leading backslash and namespace from a class name."""
    return name.lstrip("\\").rsplit("\\", 1)[-1]


def same_class(left: str, right: str) -> bool:
    """Compare class names the way PHP does (case-insensitive, by short name)."""
    return short_class_name(left).lower() == short_class_name(right).lower()


# Declared types


@dataclass(frozen=True, slots=True)
class ScalarType:
    """A scalar type keyword such as ``int`` or ``string``."""

    kind: ScalarKind

    def __str__(self) -> str:
        return self.kind


@dataclass(frozen=True, slots=True)
class ClassType:
    """A class, interface or enum name; ``self`` and ``static`` resolve to it."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class VoidType:
    """``void``."""

    def __str__(self) -> str:
        return "void"


@dataclass(frozen=True, slots=True)
class MixedType:
    """``mixed``: accepts any value."""

    def __str__(self) -> str:
        return "mixed"


@dataclass(frozen=True, slots=True)
class NeverType:
    """``never``: the function must not return."""

    def __str__(self) -> str:
        return "never"


@dataclass(frozen=True, slots=True)
class UnspecifiedType:
    """No return type annotation was written."""

    def __str__(self) -> str:
        return "unspecified"


@dataclass(frozen=True, slots=True)
class IntersectionType:
    """``A&B``; only class types can be intersected."""

    members: frozenset[ClassType]

    def __str__(self) -> str:
        return "&".join(sorted(str(member) for member in self.members))


@dataclass(frozen=True, slots=True)
class UnionType:
    """``A|B`` with at least two members."""

    members: frozenset[DeclaredType]

    def __str__(self) -> str:
        return "|".join(sorted(_union_member_text(member) for member in self.members))


@dataclass(frozen=True, slots=True)
class NullableType:
    """``?T`` or a union including ``null``."""

    inner: DeclaredType

    def __str__(self) -> str:
        if isinstance(self.inner, VoidType):
            return "null"
        if isinstance(self.inner, (UnionType, IntersectionType)):
            return f"{_union_member_text(self.inner)}|null"
        return f"?{self.inner}"


DeclaredType = (
    ScalarType
    | ClassType
    | VoidType
    | MixedType
    | NeverType
    | UnspecifiedType
    | IntersectionType
    | UnionType
    | NullableType
)

VOID = VoidType()
MIXED = MixedType()
NEVER = NeverType()
UNSPECIFIED = UnspecifiedType()


def _union_member_text(member: DeclaredType) -> str:
    if isinstance(member, IntersectionType):
        return f"({member})"
    return str(member)


def parse_declared_type(text: str | None, self_class: str | None = None) -> DeclaredType:
    """Parse a PHP type annotation into a declared type.

    Args:
        text: Annotation text as written (``None`` when absent)
        self_class: Declaring class name used to resolve ``self``/``static``

    Returns:
        The declared type; ``UNSPECIFIED`` when ``text`` is None

    Raises:
        TypeSyntaxError: If the annotation text is malformed

    """
    if text is None:
        return UNSPECIFIED

    source = "".join(text.split())
    if not source:
        raise TypeSyntaxError("Empty type annotation")

    if source.startswith("?"):
        inner = _parse_atom(source[1:], self_class)
        if inner is None or isinstance(inner, (VoidType, MixedType, NeverType)):
            raise TypeSyntaxError(f"Invalid nullable type: '{text}'")
        return NullableType(inner)

    members: set[DeclaredType] = set()
    has_null = False
    parts = _split_union(source, text)
    for part in parts:
        if part.startswith("(") or "&" in part:
            members.add(_parse_intersection(part, text, self_class))
            continue
        atom = _parse_atom(part, self_class)
        if atom is None:
            has_null = True
        elif len(parts) > 1 and isinstance(atom, (VoidType, MixedType, NeverType)):
            raise TypeSyntaxError(f"'{atom}' cannot be part of a union type: '{text}'")
        else:
            members.add(atom)

    if not members:
        return NullableType(VOID)
    if len(members) == 1:
        (single,) = members
        return NullableType(single) if has_null else single
    union = UnionType(frozenset(members))
    return NullableType(union) if has_null else union


def _split_union(source: str, original: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for char in source:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise TypeSyntaxError(f"Unbalanced parentheses in type: '{original}'")
        if char == "|" and depth == 0:
            parts.append(current)
            current = ""
            continue
        current += char
    parts.append(current)
    if depth != 0 or any(not part for part in parts):
        raise TypeSyntaxError(f"Malformed union type: '{original}'")
    return parts


def _parse_intersection(
    part: str, original: str, self_class: str | None
) -> IntersectionType:
    inner = part
    if part.startswith("("):
        if not part.endswith(")"):
            raise TypeSyntaxError(f"Malformed intersection type: '{original}'")
        inner = part[1:-1]
    names = inner.split("&")
    members: set[ClassType] = set()
    for name in names:
        atom = _parse_atom(name, self_class)
        if not isinstance(atom, ClassType):
            raise TypeSyntaxError(
                f"Intersection types may only contain classes: '{original}'"
            )
        members.add(atom)
    if len(members) < 2:
        raise TypeSyntaxError(f"Malformed intersection type: '{original}'")
    return IntersectionType(frozenset(members))


def _parse_atom(name: str, self_class: str | None) -> DeclaredType | None:
    """Parse a single type name; returns None for ``null``."""
    lowered = name.lower()
    if lowered in _SCALAR_KINDS:
        return ScalarType(_SCALAR_KINDS[lowered])
    if lowered in ("false", "true"):
        return ScalarType("bool")
    if lowered == "null":
        return None
    if lowered == "void":
        return VOID
    if lowered == "mixed":
        return MIXED
    if lowered == "never":
        return NEVER
    if lowered in ("self", "static") and self_class is not None:
        return ClassType(self_class)
    if _CLASS_NAME_PATTERN.match(name):
        return ClassType(name.lstrip("\\"))
    raise TypeSyntaxError(f"Invalid type name: '{name}'")


def requires_value(declared: DeclaredType) -> bool:
    """Check whether falling off the end of a body violates ``declared``.

    True for everything except ``void``, ``mixed``, nullable types and a
    missing annotation.
    """
    return not isinstance(declared, (VoidType, MixedType, UnspecifiedType, NullableType))


# Inferred value types


@dataclass(frozen=True, slots=True)
class InferredScalar:
    """A value of a scalar type."""

    kind: ScalarKind

    def __str__(self) -> str:
        return self.kind


@dataclass(frozen=True, slots=True)
class InferredBool:
    """A ``true`` or ``false`` literal; a refinement of ``bool``."""

    value: bool

    def __str__(self) -> str:
        return "bool"


@dataclass(frozen=True, slots=True)
class InferredArray:
    """An array value."""

    def __str__(self) -> str:
        return "array"


@dataclass(frozen=True, slots=True)
class InferredObject:
    """An object; ``class_name`` is None when the class is anonymous or unknown."""

    class_name: str | None = None

    def __str__(self) -> str:
        return self.class_name or "object"


@dataclass(frozen=True, slots=True)
class InferredNull:
    """The ``null`` value."""

    def __str__(self) -> str:
        return "null"


@dataclass(frozen=True, slots=True)
class InferredVoid:
    """A bare ``return;``."""

    def __str__(self) -> str:
        return "void"


@dataclass(frozen=True, slots=True)
class InferredUnknown:
    """A value whose type cannot be inferred locally."""

    def __str__(self) -> str:
        return "unknown"


InferredAtom = (
    InferredScalar
    | InferredBool
    | InferredArray
    | InferredObject
    | InferredVoid
)


@dataclass(frozen=True, slots=True)
class InferredUnion:
    """A value of one of several types."""

    members: frozenset[InferredAtom]

    def __str__(self) -> str:
        return "|".join(sorted({str(member) for member in self.members}))


@dataclass(frozen=True, slots=True)
class InferredNullable:
    """A value of some type, or ``null``."""

    inner: InferredAtom | InferredUnion

    def __str__(self) -> str:
        if isinstance(self.inner, InferredUnion):
            return f"{self.inner}|null"
        return f"?{self.inner}"


InferredType = (
    InferredAtom | InferredNull | InferredUnknown | InferredUnion | InferredNullable
)

NULL = InferredNull()
UNKNOWN = InferredUnknown()
INFERRED_VOID = InferredVoid()


def literal_type(kind: str, text: str) -> InferredType:
    """Map a scalar literal to its inferred type.

    Args:
        kind: Literal kind reported by the front end
        text: Literal source text (used for booleans)

    Returns:
        The inferred type of the literal

    """
    match kind:
        case "int":
            return InferredScalar("int")
        case "float":
            return InferredScalar("float")
        case "string":
            return InferredScalar("string")
        case "bool":
            return InferredBool(text.strip().lower() == "true")
        case "null":
            return NULL
    raise ValueError(f"Unknown literal kind: {kind}")


def join(left: InferredType, right: InferredType) -> InferredType:
    """Return the least inferred type covering both arguments."""
    if isinstance(left, InferredUnknown) or isinstance(right, InferredUnknown):
        return UNKNOWN

    left_atoms, left_null = _decompose(left)
    right_atoms, right_null = _decompose(right)
    return _compose(_normalise(left_atoms | right_atoms), left_null or right_null)


def join_all(types: list[InferredType]) -> InferredType | None:
    """Join a list of inferred types; None for an empty list."""
    result: InferredType | None = None
    for inferred in types:
        result = inferred if result is None else join(result, inferred)
    return result


def _decompose(inferred: InferredType) -> tuple[frozenset[InferredAtom], bool]:
    match inferred:
        case InferredNull():
            return frozenset(), True
        case InferredNullable(inner=inner):
            atoms, _ = _decompose(inner)
            return atoms, True
        case InferredUnion(members=members):
            return members, False
        case InferredUnknown():
            raise ValueError("unknown cannot be decomposed")
        case _:
            return frozenset({inferred}), False


def _normalise(atoms: frozenset[InferredAtom]) -> frozenset[InferredAtom]:
    result = set(atoms)

    literals = {atom for atom in result if isinstance(atom, InferredBool)}
    if literals and (
        InferredScalar("bool") in result or {lit.value for lit in literals} == {True, False}
    ):
        result -= literals
        result.add(InferredScalar("bool"))

    if InferredObject(None) in result:
        result = {
            atom
            for atom in result
            if not (isinstance(atom, InferredObject) and atom.class_name is not None)
        }

    return frozenset(result)


def _compose(atoms: frozenset[InferredAtom], nullable: bool) -> InferredType:
    if not atoms:
        return NULL
    core: InferredAtom | InferredUnion
    if len(atoms) == 1:
        (core,) = atoms
    else:
        core = InferredUnion(atoms)
    return InferredNullable(core) if nullable else core


# Compatibility

_FINAL_BUILTIN_CLASSES = frozenset({"closure", "generator"})


def is_compatible(
    declared: DeclaredType,
    inferred: InferredType,
    hierarchy: ClassHierarchy | None = None,
) -> bool:
    """Check whether a value of type ``inferred`` may be returned as ``declared``.

    Args:
        declared: The declared return type
        inferred: The inferred type of the returned value
        hierarchy: Optional class hierarchy for object-to-class checks

    Returns:
        True when every value ``inferred`` stands for satisfies ``declared``

    """
    if isinstance(declared, (MixedType, UnspecifiedType)):
        return True

    match inferred:
        case InferredUnknown():
            return True
        case InferredUnion(members=members):
            return all(_accepts(declared, member, hierarchy) for member in members)
        case InferredNullable(inner=inner):
            return _accepts(declared, NULL, hierarchy) and is_compatible(
                declared, inner, hierarchy
            )
        case _:
            return _accepts(declared, inferred, hierarchy)


def _accepts(
    declared: DeclaredType,
    value: InferredAtom | InferredNull,
    hierarchy: ClassHierarchy | None,
) -> bool:
    match declared:
        case MixedType() | UnspecifiedType():
            return True
        case NeverType():
            return False
        case VoidType():
            return isinstance(value, InferredVoid)
        case NullableType(inner=inner):
            return isinstance(value, InferredNull) or _accepts(inner, value, hierarchy)
        case UnionType(members=members):
            return any(_accepts(member, value, hierarchy) for member in members)
        case IntersectionType(members=members):
            return all(_accepts(member, value, hierarchy) for member in members)
        case ScalarType(kind=kind):
            return _scalar_accepts(kind, value, hierarchy)
        case ClassType(name=name):
            return _class_accepts(name, value, hierarchy)
    raise TypeError(f"Unhandled declared type: {declared!r}")


def _scalar_accepts(
    kind: ScalarKind,
    value: InferredAtom | InferredNull,
    hierarchy: ClassHierarchy | None,
) -> bool:
    match value:
        case InferredScalar(kind=value_kind):
            # Strict mode: no numeric widening; strings may name functions
            return value_kind == kind or (kind == "callable" and value_kind == "string")
        case InferredBool():
            return kind == "bool"
        case InferredArray():
            return kind in ("array", "iterable", "callable")
        case InferredObject(class_name=class_name):
            if kind in ("object", "callable"):
                return True
            if kind == "iterable":
                if class_name is None or hierarchy is None:
                    return True
                return hierarchy.is_subtype(class_name, "Traversable") is not False
            return False
        case _:
            return False


def _class_accepts(
    name: str,
    value: InferredAtom | InferredNull,
    hierarchy: ClassHierarchy | None,
) -> bool:
    match value:
        case InferredObject(class_name=None):
            return True
        case InferredObject(class_name=class_name) if class_name is not None:
            if same_class(class_name, name):
                return True
            if short_class_name(name).lower() in _FINAL_BUILTIN_CLASSES:
                return False
            if hierarchy is None:
                return True
            return hierarchy.is_subtype(class_name, name) is not False
        case _:
            return False
