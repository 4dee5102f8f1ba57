"""Tests for the type lattice: declared types, join and compatibility."""

import pytest

from waivern_php_lint.errors import TypeSyntaxError
from waivern_php_lint.types import (
    INFERRED_VOID,
    MIXED,
    NEVER,
    NULL,
    UNKNOWN,
    UNSPECIFIED,
    VOID,
    ClassType,
    DeclaredType,
    InferredArray,
    InferredBool,
    InferredNullable,
    InferredObject,
    InferredScalar,
    InferredType,
    InferredUnion,
    IntersectionType,
    NullableType,
    ScalarType,
    UnionType,
    is_compatible,
    join,
    join_all,
    literal_type,
    parse_declared_type,
    requires_value,
)

INT = InferredScalar("int")
FLOAT = InferredScalar("float")
STRING = InferredScalar("string")
BOOL = InferredScalar("bool")


class FakeHierarchy:
    """Hierarchy where only the listed (child, parent) pairs are known."""

    def __init__(self, known: dict[tuple[str, str], bool | None]) -> None:
        self._known = known

    def is_subtype(self, child: str, parent: str) -> bool | None:
        return self._known.get((child.lower(), parent.lower()))


class TestParseDeclaredType:
    """Test conversion of annotation text into declared types."""

    def test_missing_annotation_is_unspecified(self) -> None:
        """Test that no annotation yields the unspecified type."""
        assert parse_declared_type(None) is UNSPECIFIED

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("int", ScalarType("int")),
            ("String", ScalarType("string")),
            ("iterable", ScalarType("iterable")),
            ("false", ScalarType("bool")),
            ("void", VOID),
            ("mixed", MIXED),
            ("never", NEVER),
            ("?int", NullableType(ScalarType("int"))),
            ("int|null", NullableType(ScalarType("int"))),
            ("null", NullableType(VOID)),
            ("\\App\\Models\\User", ClassType("App\\Models\\User")),
            (
                "int|string",
                UnionType(frozenset({ScalarType("int"), ScalarType("string")})),
            ),
            (
                "A&B",
                IntersectionType(frozenset({ClassType("A"), ClassType("B")})),
            ),
        ],
        ids=[
            "int",
            "case-insensitive",
            "iterable",
            "false-is-bool",
            "void",
            "mixed",
            "never",
            "nullable-shorthand",
            "null-union-folds",
            "standalone-null",
            "qualified-class",
            "union",
            "intersection",
        ],
    )
    def test_parses_annotation(self, text: str, expected: DeclaredType) -> None:
        """Test that annotation text maps to the expected declared type."""
        assert parse_declared_type(text) == expected

    def test_self_resolves_to_declaring_class(self) -> None:
        """Test that self and static resolve to the declaring class when known."""
        assert parse_declared_type("self", "Example") == ClassType("Example")
        assert parse_declared_type("?static", "Example") == NullableType(
            ClassType("Example")
        )

    def test_dnf_type_keeps_intersection_member(self) -> None:
        """Test that a DNF type keeps its parenthesised intersection."""
        declared = parse_declared_type("(A&B)|null")

        assert declared == NullableType(
            IntersectionType(frozenset({ClassType("A"), ClassType("B")}))
        )

    @pytest.mark.parametrize(
        "text",
        ["", "?", "int|", "?void", "void|int", "(A&B", "A&int", "in-t"],
        ids=[
            "empty",
            "bare-question-mark",
            "dangling-pipe",
            "nullable-void",
            "void-in-union",
            "unbalanced",
            "scalar-in-intersection",
            "invalid-name",
        ],
    )
    def test_rejects_malformed_annotation(self, text: str) -> None:
        """Test that malformed annotations raise TypeSyntaxError."""
        with pytest.raises(TypeSyntaxError):
            parse_declared_type(text)

    def test_type_syntax_error_is_value_error(self) -> None:
        """Test that TypeSyntaxError can be handled as a ValueError."""
        with pytest.raises(ValueError):
            parse_declared_type("int|")

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("?int", "?int"), ("int|string|null", "int|string|null"), ("null", "null")],
        ids=["nullable", "nullable-union", "null"],
    )
    def test_renders_declared_type(self, text: str, expected: str) -> None:
        """Test the textual form used in diagnostic messages."""
        assert str(parse_declared_type(text)) == expected


class TestRequiresValue:
    """Test which declared types forbid falling off the end of a body."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("int", True),
            ("Foo", True),
            ("int|string", True),
            ("never", True),
            ("?int", False),
            ("void", False),
            ("mixed", False),
            (None, False),
        ],
        ids=["int", "class", "union", "never", "nullable", "void", "mixed", "unspecified"],
    )
    def test_requires_value(self, text: str | None, expected: bool) -> None:
        """Test requires_value for each kind of declared type."""
        assert requires_value(parse_declared_type(text)) is expected


class TestLiteralType:
    """Test the fixed literal-to-type mapping."""

    @pytest.mark.parametrize(
        ("kind", "text", "expected"),
        [
            ("int", "42", INT),
            ("float", "1.5", FLOAT),
            ("string", "'x'", STRING),
            ("bool", "TRUE", InferredBool(True)),
            ("bool", "false", InferredBool(False)),
            ("null", "null", NULL),
        ],
        ids=["int", "float", "string", "true", "false", "null"],
    )
    def test_literal_type(self, kind: str, text: str, expected: InferredType) -> None:
        """Test that each literal kind maps to its inferred type."""
        assert literal_type(kind, text) == expected

    def test_bool_literal_renders_as_bool(self) -> None:
        """Test that boolean literals are reported as bool."""
        assert str(InferredBool(True)) == "bool"


class TestJoin:
    """Test the least upper bound of inferred types."""

    def test_same_type_is_idempotent(self) -> None:
        """Test that joining a type with itself returns it unchanged."""
        assert join(INT, INT) == INT

    def test_distinct_scalars_form_union(self) -> None:
        """Test that two different scalar kinds join into a union."""
        joined = join(INT, STRING)

        assert joined == InferredUnion(frozenset({INT, STRING}))
        assert str(joined) == "int|string"

    def test_unknown_is_absorbing(self) -> None:
        """Test that anything joined with unknown is unknown."""
        assert join(INT, UNKNOWN) == UNKNOWN
        assert join(UNKNOWN, NULL) == UNKNOWN

    def test_null_makes_nullable(self) -> None:
        """Test that null joined with a type yields its nullable form."""
        assert join(NULL, INT) == InferredNullable(INT)
        assert join(INT, NULL) == InferredNullable(INT)

    def test_true_and_false_join_to_bool(self) -> None:
        """Test that both boolean literals join into bool."""
        assert join(InferredBool(True), InferredBool(False)) == BOOL
        assert join(InferredBool(True), BOOL) == BOOL

    def test_anonymous_object_absorbs_named_objects(self) -> None:
        """Test that an object of unknown class covers named objects."""
        assert join(InferredObject("Foo"), InferredObject(None)) == InferredObject(None)

    def test_join_all(self) -> None:
        """Test folding a list of types, and the empty list."""
        assert join_all([]) is None
        assert join_all([INT, NULL, STRING]) == InferredNullable(
            InferredUnion(frozenset({INT, STRING}))
        )


class TestIsCompatible:
    """Test compatibility of inferred types with declared types."""

    @pytest.mark.parametrize(
        ("declared", "inferred"),
        [
            ("int", INT),
            ("string", STRING),
            ("bool", InferredBool(True)),
            ("?int", NULL),
            ("int|string", STRING),
            ("int|string", InferredUnion(frozenset({INT, STRING}))),
            ("?string", InferredNullable(STRING)),
            ("mixed", STRING),
            (None, INT),
            ("int", UNKNOWN),
            ("void", INFERRED_VOID),
            ("iterable", InferredArray()),
            ("callable", STRING),
            ("object", InferredObject("Foo")),
            ("Foo", InferredObject("\\App\\foo")),
            ("Foo", InferredObject(None)),
        ],
        ids=[
            "int",
            "string",
            "bool-literal",
            "null-to-nullable",
            "union-member",
            "union-to-union",
            "nullable-to-nullable",
            "mixed",
            "unspecified",
            "unknown",
            "bare-return-in-void",
            "array-is-iterable",
            "string-is-callable",
            "any-object",
            "same-class-short-name",
            "anonymous-object",
        ],
    )
    def test_compatible(self, declared: str | None, inferred: InferredType) -> None:
        """Test pairs that must be accepted."""
        assert is_compatible(parse_declared_type(declared), inferred)

    @pytest.mark.parametrize(
        ("declared", "inferred"),
        [
            ("int", STRING),
            ("string", INT),
            ("float", INT),
            ("int", NULL),
            ("int|string", InferredUnion(frozenset({INT, FLOAT}))),
            ("int", InferredNullable(INT)),
            ("void", INT),
            ("void", NULL),
            ("int", INFERRED_VOID),
            ("never", INT),
            ("array", STRING),
            ("Closure", InferredObject("Foo")),
        ],
        ids=[
            "string-to-int",
            "int-to-string",
            "no-numeric-widening",
            "null-to-non-nullable",
            "union-member-missing",
            "nullable-to-non-nullable",
            "value-in-void",
            "null-in-void",
            "bare-return-in-int",
            "never",
            "string-to-array",
            "final-builtin-class",
        ],
    )
    def test_incompatible(self, declared: str, inferred: InferredType) -> None:
        """Test pairs that must be rejected."""
        assert not is_compatible(parse_declared_type(declared), inferred)

    def test_class_compatibility_uses_hierarchy(self) -> None:
        """Test that subclass relations come from the hierarchy."""
        hierarchy = FakeHierarchy(
            {("child", "base"): True, ("other", "base"): False}
        )
        declared = parse_declared_type("Base")

        assert is_compatible(declared, InferredObject("Child"), hierarchy)
        assert not is_compatible(declared, InferredObject("Other"), hierarchy)
        # Unknown ancestry is given the benefit of the doubt
        assert is_compatible(declared, InferredObject("External"), hierarchy)

    def test_iterable_accepts_traversable_objects_only(self) -> None:
        """Test that iterable rejects objects known not to be Traversable."""
        hierarchy = FakeHierarchy(
            {("items", "traversable"): True, ("plain", "traversable"): False}
        )
        declared = parse_declared_type("iterable")

        assert is_compatible(declared, InferredObject("Items"), hierarchy)
        assert not is_compatible(declared, InferredObject("Plain"), hierarchy)
