"""Tests for the tree-sitter PHP front end."""

from waivern_php_lint.syntax import PHPSourceParser, parse_php
from waivern_php_lint.syntax.nodes import (
    ArrayLiteral,
    AssignExpr,
    BinaryExpr,
    ClassLikeDecl,
    ClosureExpr,
    CompilationUnit,
    ExpressionStmt,
    FunctionDecl,
    IfStmt,
    NewExpr,
    ReturnStmt,
    ScalarLiteral,
    SwitchStmt,
    TryStmt,
    WhileStmt,
)

PHP_TYPED_FUNCTION = """<?php
function total(array $items, ?int $limit = null): ?int {
    return 1;
}
"""

PHP_CLASS_HIERARCHY = """<?php
abstract class AdminUser extends BaseUser implements Countable, Authorizable {
    const PLAIN = 1;
    private const HIDDEN = 2;

    abstract public function count(): int;

    public static function make(): static {
        return new static();
    }
}
"""

PHP_NAMESPACED_DECLARATIONS = """<?php
namespace App\\Models;

interface HasStatus {
    public const ACTIVE = 'active';
}

trait Timestamps {
    public function touch(): void {
    }
}

enum Suit: string {
    case Hearts = 'H';
}
"""

PHP_CLOSURES = """<?php
$double = function (int $x): int {
    return $x * 2;
};
$label = fn(): string => 'label';
"""

PHP_GENERATOR = """<?php
function numbers(): iterable {
    yield 1;
    $inner = function () {
        return 2;
    };
}

function plain(): array {
    $gen = function () {
        yield 1;
    };
    return [];
}
"""

PHP_CONTROL_FLOW = """<?php
function flow($x) {
    if ($x > 1) {
        return 1;
    } elseif ($x < 0) {
        return -1;
    } else {
        return 0;
    }
    while (true) {
        break;
    }
    switch ($x) {
        case 1:
            return 'one';
        default:
            return 'other';
    }
    try {
        risky();
    } catch (Exception $e) {
        return null;
    } finally {
        cleanup();
    }
}
"""

PHP_ASSIGNMENT_CONDITION = """<?php
if ($user = find_user()) {
    echo 'found';
}
"""

PHP_POLYFILL = """<?php
if (!function_exists('polyfill')) {
    function polyfill(): int {
        return 'x';
    }
}
"""

PHP_ANONYMOUS_CLASS = """<?php
$counter = new class implements Countable {
    public function count(): int {
        return 0;
    }
};
"""

PHP_CLOSURE_CONTAINERS = """<?php
$routes = ['home' => function (): int { return 1; }];
$route = new Route('/', fn(): string => 'home');
"""

PHP_BROKEN_SIGNATURE = """<?php
function good(): int {
    return 1;
}

class Broken {
    public function missing(: int {
        return 1;
    }
}
"""


def parse(source: str) -> CompilationUnit:
    return parse_php(source, "test.php")


class TestPHPSourceParser:
    """Test parser construction and basic behaviour."""

    def test_parser_initialisation(self) -> None:
        """Test that the parser loads the PHP grammar."""
        parser = PHPSourceParser()

        assert parser.tree_sitter_language is not None

    def test_accepts_bytes_and_str(self) -> None:
        """Test that encoded and decoded source parse identically."""
        parser = PHPSourceParser()

        assert parser.parse(PHP_TYPED_FUNCTION, "a.php") == parser.parse(
            PHP_TYPED_FUNCTION.encode("utf-8"), "a.php"
        )

    def test_empty_file(self) -> None:
        """Test that a file with only the opening tag yields an empty unit."""
        unit = parse("<?php\n")

        assert unit == CompilationUnit("test.php", (), ())


class TestFunctionLowering:
    """Test lowering of function declarations."""

    def test_typed_function(self) -> None:
        """Test name, parameters, return type and body of a function."""
        (function,) = parse(PHP_TYPED_FUNCTION).declarations

        assert isinstance(function, FunctionDecl)
        assert function.name == "total"
        assert function.kind == "function"
        assert function.return_type == "?int"
        assert [(p.name, p.type_text) for p in function.parameters] == [
            ("items", "array"),
            ("limit", "?int"),
        ]
        assert function.position.line == 2
        assert function.body is not None
        (statement,) = function.body
        assert isinstance(statement, ReturnStmt)
        assert statement.position.line == 3
        assert isinstance(statement.value, ScalarLiteral)
        assert statement.value.kind == "int"

    def test_closures_in_top_level_code(self) -> None:
        """Test that closures and arrow functions are kept as expressions."""
        unit = parse(PHP_CLOSURES)

        first, second = unit.statements
        assert isinstance(first, ExpressionStmt)
        assert isinstance(first.expression, AssignExpr)
        closure = first.expression.value
        assert isinstance(closure, ClosureExpr)
        assert closure.function.kind == "closure"
        assert closure.function.return_type == "int"

        assert isinstance(second, ExpressionStmt)
        assert isinstance(second.expression, AssignExpr)
        arrow = second.expression.value
        assert isinstance(arrow, ClosureExpr)
        assert arrow.function.kind == "arrow_function"
        assert arrow.function.return_type == "string"
        assert arrow.function.body is not None
        (body,) = arrow.function.body
        assert isinstance(body, ReturnStmt)
        assert isinstance(body.value, ScalarLiteral)
        assert body.value.kind == "string"

    def test_generator_detection_stops_at_nested_functions(self) -> None:
        """Test that yield only marks the function it belongs to."""
        numbers, plain = parse(PHP_GENERATOR).declarations

        assert isinstance(numbers, FunctionDecl)
        assert numbers.is_generator
        assert isinstance(plain, FunctionDecl)
        assert not plain.is_generator


class TestClassLikeLowering:
    """Test lowering of classes, interfaces, traits and enums."""

    def test_class_members(self) -> None:
        """Test inheritance clauses, constants and methods."""
        (declaration,) = parse(PHP_CLASS_HIERARCHY).declarations

        assert isinstance(declaration, ClassLikeDecl)
        assert declaration.kind == "class"
        assert declaration.name == "AdminUser"
        assert declaration.extends == ("BaseUser",)
        assert declaration.implements == ("Countable", "Authorizable")
        assert [(c.name, c.visibility) for c in declaration.constants] == [
            ("PLAIN", None),
            ("HIDDEN", "private"),
        ]
        abstract, factory = declaration.methods
        assert abstract.name == "count"
        assert abstract.body is None
        assert abstract.visibility == "public"
        assert factory.name == "make"
        assert factory.is_static
        assert factory.return_type == "static"

    def test_namespaced_constructs(self) -> None:
        """Test that declarations inside a namespace are found."""
        interface, trait, enum = parse(PHP_NAMESPACED_DECLARATIONS).declarations

        assert isinstance(interface, ClassLikeDecl)
        assert (interface.kind, interface.name) == ("interface", "HasStatus")
        assert [c.name for c in interface.constants] == ["ACTIVE"]
        assert isinstance(trait, ClassLikeDecl)
        assert trait.kind == "trait"
        assert [m.name for m in trait.methods] == ["touch"]
        assert isinstance(enum, ClassLikeDecl)
        assert (enum.kind, enum.name) == ("enum", "Suit")


class TestStatementLowering:
    """Test lowering of control-flow statements."""

    def test_control_flow_statements(self) -> None:
        """Test if/elseif/else, while, switch and try lowering."""
        (function,) = parse(PHP_CONTROL_FLOW).declarations
        assert isinstance(function, FunctionDecl)
        assert function.body is not None
        if_stmt, while_stmt, switch_stmt, try_stmt = function.body

        assert isinstance(if_stmt, IfStmt)
        assert len(if_stmt.branches) == 2
        assert isinstance(if_stmt.branches[0].condition, BinaryExpr)
        assert if_stmt.branches[0].condition.operator == ">"
        assert if_stmt.else_body is not None

        assert isinstance(while_stmt, WhileStmt)
        assert isinstance(while_stmt.condition, ScalarLiteral)
        assert while_stmt.condition.kind == "bool"

        assert isinstance(switch_stmt, SwitchStmt)
        assert [case.is_default for case in switch_stmt.cases] == [False, True]
        assert all(len(case.body) == 1 for case in switch_stmt.cases)

        assert isinstance(try_stmt, TryStmt)
        assert len(try_stmt.catches) == 1
        assert try_stmt.finally_body is not None

    def test_assignment_condition(self) -> None:
        """Test that an assignment in a condition keeps its shape."""
        (if_stmt,) = parse(PHP_ASSIGNMENT_CONDITION).statements

        assert isinstance(if_stmt, IfStmt)
        condition = if_stmt.branches[0].condition
        assert isinstance(condition, AssignExpr)
        assert condition.operator == "="


class TestNestedDeclarations:
    """Test declarations that appear inside statements and expressions."""

    def test_conditionally_declared_function(self) -> None:
        """Test that a function inside an ``if`` body is kept in the body."""
        unit = parse(PHP_POLYFILL)

        assert unit.declarations == ()
        (statement,) = unit.statements
        assert isinstance(statement, IfStmt)
        (polyfill,) = statement.branches[0].body
        assert isinstance(polyfill, FunctionDecl)
        assert polyfill.name == "polyfill"
        assert polyfill.return_type == "int"

    def test_anonymous_class(self) -> None:
        """Test that ``new class { ... }`` keeps the class body."""
        (statement,) = parse(PHP_ANONYMOUS_CLASS).statements

        assert isinstance(statement, ExpressionStmt)
        assert isinstance(statement.expression, AssignExpr)
        instantiation = statement.expression.value
        assert isinstance(instantiation, NewExpr)
        assert instantiation.class_name is None
        declaration = instantiation.declaration
        assert isinstance(declaration, ClassLikeDecl)
        assert declaration.name == ""
        assert declaration.implements == ("Countable",)
        assert [m.name for m in declaration.methods] == ["count"]

    def test_closures_in_arrays_and_constructor_arguments(self) -> None:
        """Test that array elements and ``new`` arguments are lowered."""
        routes, route = parse(PHP_CLOSURE_CONTAINERS).statements

        assert isinstance(routes, ExpressionStmt)
        assert isinstance(routes.expression, AssignExpr)
        array = routes.expression.value
        assert isinstance(array, ArrayLiteral)
        key, closure = array.children
        assert isinstance(key, ScalarLiteral)
        assert isinstance(closure, ClosureExpr)
        assert closure.function.return_type == "int"

        assert isinstance(route, ExpressionStmt)
        assert isinstance(route.expression, AssignExpr)
        instantiation = route.expression.value
        assert isinstance(instantiation, NewExpr)
        assert instantiation.class_name == "Route"
        path, arrow = instantiation.children
        assert isinstance(path, ScalarLiteral)
        assert isinstance(arrow, ClosureExpr)
        assert arrow.function.kind == "arrow_function"


class TestSyntaxErrors:
    """Test recovery from syntax errors."""

    def test_parse_does_not_raise(self) -> None:
        """Test that broken source still produces a unit."""
        unit = parse("<?php\nfunction (: {\n")

        assert unit.path == "test.php"

    def test_valid_declarations_survive_broken_ones(self) -> None:
        """Test that a well-formed function next to a broken class is kept."""
        unit = parse(PHP_BROKEN_SIGNATURE)

        good = unit.declarations[0]
        assert isinstance(good, FunctionDecl)
        assert good.name == "good"
        assert good.return_type == "int"

    def test_class_without_name_is_malformed(self) -> None:
        """Test that a nameless class never becomes a construct."""
        unit = parse("<?php\nclass {\n}\n")

        assert not any(
            isinstance(declaration, ClassLikeDecl) for declaration in unit.declarations
        )
