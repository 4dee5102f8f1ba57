"""PHP front end using tree-sitter.

Parses PHP source with tree-sitter-php and lowers the concrete syntax tree
into the typed nodes of ``waivern_php_lint.syntax.nodes``. Constructs the
linter does not model become ``OtherStmt``/``OpaqueExpr``; declarations with
syntax errors in their signature become ``MalformedDecl``.
"""

from __future__ import annotations

import logging

import tree_sitter_php
from tree_sitter import Language, Node, Parser

from waivern_php_lint.errors import ParserError
from waivern_php_lint.syntax.base import (
    DEFAULT_ENCODING,
    contains_node_type,
    find_child_by_type,
    find_children_by_type,
    get_node_text,
    get_position,
    is_malformed,
    named_children,
)
from waivern_php_lint.syntax.nodes import (
    ArrayLiteral,
    AssignExpr,
    BinaryExpr,
    BlockStmt,
    BreakStmt,
    CallExpr,
    CastExpr,
    ClassLikeDecl,
    ClosureExpr,
    CompilationUnit,
    ConditionalBranch,
    ConstantDecl,
    ConstructKind,
    ContinueStmt,
    Declaration,
    DoWhileStmt,
    ExitStmt,
    Expr,
    ExpressionStmt,
    ForeachStmt,
    ForStmt,
    FunctionDecl,
    FunctionKind,
    IfStmt,
    MalformedDecl,
    MatchExpr,
    NewExpr,
    OpaqueExpr,
    OtherStmt,
    Parameter,
    ReturnStmt,
    ScalarLiteral,
    SourcePosition,
    Stmt,
    SwitchCase,
    SwitchStmt,
    TernaryExpr,
    ThrowStmt,
    TryStmt,
    UnaryExpr,
    VariableExpr,
    Visibility,
    WhileStmt,
)

logger = logging.getLogger(__name__)

_CLASS_LIKE_TYPES: dict[str, ConstructKind] = {
    "class_declaration": "class",
    "trait_declaration": "trait",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
}

_CLOSURE_TYPES = frozenset(
    {"anonymous_function", "anonymous_function_creation_expression"}
)

# Subtrees whose ``yield`` belongs to another function
_FUNCTION_BOUNDARY_TYPES = frozenset(
    {
        "function_definition",
        "method_declaration",
        "arrow_function",
        "object_creation_expression",
        *_CLOSURE_TYPES,
        *_CLASS_LIKE_TYPES,
    }
)

_YIELD_TYPES = frozenset({"yield_expression"})

_TYPE_NODE_TYPES = frozenset(
    {
        "named_type",
        "primitive_type",
        "optional_type",
        "union_type",
        "intersection_type",
        "disjunctive_normal_form_type",
        "bottom_type",
    }
)

_PARAMETER_TYPES = frozenset(
    {"simple_parameter", "variadic_parameter", "property_promotion_parameter"}
)

_STRING_TYPES = frozenset({"string", "encapsed_string", "heredoc", "nowdoc"})

_CLASS_NAME_TYPES = frozenset({"name", "qualified_name", "relative_scope"})

_EXIT_FUNCTIONS = frozenset({"exit", "die"})

_VISIBILITIES: dict[str, Visibility] = {
    "public": "public",
    "protected": "protected",
    "private": "private",
}

_DEFAULT_PATH = "<source>"


def _load_language() -> Language:
    try:
        return Language(tree_sitter_php.language_php())
    except Exception as e:
        raise ParserError(f"Failed to load tree-sitter PHP grammar: {e}") from e


class PHPSourceParser:
    """Parses PHP source into compilation units.

    A parser instance is not thread-safe; use one per thread.
    """

    def __init__(self) -> None:
        """Initialise the parser.

        Raises:
            ParserError: If the tree-sitter PHP grammar cannot be loaded

        """
        self.tree_sitter_language = _load_language()
        self.parser = Parser()
        try:
            self.parser.language = self.tree_sitter_language
        except ValueError as e:
            raise ParserError(f"Incompatible tree-sitter PHP grammar: {e}") from e

    def parse(self, source_code: str | bytes, path: str = _DEFAULT_PATH) -> CompilationUnit:
        """Parse PHP source code.

        Syntax errors do not fail the parse: the affected declarations are
        reported as malformed and the rest of the file is still lowered.

        Args:
            source_code: PHP source, including the opening ``<?php`` tag
            path: File path recorded in every source position

        Returns:
            The lowered compilation unit

        """
        if isinstance(source_code, str):
            source = source_code.encode(DEFAULT_ENCODING)
        else:
            source = source_code
        tree = self.parser.parse(source)
        return _Lowering(source, path).unit(tree.root_node)


def parse_php(source_code: str | bytes, path: str = _DEFAULT_PATH) -> CompilationUnit:
    """Parse PHP source code with a fresh parser."""
    return PHPSourceParser().parse(source_code, path)


class _Lowering:
    """Lowers one tree-sitter tree; holds the source the tree indexes into."""

    def __init__(self, source: bytes, path: str) -> None:
        self._source = source
        self._path = path

    def _text(self, node: Node) -> str:
        return get_node_text(node, self._source)

    def _position(self, node: Node) -> SourcePosition:
        return get_position(node, self._path)

    # Top level

    def unit(self, root: Node) -> CompilationUnit:
        declarations: list[Declaration] = []
        statements: list[Stmt] = []
        self._top_level(root, declarations, statements)
        logger.debug(
            "Lowered %s: %d declarations, %d top-level statements",
            self._path,
            len(declarations),
            len(statements),
        )
        return CompilationUnit(
            path=self._path,
            declarations=tuple(declarations),
            statements=tuple(statements),
        )

    def _top_level(
        self, node: Node, declarations: list[Declaration], statements: list[Stmt]
    ) -> None:
        for child in named_children(node):
            if child.type in ("php_tag", "text_interpolation", "text"):
                continue
            if child.type == "namespace_definition":
                body = child.child_by_field_name("body")
                if body is not None:
                    self._top_level(body, declarations, statements)
                continue
            if child.type == "function_definition":
                declarations.append(self.function(child, "function"))
            elif child.type in _CLASS_LIKE_TYPES:
                declarations.append(self.class_like(child, _CLASS_LIKE_TYPES[child.type]))
            elif child.type == "ERROR":
                declarations.append(
                    MalformedDecl("declaration", None, "syntax error", self._position(child))
                )
            else:
                statements.append(self.statement(child))

    # Declarations

    def function(self, node: Node, kind: FunctionKind) -> FunctionDecl | MalformedDecl:
        """Lower a function, method, closure or arrow function."""
        position = self._position(node)
        name_node = node.child_by_field_name("name")
        name = self._text(name_node) if name_node is not None else ""

        if kind in ("function", "method") and (name_node is None or is_malformed(name_node)):
            return MalformedDecl(kind, None, "missing name", position)

        parameters_node = node.child_by_field_name("parameters")
        return_node = self._return_type_node(node)
        for part in (parameters_node, return_node):
            if part is not None and is_malformed(part):
                return MalformedDecl(kind, name or None, "malformed signature", position)
        if any(child.type == "ERROR" for child in node.children):
            return MalformedDecl(kind, name or None, "syntax error", position)

        body_node = node.child_by_field_name("body")
        body: tuple[Stmt, ...] | None
        if body_node is None:
            body = None
        elif kind == "arrow_function":
            body = (ReturnStmt(self.expression(body_node), self._position(body_node)),)
        else:
            body = self.block(body_node)

        return FunctionDecl(
            name=name,
            kind=kind,
            parameters=self._parameters(parameters_node),
            return_type=self._text(return_node) if return_node is not None else None,
            body=body,
            position=position,
            is_generator=body_node is not None
            and (
                body_node.type in _YIELD_TYPES
                or contains_node_type(body_node, _YIELD_TYPES, _FUNCTION_BOUNDARY_TYPES)
            ),
            is_static=find_child_by_type(node, "static_modifier") is not None,
            visibility=self._visibility(node),
        )

    def _return_type_node(self, node: Node) -> Node | None:
        return_node = node.child_by_field_name("return_type")
        if return_node is not None:
            return return_node
        # Fall back to the first type node after the colon
        seen_colon = False
        for child in node.children:
            if child.type == ":":
                seen_colon = True
            elif seen_colon and child.type in _TYPE_NODE_TYPES:
                return child
        return None

    def _parameters(self, node: Node | None) -> tuple[Parameter, ...]:
        if node is None:
            return ()
        parameters: list[Parameter] = []
        for child in named_children(node):
            if child.type not in _PARAMETER_TYPES:
                continue
            name_node = child.child_by_field_name("name") or find_child_by_type(
                child, "variable_name"
            )
            type_node = child.child_by_field_name("type")
            parameters.append(
                Parameter(
                    name=self._text(name_node).lstrip("$") if name_node is not None else "",
                    type_text=self._text(type_node) if type_node is not None else None,
                    position=self._position(child),
                )
            )
        return tuple(parameters)

    def class_like(self, node: Node, kind: ConstructKind) -> ClassLikeDecl | MalformedDecl:
        """Lower a class, trait, interface or enum declaration."""
        position = self._position(node)
        name_node = node.child_by_field_name("name")
        if name_node is None or is_malformed(name_node):
            return MalformedDecl(kind, None, "missing name", position)

        return self._class_like_decl(node, kind, self._text(name_node))

    def _anonymous_class(self, node: Node) -> ClassLikeDecl:
        return self._class_like_decl(node, "class", "")

    def _class_like_decl(self, node: Node, kind: ConstructKind, name: str) -> ClassLikeDecl:
        body = node.child_by_field_name("body") or find_child_by_type(
            node, "declaration_list", "enum_declaration_list"
        )
        constants, methods, malformed = self._members(body)
        return ClassLikeDecl(
            kind=kind,
            name=name,
            position=self._position(node),
            extends=self._clause_names(find_child_by_type(node, "base_clause")),
            implements=self._clause_names(
                find_child_by_type(node, "class_interface_clause")
            ),
            constants=constants,
            methods=methods,
            malformed_members=malformed,
        )

    def _members(
        self, body: Node | None
    ) -> tuple[
        tuple[ConstantDecl, ...], tuple[FunctionDecl, ...], tuple[MalformedDecl, ...]
    ]:
        constants: list[ConstantDecl] = []
        methods: list[FunctionDecl] = []
        malformed: list[MalformedDecl] = []
        for member in named_children(body) if body is not None else []:
            if member.type == "const_declaration":
                self._constants(member, constants, malformed)
            elif member.type == "method_declaration":
                method = self.function(member, "method")
                if isinstance(method, MalformedDecl):
                    malformed.append(method)
                else:
                    methods.append(method)
            elif member.type == "ERROR":
                malformed.append(
                    MalformedDecl("member", None, "syntax error", self._position(member))
                )
        return tuple(constants), tuple(methods), tuple(malformed)

    def _clause_names(self, clause: Node | None) -> tuple[str, ...]:
        if clause is None:
            return ()
        return tuple(
            self._text(child)
            for child in find_children_by_type(clause, "name", "qualified_name")
        )

    def _constants(
        self,
        node: Node,
        constants: list[ConstantDecl],
        malformed: list[MalformedDecl],
    ) -> None:
        visibility = self._visibility(node)
        for element in find_children_by_type(node, "const_element"):
            position = self._position(element)
            name_node = find_child_by_type(element, "name", "reserved_identifier")
            if name_node is None or is_malformed(element):
                name = self._text(name_node) if name_node is not None else None
                malformed.append(MalformedDecl("constant", name, "syntax error", position))
                continue
            value_node = self._after_token(element, "=")
            constants.append(
                ConstantDecl(
                    name=self._text(name_node),
                    value=self.expression(value_node) if value_node is not None else None,
                    visibility=visibility,
                    position=position,
                )
            )

    def _visibility(self, node: Node) -> Visibility | None:
        modifier = find_child_by_type(node, "visibility_modifier")
        if modifier is None:
            return None
        return _VISIBILITIES.get(self._text(modifier).lower())

    @staticmethod
    def _after_token(node: Node, token: str) -> Node | None:
        seen = False
        for child in node.children:
            if child.type == token:
                seen = True
            elif seen and child.is_named and child.type != "comment":
                return child
        return None

    # Statements

    def block(self, node: Node) -> tuple[Stmt, ...]:
        """Lower a block, or a single statement used as a body."""
        if node.type in ("compound_statement", "colon_block"):
            return tuple(self.statement(child) for child in named_children(node))
        return (self.statement(node),)

    def _body(self, node: Node | None) -> tuple[Stmt, ...]:
        return self.block(node) if node is not None else ()

    def statement(self, node: Node) -> Stmt:
        """Lower one statement."""
        position = self._position(node)
        node_type = node.type

        if node_type in ("compound_statement", "colon_block"):
            return BlockStmt(self.block(node), position)
        if node_type == "function_definition":
            return self.function(node, "function")
        if node_type in _CLASS_LIKE_TYPES:
            return self.class_like(node, _CLASS_LIKE_TYPES[node_type])
        if is_malformed(node):
            return MalformedDecl("statement", None, "syntax error", position)

        match node_type:
            case "expression_statement":
                return self._expression_statement(node)
            case "return_statement":
                value = self._first_named(node)
                return ReturnStmt(
                    self.expression(value) if value is not None else None, position
                )
            case "if_statement":
                return self._if(node)
            case "while_statement":
                return WhileStmt(
                    self._condition(node.child_by_field_name("condition"), node),
                    self._body(node.child_by_field_name("body")),
                    position,
                )
            case "do_statement":
                return DoWhileStmt(
                    self._body(node.child_by_field_name("body")),
                    self._condition(node.child_by_field_name("condition"), node),
                    position,
                )
            case "for_statement":
                return ForStmt(
                    self._for_condition(node),
                    self._body(node.child_by_field_name("body")),
                    position,
                )
            case "foreach_statement":
                subject = self._first_named(node)
                body = node.child_by_field_name("body")
                return ForeachStmt(
                    self.expression(subject)
                    if subject is not None
                    else OpaqueExpr("missing", position),
                    self._body(body),
                    position,
                )
            case "switch_statement":
                return self._switch(node)
            case "try_statement":
                return self._try(node)
            case "throw_expression" | "throw_statement":
                return ThrowStmt(self._throw_value(node), position)
            case "exit_statement":
                return ExitStmt(position)
            case "break_statement":
                return BreakStmt(self._jump_level(node), position)
            case "continue_statement":
                return ContinueStmt(self._jump_level(node), position)
        return OtherStmt(
            node_type,
            position,
            tuple(self.expression(child) for child in named_children(node)),
        )

    def _expression_statement(self, node: Node) -> Stmt:
        position = self._position(node)
        inner = self._first_named(node)
        if inner is None:
            return OtherStmt("empty_statement", position)
        if inner.type in ("throw_expression", "throw_statement"):
            return ThrowStmt(self._throw_value(inner), position)
        if inner.type == "exit_statement" or self._is_exit_call(inner):
            return ExitStmt(position)
        return ExpressionStmt(self.expression(inner), position)

    def _is_exit_call(self, node: Node) -> bool:
        if node.type != "function_call_expression":
            return False
        function = node.child_by_field_name("function")
        return function is not None and self._text(function).lower() in _EXIT_FUNCTIONS

    def _throw_value(self, node: Node) -> Expr:
        value = self._first_named(node)
        if value is None:
            return OpaqueExpr("missing", self._position(node))
        return self.expression(value)

    def _jump_level(self, node: Node) -> int:
        level = find_child_by_type(node, "integer")
        if level is None:
            return 1
        try:
            return max(int(self._text(level), 0), 1)
        except ValueError:
            return 1

    def _if(self, node: Node) -> IfStmt:
        branches = [
            ConditionalBranch(
                self._condition(node.child_by_field_name("condition"), node),
                self._body(node.child_by_field_name("body")),
                self._position(node),
            )
        ]
        else_body: tuple[Stmt, ...] | None = None
        alternatives = node.children_by_field_name("alternative") or find_children_by_type(
            node, "else_if_clause", "else_clause"
        )
        for alternative in alternatives:
            if alternative.type == "else_if_clause":
                branches.append(
                    ConditionalBranch(
                        self._condition(
                            alternative.child_by_field_name("condition"), alternative
                        ),
                        self._body(alternative.child_by_field_name("body")),
                        self._position(alternative),
                    )
                )
            elif alternative.type == "else_clause":
                body = alternative.child_by_field_name("body")
                if body is None:
                    children = named_children(alternative)
                    body = children[-1] if children else None
                else_body = self._body(body)
        return IfStmt(tuple(branches), else_body, self._position(node))

    def _condition(self, node: Node | None, owner: Node) -> Expr:
        if node is None:
            return OpaqueExpr("missing", self._position(owner))
        return self.expression(node)

    def _for_condition(self, node: Node) -> Expr | None:
        condition = node.child_by_field_name("condition")
        if condition is not None:
            return self.expression(condition)

        # Grammars without field names: the condition sits between the
        # first and second semicolon of the header
        body = node.child_by_field_name("body")
        semicolons = 0
        parts: list[Node] = []
        for child in node.children:
            if body is not None and child.start_byte >= body.start_byte:
                break
            if child.type == ";":
                semicolons += 1
            elif semicolons == 1 and child.is_named and child.type != "comment":
                parts.append(child)
        return self.expression(parts[-1]) if parts else None

    def _switch(self, node: Node) -> SwitchStmt:
        position = self._position(node)
        subject = self._condition(node.child_by_field_name("condition"), node)
        block = node.child_by_field_name("body") or find_child_by_type(node, "switch_block")

        cases: list[SwitchCase] = []
        for case in named_children(block) if block is not None else []:
            if case.type not in ("case_statement", "default_statement"):
                continue
            value = case.child_by_field_name("value")
            statements = [
                child
                for child in named_children(case)
                if value is None or child.start_byte != value.start_byte
            ]
            cases.append(
                SwitchCase(
                    is_default=case.type == "default_statement",
                    body=tuple(self.statement(child) for child in statements),
                    position=self._position(case),
                )
            )
        return SwitchStmt(subject, tuple(cases), position)

    def _try(self, node: Node) -> TryStmt:
        catches: list[tuple[Stmt, ...]] = []
        for clause in find_children_by_type(node, "catch_clause"):
            catches.append(self._body(clause.child_by_field_name("body")))

        finally_body: tuple[Stmt, ...] | None = None
        finally_clause = find_child_by_type(node, "finally_clause")
        if finally_clause is not None:
            finally_body = self._body(
                finally_clause.child_by_field_name("body")
                or find_child_by_type(finally_clause, "compound_statement")
            )

        return TryStmt(
            self._body(node.child_by_field_name("body")),
            tuple(catches),
            finally_body,
            self._position(node),
        )

    # Expressions

    def expression(self, node: Node) -> Expr:
        """Lower an expression; unmodelled constructs become ``OpaqueExpr``."""
        position = self._position(node)
        node_type = node.type

        match node_type:
            case "parenthesized_expression":
                inner = self._first_named(node)
                if inner is None:
                    return OpaqueExpr(node_type, position)
                return self.expression(inner)
            case "integer":
                return ScalarLiteral("int", self._text(node), position)
            case "float":
                return ScalarLiteral("float", self._text(node), position)
            case "boolean":
                return ScalarLiteral("bool", self._text(node), position)
            case "null":
                return ScalarLiteral("null", self._text(node), position)
            case "name":
                return self._constant_access(node)
            case "array_creation_expression":
                return ArrayLiteral(position, self._array_elements(node))
            case "object_creation_expression":
                return self._new(node)
            case "cast_expression":
                return self._cast(node)
            case "binary_expression":
                return self._binary(node)
            case "unary_op_expression":
                return self._unary(node)
            case "assignment_expression" | "reference_assignment_expression":
                return self._assignment(node, "=")
            case "augmented_assignment_expression":
                operator = node.child_by_field_name("operator")
                return self._assignment(
                    node, self._text(operator) if operator is not None else "="
                )
            case "conditional_expression":
                return self._ternary(node)
            case "match_expression":
                return self._match(node)
            case "function_call_expression":
                return self._call(node)
            case "variable_name":
                return VariableExpr(self._text(node).lstrip("$"), position)
            case "arrow_function":
                return self._closure(node, "arrow_function")
        if node_type in _STRING_TYPES:
            return ScalarLiteral("string", self._text(node), position)
        if node_type in _CLOSURE_TYPES:
            return self._closure(node, "closure")
        return OpaqueExpr(
            node_type,
            position,
            tuple(self.expression(child) for child in named_children(node)),
        )

    def _constant_access(self, node: Node) -> Expr:
        # Older grammars read ``true``/``null`` as plain names
        position = self._position(node)
        text = self._text(node)
        lowered = text.lower()
        if lowered in ("true", "false"):
            return ScalarLiteral("bool", text, position)
        if lowered == "null":
            return ScalarLiteral("null", text, position)
        return OpaqueExpr("constant", position)

    def _array_elements(self, node: Node) -> tuple[Expr, ...]:
        elements: list[Expr] = []
        for element in named_children(node):
            # Initialisers hold an optional key, then the value
            if element.type == "array_element_initializer":
                elements.extend(self.expression(part) for part in named_children(element))
            else:
                elements.append(self.expression(element))
        return tuple(elements)

    def _new(self, node: Node) -> NewExpr:
        position = self._position(node)
        anonymous = find_child_by_type(node, "anonymous_class")
        if anonymous is None and find_child_by_type(node, "declaration_list") is not None:
            # Older grammars inline the anonymous class into the expression
            anonymous = node
        if anonymous is not None:
            return NewExpr(
                None,
                position,
                self._arguments(find_child_by_type(anonymous, "arguments")),
                self._anonymous_class(anonymous),
            )
        return NewExpr(
            self._instantiated_class(node),
            position,
            self._arguments(find_child_by_type(node, "arguments")),
        )

    def _instantiated_class(self, node: Node) -> str | None:
        for child in named_children(node):
            if child.type in _CLASS_NAME_TYPES:
                return self._text(child)
            if child.type in ("anonymous_class", "declaration_list", "arguments"):
                return None
        return None

    def _cast(self, node: Node) -> Expr:
        type_node = node.child_by_field_name("type") or find_child_by_type(node, "cast_type")
        value = node.child_by_field_name("value")
        if value is None:
            children = named_children(node)
            value = children[-1] if children else None
        if type_node is None or value is None:
            return OpaqueExpr(node.type, self._position(node))
        return CastExpr(
            self._text(type_node).strip().lower(),
            self.expression(value),
            self._position(node),
        )

    def _binary(self, node: Node) -> Expr:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        operator = node.child_by_field_name("operator")
        if left is None or right is None or operator is None:
            return OpaqueExpr(node.type, self._position(node))
        return BinaryExpr(
            self._text(operator).lower(),
            self.expression(left),
            self.expression(right),
            self._position(node),
        )

    def _unary(self, node: Node) -> Expr:
        operator = node.child_by_field_name("operator")
        if operator is None:
            operator = next((child for child in node.children if not child.is_named), None)
        operand = node.child_by_field_name("argument") or node.child_by_field_name(
            "operand"
        )
        if operand is None:
            children = named_children(node)
            operand = children[-1] if children else None
        if operator is None or operand is None:
            return OpaqueExpr(node.type, self._position(node))
        return UnaryExpr(self._text(operator), self.expression(operand), self._position(node))

    def _assignment(self, node: Node, operator: str) -> Expr:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None:
            return OpaqueExpr(node.type, self._position(node))
        return AssignExpr(
            operator, self.expression(left), self.expression(right), self._position(node)
        )

    def _ternary(self, node: Node) -> Expr:
        condition = node.child_by_field_name("condition")
        if_true = node.child_by_field_name("body")
        if_false = node.child_by_field_name("alternative")
        if condition is None or if_false is None:
            return OpaqueExpr(node.type, self._position(node))
        return TernaryExpr(
            self.expression(condition),
            self.expression(if_true) if if_true is not None else None,
            self.expression(if_false),
            self._position(node),
        )

    def _match(self, node: Node) -> Expr:
        position = self._position(node)
        subject = self._condition(node.child_by_field_name("condition"), node)
        block = node.child_by_field_name("body") or find_child_by_type(node, "match_block")

        conditions: list[Expr] = []
        arms: list[Expr] = []
        has_default = False
        for arm in named_children(block) if block is not None else []:
            if arm.type not in ("match_conditional_expression", "match_default_expression"):
                continue
            if arm.type == "match_default_expression":
                has_default = True
            else:
                condition_list = arm.child_by_field_name("conditional_expressions")
                if condition_list is not None:
                    conditions.extend(
                        self.expression(child) for child in named_children(condition_list)
                    )
            result = arm.child_by_field_name("return_expression")
            if result is None:
                children = named_children(arm)
                result = children[-1] if children else None
            if result is not None:
                arms.append(self.expression(result))
        return MatchExpr(subject, tuple(conditions), tuple(arms), has_default, position)

    def _call(self, node: Node) -> Expr:
        function = node.child_by_field_name("function")
        name = None
        if function is not None and function.type in ("name", "qualified_name"):
            name = self._text(function)
        return CallExpr(
            name,
            self._arguments(node.child_by_field_name("arguments")),
            self._position(node),
        )

    def _arguments(self, node: Node | None) -> tuple[Expr, ...]:
        if node is None:
            return ()
        arguments: list[Expr] = []
        for child in named_children(node):
            if child.type == "argument":
                # Named arguments carry the parameter name before the value
                parts = named_children(child)
                if parts:
                    arguments.append(self.expression(parts[-1]))
            else:
                arguments.append(self.expression(child))
        return tuple(arguments)

    def _closure(self, node: Node, kind: FunctionKind) -> Expr:
        function = self.function(node, kind)
        if isinstance(function, MalformedDecl):
            return OpaqueExpr(node.type, self._position(node))
        return ClosureExpr(function, self._position(node))

    @staticmethod
    def _first_named(node: Node) -> Node | None:
        children = named_children(node)
        return children[0] if children else None
