"""Symbol model extracted from a compilation unit's syntax tree.

The model is built once per unit and never patched: analysing the unit again
means building a new model from its tree.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from waivern_php_lint.errors import TypeSyntaxError
from waivern_php_lint.syntax.nodes import (
    ArrayLiteral,
    AssignExpr,
    BinaryExpr,
    BlockStmt,
    CallExpr,
    CastExpr,
    ClassLikeDecl,
    ClosureExpr,
    CompilationUnit,
    ConditionalBranch,
    ConstructKind,
    DoWhileStmt,
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
    ReturnStmt,
    SourcePosition,
    Stmt,
    SwitchStmt,
    TernaryExpr,
    ThrowStmt,
    TryStmt,
    UnaryExpr,
    Visibility,
    WhileStmt,
)
from waivern_php_lint.types import DeclaredType, parse_declared_type, short_class_name

logger = logging.getLogger(__name__)

CLOSURE_NAME = "{closure}"
ANONYMOUS_CLASS_NAME = "class@anonymous"

# Parents of the built-in classes and interfaces return types commonly name
_BUILTIN_PARENTS: dict[str, tuple[str, ...]] = {
    "traversable": (),
    "iterator": ("traversable",),
    "iteratoraggregate": ("traversable",),
    "generator": ("iterator",),
    "arrayiterator": ("iterator", "countable", "arrayaccess"),
    "arrayobject": ("iteratoraggregate", "countable", "arrayaccess"),
    "splobjectstorage": ("iterator", "countable", "arrayaccess"),
    "closure": (),
    "countable": (),
    "arrayaccess": (),
    "stringable": (),
    "jsonserializable": (),
    "throwable": ("stringable",),
    "exception": ("throwable",),
    "error": ("throwable",),
    "datetimeinterface": (),
    "datetime": ("datetimeinterface",),
    "datetimeimmutable": ("datetimeinterface",),
    "stdclass": (),
}


@dataclass(frozen=True, slots=True)
class ConstructSymbol:
    """A class, trait, interface or enum declared in the unit."""

    kind: ConstructKind
    name: str
    position: SourcePosition
    extends: tuple[str, ...] = ()
    implements: tuple[str, ...] = ()

    @property
    def parents(self) -> tuple[str, ...]:
        """Names the construct extends or implements, as written."""
        return self.extends + self.implements


@dataclass(frozen=True, slots=True)
class ParameterSymbol:
    """A parameter with its declared type."""

    name: str
    declared_type: DeclaredType


@dataclass(frozen=True, slots=True)
class FunctionSymbol:
    """A function, method or closure with its declared signature.

    ``body`` references the declaration's statements; the symbol does not own
    or copy them. ``owner`` is the enclosing class-like construct, also for
    closures declared inside methods (they bind ``$this``).
    """

    name: str
    kind: FunctionKind
    owner: ConstructSymbol | None
    parameters: tuple[ParameterSymbol, ...]
    declared_return: DeclaredType
    body: tuple[Stmt, ...] | None
    position: SourcePosition
    is_closure: bool = False
    is_generator: bool = False

    @property
    def display_name(self) -> str:
        """Name used in messages, e.g. ``Foo::bar()`` or ``{closure} at line 3``."""
        if self.owner is not None and not self.is_closure:
            return f"{self.owner.name}::{self.name}()"
        if self.is_closure:
            return f"{CLOSURE_NAME} at line {self.position.line}"
        return f"{self.name}()"

    @property
    def kind_label(self) -> str:
        """Capitalised kind used at the start of messages."""
        if self.is_closure:
            return "Closure"
        return "Method" if self.owner is not None else "Function"


@dataclass(frozen=True, slots=True)
class ConstantSymbol:
    """A constant declared in a class-like construct."""

    name: str
    owner: ConstructSymbol
    position: SourcePosition
    visibility: Visibility | None = None

    @property
    def display_name(self) -> str:
        """Qualified name, e.g. ``Foo::BAR``."""
        return f"{self.owner.name}::{self.name}"

    @property
    def effective_visibility(self) -> Visibility:
        """Visibility, counting a constant without modifier as public."""
        return self.visibility or "public"


@dataclass(frozen=True, slots=True)
class SkippedDeclaration:
    """A declaration left out of the model because it could not be read."""

    kind: str
    name: str | None
    reason: str
    position: SourcePosition


@dataclass(frozen=True, slots=True)
class SymbolModel:
    """Symbols of one compilation unit."""

    path: str
    functions: tuple[FunctionSymbol, ...]
    constants: tuple[ConstantSymbol, ...]
    constructs: dict[str, ConstructSymbol] = field(default_factory=dict)
    skipped: tuple[SkippedDeclaration, ...] = ()

    def get_construct(self, name: str) -> ConstructSymbol | None:
        """Look up a class-like construct by (short, case-insensitive) name."""
        return self.constructs.get(short_class_name(name).lower())

    def is_subtype(self, child: str, parent: str) -> bool | None:
        """Check whether ``child`` is ``parent`` or extends/implements it.

        Returns:
            True or False when the whole ancestry is known, None when an
            ancestor is neither declared in the unit nor a known built-in

        """
        target = short_class_name(parent).lower()
        seen: set[str] = set()
        pending = [short_class_name(child).lower()]
        unknown = False
        while pending:
            current = pending.pop()
            if current == target:
                return True
            if current in seen:
                continue
            seen.add(current)
            construct = self.constructs.get(current)
            if construct is not None:
                pending.extend(short_class_name(name).lower() for name in construct.parents)
            elif current in _BUILTIN_PARENTS:
                pending.extend(_BUILTIN_PARENTS[current])
            else:
                unknown = True
        return None if unknown else False

    def identifiers(self) -> Iterator[str]:
        """Yield every declared identifier in the unit (names of all symbols)."""
        for construct in self.constructs.values():
            yield construct.name
        for function in self.functions:
            if not function.is_closure:
                yield function.name
            for parameter in function.parameters:
                yield parameter.name
        for constant in self.constants:
            yield constant.name


@dataclass
class _Extraction:
    """Symbols collected so far for one unit."""

    functions: list[FunctionSymbol] = field(default_factory=list)
    constants: list[ConstantSymbol] = field(default_factory=list)
    constructs: dict[str, ConstructSymbol] = field(default_factory=dict)
    skipped: list[SkippedDeclaration] = field(default_factory=list)


# Declarations found while walking statements and expressions
NestedDeclaration = FunctionDecl | ClassLikeDecl | MalformedDecl | ClosureExpr | NewExpr


class SymbolModelBuilder:
    """Builds a SymbolModel from a compilation unit.

    Declarations are extracted wherever they appear: at the top level, inside
    blocks such as ``if (!function_exists(...)) { ... }``, nested in function
    bodies, and as anonymous classes in expressions. Methods belong to their
    construct; closures and nested named functions become symbols of their
    own. A declaration that cannot be read is recorded as skipped; the rest
    of the unit is still extracted.
    """

    def build(self, unit: CompilationUnit) -> SymbolModel:
        """Extract symbols from a compilation unit.

        Args:
            unit: Typed syntax tree of one source file

        Returns:
            The unit's symbol model

        """
        found = _Extraction()
        for declaration in unit.declarations:
            self._extract(declaration, None, found)
        self._extract_nested(unit.statements, None, found)

        logger.debug(
            "Extracted %d functions, %d constants, %d constructs from %s (%d skipped)",
            len(found.functions),
            len(found.constants),
            len(found.constructs),
            unit.path,
            len(found.skipped),
        )
        return SymbolModel(
            path=unit.path,
            functions=tuple(found.functions),
            constants=tuple(found.constants),
            constructs=found.constructs,
            skipped=tuple(found.skipped),
        )

    def _extract(
        self,
        node: NestedDeclaration,
        owner: ConstructSymbol | None,
        found: _Extraction,
    ) -> None:
        match node:
            case ClassLikeDecl():
                self._extract_construct(node, found)
            case FunctionDecl():
                # Named functions are global wherever they are declared
                self._extract_function(node, None, found)
            case ClosureExpr(function=function):
                self._extract_function(function, owner, found, is_closure=True)
            case NewExpr(declaration=ClassLikeDecl() as declaration):
                self._extract_construct(declaration, found, anonymous=True)
            case MalformedDecl():
                found.skipped.append(_skip(node))

    def _extract_nested(
        self,
        statements: tuple[Stmt, ...],
        owner: ConstructSymbol | None,
        found: _Extraction,
    ) -> None:
        for nested in _declarations_in_block(statements):
            self._extract(nested, owner, found)

    def _extract_construct(
        self, node: ClassLikeDecl, found: _Extraction, *, anonymous: bool = False
    ) -> None:
        if not node.name and not anonymous:
            found.skipped.append(
                SkippedDeclaration(node.kind, None, "missing name", node.position)
            )
            return

        construct = ConstructSymbol(
            kind=node.kind,
            name=ANONYMOUS_CLASS_NAME if anonymous else node.name,
            position=node.position,
            extends=node.extends,
            implements=node.implements,
        )
        if not anonymous:
            key = short_class_name(node.name).lower()
            if key in found.constructs:
                logger.debug(
                    "Duplicate declaration of %s in unit; keeping the first", node.name
                )
            else:
                found.constructs[key] = construct

        for constant in node.constants:
            if not constant.name:
                found.skipped.append(
                    SkippedDeclaration("constant", None, "missing name", constant.position)
                )
                continue
            found.constants.append(
                ConstantSymbol(
                    name=constant.name,
                    owner=construct,
                    position=constant.position,
                    visibility=constant.visibility,
                )
            )

        for method in node.methods:
            self._extract_function(method, construct, found)

        found.skipped.extend(_skip(member) for member in node.malformed_members)

    def _extract_function(
        self,
        node: FunctionDecl,
        owner: ConstructSymbol | None,
        found: _Extraction,
        *,
        is_closure: bool = False,
    ) -> None:
        closure = is_closure or node.kind in ("closure", "arrow_function")
        if not node.name and not closure:
            found.skipped.append(
                SkippedDeclaration(node.kind, None, "missing name", node.position)
            )
            return

        self_class = owner.name if owner is not None else None
        try:
            declared_return = parse_declared_type(node.return_type, self_class)
            parameters = tuple(
                ParameterSymbol(
                    name=parameter.name,
                    declared_type=parse_declared_type(parameter.type_text, self_class),
                )
                for parameter in node.parameters
            )
        except TypeSyntaxError as e:
            logger.debug("Skipping %s '%s': %s", node.kind, node.name, e)
            found.skipped.append(
                SkippedDeclaration(node.kind, node.name or None, str(e), node.position)
            )
            return

        found.functions.append(
            FunctionSymbol(
                name=CLOSURE_NAME if closure else node.name,
                kind=node.kind,
                owner=owner,
                parameters=parameters,
                declared_return=declared_return,
                body=node.body,
                position=node.position,
                is_closure=closure,
                is_generator=node.is_generator,
            )
        )

        if node.body is not None:
            self._extract_nested(node.body, owner, found)


def _skip(node: MalformedDecl) -> SkippedDeclaration:
    logger.debug(
        "Skipping malformed %s at %s: %s", node.kind, node.position, node.reason
    )
    return SkippedDeclaration(node.kind, node.name, node.reason, node.position)


def _declarations_in_block(statements: tuple[Stmt, ...]) -> Iterator[NestedDeclaration]:
    """Yield declarations nested in a block, not looking inside the ones found."""
    for statement in statements:
        yield from _declarations_in_statement(statement)


def _declarations_in_statement(statement: Stmt) -> Iterator[NestedDeclaration]:
    match statement:
        case FunctionDecl() | ClassLikeDecl():
            yield statement
        case MalformedDecl(kind=kind):
            # Unreadable statements are part of their body's flow, not declarations
            if kind != "statement":
                yield statement
        case ExpressionStmt(expression=expression) | ThrowStmt(value=expression):
            yield from _declarations_in_expression(expression)
        case ReturnStmt(value=value):
            if value is not None:
                yield from _declarations_in_expression(value)
        case IfStmt(branches=branches, else_body=else_body):
            for branch in branches:
                yield from _declarations_in_branch(branch)
            if else_body is not None:
                yield from _declarations_in_block(else_body)
        case WhileStmt(condition=condition, body=body) | DoWhileStmt(
            condition=condition, body=body
        ):
            yield from _declarations_in_expression(condition)
            yield from _declarations_in_block(body)
        case ForStmt(condition=condition, body=body):
            if condition is not None:
                yield from _declarations_in_expression(condition)
            yield from _declarations_in_block(body)
        case ForeachStmt(subject=subject, body=body):
            yield from _declarations_in_expression(subject)
            yield from _declarations_in_block(body)
        case SwitchStmt(subject=subject, cases=cases):
            yield from _declarations_in_expression(subject)
            for case in cases:
                yield from _declarations_in_block(case.body)
        case TryStmt(body=body, catches=catches, finally_body=finally_body):
            yield from _declarations_in_block(body)
            for handler in catches:
                yield from _declarations_in_block(handler)
            if finally_body is not None:
                yield from _declarations_in_block(finally_body)
        case BlockStmt(body=body):
            yield from _declarations_in_block(body)
        case OtherStmt(expressions=expressions):
            for expression in expressions:
                yield from _declarations_in_expression(expression)
        case _:
            return


def _declarations_in_branch(branch: ConditionalBranch) -> Iterator[NestedDeclaration]:
    yield from _declarations_in_expression(branch.condition)
    yield from _declarations_in_block(branch.body)


def _declarations_in_expression(expr: Expr) -> Iterator[NestedDeclaration]:
    match expr:
        case ClosureExpr():
            yield expr
        case NewExpr(children=children, declaration=declaration):
            if declaration is not None:
                yield expr
            for child in children:
                yield from _declarations_in_expression(child)
        case BinaryExpr(left=left, right=right):
            yield from _declarations_in_expression(left)
            yield from _declarations_in_expression(right)
        case UnaryExpr(operand=operand) | CastExpr(operand=operand):
            yield from _declarations_in_expression(operand)
        case AssignExpr(value=value):
            yield from _declarations_in_expression(value)
        case TernaryExpr(condition=condition, if_true=if_true, if_false=if_false):
            yield from _declarations_in_expression(condition)
            if if_true is not None:
                yield from _declarations_in_expression(if_true)
            yield from _declarations_in_expression(if_false)
        case MatchExpr(subject=subject, conditions=conditions, arms=arms):
            for part in (subject, *conditions, *arms):
                yield from _declarations_in_expression(part)
        case CallExpr(arguments=children) | ArrayLiteral(children=children) | OpaqueExpr(
            children=children
        ):
            for child in children:
                yield from _declarations_in_expression(child)
        case _:
            return
