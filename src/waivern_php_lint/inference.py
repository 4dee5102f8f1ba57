"""Local type inference for returned expressions.

Only what can be read off the expression itself is inferred: literals,
operators, casts, instantiations, and a short list of built-in functions with
a fixed return type. Everything else (variables, property reads, method
calls, user functions) is ``unknown``, which the compatibility check always
accepts.
"""

from __future__ import annotations

from dataclasses import dataclass

from waivern_php_lint.syntax.nodes import (
    ArrayLiteral,
    AssignExpr,
    BinaryExpr,
    CallExpr,
    CastExpr,
    ClosureExpr,
    Expr,
    MatchExpr,
    NewExpr,
    OpaqueExpr,
    ScalarLiteral,
    TernaryExpr,
    UnaryExpr,
    VariableExpr,
)
from waivern_php_lint.types import (
    UNKNOWN,
    InferredArray,
    InferredObject,
    InferredScalar,
    InferredType,
    join,
    literal_type,
)

_STRING = InferredScalar("string")
_INT = InferredScalar("int")
_FLOAT = InferredScalar("float")
_BOOL = InferredScalar("bool")

_COMPARISON_OPERATORS = frozenset(
    {
        "==", "!=", "<>", "===", "!==", "<", ">", "<=", ">=",
        "&&", "||", "and", "or", "xor", "instanceof",
    }
)
_ARITHMETIC_OPERATORS = frozenset({"+", "-", "*", "%", "**"})
_BITWISE_OPERATORS = frozenset({"&", "|", "^", "<<", ">>"})

# Built-in functions whose return type never varies
_BUILTIN_RETURN_TYPES: dict[str, InferredType] = {
    "implode": _STRING,
    "join": _STRING,
    "sprintf": _STRING,
    "vsprintf": _STRING,
    "strval": _STRING,
    "str_repeat": _STRING,
    "str_pad": _STRING,
    "strtolower": _STRING,
    "strtoupper": _STRING,
    "ucfirst": _STRING,
    "lcfirst": _STRING,
    "ucwords": _STRING,
    "trim": _STRING,
    "ltrim": _STRING,
    "rtrim": _STRING,
    "nl2br": _STRING,
    "htmlspecialchars": _STRING,
    "number_format": _STRING,
    "intval": _INT,
    "count": _INT,
    "strlen": _INT,
    "floatval": _FLOAT,
    "boolval": _BOOL,
    "is_int": _BOOL,
    "is_string": _BOOL,
    "is_array": _BOOL,
    "is_bool": _BOOL,
    "is_float": _BOOL,
    "is_null": _BOOL,
    "is_numeric": _BOOL,
    "is_object": _BOOL,
    "is_callable": _BOOL,
    "in_array": _BOOL,
    "array_key_exists": _BOOL,
    "function_exists": _BOOL,
    "class_exists": _BOOL,
    "array_keys": InferredArray(),
    "array_values": InferredArray(),
    "array_merge": InferredArray(),
    "array_map": InferredArray(),
    "array_filter": InferredArray(),
    "compact": InferredArray(),
}

_CAST_TYPES: dict[str, InferredType] = {
    "int": _INT,
    "integer": _INT,
    "float": _FLOAT,
    "double": _FLOAT,
    "real": _FLOAT,
    "string": _STRING,
    "binary": _STRING,
    "bool": _BOOL,
    "boolean": _BOOL,
    "array": InferredArray(),
    "object": InferredObject(None),
}


@dataclass(frozen=True, slots=True)
class InferenceContext:
    """What an expression may refer to implicitly.

    Attributes:
        self_class: Name of the class ``$this`` is bound to, if any

    """

    self_class: str | None = None


def infer_expression(expr: Expr, context: InferenceContext | None = None) -> InferredType:
    """Infer the type of an expression's value.

    Args:
        expr: Expression node
        context: Binding context for ``$this``

    Returns:
        The inferred type, ``unknown`` when it cannot be determined locally

    """
    ctx = context or InferenceContext()

    match expr:
        case ScalarLiteral(kind=kind, text=text):
            return literal_type(kind, text)
        case ArrayLiteral():
            return InferredArray()
        case NewExpr(class_name=class_name):
            if class_name is not None and class_name.lower() in ("self", "static"):
                return InferredObject(ctx.self_class)
            return InferredObject(class_name)
        case CastExpr(target=target):
            return _CAST_TYPES.get(target.lower(), UNKNOWN)
        case BinaryExpr(operator=operator, left=left, right=right):
            return _infer_binary(operator.lower(), left, right, ctx)
        case UnaryExpr(operator=operator, operand=operand):
            return _infer_unary(operator, operand, ctx)
        case AssignExpr(operator="=", value=value):
            return infer_expression(value, ctx)
        case AssignExpr(operator=".="):
            return _STRING
        case AssignExpr():
            return UNKNOWN
        case TernaryExpr(if_true=None):
            # ``a ?: b`` yields a truthy ``a`` whose type we do not track
            return UNKNOWN
        case TernaryExpr(if_true=if_true, if_false=if_false) if if_true is not None:
            return join(infer_expression(if_true, ctx), infer_expression(if_false, ctx))
        case MatchExpr(arms=arms):
            return _infer_match(arms, ctx)
        case CallExpr(name=name):
            return _infer_call(name)
        case VariableExpr(name=name):
            if name == "this" and ctx.self_class is not None:
                return InferredObject(ctx.self_class)
            return UNKNOWN
        case ClosureExpr():
            return InferredObject("Closure")
        case OpaqueExpr():
            return UNKNOWN
    raise TypeError(f"Unhandled expression node: {expr!r}")


def _infer_binary(
    operator: str, left: Expr, right: Expr, ctx: InferenceContext
) -> InferredType:
    if operator == ".":
        return _STRING
    if operator in _COMPARISON_OPERATORS:
        return _BOOL
    if operator == "<=>":
        return _INT
    if operator in _BITWISE_OPERATORS:
        left_type = infer_expression(left, ctx)
        right_type = infer_expression(right, ctx)
        if left_type == _INT and right_type == _INT:
            return _INT
        return UNKNOWN
    if operator in _ARITHMETIC_OPERATORS:
        left_type = infer_expression(left, ctx)
        right_type = infer_expression(right, ctx)
        numeric = (_INT, _FLOAT)
        if left_type not in numeric or right_type not in numeric:
            return UNKNOWN
        if operator == "%":
            return _INT
        if left_type == _INT and right_type == _INT:
            # ``**`` with a negative exponent yields float; only trust + - *
            return _INT if operator != "**" else UNKNOWN
        return _FLOAT
    # ``/`` yields int or float, ``??`` depends on the left operand
    return UNKNOWN


def _infer_unary(operator: str, operand: Expr, ctx: InferenceContext) -> InferredType:
    if operator == "!":
        return _BOOL
    if operator == "~":
        return _INT if infer_expression(operand, ctx) == _INT else UNKNOWN
    if operator in ("-", "+"):
        operand_type = infer_expression(operand, ctx)
        if operand_type in (_INT, _FLOAT):
            return operand_type
        return UNKNOWN
    return UNKNOWN


def _infer_match(arms: tuple[Expr, ...], ctx: InferenceContext) -> InferredType:
    if not arms:
        return UNKNOWN
    result = infer_expression(arms[0], ctx)
    for arm in arms[1:]:
        result = join(result, infer_expression(arm, ctx))
    return result


def _infer_call(name: str | None) -> InferredType:
    if name is None:
        return UNKNOWN
    # Normalise fully qualified names: \Foo\implode -> implode
    short = name.lstrip("\\").rsplit("\\", 1)[-1].lower()
    return _BUILTIN_RETURN_TYPES.get(short, UNKNOWN)

