"""Operator semantics for the evaluator.

Each operator takes and returns ``Value`` objects. Integer results are
checked against the signed 64-bit range; numbers mixing int and float
promote to float.
"""

from __future__ import annotations

import math
from collections.abc import Callable

from vela.environment.exceptions import (
    TemplateArithmeticError,
    TemplateTypeError,
    UndefinedError,
)
from vela.values import Value, ValueKind, check_int

_INT = ValueKind.INT
_FLOAT = ValueKind.FLOAT
_STR = ValueKind.STR
_SEQ = ValueKind.SEQ

# Longest string or sequence ``*`` repetition will build
MAX_REPEAT = 1_000_000


def require_defined(value: Value) -> Value:
    """Raise UndefinedError if ``value`` is the undefined marker."""
    if value.is_undefined:
        raise UndefinedError(value.data or "undefined")
    return value


def _type_error(op: str, left: Value, right: Value) -> TemplateTypeError:
    return TemplateTypeError(
        f"unsupported operand kinds for {op}: {left.kind.value} and {right.kind.value}"
    )


def _num(n: int | float) -> Value:
    if isinstance(n, int):
        return Value(_INT, check_int(n))
    return Value(_FLOAT, n)


def _both_numbers(left: Value, right: Value) -> bool:
    return left.is_number and right.is_number


def _add(left: Value, right: Value) -> Value:
    if _both_numbers(left, right):
        return _num(left.data + right.data)
    if left.kind is _STR and right.kind is _STR:
        return Value(_STR, left.data + right.data)
    if left.kind is _SEQ and right.kind is _SEQ:
        return Value(_SEQ, left.data + right.data)
    raise _type_error("+", left, right)


def _sub(left: Value, right: Value) -> Value:
    if _both_numbers(left, right):
        return _num(left.data - right.data)
    raise _type_error("-", left, right)


def _mul(left: Value, right: Value) -> Value:
    if _both_numbers(left, right):
        return _num(left.data * right.data)
    if left.kind is _INT and right.kind in (_STR, _SEQ):
        left, right = right, left
    if left.kind in (_STR, _SEQ) and right.kind is _INT:
        times = max(right.data, 0)
        # Reject before building, the step budget does not see allocation size
        if len(left.data) * times > MAX_REPEAT:
            raise TemplateArithmeticError(
                f"repeating a {left.kind.value} of length {len(left.data)} {times} times"
                f" exceeds {MAX_REPEAT} items"
            )
        return Value(left.kind, left.data * times)
    raise _type_error("*", left, right)


def _check_divisor(op: str, right: Value) -> None:
    if right.data == 0:
        raise TemplateArithmeticError(f"division by zero in {op}")


def _truediv(left: Value, right: Value) -> Value:
    if not _both_numbers(left, right):
        raise _type_error("/", left, right)
    _check_divisor("/", right)
    return Value(_FLOAT, left.data / right.data)


def _floordiv(left: Value, right: Value) -> Value:
    if not _both_numbers(left, right):
        raise _type_error("//", left, right)
    _check_divisor("//", right)
    return _num(left.data // right.data)


def _mod(left: Value, right: Value) -> Value:
    if not _both_numbers(left, right):
        raise _type_error("%", left, right)
    _check_divisor("%", right)
    return _num(left.data % right.data)


def _pow(left: Value, right: Value) -> Value:
    if not _both_numbers(left, right):
        raise _type_error("**", left, right)
    base, exponent = left.data, right.data
    if left.kind is _INT and right.kind is _INT:
        if exponent < 0:
            if base == 0:
                raise TemplateArithmeticError("zero cannot be raised to a negative power")
            return Value(_FLOAT, float(base) ** exponent)
        # Reject before computing, huge exponents would stall the render
        if abs(base) > 1 and exponent * math.log2(abs(base)) > 64:
            raise TemplateArithmeticError(f"integer {base} ** {exponent} does not fit in 64 bits")
        return _num(base**exponent)
    try:
        result = float(base) ** float(exponent)
    except (OverflowError, ZeroDivisionError) as e:
        raise TemplateArithmeticError(f"{base} ** {exponent}: {e}") from e
    if isinstance(result, complex):
        raise TemplateArithmeticError(f"{base} ** {exponent} has no real result")
    return Value(_FLOAT, result)


BINARY_OPERATORS: dict[str, Callable[[Value, Value], Value]] = {
    "+": _add,
    "-": _sub,
    "*": _mul,
    "/": _truediv,
    "//": _floordiv,
    "%": _mod,
    "**": _pow,
}


def binary(op: str, left: Value, right: Value) -> Value:
    """Apply an arithmetic operator. Undefined operands raise UndefinedError."""
    require_defined(left)
    require_defined(right)
    return BINARY_OPERATORS[op](left, right)


def concat(left: Value, right: Value) -> Value:
    """``~``: concatenate the string forms of both operands."""
    return Value(_STR, str(left) + str(right))


def unary(op: str, operand: Value) -> Value:
    if op == "not":
        return Value.FALSE if operand.is_true() else Value.TRUE
    require_defined(operand)
    if not operand.is_number:
        raise TemplateTypeError(f"bad operand kind for unary {op}: {operand.kind.value}")
    if op == "-":
        return _num(-operand.data)
    return operand


def contains(container: Value, item: Value) -> bool:
    """``item in container``."""
    require_defined(container)
    kind = container.kind
    if kind is _STR:
        if item.kind is not _STR:
            raise TemplateTypeError(
                f"'in <str>' requires a string on the left, got {item.kind.value}"
            )
        return item.data in container.data
    if kind is _SEQ:
        return any(element == item for element in container.data)
    if kind is ValueKind.MAP:
        try:
            return item in container.data
        except TypeError:
            return False
    if kind in (ValueKind.OBJECT, ValueKind.KWARGS):
        return item.as_str() in container.attribute_names()
    raise TemplateTypeError(f"'in' is not supported for {kind.value}")


def compare(op: str, left: Value, right: Value) -> bool:
    """Evaluate one comparison link of a (possibly chained) comparison."""
    if op == "==":
        return left == right
    if op == "!=":
        return left != right
    if op == "in":
        return contains(right, left)
    if op == "not in":
        return not contains(right, left)
    require_defined(left)
    require_defined(right)
    order = left.compare(right)
    if op == "<":
        return order < 0
    if op == "<=":
        return order <= 0
    if op == ">":
        return order > 0
    if op == ">=":
        return order >= 0
    raise TemplateTypeError(f"unknown comparison operator {op!r}")
