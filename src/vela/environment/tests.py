"""Built-in tests for Vela templates.

Tests are boolean predicates used with ``is``:
``{{ value is odd }}`` or ``{{ value is divisibleby(3) }}``.

Categories:
**Type Tests**:
    - `defined` / `undefined`: Value is (not) the undefined marker
    - `none`: Value is none
    - `string`, `number`, `sequence`, `mapping`, `iterable`
    - `lower` / `upper`: String case

**Boolean Tests**:
    - `true`: Value is exactly true
    - `false`: Value is exactly false

**Number Tests**:
    - `odd`, `even`, `divisibleby(n)`

**Comparison Tests**:
    - `eq(other)` / `equalto(other)`, `ne(other)`
    - `lt(other)` / `lessthan(other)`, `le(other)`
    - `gt(other)` / `greaterthan(other)`, `ge(other)`
    - `in(container)`

Negation:
Use ``is not`` for negated tests: ``{{ count is not even }}``

Custom Tests:
    >>> @signature(Param("value", "int"))
    ... def is_prime(n):
    ...     return n > 1 and all(n % i for i in range(2, n))
    >>> env.add_test("prime", is_prime)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from vela.environment.exceptions import TemplateArithmeticError
from vela.functions import Param, signature
from vela.runtime import operators
from vela.values import Value, ValueKind

_ONE_VALUE = (Param("value", "value"),)
_TWO_VALUES = (Param("value", "value"), Param("other", "value"))


@signature(*_ONE_VALUE)
def _test_defined(value: Value) -> bool:
    """Test if value is not the undefined marker."""
    return not value.is_undefined


@signature(*_ONE_VALUE)
def _test_undefined(value: Value) -> bool:
    return value.is_undefined


@signature(*_ONE_VALUE)
def _test_none(value: Value) -> bool:
    return value.is_none


@signature(*_ONE_VALUE)
def _test_true(value: Value) -> bool:
    """Test if value is exactly ``true`` (not merely truthy)."""
    return value.kind is ValueKind.BOOL and value.data is True


@signature(*_ONE_VALUE)
def _test_false(value: Value) -> bool:
    return value.kind is ValueKind.BOOL and value.data is False


@signature(*_ONE_VALUE)
def _test_odd(value: Value) -> bool:
    """Test if value is an odd integer."""
    return value.kind is ValueKind.INT and value.data % 2 == 1


@signature(*_ONE_VALUE)
def _test_even(value: Value) -> bool:
    return value.kind is ValueKind.INT and value.data % 2 == 0


@signature(Param("value", "value"), Param("num", "int"))
def _test_divisible_by(value: Value, num: int) -> bool:
    """Test if value is an integer divisible by num."""
    if num == 0:
        raise TemplateArithmeticError("divisibleby(0) is undefined")
    return value.kind is ValueKind.INT and value.data % num == 0


@signature(*_ONE_VALUE)
def _test_number(value: Value) -> bool:
    """Test if value is an int or float (booleans are not numbers)."""
    return value.is_number


@signature(*_ONE_VALUE)
def _test_string(value: Value) -> bool:
    return value.kind is ValueKind.STR


@signature(*_ONE_VALUE)
def _test_sequence(value: Value) -> bool:
    """Test if value is a sequence or a string."""
    return value.kind in (ValueKind.SEQ, ValueKind.STR)


@signature(*_ONE_VALUE)
def _test_mapping(value: Value) -> bool:
    return value.kind in (ValueKind.MAP, ValueKind.KWARGS)


@signature(*_ONE_VALUE)
def _test_iterable(value: Value) -> bool:
    return value.kind in (
        ValueKind.SEQ,
        ValueKind.STR,
        ValueKind.MAP,
        ValueKind.KWARGS,
        ValueKind.OBJECT,
    )


@signature(*_ONE_VALUE)
def _test_lower(value: Value) -> bool:
    return str(value).islower()


@signature(*_ONE_VALUE)
def _test_upper(value: Value) -> bool:
    return str(value).isupper()


@signature(*_TWO_VALUES)
def _test_eq(value: Value, other: Value) -> bool:
    return value == other


@signature(*_TWO_VALUES)
def _test_ne(value: Value, other: Value) -> bool:
    return value != other


@signature(*_TWO_VALUES)
def _test_lt(value: Value, other: Value) -> bool:
    return operators.compare("<", value, other)


@signature(*_TWO_VALUES)
def _test_le(value: Value, other: Value) -> bool:
    return operators.compare("<=", value, other)


@signature(*_TWO_VALUES)
def _test_gt(value: Value, other: Value) -> bool:
    return operators.compare(">", value, other)


@signature(*_TWO_VALUES)
def _test_ge(value: Value, other: Value) -> bool:
    return operators.compare(">=", value, other)


@signature(Param("value", "value"), Param("container", "value"))
def _test_in(value: Value, container: Value) -> bool:
    """Test if value is contained in container."""
    return operators.contains(container, value)


# Default tests
DEFAULT_TESTS: dict[str, Callable[..., Any]] = {
    "defined": _test_defined,
    "divisibleby": _test_divisible_by,
    "eq": _test_eq,
    "equalto": _test_eq,
    "even": _test_even,
    "false": _test_false,
    "ge": _test_ge,
    "gt": _test_gt,
    "greaterthan": _test_gt,
    "in": _test_in,
    "iterable": _test_iterable,
    "le": _test_le,
    "lower": _test_lower,
    "lt": _test_lt,
    "lessthan": _test_lt,
    "mapping": _test_mapping,
    "ne": _test_ne,
    "none": _test_none,
    "number": _test_number,
    "odd": _test_odd,
    "sequence": _test_sequence,
    "string": _test_string,
    "true": _test_true,
    "undefined": _test_undefined,
    "upper": _test_upper,
}
