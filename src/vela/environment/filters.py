"""Built-in filters for Vela templates.

Filters transform the value on their left: ``{{ name | upper }}``,
``{{ items | join(", ") }}``. Each one declares its parameters with
``@signature`` and is bound through the same protocol as user filters.

Custom Filters:
    >>> @signature(Param("value", "str"), Param("n", "int"))
    ... def repeat(value, n):
    ...     return value * n
    >>> env.add_filter("repeat", repeat)
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from vela.environment.exceptions import TemplateTypeError
from vela.functions import Param, signature
from vela.values import Value, ValueKind

_TEXT = Param("value", "text")
_VALUE = Param("value", "value")


@signature(_TEXT)
def _filter_upper(value: str) -> str:
    return value.upper()


@signature(_TEXT)
def _filter_lower(value: str) -> str:
    return value.lower()


@signature(_TEXT)
def _filter_title(value: str) -> str:
    return value.title()


@signature(_TEXT)
def _filter_capitalize(value: str) -> str:
    """Uppercase the first character, lowercase the rest."""
    return value.capitalize()


@signature(_TEXT)
def _filter_trim(value: str) -> str:
    return value.strip()


@signature(_TEXT)
def _filter_string(value: str) -> str:
    return value


@signature(_TEXT, Param("old", "str"), Param("new", "str"), Param("count", "int", default=None))
def _filter_replace(value: str, old: str, new: str, count: int | None) -> str:
    return value.replace(old, new, -1 if count is None else count)


@signature(_VALUE)
def _filter_length(value: Value) -> int:
    """Number of items in a sequence, map, string or object."""
    if value.is_undefined:
        return 0
    size = value.length()
    if size is None:
        raise TemplateTypeError(f"{value.kind.value} has no length")
    return size


@signature(
    _VALUE,
    Param("default_value", "value", default=""),
    Param("boolean", "bool", default=False),
)
def _filter_default(value: Value, default_value: Any, boolean: bool) -> Any:
    """Return ``default_value`` when value is undefined.

    With ``boolean=true`` any falsy value is replaced as well.
    """
    if value.is_undefined or (boolean and not value.is_true()):
        return default_value
    return value


@signature(_VALUE, Param("separator", "str", default=""))
def _filter_join(value: Value, separator: str) -> str:
    if value.is_undefined:
        return ""
    return separator.join(str(item) for item in value.iterate())


@signature(_VALUE)
def _filter_first(value: Value) -> Value:
    if value.kind in (ValueKind.SEQ, ValueKind.STR):
        return value.get_item(Value(ValueKind.INT, 0))
    if value.is_undefined:
        return value
    return next(value.iterate(), Value.UNDEFINED)


@signature(_VALUE)
def _filter_last(value: Value) -> Value:
    if value.kind in (ValueKind.SEQ, ValueKind.STR):
        return value.get_item(Value(ValueKind.INT, -1))
    if value.is_undefined:
        return value
    items = list(value.iterate())
    return items[-1] if items else Value.UNDEFINED


@signature(_VALUE)
def _filter_reverse(value: Value) -> Any:
    if value.kind is ValueKind.STR:
        return value.data[::-1]
    if value.is_undefined:
        return []
    return list(value.iterate())[::-1]


@signature(_VALUE)
def _filter_list(value: Value) -> list[Value]:
    """Materialize items: characters of a string, keys of a map or object."""
    if value.is_undefined:
        return []
    return list(value.iterate())


@signature(_VALUE)
def _filter_items(value: Value) -> list[list[Value]]:
    """Key/value pairs of a map or object, in enumeration order."""
    if value.kind is ValueKind.MAP:
        return [[key, item] for key, item in value.data.items()]
    if value.kind in (ValueKind.OBJECT, ValueKind.KWARGS):
        return [[Value.from_python(name), value.get_attr(name)] for name in value.attribute_names()]
    if value.is_undefined:
        return []
    raise TemplateTypeError(f"cannot list items of {value.kind.value}")


@signature(Param("value", "number"))
def _filter_abs(value: int | float) -> int | float:
    return abs(value)


@signature(
    Param("value", "number"),
    Param("precision", "int", default=0),
    Param("method", "str", default="common"),
)
def _filter_round(value: int | float, precision: int, method: str) -> float:
    """Round to ``precision`` digits; method is common, ceil or floor."""
    if method == "common":
        return float(round(value, precision))
    if method not in ("ceil", "floor"):
        raise TemplateTypeError(f"round method must be common, ceil or floor, not {method!r}")
    func = math.ceil if method == "ceil" else math.floor
    factor = 10**precision
    return func(value * factor) / factor


@signature(_VALUE, Param("default", "int", default=0))
def _filter_int(value: Value, default: int) -> int:
    """Convert to int, returning ``default`` when conversion fails."""
    kind = value.kind
    if kind in (ValueKind.INT, ValueKind.BOOL):
        return int(value.data)
    if kind is ValueKind.FLOAT:
        return int(value.data) if math.isfinite(value.data) else default
    if kind is ValueKind.STR:
        text = value.data.strip()
        try:
            return int(text)
        except ValueError:
            try:
                return int(float(text))
            except (ValueError, OverflowError):
                return default
    return default


@signature(_VALUE, Param("default", "float", default=0.0))
def _filter_float(value: Value, default: float) -> float:
    kind = value.kind
    if kind in (ValueKind.INT, ValueKind.FLOAT, ValueKind.BOOL):
        return float(value.data)
    if kind is ValueKind.STR:
        try:
            return float(value.data.strip())
        except ValueError:
            return default
    return default


# Default filters
DEFAULT_FILTERS: dict[str, Callable[..., Any]] = {
    "abs": _filter_abs,
    "capitalize": _filter_capitalize,
    "d": _filter_default,
    "default": _filter_default,
    "first": _filter_first,
    "float": _filter_float,
    "int": _filter_int,
    "items": _filter_items,
    "join": _filter_join,
    "last": _filter_last,
    "length": _filter_length,
    "count": _filter_length,
    "list": _filter_list,
    "lower": _filter_lower,
    "replace": _filter_replace,
    "reverse": _filter_reverse,
    "round": _filter_round,
    "string": _filter_string,
    "title": _filter_title,
    "trim": _filter_trim,
    "upper": _filter_upper,
}
