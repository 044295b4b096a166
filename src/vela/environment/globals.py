"""Default global functions for templates.

These are registered in every Environment's function table:

    {{ range(3) | join(",") }}        -> 0,1,2
    {{ dict(a=1, b=2).b }}            -> 2
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from vela.environment.exceptions import (
    TemplateArithmeticError,
    TemplateRuntimeError,
    TemplateTypeError,
)
from vela.functions import KwargsSlot, Param, signature
from vela.values import Kwargs, Value, ValueKind

# Longest sequence range() will build
MAX_RANGE = 100_000


@signature(
    Param("start", "int"),
    Param("stop", "int", default=None),
    Param("step", "int", default=1),
)
def _range(start: int, stop: int | None, step: int) -> range:
    """Python-style ``range``: ``range(stop)`` or ``range(start, stop, step)``."""
    if stop is None:
        start, stop = 0, start
    if step == 0:
        raise TemplateArithmeticError("range() step must not be zero")
    result = range(start, stop, step)
    if len(result) > MAX_RANGE:
        raise TemplateRuntimeError(
            f"range() would produce {len(result)} items (limit {MAX_RANGE})"
        )
    return result


@signature(Param("mapping", "value", default=None), KwargsSlot("entries", strict=False))
def _dict(mapping: Value | None, entries: Kwargs) -> dict[Value, Value]:
    """Build a map from an optional base map plus keyword arguments."""
    result: dict[Value, Value] = {}
    if mapping is None or mapping.is_undefined:
        pass
    elif mapping.kind is ValueKind.MAP:
        result.update(mapping.data)
    elif mapping.kind in (ValueKind.OBJECT, ValueKind.KWARGS):
        for name in mapping.attribute_names():
            result[Value.from_python(name)] = mapping.get_attr(name)
    else:
        raise TemplateTypeError(f"dict() cannot be built from {mapping.kind.value}")
    for name, value in entries.items():
        result[Value.from_python(name)] = value
    return result


DEFAULT_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "dict": _dict,
    "range": _range,
}
