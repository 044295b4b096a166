"""Runtime value model for Vela.

Every value flowing through the evaluator is a ``Value``: an immutable
tagged wrapper whose ``kind`` decides how it prints, compares, tests for
truth and answers attribute lookups. Host data enters through
``Value.from_python()`` and leaves through ``Value.to_python()``.

Host types that are not plain data plug in through the ``Object``
protocol: two methods, no base class.

    >>> class Point:
    ...     def __init__(self, x, y):
    ...         self.x, self.y = x, y
    ...     def get_attribute(self, name):
    ...         return {"x": self.x, "y": self.y}.get(name.as_str())
    ...     def enumerate_attributes(self):
    ...         return ("x", "y")
    >>> Value.from_object(Point(1, 2)).get_attr("y")
    <Value int: 2>

Thread-Safety:
    Values never change after construction. ``Kwargs`` mutates only its
    read-tracking set, which is guarded by a lock.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterator, Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Protocol, runtime_checkable

from vela.environment.exceptions import (
    TemplateArithmeticError,
    TemplateTypeError,
    UnusedKeywordArgumentError,
)

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


class ValueKind(Enum):
    """Variant tag of a ``Value``."""

    UNDEFINED = "undefined"
    NONE = "none"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STR = "str"
    SEQ = "seq"
    MAP = "map"
    KWARGS = "kwargs"
    OBJECT = "object"


_NUMERIC = frozenset({ValueKind.INT, ValueKind.FLOAT})
_SIZED = frozenset({ValueKind.STR, ValueKind.SEQ, ValueKind.MAP, ValueKind.KWARGS})


@runtime_checkable
class Object(Protocol):
    """Capability interface for host values exposed to templates.

    ``get_attribute`` returns the attribute (a ``Value`` or any data
    ``Value.from_python`` accepts) or None when there is no such
    attribute. Absence is never an error.

    ``enumerate_attributes`` lists attribute names in a stable order. It
    is used for listing (``items``, ``list``, ``length`` filters), never
    for access control.

    Implementations may also define ``is_true() -> bool``; without it an
    object is truthy. Both methods must be safe to call concurrently.
    """

    def get_attribute(self, name: Value) -> Any: ...

    def enumerate_attributes(self) -> Sequence[str]: ...


def check_int(n: int) -> int:
    """Return ``n`` if it fits in a signed 64-bit integer."""
    if not INT_MIN <= n <= INT_MAX:
        raise TemplateArithmeticError(
            f"integer {n} does not fit in 64 bits",
            suggestion="Use floats for values this large",
        )
    return n


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


class Value:
    """Immutable tagged template value.

    Attributes:
        kind: The ``ValueKind`` variant.
        data: Payload. ``tuple[Value, ...]`` for SEQ, a read-only mapping of
            Value → Value for MAP, the bag for KWARGS, the host object for
            OBJECT, the Python scalar otherwise.
    """

    __slots__ = ("kind", "data")

    UNDEFINED: ClassVar[Value]
    NONE: ClassVar[Value]
    TRUE: ClassVar[Value]
    FALSE: ClassVar[Value]

    kind: ValueKind
    data: Any

    def __init__(self, kind: ValueKind, data: Any = None) -> None:
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "data", data)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Value objects are immutable")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_python(cls, obj: Any) -> Value:
        """Convert host data into a Value.

        Raises:
            TemplateArithmeticError: ints outside signed 64 bit.
            TemplateTypeError: unsupported types (bytes, sets, arbitrary
                objects that do not implement ``Object``).
        """
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls.NONE
        if isinstance(obj, bool):
            return cls.TRUE if obj else cls.FALSE
        if isinstance(obj, int):
            return cls(ValueKind.INT, check_int(obj))
        if isinstance(obj, float):
            return cls(ValueKind.FLOAT, obj)
        if isinstance(obj, str):
            return cls(ValueKind.STR, obj)
        if isinstance(obj, Kwargs):
            return cls(ValueKind.KWARGS, obj)
        if isinstance(obj, Mapping):
            items: dict[Value, Value] = {}
            for key, value in obj.items():
                key_value = cls.from_python(key)
                try:
                    items[key_value] = cls.from_python(value)
                except TypeError as e:
                    raise TemplateTypeError(
                        f"map key of kind {key_value.kind.value} is not hashable"
                    ) from e
            return cls(ValueKind.MAP, MappingProxyType(items))
        if isinstance(obj, (list, tuple, range)):
            return cls(ValueKind.SEQ, tuple(cls.from_python(item) for item in obj))
        if isinstance(obj, Object):
            return cls(ValueKind.OBJECT, obj)
        raise TemplateTypeError(
            f"cannot convert {type(obj).__name__} to a template value",
            suggestion="Convert it to plain data or implement get_attribute/enumerate_attributes",
        )

    @classmethod
    def undefined(cls, name: str | None = None) -> Value:
        """An undefined marker remembering the name or path it came from."""
        return cls(ValueKind.UNDEFINED, name) if name else cls.UNDEFINED

    @classmethod
    def from_object(cls, obj: Object) -> Value:
        """Wrap a host object implementing the ``Object`` protocol."""
        if not isinstance(obj, Object):
            raise TypeError(
                f"{type(obj).__name__} does not implement get_attribute/enumerate_attributes"
            )
        return cls(ValueKind.OBJECT, obj)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def is_undefined(self) -> bool:
        return self.kind is ValueKind.UNDEFINED

    @property
    def is_none(self) -> bool:
        return self.kind is ValueKind.NONE

    @property
    def is_number(self) -> bool:
        return self.kind in _NUMERIC

    def as_str(self) -> str | None:
        """The string payload, or None for non-STR values."""
        return self.data if self.kind is ValueKind.STR else None

    def is_true(self) -> bool:
        kind = self.kind
        if kind is ValueKind.UNDEFINED or kind is ValueKind.NONE:
            return False
        if kind is ValueKind.OBJECT:
            hook = getattr(self.data, "is_true", None)
            return bool(hook()) if callable(hook) else True
        if kind in _SIZED:
            return len(self.data) > 0
        return bool(self.data)

    __bool__ = is_true

    def length(self) -> int | None:
        """Number of items, or None when the kind has no length."""
        if self.kind in _SIZED:
            return len(self.data)
        if self.kind is ValueKind.OBJECT:
            return len(self.data.enumerate_attributes())
        return None

    def to_python(self) -> Any:
        """Convert back to host data (SEQ → list, MAP → dict)."""
        kind = self.kind
        if kind is ValueKind.UNDEFINED:
            return None
        if kind is ValueKind.SEQ:
            return [item.to_python() for item in self.data]
        if kind is ValueKind.MAP:
            return {key._to_python_key(): value.to_python() for key, value in self.data.items()}
        return self.data

    def _to_python_key(self) -> Any:
        if self.kind is ValueKind.SEQ:
            return tuple(item._to_python_key() for item in self.data)
        return self.to_python()

    # ------------------------------------------------------------------
    # Member access
    # ------------------------------------------------------------------

    def get_attr(self, name: str) -> Value:
        """Attribute lookup (``a.b``). Missing attributes are UNDEFINED."""
        kind = self.kind
        if kind is ValueKind.MAP:
            return self.data.get(Value(ValueKind.STR, name), Value.UNDEFINED)
        if kind is ValueKind.OBJECT:
            return _object_attribute(self.data, Value(ValueKind.STR, name))
        if kind is ValueKind.KWARGS:
            found = self.data.get_value(name)
            return Value.UNDEFINED if found is None else found
        return Value.UNDEFINED

    def get_item(self, key: Value) -> Value:
        """Subscript lookup (``a[key]``). Missing items are UNDEFINED."""
        kind = self.kind
        if kind is ValueKind.MAP:
            try:
                return self.data.get(key, Value.UNDEFINED)
            except TypeError as e:
                raise TemplateTypeError(f"cannot use {key.kind.value} as a map key") from e
        if kind is ValueKind.OBJECT:
            return _object_attribute(self.data, key)
        if kind is ValueKind.KWARGS:
            name = key.as_str()
            found = self.data.get_value(name) if name is not None else None
            return Value.UNDEFINED if found is None else found
        if kind in (ValueKind.SEQ, ValueKind.STR) and key.kind is ValueKind.INT:
            index = key.data
            size = len(self.data)
            if -size <= index < size:
                item = self.data[index]
                return Value(ValueKind.STR, item) if kind is ValueKind.STR else item
        return Value.UNDEFINED

    def attribute_names(self) -> tuple[str, ...]:
        """Names visible through attribute access, in their natural order."""
        if self.kind is ValueKind.MAP:
            return tuple(str(key) for key in self.data)
        if self.kind is ValueKind.OBJECT:
            return tuple(self.data.enumerate_attributes())
        if self.kind is ValueKind.KWARGS:
            return tuple(self.data.keys())
        return ()

    def iterate(self) -> Iterator[Value]:
        """Iterate items: SEQ elements, STR characters, MAP/OBJECT keys."""
        kind = self.kind
        if kind is ValueKind.SEQ:
            return iter(self.data)
        if kind is ValueKind.STR:
            return (Value(ValueKind.STR, ch) for ch in self.data)
        if kind is ValueKind.MAP:
            return iter(self.data.keys())
        if kind in (ValueKind.OBJECT, ValueKind.KWARGS):
            return (Value(ValueKind.STR, name) for name in self.attribute_names())
        raise TemplateTypeError(f"{kind.value} is not iterable")

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def compare(self, other: Value) -> int:
        """Three-way ordering: -1, 0 or 1.

        Numbers order with numbers, strings with strings, sequences
        element-wise. Any other pairing raises TemplateTypeError.
        """
        a, b = self, other
        if a.kind in _NUMERIC and b.kind in _NUMERIC:
            return (a.data > b.data) - (a.data < b.data)
        if a.kind is b.kind and a.kind in (ValueKind.STR, ValueKind.BOOL):
            return (a.data > b.data) - (a.data < b.data)
        if a.kind is ValueKind.SEQ and b.kind is ValueKind.SEQ:
            for left, right in zip(a.data, b.data, strict=False):
                result = left.compare(right)
                if result:
                    return result
            return (len(a.data) > len(b.data)) - (len(a.data) < len(b.data))
        raise TemplateTypeError(f"cannot compare {a.kind.value} with {b.kind.value}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            try:
                other = Value.from_python(other)
            except (TemplateTypeError, TemplateArithmeticError):
                return NotImplemented
        a, b = self, other
        if a.kind in _NUMERIC and b.kind in _NUMERIC:
            return a.data == b.data
        if a.kind is not b.kind:
            return False
        if a.kind is ValueKind.UNDEFINED:
            return True
        if a.kind is ValueKind.MAP:
            return dict(a.data) == dict(b.data)
        if a.kind is ValueKind.KWARGS:
            return a.data.as_dict() == b.data.as_dict()
        if a.kind is ValueKind.OBJECT:
            return a.data is b.data or bool(a.data == b.data)
        return a.data == b.data

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self) -> int:
        kind = self.kind
        if kind is ValueKind.UNDEFINED or kind is ValueKind.NONE:
            return hash(kind)
        if kind is ValueKind.OBJECT:
            return id(self.data)
        if kind is ValueKind.MAP or kind is ValueKind.KWARGS:
            raise TypeError(f"unhashable template value: {kind.value}")
        return hash(self.data)

    def __lt__(self, other: Value) -> bool:
        return self.compare(other) < 0

    def __le__(self, other: Value) -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: Value) -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: Value) -> bool:
        return self.compare(other) >= 0

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        kind = self.kind
        if kind is ValueKind.STR:
            return self.data
        if kind is ValueKind.UNDEFINED:
            return ""
        if kind is ValueKind.NONE:
            return "none"
        if kind is ValueKind.BOOL:
            return "true" if self.data else "false"
        if kind is ValueKind.FLOAT:
            return repr(self.data)
        if kind is ValueKind.SEQ:
            return "[" + ", ".join(item._debug() for item in self.data) + "]"
        if kind is ValueKind.MAP:
            pairs = (f"{k._debug()}: {v._debug()}" for k, v in self.data.items())
            return "{" + ", ".join(pairs) + "}"
        if kind is ValueKind.KWARGS:
            pairs = (f"{_quote(k)}: {v._debug()}" for k, v in self.data.items())
            return "{" + ", ".join(pairs) + "}"
        return str(self.data)

    def _debug(self) -> str:
        if self.kind is ValueKind.STR:
            return _quote(self.data)
        if self.kind is ValueKind.UNDEFINED:
            return "undefined"
        return str(self)

    def __repr__(self) -> str:
        if self.kind is ValueKind.UNDEFINED or self.kind is ValueKind.NONE:
            return f"<Value {self.kind.value}>"
        return f"<Value {self.kind.value}: {self._debug()}>"


def _object_attribute(obj: Object, key: Value) -> Value:
    found = obj.get_attribute(key)
    if found is None:
        return Value.UNDEFINED
    return Value.from_python(found)


Value.UNDEFINED = Value(ValueKind.UNDEFINED)
Value.NONE = Value(ValueKind.NONE)
Value.TRUE = Value(ValueKind.BOOL, True)
Value.FALSE = Value(ValueKind.BOOL, False)


class Kwargs:
    """Keyword-argument bag that remembers which keys were read.

    Callables that declare a ``KwargsSlot`` receive one of these. Reading
    a key through ``get``/``get_value`` marks it consumed; after the
    callable returns, the binder raises ``UnusedKeywordArgumentError`` for
    keys nobody read (unless the slot is non-strict).

        >>> kwargs = Kwargs({"limit": 4})
        >>> kwargs.get("limit")
        4
        >>> kwargs.assert_all_used()
    """

    __slots__ = ("_values", "_used", "_lock")

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Value] = {
            str(key): Value.from_python(value) for key, value in (values or {}).items()
        }
        self._used: set[str] = set()
        self._lock = threading.Lock()

    def _mark(self, key: str) -> None:
        with self._lock:
            self._used.add(key)

    def get_value(self, key: str) -> Value | None:
        """Read a key as a Value, marking it consumed."""
        found = self._values.get(key)
        if found is not None:
            self._mark(key)
        return found

    def get(self, key: str, default: Any = None) -> Any:
        """Read a key as host data, marking it consumed."""
        found = self.get_value(key)
        return default if found is None else found.to_python()

    def has(self, key: str) -> bool:
        """Check for a key without consuming it."""
        return key in self._values

    __contains__ = has

    def keys(self) -> list[str]:
        return list(self._values)

    def items(self) -> list[tuple[str, Value]]:
        return list(self._values.items())

    def as_dict(self) -> dict[str, Value]:
        return dict(self._values)

    def unused(self) -> list[str]:
        """Keys never read, in insertion order."""
        with self._lock:
            return [key for key in self._values if key not in self._used]

    def assert_all_used(self, callable_name: str | None = None) -> None:
        """Raise UnusedKeywordArgumentError if any key was never read."""
        left = self.unused()
        if left:
            raise UnusedKeywordArgumentError(left, callable_name=callable_name)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Kwargs):
            return NotImplemented
        return self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Kwargs({self.keys()!r})"
