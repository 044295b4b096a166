"""Call-binding protocol for filters, functions and tests.

Every registered callable declares its parameter shape up front as a
``Signature``: an ordered list of slots.

    Param(name, type="any", default=REQUIRED)   positional-or-keyword;
                                                keyword-only after a Rest
    Rest(name, type="any")                      extra positionals, as a list
    KwargsSlot(name, strict=True)               unmatched keywords, as Kwargs

The binder never inspects the Python function. It matches the call
site's arguments against the slots and calls the function positionally,
one argument per slot, in declaration order:

    1. positional arguments fill positional params left to right
    2. remaining params are filled from keyword arguments by name
    3. extra positionals go to Rest; unmatched keywords go to KwargsSlot
    4. unmatched keywords without a KwargsSlot raise
       UnusedKeywordArgumentError; a strict KwargsSlot raises it after the
       call for every key the callable never read
    5. a required param left empty raises MissingArgumentError
    6. a Value of the wrong kind raises ArgumentTypeError

Example:
    >>> @signature(Rest("values", "int"), Param("op", "str", default="add"))
    ... def fold(values, op):
    ...     ...
    >>> env.add_function("fold", fold)
    >>> env.render_str("{{ fold(1, 2, 3, 4, op='mul') }}")
    '24'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from vela.environment.exceptions import (
    ArgumentError,
    ArgumentTypeError,
    DuplicateArgumentError,
    MissingArgumentError,
    TemplateError,
    TemplateRuntimeError,
    TooManyArgumentsError,
    UndefinedError,
    UnusedKeywordArgumentError,
)
from vela.values import Kwargs, Value, ValueKind

if TYPE_CHECKING:
    from vela.runtime.state import State


class _Required:
    __slots__ = ()

    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Any = _Required()

_K = ValueKind

# Parameter type name → accepted Value kinds (None accepts every kind)
_ACCEPTED_KINDS: dict[str, frozenset[ValueKind] | None] = {
    "any": None,
    "value": None,
    "text": None,
    "bool": frozenset({_K.BOOL}),
    "int": frozenset({_K.INT}),
    "float": frozenset({_K.INT, _K.FLOAT}),
    "number": frozenset({_K.INT, _K.FLOAT}),
    "str": frozenset({_K.STR}),
    "seq": frozenset({_K.SEQ}),
    "map": frozenset({_K.MAP}),
    "object": frozenset({_K.OBJECT}),
    "kwargs": frozenset({_K.KWARGS}),
}

PARAM_TYPES = frozenset(_ACCEPTED_KINDS)

SIGNATURE_ATTR = "__vela_signature__"


def _check_type(type_: str) -> str:
    if type_ not in _ACCEPTED_KINDS:
        raise ValueError(f"Unknown parameter type {type_!r}; expected one of {sorted(PARAM_TYPES)}")
    return type_


@dataclass(frozen=True, slots=True)
class Param:
    """A named parameter. Optional when it has a ``default``."""

    name: str
    type: str = "any"
    default: Any = REQUIRED

    def __post_init__(self) -> None:
        _check_type(self.type)

    @property
    def required(self) -> bool:
        return self.default is REQUIRED


@dataclass(frozen=True, slots=True)
class Rest:
    """Collects every positional argument beyond the declared params."""

    name: str
    type: str = "any"

    def __post_init__(self) -> None:
        _check_type(self.type)


@dataclass(frozen=True, slots=True)
class KwargsSlot:
    """Collects keyword arguments that match no param into a ``Kwargs`` bag.

    With ``strict`` (the default) every key in the bag must be read by the
    callable before it returns.
    """

    name: str
    strict: bool = True


Slot = Param | Rest | KwargsSlot


def convert_argument(value: Value, type_: str, name: str, *, strict_undefined: bool = False) -> Any:
    """Convert a bound Value to what the callable receives for ``type_``.

    ``value`` params receive the Value itself (undefined included).
    ``text`` params receive the printed form of any Value. Everything else
    receives host data. Outside strict mode undefined is accepted by
    ``any`` (as None) and ``text`` (as the empty string).
    """
    if type_ == "value":
        return value
    if value.is_undefined:
        if not strict_undefined and type_ in ("any", "text"):
            return None if type_ == "any" else ""
        raise UndefinedError(value.data or name)
    if type_ == "text":
        return str(value)
    accepted = _ACCEPTED_KINDS[type_]
    if accepted is not None and value.kind not in accepted:
        raise ArgumentTypeError(name, type_, value.kind.value)
    if type_ == "float":
        return float(value.data)
    if type_ in ("any", "seq", "map"):
        return value.to_python()
    return value.data


@dataclass(slots=True)
class BoundCall:
    """Arguments ready to pass to the callable, in slot order."""

    args: tuple[Any, ...]
    kwargs: Kwargs | None = None
    check_kwargs: bool = False


class Signature:
    """Declared parameter shape of a filter, function or test.

    Args:
        *slots: Param / Rest / KwargsSlot in call order. A Rest may appear
            once; params after it are keyword-only. A KwargsSlot may appear
            once, last.
        pass_state: Pass the live render ``State`` as an extra first
            argument (before any slot).

    Raises:
        ValueError: for malformed shapes (duplicate names, two Rest slots,
            a required positional after an optional one, ...).
    """

    __slots__ = ("slots", "positional", "keyword_only", "rest", "kwargs_slot", "pass_state")

    def __init__(self, *slots: Slot, pass_state: bool = False):
        positional: list[Param] = []
        keyword_only: list[Param] = []
        rest: Rest | None = None
        kwargs_slot: KwargsSlot | None = None
        seen: set[str] = set()

        for slot in slots:
            if slot.name in seen:
                raise ValueError(f"Duplicate parameter name {slot.name!r}")
            seen.add(slot.name)
            if kwargs_slot is not None:
                raise ValueError("KwargsSlot must be the last slot")
            if isinstance(slot, Param):
                if rest is not None:
                    keyword_only.append(slot)
                    continue
                if slot.required and positional and not positional[-1].required:
                    raise ValueError(
                        f"Required parameter {slot.name!r} follows an optional parameter"
                    )
                positional.append(slot)
            elif isinstance(slot, Rest):
                if rest is not None:
                    raise ValueError("Only one Rest slot is allowed")
                rest = slot
            elif isinstance(slot, KwargsSlot):
                kwargs_slot = slot
            else:
                raise TypeError(f"Not a signature slot: {slot!r}")

        self.slots: tuple[Slot, ...] = tuple(slots)
        self.positional = tuple(positional)
        self.keyword_only = tuple(keyword_only)
        self.rest = rest
        self.kwargs_slot = kwargs_slot
        self.pass_state = pass_state

    def bind(
        self,
        args: Sequence[Value],
        kwargs: Mapping[str, Value],
        *,
        callable_name: str | None = None,
        strict_undefined: bool = False,
    ) -> BoundCall:
        """Match call-site arguments to the slots."""
        try:
            return self._bind(args, kwargs, strict_undefined)
        except ArgumentError as e:
            if callable_name and e.callable_name is None:
                e.callable_name = callable_name
                e.message = f"{callable_name}(): {e.message}"
                e.args = (e._format_message(),)
            raise

    def _bind(
        self,
        args: Sequence[Value],
        kwargs: Mapping[str, Value],
        strict_undefined: bool,
    ) -> BoundCall:
        positional = self.positional
        if len(args) > len(positional) and self.rest is None:
            raise TooManyArgumentsError(len(positional), len(args))

        supplied: dict[str, Value] = {
            param.name: value for param, value in zip(positional, args, strict=False)
        }
        extra = args[len(positional):]

        by_name = {param.name: param for param in (*positional, *self.keyword_only)}
        leftover: dict[str, Value] = {}
        for key, value in kwargs.items():
            if key not in by_name:
                leftover[key] = value
            elif key in supplied:
                raise DuplicateArgumentError(key)
            else:
                supplied[key] = value

        if leftover and self.kwargs_slot is None:
            raise UnusedKeywordArgumentError(list(leftover))

        bound: list[Any] = []
        bag: Kwargs | None = None
        for slot in self.slots:
            if isinstance(slot, Param):
                if slot.name in supplied:
                    value = supplied[slot.name]
                    if value.is_none and not slot.required:
                        bound.append(None)
                    else:
                        bound.append(
                            convert_argument(
                                value, slot.type, slot.name, strict_undefined=strict_undefined
                            )
                        )
                elif slot.required:
                    raise MissingArgumentError(slot.name)
                else:
                    bound.append(slot.default)
            elif isinstance(slot, Rest):
                bound.append(
                    [
                        convert_argument(
                            value, slot.type, slot.name, strict_undefined=strict_undefined
                        )
                        for value in extra
                    ]
                )
            else:
                bag = Kwargs(leftover)
                bound.append(bag)

        check = bag is not None and self.kwargs_slot is not None and self.kwargs_slot.strict
        return BoundCall(tuple(bound), bag, check)

    def __repr__(self) -> str:
        parts = []
        for slot in self.slots:
            if isinstance(slot, Rest):
                parts.append(f"*{slot.name}: {slot.type}")
            elif isinstance(slot, KwargsSlot):
                parts.append(f"**{slot.name}")
            else:
                suffix = "" if slot.required else f" = {slot.default!r}"
                parts.append(f"{slot.name}: {slot.type}{suffix}")
        return f"Signature({', '.join(parts)})"


def signature(*slots: Slot, pass_state: bool = False) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator attaching a ``Signature`` to a Python callable.

    Example:
        >>> @signature(Param("value", "str"), Param("n", "int"))
        ... def repeat(value, n):
        ...     return value * n
        >>> env.add_filter("repeat", repeat)
    """
    sig = Signature(*slots, pass_state=pass_state)

    def decorate(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, SIGNATURE_ATTR, sig)
        return func

    return decorate


def resolve_signature(func: Callable[..., Any], sig: Signature | None) -> Signature:
    """Return the explicit signature or the one attached by ``@signature``."""
    if sig is not None:
        return sig
    attached = getattr(func, SIGNATURE_ATTR, None)
    if isinstance(attached, Signature):
        return attached
    name = getattr(func, "__name__", repr(func))
    raise TypeError(
        f"{name} has no declared signature; pass signature=Signature(...) "
        "or decorate it with @signature(...)"
    )


@dataclass(frozen=True, slots=True)
class TemplateCallable:
    """A filter, function or test as stored in the Environment."""

    kind: str  # "filter", "function" or "test"
    name: str
    func: Callable[..., Any]
    signature: Signature

    def invoke(
        self,
        args: Sequence[Value],
        kwargs: Mapping[str, Value],
        *,
        state: State | None = None,
        strict_undefined: bool = False,
    ) -> Value:
        """Bind, call, enforce keyword consumption, convert the result."""
        bound = self.signature.bind(
            args, kwargs, callable_name=self.name, strict_undefined=strict_undefined
        )
        call_args = (state, *bound.args) if self.signature.pass_state else bound.args
        try:
            result = self.func(*call_args)
        except TemplateError:
            raise
        except Exception as e:
            raise TemplateRuntimeError(
                f"{self.kind} '{self.name}' raised {type(e).__name__}: {e}",
                suggestion=f"Check the arguments passed to '{self.name}'",
            ) from e
        if bound.check_kwargs and bound.kwargs is not None:
            bound.kwargs.assert_all_used(self.name)
        return Value.from_python(result)
