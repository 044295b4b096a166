"""Render state: the variables a template sees and the ones it defines."""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from vela.values import Value

if TYPE_CHECKING:
    from vela.environment import Environment


class State:
    """Variable scope of one render.

    Lookup order is template locals, then the render context, then the
    environment globals. ``{% set %}`` writes locals only, which are also
    the template's exports.

    A ``State`` is live while the template is evaluating (callables
    declared with ``pass_state=True`` receive it) and frozen once the
    render finishes; ``render_and_return_state`` hands out the frozen one.

    Example:
        >>> rv, state = env.template_from_str("{% set x = 42 %}").render_and_return_state()
        >>> state.lookup("x")
        <Value int: 42>
    """

    __slots__ = ("_env", "_name", "_locals", "_scope", "_frozen")

    def __init__(
        self,
        env: Environment | None,
        name: str | None,
        context: Mapping[str, Value],
        globals: Mapping[str, Value],
    ):
        self._env = env
        self._name = name
        self._locals: dict[str, Value] = {}
        self._scope: ChainMap[str, Value] = ChainMap(self._locals, context, globals)
        self._frozen = False

    @property
    def env(self) -> Environment | None:
        """The Environment the template was loaded from."""
        return self._env

    @property
    def name(self) -> str:
        """Name of the template being rendered (``<string>`` if unnamed)."""
        return self._name or "<string>"

    def lookup(self, name: str) -> Value | None:
        """Resolve a variable the way the template does. None if absent."""
        return self._scope.get(name)

    def resolve(self, name: str) -> Value:
        """Like ``lookup`` but returns the undefined marker on a miss."""
        found = self._scope.get(name)
        return Value.undefined(name) if found is None else found

    def set(self, name: str, value: Value) -> None:
        if self._frozen:
            raise RuntimeError("State is frozen after rendering")
        self._locals[name] = value

    def exports(self) -> Mapping[str, Value]:
        """Variables the template defined with ``{% set %}``, in order."""
        return MappingProxyType(self._locals)

    def known_names(self) -> frozenset[str]:
        return frozenset(self._scope)

    def freeze(self) -> State:
        self._frozen = True
        return self

    def __contains__(self, name: Any) -> bool:
        return name in self._scope

    def __repr__(self) -> str:
        return f"<State {self.name!r} exports={list(self._locals)}>"
