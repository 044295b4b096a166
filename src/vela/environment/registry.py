"""Filter, function and test registries for the Vela environment.

Provides a dict-like view over one of the Environment's callable tables.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from vela.functions import TemplateCallable

if TYPE_CHECKING:
    from vela.environment.core import Environment


class CallableRegistry:
    """Dict-like interface over the filters, functions or tests table.

    Supports:
        - env.filters['name'] = func        (same as env.add_filter)
        - env.filters.update({'name': func})
        - entry = env.filters['name']       (a TemplateCallable)
        - 'name' in env.filters

    Writes go through the Environment so signatures are resolved and the
    frozen check applies. The table itself is replaced copy-on-write, so a
    render in progress keeps the table it started with.
    """

    __slots__ = ("_env", "_kind")

    def __init__(self, env: Environment, kind: str):
        self._env = env
        self._kind = kind

    def _get_dict(self) -> dict[str, TemplateCallable]:
        return self._env._tables_for(self._kind)

    def __getitem__(self, name: str) -> TemplateCallable:
        return self._get_dict()[name]

    def __setitem__(self, name: str, func: Callable[..., Any]) -> None:
        self._env._register(self._kind, name, func)

    def __contains__(self, name: object) -> bool:
        return name in self._get_dict()

    def __iter__(self) -> Iterator[str]:
        return iter(self._get_dict())

    def __len__(self) -> int:
        return len(self._get_dict())

    def get(self, name: str, default: TemplateCallable | None = None) -> TemplateCallable | None:
        return self._get_dict().get(name, default)

    def update(self, mapping: dict[str, Callable[..., Any]]) -> None:
        """Batch registration."""
        for name, func in mapping.items():
            self._env._register(self._kind, name, func)

    def copy(self) -> dict[str, TemplateCallable]:
        """Return a copy of the underlying dict."""
        return self._get_dict().copy()

    def keys(self):
        return self._get_dict().keys()

    def values(self):
        return self._get_dict().values()

    def items(self):
        return self._get_dict().items()

    def __repr__(self) -> str:
        return f"<{self._kind} registry: {sorted(self._get_dict())}>"
