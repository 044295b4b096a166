"""Template introspection mixin.

Adds static analysis methods to ``Template`` and ``Expression`` via mixin
inheritance.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING

from vela.analysis import UndeclaredWalker

if TYPE_CHECKING:
    from vela.environment import Environment
    from vela.nodes import Node


class TemplateIntrospectionMixin:
    """Mixin adding static analysis to compiled templates and expressions.

    Requires the host class to define the following slots:
        _tree: Node
        _env_ref: weakref.ref[Environment]
    """

    __slots__ = ()

    if TYPE_CHECKING:
        _tree: Node
        _env_ref: weakref.ref[Environment]

    def undeclared_variables(self, track_paths: bool = False) -> frozenset[str]:
        """Variables the template reads from its render context.

        Names bound by an earlier ``{% set %}`` and Environment globals are
        not included; filter, function and test names are never variables.

        Args:
            track_paths: Report static attribute chains as dotted paths
                (``user.name``) instead of root names (``user``).

        Example:
            >>> t = env.template_from_str("{% set x = foo %}{{ x }}{{ bar.baz }}")
            >>> sorted(t.undeclared_variables())
            ['bar', 'foo']
            >>> sorted(t.undeclared_variables(track_paths=True))
            ['bar.baz', 'foo']
        """
        names = UndeclaredWalker().analyze(self._tree, track_paths)
        env = self._env_ref()
        if env is None or not env.globals:
            return names
        env_globals = env.globals
        return frozenset(name for name in names if name.split(".", 1)[0] not in env_globals)
