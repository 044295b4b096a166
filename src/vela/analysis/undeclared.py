"""Undeclared variable analysis.

Finds the names a template reads from its context: every variable
reference not bound by an earlier ``{% set %}``. The walk is a single
pass in source order, so a name read before the ``set`` that binds it
still counts.
"""

from __future__ import annotations

from collections.abc import Callable

from vela.analysis.visitor import visit_children
from vela.nodes import Const, Getattr, Getitem, Name, Node, Set


class UndeclaredWalker:
    """Collect the context variables a template or expression depends on.

    With ``track_paths`` a static access chain such as ``user.profile.name``
    (or ``user["profile"]``) is recorded as a dotted path instead of its
    root name. A chain with any computed segment falls back to the root.

    Thread-safe: Creates new state for each analyze() call.

    Example:
        >>> walker = UndeclaredWalker()
        >>> walker.analyze(tree, track_paths=True)
        frozenset({'bar.baz', 'foo'})
    """

    def __init__(self) -> None:
        self._bound: set[str] = set()
        self._found: set[str] = set()
        self._track_paths = False

        self._dispatch: dict[str, Callable[..., None]] = {}
        for name in dir(self):
            if name.startswith("_visit_"):
                method = getattr(self, name)
                if callable(method):
                    self._dispatch[name[7:]] = method

    def analyze(self, node: Node, track_paths: bool = False) -> frozenset[str]:
        """Analyze a node and return the undeclared names (or paths)."""
        self._bound = set()
        self._found = set()
        self._track_paths = track_paths
        self._visit(node)
        return frozenset(self._found)

    def _visit(self, node: Node | None) -> None:
        if node is None:
            return
        handler = self._dispatch.get(type(node).__name__.lower())
        if handler:
            handler(node)
        else:
            visit_children(node, self._visit)

    def _visit_name(self, node: Name) -> None:
        if node.name not in self._bound:
            self._found.add(node.name)

    def _visit_set(self, node: Set) -> None:
        # The value is read before the target exists
        self._visit(node.value)
        self._bound.add(node.target.name)

    def _visit_getattr(self, node: Getattr) -> None:
        self._record_access(node)

    def _visit_getitem(self, node: Getitem) -> None:
        self._record_access(node)

    def _record_access(self, node: Getattr | Getitem) -> None:
        if not self._track_paths:
            visit_children(node, self._visit)
            return
        root, parts = _split_path(node)
        if root is None:
            visit_children(node, self._visit)
            return
        if root.name not in self._bound:
            # A computed segment anywhere in the chain falls back to the root
            self._found.add(root.name if parts is None else ".".join((root.name, *parts)))
        self._walk_keys(node)

    def _walk_keys(self, node: Node) -> None:
        """Visit the subscript expressions of an access chain."""
        current = node
        while isinstance(current, (Getattr, Getitem)):
            if isinstance(current, Getitem):
                self._visit(current.key)
            current = current.obj


def _split_path(node: Node) -> tuple[Name | None, list[str] | None]:
    """Split an access chain into its root Name and static segments.

    Returns ``(None, None)`` when the chain does not start at a Name, and
    ``(root, None)`` when a segment is computed.
    """
    parts: list[str] = []
    static = True
    current = node
    while True:
        if isinstance(current, Getattr):
            parts.append(current.attr)
            current = current.obj
        elif isinstance(current, Getitem):
            if isinstance(current.key, Const) and isinstance(current.key.value, str):
                parts.append(current.key.value)
            else:
                static = False
            current = current.obj
        elif isinstance(current, Name):
            parts.reverse()
            return current, parts if static else None
        else:
            return None, None
