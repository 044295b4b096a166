"""Shared visitor patterns for Vela tree analysis.

Provides the child attribute lists and ``visit_children`` for generic
traversal, used by analyzers that only special-case a few node types.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vela.nodes import Node

# Shared attr lists for generic child traversal, in evaluation order
CONTAINER_ATTRS = ("body",)
EXPR_ATTRS = (
    "value",
    "expr",
    "test",
    "left",
    "right",
    "operand",
    "obj",
    "key",
    "if_true",
    "if_false",
)
SEQUENCE_ATTRS = ("args", "items", "keys", "values", "comparators")


def visit_children(node: Node, visit: Callable[[Node | None], None]) -> None:
    """Visit all child nodes of a tree node (generic handler).

    Handles the body container, single-expression attributes, sequence
    attributes and the ``kwargs`` mapping of call-like nodes.
    """
    for attr in CONTAINER_ATTRS:
        children = getattr(node, attr, None)
        if children and isinstance(children, (list, tuple)):
            for child in children:
                visit(child)

    for attr in EXPR_ATTRS:
        child = getattr(node, attr, None)
        if child is not None and hasattr(child, "lineno"):
            visit(child)

    for attr in SEQUENCE_ATTRS:
        children = getattr(node, attr, None)
        if children and isinstance(children, (list, tuple)):
            for child in children:
                if hasattr(child, "lineno"):
                    visit(child)

    mapping = getattr(node, "kwargs", None)
    if mapping:
        for child in mapping.values():
            if hasattr(child, "lineno"):
                visit(child)
