"""Base node class for the Vela template tree."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all tree nodes.

    Nodes carry their source position for error reporting and are
    immutable, so one compiled tree can be evaluated by many threads.
    """

    lineno: int
    col_offset: int
