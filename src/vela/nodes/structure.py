"""Template structure nodes for the Vela template tree."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from vela.nodes.base import Node


@dataclass(frozen=True, slots=True)
class Template(Node):
    """Root node: the ordered body of a compiled template."""

    body: Sequence[Node]
    name: str | None = None
