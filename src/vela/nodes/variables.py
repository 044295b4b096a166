"""Variable binding nodes for the Vela template tree."""

from __future__ import annotations

from dataclasses import dataclass

from vela.nodes.base import Node
from vela.nodes.expressions import Expr, Name


@dataclass(frozen=True, slots=True)
class Set(Node):
    """Local binding: {% set x = expr %}

    The binding is visible to every later node and is exported in the
    final render state.
    """

    target: Name
    value: Expr
