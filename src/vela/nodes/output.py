"""Output nodes for the Vela template tree."""

from __future__ import annotations

from dataclasses import dataclass

from vela.nodes.base import Node
from vela.nodes.expressions import Expr


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Output expression: {{ expr }}"""

    expr: Expr


@dataclass(frozen=True, slots=True)
class Data(Node):
    """Literal text between template constructs."""

    value: str
