"""Vela template tree.

Template source → Lexer → Parser → node tree → Evaluator / analyzers

The tree is made of frozen dataclasses, so a compiled template can be
shared by any number of concurrent renders.
"""

from vela.nodes.base import Node
from vela.nodes.expressions import (
    AnyExpr,
    BinOp,
    BoolOp,
    Compare,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Test,
    UnaryOp,
)
from vela.nodes.output import Data, Output
from vela.nodes.structure import Template
from vela.nodes.variables import Set

__all__ = [
    "AnyExpr",
    "BinOp",
    "BoolOp",
    "Compare",
    "CondExpr",
    "Const",
    "Data",
    "Dict",
    "Expr",
    "Filter",
    "FuncCall",
    "Getattr",
    "Getitem",
    "List",
    "Name",
    "Node",
    "Output",
    "Set",
    "Template",
    "Test",
    "UnaryOp",
]
