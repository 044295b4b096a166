"""Tests for the name-keyed dispatch tables in the parser and evaluator.

Every block keyword must map to a parser method, and every node class
the parser can produce must have an evaluator handler.
"""

import pytest

from vela import nodes
from vela.analysis.visitor import CONTAINER_ATTRS, EXPR_ATTRS, SEQUENCE_ATTRS
from vela.parser import Parser
from vela.parser.statements import _BLOCK_PARSERS, _VALID_KEYWORDS
from vela.runtime.evaluator import Evaluator

EXPRESSION_NODES = [
    nodes.BinOp,
    nodes.BoolOp,
    nodes.Compare,
    nodes.CondExpr,
    nodes.Const,
    nodes.Dict,
    nodes.Filter,
    nodes.FuncCall,
    nodes.Getattr,
    nodes.Getitem,
    nodes.List,
    nodes.Name,
    nodes.Test,
    nodes.UnaryOp,
]

STATEMENT_NODES = [nodes.Data, nodes.Output, nodes.Set]


class TestBlockParsers:
    def test_values_are_parse_methods(self):
        for keyword, method_name in _BLOCK_PARSERS.items():
            assert method_name.startswith("_parse_"), keyword
            assert callable(getattr(Parser, method_name, None)), method_name

    def test_valid_keywords_match_block_parsers(self):
        assert frozenset(_BLOCK_PARSERS) == _VALID_KEYWORDS


class TestEvaluatorTables:
    @pytest.mark.parametrize("node_type", EXPRESSION_NODES, ids=lambda t: t.__name__)
    def test_every_expression_has_handler(self, node_type):
        assert node_type.__name__.lower() in Evaluator._eval_table

    @pytest.mark.parametrize("node_type", STATEMENT_NODES, ids=lambda t: t.__name__)
    def test_every_statement_has_handler(self, node_type):
        assert node_type.__name__.lower() in Evaluator._exec_table

    def test_no_stray_handlers(self):
        expression_names = {t.__name__.lower() for t in EXPRESSION_NODES}
        statement_names = {t.__name__.lower() for t in STATEMENT_NODES}
        assert set(Evaluator._eval_table) == expression_names
        assert set(Evaluator._exec_table) == statement_names

    def test_expression_list_is_complete(self):
        exported = {
            getattr(nodes, name)
            for name in nodes.__all__
            if isinstance(getattr(nodes, name), type)
            and issubclass(getattr(nodes, name), nodes.Expr)
            and getattr(nodes, name) is not nodes.Expr
        }
        assert exported == set(EXPRESSION_NODES)


class TestVisitorAttributes:
    @pytest.mark.parametrize(
        "node_type", EXPRESSION_NODES + STATEMENT_NODES, ids=lambda t: t.__name__
    )
    def test_child_fields_are_known(self, node_type):
        """Every node field holding children is covered by the generic visitor."""
        known = set(CONTAINER_ATTRS) | set(EXPR_ATTRS) | set(SEQUENCE_ATTRS) | {"kwargs"}
        scalar = {"lineno", "col_offset", "name", "ctx", "op", "ops", "attr", "negated"}
        for field_name in node_type.__dataclass_fields__:
            assert field_name in known | scalar, f"{node_type.__name__}.{field_name}"
