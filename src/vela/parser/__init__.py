"""Vela parser package."""

from vela.parser.core import Parser
from vela.parser.errors import ParseError

__all__ = ["ParseError", "Parser"]
