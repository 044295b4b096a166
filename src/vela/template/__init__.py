"""Vela Template package: compiled templates and expressions."""

from vela.template.core import Sink, Template
from vela.template.expression import Expression

__all__ = ["Expression", "Sink", "Template"]
