"""Vela runtime: evaluator, operator semantics and render state."""

from vela.runtime.evaluator import CallTables, Evaluator, coerce_context
from vela.runtime.state import State

__all__ = ["CallTables", "Evaluator", "State", "coerce_context"]
