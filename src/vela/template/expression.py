"""Standalone compiled expressions (``Environment.compile_expression``)."""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any

from vela.environment.exceptions import TemplateRuntimeError, UndefinedError
from vela.render_context import render_context
from vela.runtime import Evaluator, State, coerce_context
from vela.template.introspection import TemplateIntrospectionMixin
from vela.values import Value

if TYPE_CHECKING:
    from vela import nodes
    from vela.environment import Environment


class Expression(TemplateIntrospectionMixin):
    """A compiled expression evaluated to a ``Value``.

    Example:
        >>> expr = env.compile_expression("number < 42")
        >>> expr.eval(number=23).is_true()
        True

    An undefined result is returned as the undefined Value, not raised;
    only operations that need a concrete value fail.
    """

    __slots__ = ("_env_ref", "_tree", "_source")

    def __init__(self, env: Environment, tree: nodes.Expr, source: str):
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._tree = tree
        self._source = source

    @property
    def source(self) -> str:
        return self._source

    def eval(self, context: Any = None, /, **kwargs: Any) -> Value:
        """Evaluate against a context mapping and/or keyword variables."""
        env = self._env_ref()
        if env is None:
            raise TemplateRuntimeError(
                "Environment has been garbage collected",
                template_name="<expression>",
                suggestion="Keep the Environment alive while its expressions are in use",
            )
        state = State(env, "<expression>", coerce_context(context, kwargs), env.globals)
        with render_context("<expression>", self._source, env.max_steps) as ctx:
            evaluator = Evaluator(
                env._call_tables(), state, ctx, strict=env.strict_undefined
            )
            try:
                return evaluator.evaluate(self._tree)
            except UndefinedError as e:
                e.with_location("<expression>", None, available_names=state.known_names())
                raise
            except TemplateRuntimeError as e:
                e.with_location("<expression>", None)
                raise

    def __repr__(self) -> str:
        return f"<Expression {self._source!r}>"
