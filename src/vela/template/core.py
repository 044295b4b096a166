"""Vela Template: a compiled template ready for rendering.

Architecture:
    ```
    Template
    ├── _env_ref: WeakRef[Environment]  # Prevents circular refs
    ├── _tree: nodes.Template           # Immutable node tree
    └── _name, _source                  # For error messages
    ```

Memory Safety:
Uses ``weakref.ref(env)`` to break potential cycles:
``Template → (weak) → Environment → templates → Template``

Thread-Safety:
- Templates are immutable after construction
- Each render builds its own State and Evaluator
- Multiple threads can render the same Template concurrently

Rendering borrows the Environment's filter, function and test tables as
they are at the start of the render.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Protocol

from vela.environment.exceptions import (
    TemplateError,
    TemplateRuntimeError,
    UndefinedError,
    build_source_snippet,
)
from vela.render_context import RenderContext, render_context
from vela.runtime import Evaluator, State, coerce_context
from vela.template.introspection import TemplateIntrospectionMixin

if TYPE_CHECKING:
    from vela import nodes
    from vela.environment import Environment

logger = logging.getLogger(__name__)


class Sink(Protocol):
    """Anything with a ``write(str)`` method: files, ``io.StringIO``, socket wrappers."""

    def write(self, s: str, /) -> Any: ...


class Template(TemplateIntrospectionMixin):
    """Compiled template with render() interface.

    Templates are created by the Environment (``add_template``,
    ``template_from_str``, ...), never directly.

    Example:
        >>> t = env.template_from_str("Hello {{ what }}!")
        >>> t.render(what="World")
        'Hello World!'
        >>> rv, state = env.template_from_str("{% set x = 42 %}").render_and_return_state()
        >>> state.lookup("x")
        <Value int: 42>

    Errors raised while rendering carry the template name, the line of
    the failing node and a source snippet.
    """

    __slots__ = ("_env_ref", "_tree", "_name", "_source")

    def __init__(self, env: Environment, tree: nodes.Template, name: str, source: str):
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._tree = tree
        self._name = name
        self._source = source

    @property
    def _env(self) -> Environment:
        """Get the Environment (dereferences weak reference)."""
        env = self._env_ref()
        if env is None:
            raise TemplateRuntimeError(
                "Environment has been garbage collected",
                template_name=self._name,
                suggestion="Keep the Environment alive while its templates are in use",
            )
        return env

    @property
    def name(self) -> str:
        """Template name (``<string>`` for templates built from a bare string)."""
        return self._name

    @property
    def source(self) -> str:
        return self._source

    @property
    def tree(self) -> nodes.Template:
        """The compiled node tree."""
        return self._tree

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, context: Any = None, /, **kwargs: Any) -> str:
        """Render template with given context.

        Args:
            context: A mapping (or MAP Value) of variables
            **kwargs: Variables as keyword arguments, layered over ``context``

        Returns:
            Rendered template as string

        Raises:
            InvalidContextError: ``context`` is not map-shaped
            TemplateRuntimeError: evaluation failed (subclasses name the cause)
            UndefinedError: an undefined value was used where one is required
        """
        output, _state = self._render_buffered(context, kwargs)
        return output

    def render_and_return_state(self, context: Any = None, /, **kwargs: Any) -> tuple[str, State]:
        """Render and also return the final State (for ``lookup``/``exports``)."""
        return self._render_buffered(context, kwargs)

    def eval_to_state(self, context: Any = None, /, **kwargs: Any) -> State:
        """Evaluate the template for its side effects, discarding output."""
        state = self._new_state(context, kwargs)
        with render_context(self._name, self._source, self._env.max_steps) as ctx:
            for _chunk in self._chunks(state, ctx):
                pass
        return state.freeze()

    def render_to_sink(self, context: Any, sink: Sink) -> State:
        """Render into ``sink`` chunk by chunk instead of buffering.

        Output already written when an error occurs stays written; a sink
        that must not see partial output should buffer and discard it.
        """
        state = self._new_state(context, {})
        with render_context(self._name, self._source, self._env.max_steps) as ctx:
            for chunk in self._chunks(state, ctx):
                sink.write(chunk)
        return state.freeze()

    def render_stream(self, context: Any = None, /, **kwargs: Any) -> Iterator[str]:
        """Yield output chunks as they are produced.

        The context is validated before the first chunk. The render state
        is not published to ``get_render_context()`` while streaming, since
        the consumer controls when each chunk is evaluated.
        """
        state = self._new_state(context, kwargs)
        ctx = RenderContext(
            template_name=self._name, source=self._source, max_steps=self._env.max_steps
        )
        return self._chunks(state, ctx)

    def _render_buffered(self, context: Any, kwargs: dict[str, Any]) -> tuple[str, State]:
        state = self._new_state(context, kwargs)
        with render_context(self._name, self._source, self._env.max_steps) as ctx:
            output = "".join(self._chunks(state, ctx))
        return output, state.freeze()

    def _new_state(self, context: Any, kwargs: dict[str, Any]) -> State:
        env = self._env
        return State(env, self._name, coerce_context(context, kwargs), env.globals)

    def _chunks(self, state: State, render_ctx: RenderContext) -> Iterator[str]:
        env = self._env
        evaluator = Evaluator(env._call_tables(), state, render_ctx, strict=env.strict_undefined)
        try:
            yield from evaluator.run(self._tree)
        except UndefinedError as e:
            e.with_location(
                self._name, render_ctx.line or None, self._source, state.known_names()
            )
            logger.debug("Render of %s failed: undefined %r", self._name, e.name)
            raise
        except TemplateRuntimeError as e:
            e.with_location(self._name, render_ctx.line or None, self._source)
            logger.debug("Render of %s failed at line %s: %s", self._name, e.lineno, e.message)
            raise
        except TemplateError:
            raise
        except Exception as e:
            raise self._enhance_error(e, render_ctx) from e

    def _enhance_error(self, error: Exception, render_ctx: RenderContext) -> TemplateRuntimeError:
        """Convert an unexpected Python exception into a TemplateRuntimeError.

        Adds template name, line number and source snippet context.
        """
        lineno = render_ctx.line or None
        error_str = str(error).strip() or f"{type(error).__name__} (no details available)"
        snippet = build_source_snippet(self._source, lineno) if lineno else None
        logger.debug("Render of %s raised %s", self._name, type(error).__name__)
        return TemplateRuntimeError(
            f"{type(error).__name__}: {error_str}",
            template_name=self._name,
            lineno=lineno,
            source_snippet=snippet,
        )

    def __repr__(self) -> str:
        return f"<Template {self._name!r}>"
