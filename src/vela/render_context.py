"""Vela RenderContext: per-render bookkeeping kept out of the user context.

The evaluator records the current source line and counts node visits
here, so errors can point at the failing line and ``max_steps`` can be
enforced without threading extra arguments through every call.

Thread-Safety:
    The current RenderContext lives in a ContextVar, so concurrent renders
    in different threads or asyncio tasks never see each other's state.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field

from vela.environment.exceptions import ResourceLimitExceededError


@dataclass
class RenderContext:
    """Per-render state isolated from user context.

    Attributes:
        template_name: Current template name for error messages
        source: Template source for runtime error snippets
        line: Line of the node being evaluated
        steps: Nodes visited so far
        max_steps: Visit budget for this render, None for unlimited
    """

    template_name: str | None = None
    source: str | None = None
    line: int = 0
    steps: int = 0
    max_steps: int | None = None

    _meta: dict[str, object] = field(default_factory=dict)

    def tick(self) -> None:
        """Count one node visit.

        Raises:
            ResourceLimitExceededError: once ``steps`` passes ``max_steps``
        """
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            raise ResourceLimitExceededError(
                self.max_steps, template_name=self.template_name, lineno=self.line or None
            )

    def get_meta(self, key: str, default: object = None) -> object:
        """Get host metadata attached to this render."""
        return self._meta.get(key, default)

    def set_meta(self, key: str, value: object) -> None:
        """Attach host metadata, readable by ``pass_state`` callables."""
        self._meta[key] = value


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "vela_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


@contextmanager
def render_context(
    template_name: str | None = None,
    source: str | None = None,
    max_steps: int | None = None,
) -> Iterator[RenderContext]:
    """Context manager for render-scoped state.

    Metadata set on an enclosing render context is inherited, so a host
    can wrap several renders:

        with render_context() as ctx:
            ctx.set_meta("request_id", "abc")
            html = template.render(user=user)
    """
    parent = _render_context.get()
    ctx = RenderContext(
        template_name=template_name,
        source=source,
        max_steps=max_steps,
        _meta=dict(parent._meta) if parent is not None else {},
    )
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)
