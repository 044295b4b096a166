"""Vela Environment: template registry and callable tables.

The Environment owns everything templates share: named templates, the
filter, function and test tables, and global variables. Templates hold
only a weak reference back to it.

Thread-Safety:
    Registration replaces tables copy-on-write under a lock, so a render
    that already started keeps the tables it began with. The intended
    discipline is to build the Environment fully, call ``freeze()``, then
    share it read-only across threads.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Literal

from vela.environment.exceptions import EnvironmentFrozenError, TemplateNotFoundError
from vela.environment.filters import DEFAULT_FILTERS
from vela.environment.globals import DEFAULT_FUNCTIONS
from vela.environment.registry import CallableRegistry
from vela.environment.tests import DEFAULT_TESTS
from vela.functions import Signature, TemplateCallable, resolve_signature
from vela.lexer import Lexer, LexerConfig
from vela.parser import Parser
from vela.runtime import CallTables
from vela.template import Expression, Template
from vela.values import Value

if TYPE_CHECKING:
    from collections.abc import Mapping

    from vela import nodes
    from vela.runtime import State
    from vela.template import Sink

logger = logging.getLogger(__name__)

STRING_TEMPLATE_NAME = "<string>"

_KINDS = ("filter", "function", "test")


class Environment:
    """Central configuration and template registry.

    Args:
        undefined: ``"lenient"`` (default) prints undefined values as the
            empty string; ``"strict"`` raises UndefinedError when an
            undefined value is printed, concatenated or passed to a typed
            parameter.
        max_steps: Maximum node visits per render, None for unlimited.
            Exceeding it raises ResourceLimitExceededError.
        trim_blocks: Remove the first newline after a block tag.
        lstrip_blocks: Strip whitespace before a block tag at line start.
        keep_trailing_newline: Keep the final newline of the source.

    Example:
        >>> env = Environment()
        >>> env.add_template("hello.txt", "Hello {{ what }}!")
        >>> env.get_template("hello.txt").render(what="World")
        'Hello World!'

    Custom callables declare their parameters with ``@signature``:

        >>> @signature(Param("value", "str"), Param("n", "int"))
        ... def repeat(value, n):
        ...     return value * n
        >>> env.add_filter("repeat", repeat)
        >>> env.render_str('{{ "Na " | repeat(3) }}')
        'Na Na Na '
    """

    def __init__(
        self,
        *,
        undefined: Literal["lenient", "strict"] = "lenient",
        max_steps: int | None = None,
        trim_blocks: bool = False,
        lstrip_blocks: bool = False,
        keep_trailing_newline: bool = False,
    ):
        if undefined not in ("lenient", "strict"):
            raise ValueError(f"undefined must be 'lenient' or 'strict', not {undefined!r}")
        if max_steps is not None and max_steps <= 0:
            raise ValueError(f"max_steps must be a positive integer, not {max_steps!r}")

        self._undefined = undefined
        self._max_steps = max_steps
        self._lexer_config = LexerConfig(
            trim_blocks=trim_blocks,
            lstrip_blocks=lstrip_blocks,
            keep_trailing_newline=keep_trailing_newline,
        )
        self._lock = threading.Lock()
        self._frozen = False

        self._templates: dict[str, Template] = {}
        self._globals: dict[str, Value] = {}
        self._tables: dict[str, dict[str, TemplateCallable]] = {kind: {} for kind in _KINDS}

        for kind, defaults in (
            ("filter", DEFAULT_FILTERS),
            ("function", DEFAULT_FUNCTIONS),
            ("test", DEFAULT_TESTS),
        ):
            for name, func in defaults.items():
                self._register(kind, name, func)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def undefined(self) -> str:
        return self._undefined

    @property
    def strict_undefined(self) -> bool:
        return self._undefined == "strict"

    @property
    def max_steps(self) -> int | None:
        return self._max_steps

    @property
    def lexer_config(self) -> LexerConfig:
        return self._lexer_config

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> Environment:
        """Reject any further registration. Returns self for chaining."""
        with self._lock:
            self._frozen = True
        logger.debug(
            "Environment frozen with %d templates, %d filters, %d functions, %d tests",
            len(self._templates),
            len(self._tables["filter"]),
            len(self._tables["function"]),
            len(self._tables["test"]),
        )
        return self

    def _check_mutable(self, action: str) -> None:
        # Writers call this again under self._lock before swapping a table
        if self._frozen:
            raise EnvironmentFrozenError(f"Cannot {action}: environment is frozen")

    # ------------------------------------------------------------------
    # Callables and globals
    # ------------------------------------------------------------------

    @property
    def filters(self) -> CallableRegistry:
        """Dict-like view of the filter table."""
        return CallableRegistry(self, "filter")

    @property
    def functions(self) -> CallableRegistry:
        return CallableRegistry(self, "function")

    @property
    def tests(self) -> CallableRegistry:
        return CallableRegistry(self, "test")

    @property
    def globals(self) -> Mapping[str, Value]:
        """Read-only view of the global variables."""
        return MappingProxyType(self._globals)

    def _tables_for(self, kind: str) -> dict[str, TemplateCallable]:
        return self._tables[kind]

    def _register(
        self,
        kind: str,
        name: str,
        func: Callable[..., Any],
        signature: Signature | None = None,
    ) -> None:
        self._check_mutable(f"register {kind} '{name}'")
        entry = TemplateCallable(kind, name, func, resolve_signature(func, signature))
        with self._lock:
            self._check_mutable(f"register {kind} '{name}'")
            table = self._tables[kind].copy()
            if name in table:
                logger.debug("Overwriting %s '%s'", kind, name)
            table[name] = entry
            self._tables[kind] = table

    def add_filter(
        self, name: str, func: Callable[..., Any], *, signature: Signature | None = None
    ) -> None:
        """Register a filter. Re-registering a name overwrites it.

        Raises:
            TypeError: ``func`` has no signature (pass one or use ``@signature``)
            EnvironmentFrozenError: the environment is frozen
        """
        self._register("filter", name, func, signature)

    def filter(
        self, name: str | None = None, *, signature: Signature | None = None
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of ``add_filter``; the name defaults to the function's.

        Example:
            >>> @env.filter("shout")
            ... @signature(Param("value", "str"))
            ... def shout(value):
            ...     return value.upper() + "!"
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.add_filter(name or func.__name__, func, signature=signature)
            return func

        return decorator

    def add_function(
        self, name: str, func: Callable[..., Any], *, signature: Signature | None = None
    ) -> None:
        """Register a global function callable as ``name(...)``."""
        self._register("function", name, func, signature)

    def add_test(
        self, name: str, func: Callable[..., Any], *, signature: Signature | None = None
    ) -> None:
        """Register a test usable as ``value is name``."""
        self._register("test", name, func, signature)

    def add_global(self, name: str, value: Any) -> None:
        """Register a variable visible to every template."""
        self._check_mutable(f"add global '{name}'")
        converted = Value.from_python(value)
        with self._lock:
            self._check_mutable(f"add global '{name}'")
            new = self._globals.copy()
            new[name] = converted
            self._globals = new

    def _call_tables(self) -> CallTables:
        return CallTables(
            filters=self._tables["filter"],
            functions=self._tables["function"],
            tests=self._tables["test"],
            globals=self._globals,
        )

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def _compile(self, source: str, name: str) -> nodes.Template:
        tokens = Lexer(source, name, self._lexer_config).tokenize()
        return Parser(tokens, name, source).parse()

    def add_template(self, name: str, source: str) -> None:
        """Compile and register a template. Re-registering a name overwrites it.

        Raises:
            TemplateSyntaxError: the source does not parse
            EnvironmentFrozenError: the environment is frozen
        """
        self._check_mutable(f"add template '{name}'")
        template = Template(self, self._compile(source, name), name, source)
        with self._lock:
            self._check_mutable(f"add template '{name}'")
            new = self._templates.copy()
            new[name] = template
            self._templates = new
        logger.debug("Registered template %s", name)

    def remove_template(self, name: str) -> None:
        with self._lock:
            self._check_mutable(f"remove template '{name}'")
            if name not in self._templates:
                raise TemplateNotFoundError(name, list(self._templates))
            new = self._templates.copy()
            del new[name]
            self._templates = new

    def get_template(self, name: str) -> Template:
        """Look up a registered template.

        Raises:
            TemplateNotFoundError: no template has that name
        """
        template = self._templates.get(name)
        if template is None:
            raise TemplateNotFoundError(name, list(self._templates))
        return template

    def templates(self) -> Iterator[tuple[str, Template]]:
        """Iterate ``(name, template)`` pairs in registration order."""
        return iter(list(self._templates.items()))

    def template_from_str(self, source: str) -> Template:
        """Compile a template without registering it.

        The template only weakly references this Environment; rendering it
        after the Environment is collected raises ``TemplateRuntimeError``.
        """
        return self.template_from_named_str(STRING_TEMPLATE_NAME, source)

    def template_from_named_str(self, name: str, source: str) -> Template:
        """Compile a named template without registering it.

        The name shows up in error messages and in ``State.name``.
        """
        return Template(self, self._compile(source, name), name, source)

    def render_str(self, source: str, context: Any = None, /, **kwargs: Any) -> str:
        """Compile and render in one step without registering."""
        return self.template_from_str(source).render(context, **kwargs)

    def render_named_str(
        self, name: str, source: str, context: Any = None, /, **kwargs: Any
    ) -> str:
        """Like ``render_str`` with a template name for errors and ``State.name``."""
        return self.template_from_named_str(name, source).render(context, **kwargs)

    def render_to_sink(self, name: str, context: Any, sink: Sink) -> State:
        """Render a registered template into ``sink``."""
        return self.get_template(name).render_to_sink(context, sink)

    def compile_expression(self, source: str) -> Expression:
        """Compile a standalone expression such as ``number < 42``.

        Raises:
            TemplateSyntaxError: the source is not a single expression
        """
        tokens = Lexer(source, "<expression>", self._lexer_config).tokenize_expression()
        tree = Parser(tokens, "<expression>", source).parse_expression()
        return Expression(self, tree, source)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"<Environment {state} templates={list(self._templates)}>"
