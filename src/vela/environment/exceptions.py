"""Exceptions for the Vela template engine.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError          # Name not registered in the Environment
├── TemplateSyntaxError            # Lex/parse-time error with position
├── UndefinedError                 # Undefined value used where a concrete one is required
├── EnvironmentFrozenError         # Registration after Environment.freeze()
└── TemplateRuntimeError           # Render-time error with context
    ├── UnknownFilterError
    ├── UnknownFunctionError
    ├── UnknownTestError
    ├── TemplateTypeError          # Operation on incompatible Value kinds
    ├── TemplateArithmeticError    # 64-bit overflow, division by zero
    ├── InvalidContextError        # Render context is not map-shaped
    ├── ResourceLimitExceededError # max_steps exhausted
    └── ArgumentError              # Call-binding violations
        ├── ArgumentTypeError
        ├── MissingArgumentError
        ├── UnusedKeywordArgumentError
        ├── TooManyArgumentsError
        └── DuplicateArgumentError

Every error carries an ``ErrorCode`` and, once it has passed through
``Template``, the template name and line where it happened:

    ```
    V-RUN-001: Undefined variable 'titl' in article.txt:5
       |
    >  5 | Title: {{ titl }}
       |
      Hint: Use {{ titl | default('') }} for optional variables
    ```

"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from vela.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes.

    Format: V-{CATEGORY}-{NUMBER}
    Categories: LEX (lexer), PAR (parser), RUN (runtime), CALL (argument
    binding), TPL (template registry).
    """

    # Lexer errors (V-LEX-xxx)
    UNCLOSED_TAG = "V-LEX-001"
    UNCLOSED_COMMENT = "V-LEX-002"
    UNCLOSED_STRING = "V-LEX-003"
    UNEXPECTED_CHAR = "V-LEX-004"

    # Parser errors (V-PAR-xxx)
    UNEXPECTED_TOKEN = "V-PAR-001"
    UNKNOWN_TAG = "V-PAR-002"
    INVALID_EXPRESSION = "V-PAR-003"

    # Runtime errors (V-RUN-xxx)
    UNDEFINED_VARIABLE = "V-RUN-001"
    UNKNOWN_FILTER = "V-RUN-002"
    UNKNOWN_FUNCTION = "V-RUN-003"
    UNKNOWN_TEST = "V-RUN-004"
    TYPE_ERROR = "V-RUN-005"
    ARITHMETIC = "V-RUN-006"
    INVALID_CONTEXT = "V-RUN-007"
    RESOURCE_LIMIT = "V-RUN-008"
    RUNTIME_ERROR = "V-RUN-009"

    # Call binding errors (V-CALL-xxx)
    ARGUMENT_TYPE = "V-CALL-001"
    MISSING_ARGUMENT = "V-CALL-002"
    UNUSED_KEYWORD = "V-CALL-003"
    TOO_MANY_ARGUMENTS = "V-CALL-004"
    DUPLICATE_ARGUMENT = "V-CALL-005"

    # Registry errors (V-TPL-xxx)
    TEMPLATE_NOT_FOUND = "V-TPL-001"
    SYNTAX_ERROR = "V-TPL-002"
    FROZEN = "V-TPL-003"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'lexer', 'parser', 'call')."""
        prefix = self.value.split("-")[1]
        return {
            "LEX": "lexer",
            "PAR": "parser",
            "RUN": "runtime",
            "CALL": "call",
            "TPL": "template",
        }.get(prefix, "unknown")


# ---------------------------------------------------------------------------
# Source snippets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source lines around an error line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
        column: Optional 0-based column for a caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(
                terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            )
            if lineno == self.error_line and self.column is not None:
                caret = " " * self.column + "^"
                parts.append(f"{terminal.dim_text('     |')} {terminal.error_line(caret)}")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 1,
    column: int | None = None,
) -> SourceSnippet | None:
    """Build a SourceSnippet from template source.

    Returns None when ``error_line`` is outside the source.
    """
    all_lines = source.splitlines()
    if not 0 < error_line <= len(all_lines):
        return None
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


def _location(name: str | None, lineno: int | None, col: int | None = None) -> str:
    loc = name or "<template>"
    if lineno:
        loc += f":{lineno}"
        if col is not None:
            loc += f":{col}"
    return loc


class TemplateError(Exception):
    """Base exception for all Vela template errors.

    All engine failures inherit from this class, so a host can catch them
    in one place:

        >>> try:
        ...     template.render(ctx)
        ... except TemplateError as e:
        ...     log.error(e.format_compact())

    Attributes:
        code: ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format the error as a short terminal diagnostic."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = terminal.format_error_header(self.code.value, header)
        return header


class TemplateNotFoundError(TemplateError):
    """No template is registered under the requested name."""

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND

    def __init__(self, name: str, available: Sequence[str] = ()):
        self.name = name
        self.available = tuple(available)
        msg = f"Template '{name}' not found"
        if self.available:
            msg += f" (registered: {', '.join(self.available)})"
        super().__init__(msg)


class EnvironmentFrozenError(TemplateError):
    """Registration was attempted on a frozen Environment."""

    code: ErrorCode | None = ErrorCode.FROZEN


class TemplateSyntaxError(TemplateError):
    """Parse-time syntax error in template source.

    Raised by the lexer and parser. When ``source`` and ``lineno`` are
    provided, the message includes the offending line and a caret at
    ``col_offset``.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        source: str | None = None,
        col_offset: int | None = None,
        *,
        code: ErrorCode | None = None,
        suggestion: str | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.source = source
        self.col_offset = col_offset
        self.suggestion = suggestion
        if code is not None:
            self.code = code
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        header = (
            f"Syntax Error: {self.message}\n"
            f"  --> {_location(self.name, self.lineno, self.col_offset)}"
        )
        if self.source and self.lineno:
            snippet = build_source_snippet(self.source, self.lineno, column=self.col_offset)
            if snippet is not None:
                header += "\n" + snippet.format()
        if self.suggestion:
            header += f"\n  {terminal.hint('Suggestion:')} {self.suggestion}"
        return header

    def format_compact(self) -> str:
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  --> {terminal.location(_location(self.name, self.lineno, self.col_offset))}",
        ]
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class TemplateRuntimeError(TemplateError):
    """Render-time error with debugging context.

    The location fields are filled in by ``Template`` when the error
    escapes a render, so errors raised deep inside a filter or the
    argument binder still point at the template line.

    Attributes:
        message: Error description
        template_name: Name of the template
        lineno: Line number in template source
        values: Variable names → values that explain the failure
        suggestion: Actionable fix suggestion
        source_snippet: Source lines around ``lineno``
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        template_name: str | None = None,
        lineno: int | None = None,
        values: dict[str, Any] | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
    ):
        self.message = message
        self.template_name = template_name
        self.lineno = lineno
        self.values = values or {}
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        super().__init__(self._format_message())

    def with_location(
        self,
        template_name: str | None,
        lineno: int | None,
        source: str | None = None,
    ) -> TemplateRuntimeError:
        """Attach location info if the error does not carry any yet."""
        if self.template_name is None and self.lineno is None:
            self.template_name = template_name
            self.lineno = lineno
            if source and lineno:
                self.source_snippet = build_source_snippet(source, lineno)
            self.args = (self._format_message(),)
        return self

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.template_name or self.lineno:
            parts.append(
                f"  Location: {terminal.location(_location(self.template_name, self.lineno))}"
            )
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.values:
            parts.append("  Values:")
            for name, value in self.values.items():
                value_repr = repr(value)
                if len(value_repr) > 80:
                    value_repr = value_repr[:77] + "..."
                parts.append(f"    {name} = {value_repr}")
        if self.suggestion:
            parts.append(f"  {terminal.hint('Suggestion:')} {self.suggestion}")
        return "\n".join(parts)

    def format_compact(self) -> str:
        parts = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  Location: {terminal.location(_location(self.template_name, self.lineno))}",
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class UnknownFilterError(TemplateRuntimeError):
    """Filter name is not registered in the Environment."""

    code: ErrorCode | None = ErrorCode.UNKNOWN_FILTER

    def __init__(self, name: str, **kwargs: Any):
        self.name = name
        super().__init__(f"Unknown filter '{name}'", **kwargs)


class UnknownFunctionError(TemplateRuntimeError):
    """Function name is not registered in the Environment."""

    code: ErrorCode | None = ErrorCode.UNKNOWN_FUNCTION

    def __init__(self, name: str, **kwargs: Any):
        self.name = name
        super().__init__(f"Unknown function '{name}'", **kwargs)


class UnknownTestError(TemplateRuntimeError):
    """Test name is not registered in the Environment."""

    code: ErrorCode | None = ErrorCode.UNKNOWN_TEST

    def __init__(self, name: str, **kwargs: Any):
        self.name = name
        super().__init__(f"Unknown test '{name}'", **kwargs)


class TemplateTypeError(TemplateRuntimeError):
    """An operation was applied to Values of incompatible kinds."""

    code: ErrorCode | None = ErrorCode.TYPE_ERROR


class TemplateArithmeticError(TemplateRuntimeError):
    """Integer overflow outside signed 64 bit, or division by zero."""

    code: ErrorCode | None = ErrorCode.ARITHMETIC


class InvalidContextError(TemplateRuntimeError):
    """The render context is not map-shaped."""

    code: ErrorCode | None = ErrorCode.INVALID_CONTEXT

    def __init__(self, kind: str, **kwargs: Any):
        self.kind = kind
        super().__init__(
            f"Render context must be a mapping, got {kind}",
            suggestion="Pass a dict (or keyword arguments) to render()",
            **kwargs,
        )


class ResourceLimitExceededError(TemplateRuntimeError):
    """The evaluator visited more nodes than ``max_steps`` allows."""

    code: ErrorCode | None = ErrorCode.RESOURCE_LIMIT

    def __init__(self, limit: int, **kwargs: Any):
        self.limit = limit
        super().__init__(
            f"Template exceeded the limit of {limit} evaluation steps",
            suggestion="Raise Environment(max_steps=...) or simplify the template",
            **kwargs,
        )


class ArgumentError(TemplateRuntimeError):
    """Base for call-binding failures.

    Attributes:
        callable_name: Filter/function/test name being invoked.
        param: Parameter involved, when there is one.
    """

    code: ErrorCode | None = ErrorCode.ARGUMENT_TYPE

    def __init__(
        self,
        message: str,
        *,
        callable_name: str | None = None,
        param: str | None = None,
        **kwargs: Any,
    ):
        self.callable_name = callable_name
        self.param = param
        if callable_name:
            message = f"{callable_name}(): {message}"
        super().__init__(message, **kwargs)


class ArgumentTypeError(ArgumentError):
    """A supplied Value does not match the parameter's declared type."""

    code: ErrorCode | None = ErrorCode.ARGUMENT_TYPE

    def __init__(self, param: str, expected: str, got: str, **kwargs: Any):
        self.expected = expected
        self.got = got
        super().__init__(
            f"argument '{param}' expected {expected}, got {got}", param=param, **kwargs
        )


class MissingArgumentError(ArgumentError):
    """A required parameter received no value."""

    code: ErrorCode | None = ErrorCode.MISSING_ARGUMENT

    def __init__(self, param: str, **kwargs: Any):
        super().__init__(f"missing required argument '{param}'", param=param, **kwargs)


class UnusedKeywordArgumentError(ArgumentError):
    """Keyword arguments were passed but never read by the callable."""

    code: ErrorCode | None = ErrorCode.UNUSED_KEYWORD

    def __init__(self, names: Sequence[str], **kwargs: Any):
        self.names = tuple(names)
        listed = ", ".join(repr(n) for n in self.names)
        plural = "s" if len(self.names) != 1 else ""
        super().__init__(
            f"unused keyword argument{plural} {listed}",
            param=self.names[0] if self.names else None,
            **kwargs,
        )


class TooManyArgumentsError(ArgumentError):
    """More positional arguments than the signature accepts."""

    code: ErrorCode | None = ErrorCode.TOO_MANY_ARGUMENTS

    def __init__(self, expected: int, got: int, **kwargs: Any):
        self.expected = expected
        self.got = got
        super().__init__(
            f"takes at most {expected} positional argument(s), got {got}", **kwargs
        )


class DuplicateArgumentError(ArgumentError):
    """A parameter was given both positionally and by keyword."""

    code: ErrorCode | None = ErrorCode.DUPLICATE_ARGUMENT

    def __init__(self, param: str, **kwargs: Any):
        super().__init__(f"got multiple values for argument '{param}'", param=param, **kwargs)


class UndefinedError(TemplateError):
    """An undefined value reached a position that needs a concrete value.

    A missing name evaluates to the undefined marker; this error is only
    raised when that marker is printed in strict mode, used in arithmetic,
    ordered, has an attribute read from it, or is passed to a typed
    parameter.

    If ``available_names`` is provided, a "Did you mean?" suggestion is
    included when a close match is found.
    """

    code: ErrorCode | None = ErrorCode.UNDEFINED_VARIABLE

    def __init__(
        self,
        name: str,
        template: str | None = None,
        lineno: int | None = None,
        available_names: frozenset[str] | None = None,
        source_snippet: SourceSnippet | None = None,
    ):
        self.name = name
        self.template = template
        self.lineno = lineno
        self._available_names = available_names
        self.source_snippet = source_snippet
        super().__init__(self._format_message())

    def with_location(
        self,
        template_name: str | None,
        lineno: int | None,
        source: str | None = None,
        available_names: frozenset[str] | None = None,
    ) -> UndefinedError:
        """Attach location info if the error does not carry any yet."""
        if self.template is None and self.lineno is None:
            self.template = template_name
            self.lineno = lineno
            if available_names is not None:
                self._available_names = available_names
            if source and lineno:
                self.source_snippet = build_source_snippet(source, lineno)
            self.args = (self._format_message(),)
        return self

    def _suggest(self) -> str | None:
        if not self._available_names:
            return None
        from difflib import get_close_matches

        matches = get_close_matches(self.name, self._available_names, n=1, cutoff=0.6)
        return matches[0] if matches else None

    def _format_message(self) -> str:
        location = _location(self.template, self.lineno)
        msg = f"Undefined variable '{self.name}' in {terminal.location(location)}"
        suggested = self._suggest()
        if suggested:
            msg += f". Did you mean '{terminal.suggestion(suggested)}'?"
        if self.source_snippet:
            msg += "\n" + self.source_snippet.format()
        hint_text = f"Use {{{{ {self.name} | default('') }}}} for optional variables"
        msg += f"\n  {terminal.hint('Hint:')} {hint_text}"
        return msg
