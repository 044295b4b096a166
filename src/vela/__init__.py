"""Vela: an embeddable template and expression engine.

Templates are compiled once into an immutable node tree and evaluated
against a map-shaped context by a tree-walking interpreter.

Quickstart:
    >>> from vela import Environment
    >>> env = Environment()
    >>> env.add_template("hello.txt", "Hello {{ what }}!")
    >>> env.get_template("hello.txt").render(what="World")
    'Hello World!'

Expressions:
    >>> env.compile_expression("number < 42").eval(number=23).is_true()
    True

Architecture:
Template Source → Lexer → Parser → node tree → Evaluator → output chunks

Pipeline stages:
1. **Lexer**: Tokenizes template source into a token stream
2. **Parser**: Builds the immutable node tree (no name resolution)
3. **Evaluator**: Walks the tree with a scope of locals, context, globals
4. **Template**: Wraps the tree with render()/render_to_sink()/render_stream()

Extension points:
- Filters, functions and tests are plain Python callables with an
  explicit ``Signature`` (see ``vela.functions``)
- Host objects implement the two-method ``Object`` protocol
  (see ``vela.values``)

Undefined values:
A missing variable evaluates to an undefined marker. By default it prints
as the empty string; ``Environment(undefined="strict")`` makes printing it
an ``UndefinedError``. Using it in arithmetic or reading an attribute from
it always fails.
"""

from vela.environment import (
    ArgumentError,
    ArgumentTypeError,
    DuplicateArgumentError,
    Environment,
    EnvironmentFrozenError,
    ErrorCode,
    InvalidContextError,
    MissingArgumentError,
    ResourceLimitExceededError,
    TemplateArithmeticError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    TemplateTypeError,
    TooManyArgumentsError,
    UndefinedError,
    UnknownFilterError,
    UnknownFunctionError,
    UnknownTestError,
    UnusedKeywordArgumentError,
)
from vela.functions import KwargsSlot, Param, Rest, Signature, signature
from vela.render_context import RenderContext, get_render_context, render_context
from vela.runtime import State
from vela.template import Expression, Template
from vela.values import Kwargs, Object, Value, ValueKind

__version__ = "0.1.0"

__all__ = [
    "ArgumentError",
    "ArgumentTypeError",
    "DuplicateArgumentError",
    "Environment",
    "EnvironmentFrozenError",
    "ErrorCode",
    "Expression",
    "InvalidContextError",
    "Kwargs",
    "KwargsSlot",
    "MissingArgumentError",
    "Object",
    "Param",
    "RenderContext",
    "ResourceLimitExceededError",
    "Rest",
    "Signature",
    "State",
    "Template",
    "TemplateArithmeticError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "TemplateTypeError",
    "TooManyArgumentsError",
    "UndefinedError",
    "UnknownFilterError",
    "UnknownFunctionError",
    "UnknownTestError",
    "UnusedKeywordArgumentError",
    "Value",
    "ValueKind",
    "__version__",
    "get_render_context",
    "render_context",
    "signature",
]
