"""Vela environment: configuration, registries and errors.

``exceptions`` is imported first; every other vela module depends on it.
"""

from vela.environment.exceptions import (
    ArgumentError,
    ArgumentTypeError,
    DuplicateArgumentError,
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
from vela.environment.core import STRING_TEMPLATE_NAME, Environment
from vela.environment.registry import CallableRegistry

__all__ = [
    "STRING_TEMPLATE_NAME",
    "ArgumentError",
    "ArgumentTypeError",
    "CallableRegistry",
    "DuplicateArgumentError",
    "Environment",
    "EnvironmentFrozenError",
    "ErrorCode",
    "InvalidContextError",
    "MissingArgumentError",
    "ResourceLimitExceededError",
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
]
