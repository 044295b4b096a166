"""Tree-walking evaluator for compiled Vela templates.

The evaluator interprets the immutable node tree directly. Handlers are
looked up by node type name (``_eval_<name>`` / ``_exec_<name>``) from
tables built once at import, so adding a node type means adding one
method.

Output is produced as a stream of string chunks; ``Template`` joins them,
writes them to a sink, or hands the iterator to the caller.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from vela import nodes
from vela.environment.exceptions import (
    InvalidContextError,
    TemplateTypeError,
    UndefinedError,
    UnknownFilterError,
    UnknownFunctionError,
    UnknownTestError,
)
from vela.functions import TemplateCallable
from vela.render_context import RenderContext
from vela.runtime import operators
from vela.runtime.state import State
from vela.values import Kwargs, Value, ValueKind


@dataclass(frozen=True, slots=True)
class CallTables:
    """The callables and globals a render can see."""

    filters: Mapping[str, TemplateCallable] = field(default_factory=dict)
    functions: Mapping[str, TemplateCallable] = field(default_factory=dict)
    tests: Mapping[str, TemplateCallable] = field(default_factory=dict)
    globals: Mapping[str, Value] = field(default_factory=dict)


def coerce_context(context: Any, extra: Mapping[str, Any] | None = None) -> Mapping[str, Value]:
    """Turn the render-time context into a name → Value mapping.

    Accepts None, any ``Mapping`` with string keys, or a MAP/KWARGS Value.
    Keyword arguments given to ``render`` are layered on top.

    Raises:
        InvalidContextError: for anything that is not map-shaped
    """
    if context is None:
        items: dict[str, Value] = {}
    elif isinstance(context, Value):
        if context.kind is ValueKind.MAP:
            items = {str(key): value for key, value in context.data.items()}
        elif context.kind is ValueKind.KWARGS:
            items = context.data.as_dict()
        elif context.is_undefined or context.is_none:
            items = {}
        else:
            raise InvalidContextError(context.kind.value)
    elif isinstance(context, Kwargs):
        items = context.as_dict()
    elif isinstance(context, Mapping):
        items = {}
        for key, value in context.items():
            if not isinstance(key, str):
                raise InvalidContextError(f"mapping with {type(key).__name__} keys")
            items[key] = Value.from_python(value)
    else:
        raise InvalidContextError(type(context).__name__)
    if extra:
        for key, value in extra.items():
            items[key] = Value.from_python(value)
    return MappingProxyType(items)


def _path_of(node: nodes.Expr) -> str | None:
    """Dotted path for a static access chain (``a.b.c``), else None."""
    if isinstance(node, nodes.Name):
        return node.name
    if isinstance(node, nodes.Getattr):
        base = _path_of(node.obj)
        return f"{base}.{node.attr}" if base else None
    if isinstance(node, nodes.Getitem) and isinstance(node.key, nodes.Const):
        base = _path_of(node.obj)
        return f"{base}[{node.key.value!r}]" if base else None
    return None


class Evaluator:
    """Evaluates one template (or expression) against one ``State``.

    Args:
        tables: Filters, functions, tests and globals to resolve against
        state: The render's variable scope
        render_ctx: Line tracking and step budget
        strict: Raise UndefinedError when undefined is printed or
            concatenated (lenient mode prints the empty string)
    """

    __slots__ = ("_tables", "state", "_ctx", "_strict")

    _exec_table: dict[str, Callable[..., Iterator[str]]]
    _eval_table: dict[str, Callable[..., Value]]

    def __init__(
        self,
        tables: CallTables,
        state: State,
        render_ctx: RenderContext,
        *,
        strict: bool = False,
    ):
        self._tables = tables
        self.state = state
        self._ctx = render_ctx
        self._strict = strict

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def run(self, template: nodes.Template) -> Iterator[str]:
        """Evaluate the template body, yielding output chunks in order."""
        exec_table = self._exec_table
        for node in template.body:
            handler = exec_table.get(type(node).__name__.lower())
            if handler is None:
                raise TemplateTypeError(f"cannot execute {type(node).__name__} node")
            yield from handler(self, node)

    def _exec_data(self, node: nodes.Data) -> Iterator[str]:
        self._ctx.tick()
        if node.value:
            yield node.value

    def _exec_output(self, node: nodes.Output) -> Iterator[str]:
        self._enter(node)
        value = self.evaluate(node.expr)
        if value.is_undefined and self._strict:
            raise UndefinedError(value.data or _path_of(node.expr) or "undefined")
        text = str(value)
        if text:
            yield text

    def _exec_set(self, node: nodes.Set) -> Iterator[str]:
        self._enter(node)
        self.state.set(node.target.name, self.evaluate(node.value))
        return iter(())

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def evaluate(self, node: nodes.Expr) -> Value:
        """Evaluate an expression node to a Value."""
        self._enter(node)
        handler = self._eval_table.get(type(node).__name__.lower())
        if handler is None:
            raise TemplateTypeError(f"cannot evaluate {type(node).__name__} node")
        return handler(self, node)

    def _enter(self, node: nodes.Node) -> None:
        ctx = self._ctx
        ctx.line = node.lineno
        ctx.tick()

    def _eval_const(self, node: nodes.Const) -> Value:
        return Value.from_python(node.value)

    def _eval_name(self, node: nodes.Name) -> Value:
        return self.state.resolve(node.name)

    def _eval_list(self, node: nodes.List) -> Value:
        return Value(ValueKind.SEQ, tuple(self.evaluate(item) for item in node.items))

    def _eval_dict(self, node: nodes.Dict) -> Value:
        items: dict[Value, Value] = {}
        for key_node, value_node in zip(node.keys, node.values, strict=True):
            key = self.evaluate(key_node)
            value = self.evaluate(value_node)
            try:
                items[key] = value
            except TypeError as e:
                raise TemplateTypeError(f"{key.kind.value} cannot be used as a map key") from e
        return Value(ValueKind.MAP, MappingProxyType(items))

    def _eval_getattr(self, node: nodes.Getattr) -> Value:
        obj = self.evaluate(node.obj)
        if obj.is_undefined:
            raise UndefinedError(obj.data or _path_of(node.obj) or "undefined")
        found = obj.get_attr(node.attr)
        if found.is_undefined:
            return Value.undefined(_path_of(node))
        return found

    def _eval_getitem(self, node: nodes.Getitem) -> Value:
        obj = self.evaluate(node.obj)
        if obj.is_undefined:
            raise UndefinedError(obj.data or _path_of(node.obj) or "undefined")
        found = obj.get_item(self.evaluate(node.key))
        if found.is_undefined:
            return Value.undefined(_path_of(node))
        return found

    def _eval_funccall(self, node: nodes.FuncCall) -> Value:
        func = self._tables.functions.get(node.name)
        if func is None:
            raise UnknownFunctionError(node.name)
        return self._invoke(func, self._evaluate_args(node.args), node.kwargs)

    def _eval_filter(self, node: nodes.Filter) -> Value:
        func = self._tables.filters.get(node.name)
        if func is None:
            raise UnknownFilterError(node.name)
        value = self.evaluate(node.value)
        return self._invoke(func, [value, *self._evaluate_args(node.args)], node.kwargs)

    def _eval_test(self, node: nodes.Test) -> Value:
        func = self._tables.tests.get(node.name)
        if func is None:
            raise UnknownTestError(node.name)
        value = self.evaluate(node.value)
        result = self._invoke(func, [value, *self._evaluate_args(node.args)], node.kwargs).is_true()
        return Value.TRUE if result != node.negated else Value.FALSE

    def _evaluate_args(self, args: Any) -> list[Value]:
        return [self.evaluate(arg) for arg in args]

    def _invoke(
        self, func: TemplateCallable, args: list[Value], kwarg_nodes: Mapping[str, nodes.Expr]
    ) -> Value:
        kwargs = {key: self.evaluate(expr) for key, expr in kwarg_nodes.items()}
        return func.invoke(args, kwargs, state=self.state, strict_undefined=self._strict)

    def _eval_binop(self, node: nodes.BinOp) -> Value:
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        if node.op == "~":
            if self._strict:
                operators.require_defined(left)
                operators.require_defined(right)
            return operators.concat(left, right)
        return operators.binary(node.op, left, right)

    def _eval_unaryop(self, node: nodes.UnaryOp) -> Value:
        return operators.unary(node.op, self.evaluate(node.operand))

    def _eval_compare(self, node: nodes.Compare) -> Value:
        left = self.evaluate(node.left)
        for op, comparator in zip(node.ops, node.comparators, strict=True):
            right = self.evaluate(comparator)
            if not operators.compare(op, left, right):
                return Value.FALSE
            left = right
        return Value.TRUE

    def _eval_boolop(self, node: nodes.BoolOp) -> Value:
        result = Value.UNDEFINED
        for operand in node.values:
            result = self.evaluate(operand)
            if node.op == "and" and not result.is_true():
                return result
            if node.op == "or" and result.is_true():
                return result
        return result

    def _eval_condexpr(self, node: nodes.CondExpr) -> Value:
        if self.evaluate(node.test).is_true():
            return self.evaluate(node.if_true)
        if node.if_false is None:
            return Value.UNDEFINED
        return self.evaluate(node.if_false)


Evaluator._exec_table = {
    name.removeprefix("_exec_"): getattr(Evaluator, name)
    for name in dir(Evaluator)
    if name.startswith("_exec_")
}
Evaluator._eval_table = {
    name.removeprefix("_eval_"): getattr(Evaluator, name)
    for name in dir(Evaluator)
    if name.startswith("_eval_")
}
