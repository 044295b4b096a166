"""Tests for the Environment: template registry, callable tables, globals."""

from __future__ import annotations

import gc
import io
import threading
import time

import pytest

from vela import (
    Environment,
    EnvironmentFrozenError,
    InvalidContextError,
    Param,
    TemplateArithmeticError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    Value,
    signature,
)
from vela.environment import STRING_TEMPLATE_NAME, CallableRegistry
from vela.functions import TemplateCallable


@signature(Param("value", "text"))
def shout(value: str) -> str:
    return value.upper() + "!"


class TestTemplateRegistry:
    def test_add_and_get(self, env: Environment) -> None:
        env.add_template("a.txt", "A")
        template = env.get_template("a.txt")
        assert template.name == "a.txt"
        assert template.source == "A"
        assert template.render() == "A"

    def test_get_missing(self, env: Environment) -> None:
        env.add_template("a.txt", "A")
        with pytest.raises(TemplateNotFoundError) as exc_info:
            env.get_template("b.txt")
        assert exc_info.value.name == "b.txt"
        assert exc_info.value.available == ("a.txt",)

    def test_overwrite(self, env: Environment) -> None:
        env.add_template("a.txt", "old")
        env.add_template("a.txt", "new")
        assert env.get_template("a.txt").render() == "new"

    def test_remove(self, env: Environment) -> None:
        env.add_template("a.txt", "A")
        env.remove_template("a.txt")
        with pytest.raises(TemplateNotFoundError):
            env.get_template("a.txt")
        with pytest.raises(TemplateNotFoundError):
            env.remove_template("a.txt")

    def test_templates_in_registration_order(self, env: Environment) -> None:
        for name in ("c.txt", "a.txt", "b.txt"):
            env.add_template(name, name)
        assert [name for name, _ in env.templates()] == ["c.txt", "a.txt", "b.txt"]
        assert all(template.name == name for name, template in env.templates())

    def test_templates_is_a_snapshot(self, env: Environment) -> None:
        env.add_template("a.txt", "A")
        listing = env.templates()
        env.add_template("b.txt", "B")
        assert [name for name, _ in listing] == ["a.txt"]

    def test_syntax_error_not_registered(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError):
            env.add_template("bad.txt", "{{ 1 + }}")
        assert list(env.templates()) == []

    def test_template_from_str(self, env: Environment) -> None:
        template = env.template_from_str("{{ 1 }}")
        assert template.name == STRING_TEMPLATE_NAME
        assert list(env.templates()) == []

    def test_template_from_named_str(self, env: Environment) -> None:
        template = env.template_from_named_str("inline.txt", "{{ 1 }}")
        assert template.name == "inline.txt"
        assert list(env.templates()) == []

    def test_render_named_str(self, env: Environment) -> None:
        assert env.render_named_str("n.txt", "{{ x }}", {"x": 1}) == "1"

    def test_template_holds_weak_reference(self) -> None:
        env = Environment()
        template = env.template_from_str("x")
        del env
        gc.collect()
        with pytest.raises(TemplateRuntimeError, match="garbage collected") as exc_info:
            template.render()
        assert exc_info.value.template_name == STRING_TEMPLATE_NAME

    def test_expression_outliving_environment(self) -> None:
        expr = Environment().compile_expression("1 + 1")
        gc.collect()
        with pytest.raises(TemplateRuntimeError, match="garbage collected"):
            expr.eval()


class TestCallables:
    def test_add_filter(self, env: Environment) -> None:
        env.add_filter("shout", shout)
        assert env.render_str("{{ 'hi' | shout }}") == "HI!"

    def test_filter_decorator(self, env: Environment) -> None:
        @env.filter()
        @signature(Param("value", "text"))
        def whisper(value: str) -> str:
            return value.lower()

        @env.filter("yell")
        @signature(Param("value", "text"))
        def _yell(value: str) -> str:
            return value.upper()

        assert env.render_str("{{ 'Hi' | whisper }}{{ 'Hi' | yell }}") == "hiHI"

    def test_add_function(self, env: Environment) -> None:
        @signature(Param("a", "int"), Param("b", "int", default=1))
        def add(a: int, b: int) -> int:
            return a + b

        env.add_function("add", add)
        assert env.render_str("{{ add(1) }} {{ add(1, b=5) }}") == "2 6"

    def test_add_test(self, env: Environment) -> None:
        @signature(Param("value", "str"))
        def palindrome(value: str) -> bool:
            return value == value[::-1]

        env.add_test("palindrome", palindrome)
        assert env.render_str("{{ 'abba' is palindrome }}{{ 'ab' is not palindrome }}") == (
            "truetrue"
        )

    def test_overwrite_builtin_filter(self, env: Environment) -> None:
        env.add_filter("upper", shout)
        assert env.render_str("{{ 'a' | upper }}") == "A!"

    def test_registry_view(self, env: Environment) -> None:
        env.add_filter("shout", shout)
        filters = env.filters
        assert isinstance(filters, CallableRegistry)
        assert "shout" in filters
        assert "upper" in filters
        entry = filters["shout"]
        assert isinstance(entry, TemplateCallable)
        assert entry.func is shout
        assert entry.kind == "filter"
        assert filters.get("nope") is None

    def test_registry_assignment(self, env: Environment) -> None:
        env.functions["shout"] = shout
        assert env.render_str("{{ shout('a') }}") == "A!"

    def test_registry_update(self, env: Environment) -> None:
        env.tests.update({"loud": shout})
        assert "loud" in env.tests

    def test_defaults_registered(self, env: Environment) -> None:
        assert {"upper", "default", "join", "length"} <= set(env.filters)
        assert {"range", "dict"} <= set(env.functions)
        assert {"defined", "odd", "in"} <= set(env.tests)

    def test_render_keeps_tables_it_started_with(self, env: Environment) -> None:
        env.add_filter("shout", shout)
        template = env.template_from_str("{{ 'a' | shout }}{{ 'b' | shout }}")
        chunks = template.render_stream()
        first = next(chunks)

        @signature(Param("value", "text"))
        def quiet(value: str) -> str:
            return value

        env.add_filter("shout", quiet)
        assert first + "".join(chunks) == "A!B!"
        assert template.render() == "ab"


class TestGlobals:
    def test_add_global(self, env: Environment) -> None:
        env.add_global("site", {"name": "vela"})
        assert env.render_str("{{ site.name }}") == "vela"
        assert env.globals["site"] == {"name": "vela"}

    def test_context_shadows_globals(self, env: Environment) -> None:
        env.add_global("name", "global")
        assert env.render_str("{{ name }}", name="context") == "context"

    def test_globals_view_is_read_only(self, env: Environment) -> None:
        with pytest.raises(TypeError):
            env.globals["x"] = Value.from_python(1)  # type: ignore[index]


class TestFreeze:
    def test_freeze_blocks_registration(self, env: Environment) -> None:
        env.add_template("a.txt", "A")
        assert env.freeze() is env
        assert env.frozen
        with pytest.raises(EnvironmentFrozenError):
            env.add_template("b.txt", "B")
        with pytest.raises(EnvironmentFrozenError):
            env.add_filter("shout", shout)
        with pytest.raises(EnvironmentFrozenError):
            env.add_global("x", 1)
        with pytest.raises(EnvironmentFrozenError):
            env.remove_template("a.txt")

    @pytest.mark.parametrize(
        "register",
        [
            lambda env: env.add_global("late", 1),
            lambda env: env.add_template("late.txt", "late"),
            lambda env: env.add_filter("late", shout),
        ],
        ids=["global", "template", "filter"],
    )
    def test_registration_blocked_on_lock_sees_freeze(self, env: Environment, register) -> None:
        errors: list[BaseException] = []

        def worker() -> None:
            try:
                register(env)
            except EnvironmentFrozenError as e:
                errors.append(e)

        # Freeze while a registration is waiting for the lock
        with env._lock:
            thread = threading.Thread(target=worker)
            thread.start()
            time.sleep(0.05)
            env._frozen = True
        thread.join()

        assert len(errors) == 1
        assert "late" not in env.globals
        assert "late" not in env.filters
        assert [name for name, _ in env.templates()] == []

    def test_frozen_environment_still_renders(self, env: Environment) -> None:
        env.add_template("a.txt", "{{ 1 + 1 }}")
        env.freeze()
        assert env.get_template("a.txt").render() == "2"
        assert env.render_str("{{ 'adhoc' }}") == "adhoc"

    def test_concurrent_renders(self, env: Environment) -> None:
        env.add_template("t.txt", "{{ n * 2 }}")
        env.freeze()
        template = env.get_template("t.txt")
        results: dict[int, str] = {}

        def worker(n: int) -> None:
            results[n] = template.render(n=n)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert results == {n: str(n * 2) for n in range(16)}


class TestContextValidation:
    @pytest.mark.parametrize("context", [42, "text", [1, 2], Value.from_python([1])])
    def test_non_mapping_context(self, env: Environment, context: object) -> None:
        with pytest.raises(InvalidContextError):
            env.render_str("x", context)

    def test_non_string_keys(self, env: Environment) -> None:
        with pytest.raises(InvalidContextError):
            env.render_str("x", {1: "a"})

    def test_none_context(self, env: Environment) -> None:
        assert env.render_str("x", None) == "x"


class TestSinks:
    def test_render_to_sink(self, env_with_templates: Environment) -> None:
        sink = io.StringIO()
        state = env_with_templates.render_to_sink("state.txt", {"what": "World"}, sink)
        assert sink.getvalue() == "Hello World!"
        assert state.lookup("x") == 42

    def test_render_to_sink_keeps_partial_output(self, env: Environment) -> None:
        env.add_template("partial.txt", "before {{ 1 // 0 }} after")
        sink = io.StringIO()
        with pytest.raises(TemplateArithmeticError, match="division by zero"):
            env.render_to_sink("partial.txt", None, sink)
        assert sink.getvalue() == "before "

    def test_render_stream(self, env: Environment) -> None:
        template = env.template_from_str("a{{ b }}c")
        assert list(template.render_stream(b="B")) == ["a", "B", "c"]

    def test_render_stream_validates_context_eagerly(self, env: Environment) -> None:
        template = env.template_from_str("a")
        with pytest.raises(InvalidContextError):
            template.render_stream(42)


class TestCompileExpression:
    def test_comparison(self, env: Environment) -> None:
        expr = env.compile_expression("number < 42")
        assert expr.eval(number=23).is_true()
        assert not expr.eval(number=42).is_true()

    def test_returns_value(self, env: Environment) -> None:
        result = env.compile_expression("items | length").eval({"items": [1, 2, 3]})
        assert result == 3

    def test_undefined_result(self, env: Environment) -> None:
        assert env.compile_expression("missing").eval().is_undefined

    def test_uses_globals_and_filters(self, env: Environment) -> None:
        env.add_global("limit", 10)
        env.add_filter("shout", shout)
        assert env.compile_expression("limit > 5").eval().is_true()
        assert env.compile_expression("'a' | shout").eval() == "A!"

    def test_syntax_error(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError):
            env.compile_expression("1 +")

    def test_trailing_tokens(self, env: Environment) -> None:
        with pytest.raises(TemplateSyntaxError, match="after expression"):
            env.compile_expression("a b")

    def test_source(self, env: Environment) -> None:
        assert env.compile_expression("a + 1").source == "a + 1"
