"""Tests for Vela strict undefined mode.

``Environment(undefined="strict")`` raises UndefinedError when an
undefined value is printed, concatenated or passed to a typed parameter.
The lenient default prints the empty string instead.

Key behaviors:
1. Printing an undefined variable raises UndefinedError
2. Defined variables work normally
3. default filter and is defined/is undefined still accept undefined
4. Error messages include variable name and location
"""

from __future__ import annotations

import pytest

from vela import Environment, UndefinedError


class TestUndefinedError:
    """Test UndefinedError behavior in strict mode."""

    @pytest.fixture
    def env(self) -> Environment:
        """Create a strict mode environment."""
        return Environment(undefined="strict")

    def test_undefined_raises_error(self, env: Environment) -> None:
        """Printing an undefined variable raises UndefinedError."""
        with pytest.raises(UndefinedError) as exc_info:
            env.render_str("{{ undefined_var }}")
        assert "undefined_var" in str(exc_info.value)

    def test_error_includes_variable_name(self, env: Environment) -> None:
        """Error includes the undefined variable name."""
        try:
            env.render_str("{{ my_missing_var }}")
            pytest.fail("Expected UndefinedError")
        except UndefinedError as e:
            assert e.name == "my_missing_var"

    def test_error_includes_template_name(self, env: Environment) -> None:
        """Error includes template name when available."""
        try:
            env.render_named_str("test.txt", "{{ missing }}")
            pytest.fail("Expected UndefinedError")
        except UndefinedError as e:
            assert e.template == "test.txt"
            assert "test.txt" in str(e)

    def test_error_includes_line(self, env: Environment) -> None:
        """Error points at the line of the failing output."""
        with pytest.raises(UndefinedError) as exc_info:
            env.render_str("ok\n\n{{ missing }}")
        assert exc_info.value.lineno == 3
        assert exc_info.value.source_snippet is not None

    def test_missing_attribute_reports_path(self, env: Environment) -> None:
        """A missing attribute of a defined map reports the full path."""
        with pytest.raises(UndefinedError) as exc_info:
            env.render_str("{{ user.email }}", user={"name": "ada"})
        assert exc_info.value.name == "user.email"

    def test_defined_variables_work(self, env: Environment) -> None:
        """Defined variables work normally in strict mode."""
        assert env.render_str("{{ name }}", name="World") == "World"

    def test_none_is_defined(self, env: Environment) -> None:
        """None is a value, not undefined."""
        assert env.render_str("{{ value }}", value=None) == "none"

    def test_set_variables_work(self, env: Environment) -> None:
        assert env.render_str("{% set x = 'set' %}{{ x }}") == "set"

    def test_globals_work(self, env: Environment) -> None:
        """Environment globals are visible in strict mode."""
        env.add_global("site", "vela")
        assert env.render_str("{{ site }}") == "vela"

    def test_concat_undefined_raises(self, env: Environment) -> None:
        with pytest.raises(UndefinedError):
            env.render_str("{{ 'a' ~ missing }}")

    def test_text_filter_on_undefined_raises(self, env: Environment) -> None:
        with pytest.raises(UndefinedError):
            env.render_str("{{ missing | upper }}")


class TestUndefinedTolerantOperations:
    """Operations that accept undefined even in strict mode."""

    @pytest.fixture
    def env(self) -> Environment:
        return Environment(undefined="strict")

    def test_default_filter(self, env: Environment) -> None:
        assert env.render_str("{{ missing | default('fallback') }}") == "fallback"

    def test_default_alias(self, env: Environment) -> None:
        assert env.render_str("{{ missing | d('x') }}") == "x"

    def test_default_attribute_of_defined(self, env: Environment) -> None:
        result = env.render_str("{{ user.nickname | default(user.name) }}", user={"name": "ada"})
        assert result == "ada"

    def test_is_defined(self, env: Environment) -> None:
        assert env.render_str("{{ missing is defined }}") == "false"
        assert env.render_str("{{ x is defined }}", x=1) == "true"

    def test_is_undefined(self, env: Environment) -> None:
        assert env.render_str("{{ missing is undefined }}") == "true"

    def test_conditional_expression(self, env: Environment) -> None:
        result = env.render_str("{{ missing if missing is defined else 'none given' }}")
        assert result == "none given"

    def test_boolean_context(self, env: Environment) -> None:
        assert env.render_str("{{ missing or 'fallback' }}") == "fallback"

    def test_equality(self, env: Environment) -> None:
        assert env.render_str("{{ missing == none }}") == "false"

    def test_set_undefined_then_test(self, env: Environment) -> None:
        assert env.render_str("{% set y = missing %}{{ y is undefined }}") == "true"


class TestLenientMode:
    """The default mode prints undefined as the empty string."""

    def test_prints_empty(self, env: Environment) -> None:
        assert env.render_str("<{{ missing }}>") == "<>"

    def test_text_filter_accepts_undefined(self, env: Environment) -> None:
        assert env.render_str("<{{ missing | upper }}>") == "<>"

    def test_attribute_of_undefined_still_raises(self, env: Environment) -> None:
        with pytest.raises(UndefinedError):
            env.render_str("{{ missing.attr }}")

    def test_mode_property(self, env: Environment, env_strict: Environment) -> None:
        assert env.undefined == "lenient"
        assert not env.strict_undefined
        assert env_strict.undefined == "strict"
        assert env_strict.strict_undefined

    def test_invalid_mode(self) -> None:
        with pytest.raises(ValueError, match="undefined"):
            Environment(undefined="chaos")  # type: ignore[arg-type]
