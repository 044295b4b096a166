"""Tests for the built-in filters, tests and global functions."""

from __future__ import annotations

import pytest

from vela import (
    ArgumentTypeError,
    Environment,
    TemplateArithmeticError,
    TemplateRuntimeError,
    TemplateTypeError,
)


class TestStringFilters:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ 'Hello' | upper }}", "HELLO"),
            ("{{ 'Hello' | lower }}", "hello"),
            ("{{ 'hello world' | title }}", "Hello World"),
            ("{{ 'hELLO' | capitalize }}", "Hello"),
            ("{{ '  pad  ' | trim }}", "pad"),
            ("{{ 42 | string }}", "42"),
            ("{{ true | string }}", "true"),
            ("{{ 'a-b-c' | replace('-', '+') }}", "a+b+c"),
            ("{{ 'a-b-c' | replace('-', '+', 1) }}", "a+b-c"),
            ("{{ 'abc' | reverse }}", "cba"),
            ("{{ 5 | upper }}", "5"),
        ],
    )
    def test_filter(self, env: Environment, source: str, expected: str) -> None:
        assert env.render_str(source) == expected

    def test_filter_chain(self, env: Environment) -> None:
        assert env.render_str("{{ '  Mixed Case ' | trim | lower | title }}") == "Mixed Case"


class TestCollectionFilters:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ items | length }}", "3"),
            ("{{ items | count }}", "3"),
            ("{{ 'abcd' | length }}", "4"),
            ("{{ {'a': 1} | length }}", "1"),
            ("{{ missing | length }}", "0"),
            ("{{ items | join(', ') }}", "1, 2, 3"),
            ("{{ items | join }}", "123"),
            ("{{ items | first }}", "1"),
            ("{{ items | last }}", "3"),
            ("{{ 'xyz' | first }}", "x"),
            ("{{ [] | first }}", ""),
            ("{{ items | reverse | join }}", "321"),
            ("{{ 'ab' | list | join('|') }}", "a|b"),
            ("{{ {'k': 1, 'j': 2} | list | join }}", "kj"),
            ("{{ {'k': 1} | first }}", "k"),
            ("{{ {'k': 1, 'j': 2} | last }}", "j"),
        ],
    )
    def test_filter(self, env: Environment, source: str, expected: str) -> None:
        assert env.render_str(source, items=[1, 2, 3]) == expected

    def test_items(self, env: Environment) -> None:
        result = env.render_str(
            "{% set pairs = d | items %}{{ pairs[0][0] }}={{ pairs[0][1] }};{{ pairs | length }}",
            d={"a": 1, "b": 2},
        )
        assert result == "a=1;2"

    def test_items_rejects_scalars(self, env: Environment) -> None:
        with pytest.raises(TemplateTypeError):
            env.render_str("{{ 3 | items }}")

    def test_length_of_number_rejected(self, env: Environment) -> None:
        with pytest.raises(TemplateTypeError, match="no length"):
            env.render_str("{{ 3 | length }}")


class TestNumberFilters:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ -3 | abs }}", "3"),
            ("{{ -2.5 | abs }}", "2.5"),
            ("{{ 3.14159 | round(2) }}", "3.14"),
            ("{{ 2.4 | round }}", "2.0"),
            ("{{ 2.1 | round(method='ceil') }}", "3.0"),
            ("{{ 2.9 | round(0, 'floor') }}", "2.0"),
            ("{{ '42' | int }}", "42"),
            ("{{ '4.7' | int }}", "4"),
            ("{{ 'x' | int }}", "0"),
            ("{{ 'x' | int(7) }}", "7"),
            ("{{ 3.9 | int }}", "3"),
            ("{{ true | int }}", "1"),
            ("{{ '1.5' | float }}", "1.5"),
            ("{{ 2 | float }}", "2.0"),
            ("{{ 'x' | float }}", "0.0"),
        ],
    )
    def test_filter(self, env: Environment, source: str, expected: str) -> None:
        assert env.render_str(source) == expected

    def test_abs_rejects_strings(self, env: Environment) -> None:
        with pytest.raises(ArgumentTypeError):
            env.render_str("{{ 'a' | abs }}")

    def test_round_rejects_unknown_method(self, env: Environment) -> None:
        with pytest.raises(TemplateTypeError, match="round method"):
            env.render_str("{{ 1.5 | round(method='banker') }}")


class TestDefaultFilter:
    def test_undefined_replaced(self, env: Environment) -> None:
        assert env.render_str("{{ missing | default('x') }}") == "x"

    def test_defined_kept(self, env: Environment) -> None:
        assert env.render_str("{{ v | default('x') }}", v="v") == "v"

    def test_falsy_kept_without_boolean(self, env: Environment) -> None:
        assert env.render_str("{{ v | default('x') }}", v="") == ""

    def test_falsy_replaced_with_boolean(self, env: Environment) -> None:
        assert env.render_str("{{ v | default('x', true) }}", v="") == "x"
        assert env.render_str("{{ v | default('x', boolean=true) }}", v=0) == "x"

    def test_no_argument(self, env: Environment) -> None:
        assert env.render_str("[{{ missing | default }}]") == "[]"

    def test_default_keeps_value_kind(self, env: Environment) -> None:
        assert env.render_str("{{ (missing | default(2)) + 1 }}") == "3"


class TestBuiltinTests:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ 3 is odd }}", "true"),
            ("{{ 4 is even }}", "true"),
            ("{{ 4.0 is even }}", "false"),
            ("{{ 9 is divisibleby(3) }}", "true"),
            ("{{ 9 is divisibleby 4 }}", "false"),
            ("{{ none is none }}", "true"),
            ("{{ 0 is none }}", "false"),
            ("{{ true is true }}", "true"),
            ("{{ 1 is true }}", "false"),
            ("{{ false is false }}", "true"),
            ("{{ 1.5 is number }}", "true"),
            ("{{ true is number }}", "false"),
            ("{{ 'a' is string }}", "true"),
            ("{{ [1] is sequence }}", "true"),
            ("{{ 'ab' is sequence }}", "true"),
            ("{{ {} is mapping }}", "true"),
            ("{{ [] is mapping }}", "false"),
            ("{{ {} is iterable }}", "true"),
            ("{{ 3 is iterable }}", "false"),
            ("{{ 'abc' is lower }}", "true"),
            ("{{ 'ABC' is upper }}", "true"),
            ("{{ 2 is eq 2 }}", "true"),
            ("{{ 2 is equalto(3) }}", "false"),
            ("{{ 2 is ne(3) }}", "true"),
            ("{{ 1 is lt 2 }}", "true"),
            ("{{ 1 is lessthan(1) }}", "false"),
            ("{{ 2 is le 2 }}", "true"),
            ("{{ 3 is gt 2 }}", "true"),
            ("{{ 3 is greaterthan(5) }}", "false"),
            ("{{ 3 is ge 3 }}", "true"),
            ("{{ 2 is in([1, 2]) }}", "true"),
            ("{{ 'z' is in 'xyz' }}", "true"),
            ("{{ 3 is not odd }}", "false"),
            ("{{ 3 is not in([1]) }}", "true"),
        ],
    )
    def test_builtin(self, env: Environment, source: str, expected: str) -> None:
        assert env.render_str(source) == expected

    def test_divisibleby_zero(self, env: Environment) -> None:
        with pytest.raises(TemplateArithmeticError):
            env.render_str("{{ 4 is divisibleby 0 }}")

    def test_test_in_boolean_context(self, env: Environment) -> None:
        result = env.render_str("{{ 'even' if n is even else 'odd' }}", n=7)
        assert result == "odd"


class TestGlobalFunctions:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ range(3) | join(',') }}", "0,1,2"),
            ("{{ range(1, 4) | join(',') }}", "1,2,3"),
            ("{{ range(10, 0, -3) | join(',') }}", "10,7,4,1"),
            ("{{ range(0) | length }}", "0"),
            ("{{ dict(a=1, b=2).b }}", "2"),
            ("{{ dict({'a': 1}, b=2) | length }}", "2"),
            ("{{ dict() | length }}", "0"),
        ],
    )
    def test_function(self, env: Environment, source: str, expected: str) -> None:
        assert env.render_str(source) == expected

    def test_range_step_zero(self, env: Environment) -> None:
        with pytest.raises(TemplateArithmeticError):
            env.render_str("{{ range(1, 5, 0) }}")

    def test_range_limit(self, env: Environment) -> None:
        with pytest.raises(TemplateRuntimeError, match="limit"):
            env.render_str("{{ range(1000000) | length }}")

    def test_dict_rejects_scalars(self, env: Environment) -> None:
        with pytest.raises(TemplateTypeError):
            env.render_str("{{ dict(3) }}")
