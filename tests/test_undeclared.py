"""Tests for undeclared variable analysis."""

from __future__ import annotations

import pytest

from vela import Environment
from vela.analysis import UndeclaredWalker
from vela.lexer import Lexer
from vela.parser import Parser


def analyze(source: str, track_paths: bool = False) -> frozenset[str]:
    tree = Parser(Lexer(source).tokenize(), "<test>", source).parse()
    return UndeclaredWalker().analyze(tree, track_paths)


class TestRootNames:
    def test_set_binds_name(self) -> None:
        assert analyze("{% set x = foo %}{{ x }}{{ bar.baz }}") == {"foo", "bar"}

    def test_plain_names(self) -> None:
        assert analyze("{{ a }}{{ b + c }}") == {"a", "b", "c"}

    def test_no_variables(self) -> None:
        assert analyze("Hello {{ 'world' | upper }}") == frozenset()

    def test_read_before_set_counts(self) -> None:
        assert analyze("{{ x }}{% set x = 1 %}{{ x }}") == {"x"}

    def test_set_value_reads_own_name(self) -> None:
        assert analyze("{% set x = x + 1 %}") == {"x"}

    def test_callable_names_are_not_variables(self) -> None:
        source = "{{ items | join(sep) }}{{ range(n) }}{{ v is divisibleby(d) }}"
        assert analyze(source) == {"items", "sep", "n", "v", "d"}

    def test_keyword_arguments_are_visited(self) -> None:
        assert analyze("{{ x | default(boolean=flag) }}") == {"x", "flag"}

    def test_literals_and_conditionals(self) -> None:
        source = "{{ [a, {'k': b}] }}{{ c if d else e }}{{ f and not g }}{{ h < i }}"
        assert analyze(source) == set("abcdefghi")

    def test_constants_are_not_variables(self) -> None:
        assert analyze("{{ true }}{{ none }}{{ False }}") == frozenset()


class TestTrackPaths:
    def test_dotted_path(self) -> None:
        result = analyze("{% set x = foo %}{{ x }}{{ bar.baz }}", track_paths=True)
        assert result == {"foo", "bar.baz"}

    def test_deep_path(self) -> None:
        assert analyze("{{ user.profile.name }}", track_paths=True) == {"user.profile.name"}

    def test_constant_subscript_is_a_segment(self) -> None:
        assert analyze("{{ user['name'] }}", track_paths=True) == {"user.name"}

    def test_computed_subscript_falls_back_to_root(self) -> None:
        assert analyze("{{ user[key].name }}", track_paths=True) == {"user", "key"}

    def test_integer_subscript_falls_back_to_root(self) -> None:
        assert analyze("{{ items[0] }}", track_paths=True) == {"items"}

    def test_bound_root_not_reported(self) -> None:
        assert analyze("{% set u = x %}{{ u.name }}", track_paths=True) == {"x"}

    def test_bound_root_still_visits_keys(self) -> None:
        assert analyze("{% set u = x %}{{ u[k] }}", track_paths=True) == {"x", "k"}

    def test_access_on_call_result(self) -> None:
        assert analyze("{{ dict(a=v).a }}", track_paths=True) == {"v"}

    def test_without_track_paths_reports_root(self) -> None:
        assert analyze("{{ user.profile.name }}") == {"user"}


class TestTemplateIntrospection:
    """Template.undeclared_variables and Expression.undeclared_variables."""

    def test_template_method(self, env: Environment) -> None:
        template = env.template_from_str("{% set x = foo %}{{ x }}{{ bar.baz }}")
        assert template.undeclared_variables() == {"foo", "bar"}
        assert template.undeclared_variables(track_paths=True) == {"foo", "bar.baz"}

    def test_globals_excluded(self, env: Environment) -> None:
        env.add_global("site", {"title": "t"})
        template = env.template_from_str("{{ site.title }}{{ page.title }}")
        assert template.undeclared_variables(track_paths=True) == {"page.title"}

    def test_expression_method(self, env: Environment) -> None:
        expr = env.compile_expression("user.age >= limit")
        assert expr.undeclared_variables() == {"user", "limit"}
        assert expr.undeclared_variables(track_paths=True) == {"user.age", "limit"}

    @pytest.mark.parametrize("track_paths", [False, True])
    def test_analysis_is_repeatable(self, env: Environment, track_paths: bool) -> None:
        template = env.template_from_str("{% set a = b %}{{ a.c }}{{ d.e }}")
        first = template.undeclared_variables(track_paths)
        assert template.undeclared_variables(track_paths) == first
