"""Pytest configuration and fixtures for Vela tests."""

import pytest

from vela import Environment, Param, signature


@pytest.fixture
def env():
    """Create a basic Vela Environment."""
    return Environment()


@pytest.fixture
def env_strict():
    """Create a Vela Environment that rejects printing undefined values."""
    return Environment(undefined="strict")


@pytest.fixture
def env_trim():
    """Create a Vela Environment with trim_blocks and lstrip_blocks enabled."""
    return Environment(trim_blocks=True, lstrip_blocks=True)


@signature(Param("value", "str"), Param("n", "int"))
def repeat(value: str, n: int) -> str:
    """The ``repeat`` filter used across tests: ``"Na " | repeat(3)``."""
    return value * n


@pytest.fixture
def env_with_templates(env):
    """Environment with a few registered templates and the repeat filter."""
    env.add_filter("repeat", repeat)
    env.add_template("hello.txt", "Hello {{ what }}!")
    env.add_template("state.txt", "{% set x = 42 %}Hello {{ what }}!")
    env.add_template("chant.txt", '{{ "Na " | repeat(3) }}Batman!')
    return env


def assert_contains(template_result: str, *expected_parts: str) -> None:
    """Assert template result contains all expected parts.

    Args:
        template_result: The actual template rendering result.
        expected_parts: Strings that should all be present in the result.
    """
    for part in expected_parts:
        assert part in template_result, (
            f"Template output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {template_result!r}"
        )
