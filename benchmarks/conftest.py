from __future__ import annotations

import importlib.metadata as importlib_metadata
import json
import os
import platform
import sys
from pathlib import Path

import pytest
from jinja2 import DictLoader
from jinja2 import Environment as Jinja2Environment

from vela import Environment as VelaEnvironment
from vela import Param, signature

BASE_DIR = Path(__file__).resolve().parent
BENCHMARK_OUTPUT_DIR = BASE_DIR.parent / ".benchmarks"

# Same source for both engines; only syntax both accept
TEMPLATES = {
    "minimal.txt": "Hello {{ name }}!",
    "small.txt": (
        "{{ title | upper }}\n"
        "{{ user.name }} <{{ user.email | default('unknown') }}>\n"
        "{{ items | join(', ') }} ({{ items | length }} items)\n"
        "{{ 'admin' if user.admin else 'member' }} {{ 'ab' | repeat(3) }}"
    ),
    "arithmetic.txt": (
        "{% set subtotal = price * qty %}"
        "{% set tax = subtotal * rate %}"
        "{{ subtotal }} + {{ tax | round(2) }} = {{ (subtotal + tax) | round(2) }}"
    ),
    "filters.txt": (
        "{{ text | trim | lower | replace('a', 'b') | title }}"
        "{{ words | reverse | join('-') | upper }}"
        "{{ numbers | first }}..{{ numbers | last }}"
    ),
}

SMALL_CONTEXT = {
    "title": "Weekly digest",
    "user": {"name": "Ada", "email": "ada@example.com", "admin": True},
    "items": ["alpha", "beta", "gamma", "delta", "epsilon"],
}

ARITHMETIC_CONTEXT = {"price": 19.99, "qty": 7, "rate": 0.21}

FILTERS_CONTEXT = {
    "text": "  A Banana Bandana  ",
    "words": ["one", "two", "three", "four"],
    "numbers": list(range(50)),
}


def _version(dist: str) -> str:
    try:
        return importlib_metadata.version(dist)
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


def collect_environment_metadata() -> dict[str, object]:
    """Capture reproducibility metadata for each benchmark run."""
    return {
        "python": {
            "version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "executable": sys.executable,
        },
        "os": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "cpu": {"count": os.cpu_count()},
        "vela": _version("vela"),
        "jinja2": _version("jinja2"),
    }


@pytest.fixture(scope="session")
def environment_metadata() -> dict[str, object]:
    """Write environment metadata to .benchmarks for ingestion."""
    metadata = collect_environment_metadata()
    BENCHMARK_OUTPUT_DIR.mkdir(exist_ok=True)
    (BENCHMARK_OUTPUT_DIR / "environment.json").write_text(json.dumps(metadata, indent=2))
    return metadata


@signature(Param("value", "str"), Param("n", "int"))
def _repeat(value: str, n: int) -> str:
    return value * n


@pytest.fixture(scope="session")
def vela_env(environment_metadata: dict[str, object]) -> VelaEnvironment:
    env = VelaEnvironment()
    env.add_filter("repeat", _repeat)
    for name, source in TEMPLATES.items():
        env.add_template(name, source)
    return env.freeze()


@pytest.fixture(scope="session")
def jinja2_env(environment_metadata: dict[str, object]) -> Jinja2Environment:
    env = Jinja2Environment(loader=DictLoader(TEMPLATES))
    env.filters["repeat"] = lambda value, n: value * n
    return env


@pytest.fixture
def small_context() -> dict[str, object]:
    return SMALL_CONTEXT


@pytest.fixture
def arithmetic_context() -> dict[str, object]:
    return ARITHMETIC_CONTEXT


@pytest.fixture
def filters_context() -> dict[str, object]:
    return FILTERS_CONTEXT


@pytest.fixture
def template_sources() -> dict[str, str]:
    return TEMPLATES
