"""Fixtures for the runnable Vela examples.

Each directory holds an ``app.py`` that builds an ``Environment`` at import
time and a test module that checks what it rendered:

- hello, state: rendering and the returned State
- custom_filters, dynamic_objects: signatures and the Object protocol
- introspection, expressions: undeclared variables and compiled expressions
- streaming: render_stream() and writable sinks
"""

import importlib.util
from pathlib import Path

import pytest


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    """Import the test's sibling app.py as a fresh module.

    The module is executed on every request, so each test gets its own
    Environment.
    """
    app_path = Path(request.path).with_name("app.py")
    spec = importlib.util.spec_from_file_location(f"vela_example_{app_path.parent.name}", app_path)
    if spec is None or spec.loader is None:
        pytest.fail(f"cannot load example {app_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    assert hasattr(module, "env"), f"{app_path} must define an Environment named 'env'"
    return module
