"""Shared pytest configuration for sprig examples.

Provides the ``example_module`` and ``example_app`` fixtures that load a
fresh copy of the ``app.py`` file in the same directory as the test.
Each call re-executes app.py in an isolated module namespace, so every
test starts with a new, unfrozen App.
"""

import importlib.util
from pathlib import Path
from types import ModuleType

import pytest


@pytest.fixture
def example_module(request: pytest.FixtureRequest) -> ModuleType:
    """Execute the sibling app.py next to the test file and return its module."""
    app_path = Path(request.path).parent / "app.py"
    module_name = f"example_{app_path.parent.name}"
    spec = importlib.util.spec_from_file_location(module_name, app_path)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def example_app(example_module: ModuleType):
    """The ``app`` defined by the sibling app.py."""
    return example_module.app
