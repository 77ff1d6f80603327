"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from inputdeck.lib.deck import Deck  # noqa: E402
from inputdeck.lib.readers import MappingReader, PythonReader, YamlReader  # noqa: E402
from inputdeck.lib.settings import DeckSettings  # noqa: E402


THERMAL_YAML = """
thermal_solver:
  mesh:
    filename: ./meshes/disk.mesh
    serial: 1
    parallel: 2
  order: 2
  timestep: 0.5
  u0:
    type: constant
    constant: 10.0
  kappa:
    type: constant
    constant: 0.5
  solver:
    rel_tol: 1.0e-6
    abs_tol: 1.0e-12
    print_level: 0
    max_iter: 100
    dt: 1.0
    steps: 1
  bcs:
    7:
      attrs: [1, 2]
      constant: 1.0
    12:
      attrs: [3]
      constant: 0.0
"""


@pytest.fixture(autouse=True)
def clean_inputdeck_env(monkeypatch):
    """Keep INPUTDECK_* variables from the outer environment out of tests."""
    import os

    for name in list(os.environ):
        if name.startswith("INPUTDECK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(project_root / "tests")


@pytest.fixture
def settings():
    """Deck settings with documentation enabled and no .env lookup."""
    return DeckSettings(_env_file=None)


@pytest.fixture
def make_deck(settings):
    """Build a deck over an in-memory document."""

    def _make(data=None, docs_enabled=None):
        return Deck(MappingReader(data or {}), settings, docs_enabled=docs_enabled)

    return _make


@pytest.fixture
def yaml_deck(settings):
    """Build a deck over YAML text."""

    def _make(text, docs_enabled=None):
        return Deck(YamlReader().parse_string(text), settings, docs_enabled=docs_enabled)

    return _make


@pytest.fixture
def python_deck(settings):
    """Build a deck over Python deck source."""

    def _make(source, docs_enabled=None):
        return Deck(PythonReader().parse_string(source), settings, docs_enabled=docs_enabled)

    return _make


@pytest.fixture
def thermal_yaml():
    """Thermal solver deck used across extraction and docs tests."""
    return THERMAL_YAML
