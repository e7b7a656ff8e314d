"""
Shared test fixtures and configuration.
"""

import logging
import textwrap
from pathlib import Path

import pytest

from modsync.adapters.mock import MockPackageAdapter
from modsync.adapters.registry import AdapterRegistry


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """CLI runs call setup_logging, which replaces the root handlers."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def mock_adapter() -> MockPackageAdapter:
    """An in-memory package manager with nothing installed or published."""
    return MockPackageAdapter(adapter_name="mock")


@pytest.fixture
def registry(mock_adapter: MockPackageAdapter) -> AdapterRegistry:
    """Registry holding only the mock adapter."""
    reg = AdapterRegistry()
    reg.register(mock_adapter)
    return reg


@pytest.fixture
def write_config(tmp_path: Path):
    """Return a helper that writes modsync.yml into tmp_path."""

    def _write(content: str) -> Path:
        path = tmp_path / "modsync.yml"
        path.write_text(textwrap.dedent(content))
        return path

    return _write
