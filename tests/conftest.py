"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from homestack.adapters.mock import MockExecutor
from homestack.core.context import RunContext, build_context
from homestack.core.data import DataRegistry
from homestack.core.models.config import HomelabConfig


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_executor() -> MockExecutor:
    """A mock executor where every command succeeds with empty output."""
    return MockExecutor()


@pytest.fixture
def homelab_config(tmp_path: Path) -> HomelabConfig:
    """A valid config writing generated files under ``tmp_path``."""
    return HomelabConfig(
        ip="192.168.1.10",
        domain="home.lab",
        storage_password="s3cret-pass",
        config_dir=str(tmp_path / "state" / "config"),
    )


@pytest.fixture
def catalog() -> DataRegistry:
    """The packaged service catalog."""
    return DataRegistry()


@pytest.fixture
def ctx(homelab_config: HomelabConfig, mock_executor: MockExecutor) -> RunContext:
    """A run context over the mock executor that still writes config files."""
    return build_context(homelab_config, mock_executor)


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a homelab.yml into ``tmp_path`` and return its path."""

    def _write(content: str | None = None, **overrides) -> Path:
        if content is None:
            lines = [
                "ip: 192.168.1.10",
                "domain: home.lab",
                f"config_dir: {tmp_path / 'state' / 'config'}",
            ]
            for key, value in overrides.items():
                lines.append(f"{key}: {value}")
            content = "\n".join(lines) + "\n"
        path = tmp_path / "homelab.yml"
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write
