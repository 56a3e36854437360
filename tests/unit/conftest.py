"""Shared fixtures for rocm-harness unit tests."""

from pathlib import Path
from unittest.mock import patch

import pytest

from rocm_harness.env import HarnessConfig


@pytest.fixture
def harness_config(tmp_path: Path) -> HarnessConfig:
    """Native-target config with lock and build directories under tmp_path."""
    return HarnessConfig(lock_dir=tmp_path / "locks", build_dir=tmp_path / "build")


@pytest.fixture
def linux():
    """Pretend to run on a Linux host."""
    with patch("sys.platform", "linux"):
        yield
