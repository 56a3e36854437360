"""Pytest configuration and fixtures for rocm-harness tests.

Harness settings come from environment variables, so every test starts from
a clean slate: variables exported by a developer's ROCm shell must not leak
into assertions about defaults.
"""

import pytest

HARNESS_ENV_VARS = (
    "HCC_AMDGPU_TARGET",
    "ROCM_PATH",
    "GDB",
    "INTERNAL_GDBFLAGS",
    "GDB_PROTOCOL",
    "ROCM_HARNESS_LOCK_DIR",
    "ROCM_HARNESS_BUILD_DIR",
    "ROCM_HARNESS_LOCK_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_harness_env(monkeypatch):  # noqa: PT004
    """Remove harness variables from os.environ for the duration of each test."""
    for name in HARNESS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
