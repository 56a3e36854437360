"""
Harness configuration.

All knobs are read from environment variables so that the same test scripts
work under a plain pytest run, under pytest-xdist and under CI wrappers that
export a ROCm installation.

Variables:
- HCC_AMDGPU_TARGET: comma-separated target override (skips enumeration,
  even when set to an empty string)
- ROCM_PATH: ROCm installation root, tools are looked up in <ROCM_PATH>/bin
- GDB: debugger binary under test (default: gdb)
- INTERNAL_GDBFLAGS: flags always passed to the debugger
- GDB_PROTOCOL: non-empty when testing through a remote protocol
- ROCM_HARNESS_LOCK_DIR: directory holding the shared GPU lock file
- ROCM_HARNESS_BUILD_DIR: directory for probe build artifacts
- ROCM_HARNESS_LOCK_TIMEOUT: seconds to wait for the GPU lock (-1 = forever)
"""

import os
import shlex
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

GPU_LOCK_NAME = "gpu-parallel.lock"
DEFAULT_GDB = "gdb"
DEFAULT_INTERNAL_GDBFLAGS = '-nw -nx -q -iex "set height 0" -iex "set width 0"'


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""

    pass


def _default_base_dir() -> Path:
    return Path(tempfile.gettempdir()) / "rocm-harness"


def _non_empty(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key)
    return value if value else None


@dataclass(frozen=True)
class HarnessConfig:
    """Immutable snapshot of the harness configuration.

    Attributes:
        target_override: Raw HCC_AMDGPU_TARGET value, or None when the variable is absent
        rocm_path: ROCm installation root, or None to search PATH
        gdb: Debugger binary under test
        internal_gdbflags: Arguments passed to every debugger invocation
        gdb_protocol: Remote protocol name ("" for native debugging)
        lock_dir: Directory containing the shared lock file
        lock_name: File name of the shared lock
        build_dir: Directory for probe executables
        lock_timeout: Seconds to wait for the lock, negative blocks forever
    """

    target_override: Optional[str] = None
    rocm_path: Optional[Path] = None
    gdb: str = DEFAULT_GDB
    internal_gdbflags: tuple[str, ...] = field(default_factory=lambda: tuple(shlex.split(DEFAULT_INTERNAL_GDBFLAGS)))
    gdb_protocol: str = ""
    lock_dir: Path = field(default_factory=_default_base_dir)
    lock_name: str = GPU_LOCK_NAME
    build_dir: Path = field(default_factory=lambda: _default_base_dir() / "build")
    lock_timeout: float = -1

    @property
    def lock_path(self) -> Path:
        return self.lock_dir / self.lock_name

    @property
    def is_remote(self) -> bool:
        """True when the debugger is not driving a native local target."""
        return self.gdb_protocol != ""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, lock_name: str = GPU_LOCK_NAME) -> "HarnessConfig":
        """Build a config from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)
            lock_name: File name of the shared GPU lock

        Returns:
            HarnessConfig with defaults for every unset variable

        Raises:
            ConfigError: If ROCM_HARNESS_LOCK_TIMEOUT is not a number or
                INTERNAL_GDBFLAGS is not valid shell syntax
        """
        if environ is None:
            environ = os.environ

        rocm_path = _non_empty(environ, "ROCM_PATH")
        lock_dir = _non_empty(environ, "ROCM_HARNESS_LOCK_DIR")
        build_dir = _non_empty(environ, "ROCM_HARNESS_BUILD_DIR")
        gdbflags = environ.get("INTERNAL_GDBFLAGS", DEFAULT_INTERNAL_GDBFLAGS)
        try:
            internal_gdbflags = tuple(shlex.split(gdbflags))
        except ValueError as e:
            raise ConfigError(f"INTERNAL_GDBFLAGS cannot be parsed: {e}") from e

        timeout_raw = _non_empty(environ, "ROCM_HARNESS_LOCK_TIMEOUT")
        try:
            lock_timeout = float(timeout_raw) if timeout_raw is not None else -1.0
        except ValueError as e:
            raise ConfigError(f"ROCM_HARNESS_LOCK_TIMEOUT must be a number, got {timeout_raw!r}") from e

        return cls(
            target_override=environ.get("HCC_AMDGPU_TARGET"),
            rocm_path=Path(rocm_path) if rocm_path else None,
            gdb=_non_empty(environ, "GDB") or DEFAULT_GDB,
            internal_gdbflags=internal_gdbflags,
            gdb_protocol=environ.get("GDB_PROTOCOL", ""),
            lock_dir=Path(lock_dir) if lock_dir else _default_base_dir(),
            lock_name=lock_name,
            build_dir=Path(build_dir) if build_dir else _default_base_dir() / "build",
            lock_timeout=lock_timeout,
        )
