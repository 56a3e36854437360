"""Subprocess helpers for running external GPU tooling.

Every external tool the harness touches (rocm_agent_enumerator, the debugger
under test, hipcc) is started through these wrappers so that the child never
inherits the parent's stdin and, on Windows, never opens a console window.
"""

import logging
import subprocess
import sys
from typing import Any

logger = logging.getLogger(__name__)


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def _apply_platform_defaults(kwargs: dict[str, Any]) -> dict[str, Any]:
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    # Tools like gdb read from stdin when it is a terminal
    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return kwargs


def safe_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Run a command to completion with platform-safe defaults.

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run

    Note:
        An explicit 'creationflags' is OR'd with the platform default, and an
        explicit 'stdin' is used as-is.
    """
    logger.debug("Running: %s", " ".join(cmd))
    return subprocess.run(cmd, **_apply_platform_defaults(kwargs))


def safe_popen(cmd: list[str], **kwargs: Any) -> subprocess.Popen:
    """Start a long-running command with platform-safe defaults.

    Same defaults as safe_run(), for callers that need the process handle
    (e.g. a debugger session that is torn down later).
    """
    logger.debug("Spawning: %s", " ".join(cmd))
    return subprocess.Popen(cmd, **_apply_platform_defaults(kwargs))
