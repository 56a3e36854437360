"""AMDGPU target discovery.

Targets are architecture names such as "gfx900" or "gfx1100". They come
either from the HCC_AMDGPU_TARGET override or from rocm_agent_enumerator,
which lists one agent per line including the host CPU as "gfx000".

Discovery is never cached: every call re-reads the override and re-runs
the enumerator.
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Protocol

from rocm_harness.env import HarnessConfig
from rocm_harness.subprocess_utils import safe_run
from rocm_harness.toolchain import find_rocm_tool

logger = logging.getLogger(__name__)

ENUMERATOR_NAME = "rocm_agent_enumerator"
HOST_CPU_TARGET = "gfx000"


class ExternalToolError(Exception):
    """Raised when an external tool was found but exited with a failure status."""

    def __init__(self, message: str, tool: Optional[Path] = None, returncode: Optional[int] = None):
        super().__init__(message)
        self.tool = tool
        self.returncode = returncode


class DeviceEnumerator(Protocol):
    """Lists the accelerator targets present on the host."""

    def list_targets(self) -> Optional[list[str]]:
        """Return target names, or None if the enumerator is unavailable."""
        ...


class RocmAgentEnumerator:
    """DeviceEnumerator backed by the rocm_agent_enumerator utility."""

    def __init__(self, rocm_path: Optional[Path] = None):
        self.rocm_path = rocm_path

    def list_targets(self) -> Optional[list[str]]:
        """Run rocm_agent_enumerator and return the GPU targets it reports.

        Returns:
            Targets in enumerator order with the host CPU entry removed,
            or None if the enumerator cannot be located

        Raises:
            ExternalToolError: If the enumerator exits with a non-zero status
        """
        enumerator = find_rocm_tool(ENUMERATOR_NAME, self.rocm_path)
        if enumerator is None:
            return None

        result = safe_run([str(enumerator)], stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        if result.returncode != 0:
            raise ExternalToolError(f"Failed to run {ENUMERATOR_NAME}", tool=enumerator, returncode=result.returncode)

        return [target for target in result.stdout.split() if target != HOST_CPU_TARGET]


def hcc_amdgpu_targets(config: Optional[HarnessConfig] = None, enumerator: Optional[DeviceEnumerator] = None) -> list[str]:
    """Return the AMDGPU targets to build and test for.

    HCC_AMDGPU_TARGET wins whenever it is set and is returned exactly as
    split on commas, including any "gfx000" entry. Set but empty yields [].
    Otherwise the enumerator is asked; an unavailable enumerator yields an
    empty list.

    Args:
        config: Harness configuration (defaults to HarnessConfig.from_env())
        enumerator: Target source (defaults to rocm_agent_enumerator under config.rocm_path)

    Returns:
        Possibly empty list of target names, order preserved, not deduplicated

    Raises:
        ExternalToolError: If the enumerator exits with a non-zero status
    """
    if config is None:
        config = HarnessConfig.from_env()

    if config.target_override is not None:
        # An empty override means "no targets", not a single empty name
        if config.target_override == "":
            return []
        return config.target_override.split(",")

    if enumerator is None:
        enumerator = RocmAgentEnumerator(config.rocm_path)

    targets = enumerator.list_targets()
    if targets is None:
        logger.debug("No device enumerator available, assuming no targets")
        return []
    return targets
