"""Capability probe deciding whether HIP debugging tests can run.

The checks run in a fixed order, cheapest first, and stop at the first
failure:

    1. native target (no remote protocol)
    2. Linux host
    3. debugger built with amd-dbgapi
    4. at least one AMDGPU target
    5. a trivial HIP program compiles for those targets

A failed check is an expected outcome on most hosts and is reported as a
CapabilityResult carrying a reason, never as an exception. Only a broken
rocm_agent_enumerator (ExternalToolError) propagates.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

from rocm_harness.debugger import supports_amd_dbgapi
from rocm_harness.env import HarnessConfig
from rocm_harness.targets import DeviceEnumerator, hcc_amdgpu_targets
from rocm_harness.toolchain import Compiler

logger = logging.getLogger(__name__)

T = TypeVar("T")

HIP_PROBE_SOURCE = """\
#include <hip/hip_runtime.h>

__global__ void
kern ()
{
}

int
main ()
{
  kern<<<1, 1>>> ();
  if (hipDeviceSynchronize () != hipSuccess)
    return -1;
  return 0;
}
"""

HIP_PROBE_EXECUTABLE = "allow_hipcc_tests"


@dataclass(frozen=True)
class CapabilityResult:
    """Result of a capability check.

    Truthy when the capability is available. `reason` explains a failure and
    is suitable as a test skip message.
    """

    ok: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls) -> "CapabilityResult":
        return cls(True)

    @classmethod
    def failure(cls, reason: str) -> "CapabilityResult":
        return cls(False, reason)

    def as_tuple(self) -> Union[bool, tuple[bool, str]]:
        """Return True, or (False, reason) for a failed check."""
        if self.ok:
            return True
        return (False, self.reason)


class CachedResult(Generic[T]):
    """Compute-once cell.

    The wrapped function runs on the first get() and its value is returned
    for every later call until reset(). Exceptions are not cached.
    """

    def __init__(self, compute: Callable[[], T]):
        self._compute = compute
        self._value: Optional[T] = None
        self._computed = False

    @property
    def is_computed(self) -> bool:
        return self._computed

    def get(self) -> T:
        if not self._computed:
            self._value = self._compute()
            self._computed = True
        return self._value  # type: ignore[return-value]

    def reset(self) -> None:
        self._value = None
        self._computed = False


def _fail(reason: str) -> CapabilityResult:
    logger.info("HIP tests disabled: %s", reason)
    return CapabilityResult.failure(reason)


def probe_hipcc_support(
    config: HarnessConfig,
    enumerator: Optional[DeviceEnumerator],
    compiler: Compiler,
    configuration_query: Callable[[], str],
) -> CapabilityResult:
    """Run the ordered capability checks once, without caching.

    Args:
        config: Harness configuration
        enumerator: Target source passed to hcc_amdgpu_targets()
        compiler: Compiler used for the trial build
        configuration_query: Returns the debugger's --configuration output

    Returns:
        CapabilityResult.success() or a failure with the first failing reason

    Raises:
        ExternalToolError: If the device enumerator exits with a failure status
    """
    if config.is_remote:
        return _fail("remote debugging")

    if not sys.platform.startswith("linux"):
        return _fail("target platform is not Linux")

    if not supports_amd_dbgapi(configuration_query()):
        return _fail("amd-dbgapi not supported")

    targets = hcc_amdgpu_targets(config, enumerator)
    if not targets:
        return _fail("no suitable amdgpu targets found")

    result = compiler.compile(HIP_PROBE_SOURCE, config.build_dir / HIP_PROBE_EXECUTABLE, targets)
    if not result.success:
        return _fail("failed to compile hip program")

    logger.debug("HIP tests enabled for targets: %s", ",".join(targets))
    return CapabilityResult.success()
