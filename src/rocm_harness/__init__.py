"""
rocm-harness - helpers for running GPU debugging tests against ROCm devices.

Provides target discovery, the HIP capability probe, per-feature device
predicates and the shared GPU lock used to serialize tests that touch the
device.

Example:
    >>> from rocm_harness import HipTestEnvironment
    >>>
    >>> env = HipTestEnvironment()
    >>> result = env.allow_hipcc_tests()
    >>> if result:
    ...     env.with_rocm_gpu_lock(run_my_test)
    ... else:
    ...     print(f"skipped: {result.reason}")
"""

from rocm_harness.capability import CachedResult, CapabilityResult, probe_hipcc_support
from rocm_harness.debugger import DebuggerSession, GdbSession
from rocm_harness.devices import hip_devices_support_debug_multi_process, hip_devices_support_precise_memory
from rocm_harness.env import ConfigError, HarnessConfig
from rocm_harness.environment import HipTestEnvironment
from rocm_harness.gpu_lock import GpuLockTimeoutError, rocm_gpu_lock, with_rocm_gpu_lock
from rocm_harness.targets import DeviceEnumerator, ExternalToolError, RocmAgentEnumerator, hcc_amdgpu_targets
from rocm_harness.toolchain import CompileResult, Compiler, HipCompiler

__version__ = "0.1.0"

__all__ = [
    "CachedResult",
    "CapabilityResult",
    "CompileResult",
    "Compiler",
    "ConfigError",
    "DebuggerSession",
    "DeviceEnumerator",
    "ExternalToolError",
    "GdbSession",
    "GpuLockTimeoutError",
    "HarnessConfig",
    "HipCompiler",
    "HipTestEnvironment",
    "RocmAgentEnumerator",
    "hcc_amdgpu_targets",
    "hip_devices_support_debug_multi_process",
    "hip_devices_support_precise_memory",
    "probe_hipcc_support",
    "rocm_gpu_lock",
    "with_rocm_gpu_lock",
]
