"""HipTestEnvironment - one object per test run tying the harness together.

Usage:
    env = HipTestEnvironment()
    ok = env.allow_hipcc_tests()
    if not ok:
        skip(ok.reason)

    with env.rocm_gpu_lock():
        env.session.start("-ex", "run", str(program))
        ...
"""

from contextlib import AbstractContextManager
from typing import Callable, Optional, TypeVar

from rocm_harness.capability import CachedResult, CapabilityResult, probe_hipcc_support
from rocm_harness.debugger import DebuggerSession, GdbSession, query_configuration
from rocm_harness.devices import hip_devices_support_debug_multi_process, hip_devices_support_precise_memory
from rocm_harness.env import HarnessConfig
from rocm_harness.gpu_lock import rocm_gpu_lock, with_rocm_gpu_lock
from rocm_harness.targets import DeviceEnumerator, RocmAgentEnumerator, hcc_amdgpu_targets
from rocm_harness.toolchain import Compiler, HipCompiler

T = TypeVar("T")


class HipTestEnvironment:
    """Capability checks and GPU locking for one test run.

    The capability probe is evaluated at most once per instance. Target
    discovery is repeated on every call.
    """

    def __init__(
        self,
        config: Optional[HarnessConfig] = None,
        enumerator: Optional[DeviceEnumerator] = None,
        compiler: Optional[Compiler] = None,
        session: Optional[DebuggerSession] = None,
        configuration_query: Optional[Callable[[], str]] = None,
    ):
        """Initialize the environment.

        Args:
            config: Harness configuration (defaults to HarnessConfig.from_env())
            enumerator: Target source (defaults to rocm_agent_enumerator)
            compiler: Trial compiler (defaults to hipcc)
            session: Debugger session torn down under the GPU lock (defaults to a GdbSession)
            configuration_query: Returns the debugger's --configuration output
        """
        self.config = config if config is not None else HarnessConfig.from_env()
        self.enumerator = enumerator if enumerator is not None else RocmAgentEnumerator(self.config.rocm_path)
        self.compiler = compiler if compiler is not None else HipCompiler(self.config.rocm_path)
        self.session = session if session is not None else GdbSession(self.config.gdb, self.config.internal_gdbflags)
        self._configuration_query = configuration_query if configuration_query is not None else self._query_configuration
        self._hipcc_support: CachedResult[CapabilityResult] = CachedResult(self._probe)

    def _query_configuration(self) -> str:
        return query_configuration(self.config.gdb, self.config.internal_gdbflags)

    def _probe(self) -> CapabilityResult:
        return probe_hipcc_support(self.config, self.enumerator, self.compiler, self._configuration_query)

    def hcc_amdgpu_targets(self) -> list[str]:
        return hcc_amdgpu_targets(self.config, self.enumerator)

    def allow_hipcc_tests(self) -> CapabilityResult:
        """Cached result of the HIP capability probe."""
        return self._hipcc_support.get()

    def reset_capability_cache(self) -> None:
        self._hipcc_support.reset()

    def hip_devices_support_debug_multi_process(self) -> bool:
        return hip_devices_support_debug_multi_process(self.hcc_amdgpu_targets())

    def hip_devices_support_precise_memory(self) -> bool:
        return hip_devices_support_precise_memory(self.hcc_amdgpu_targets())

    def rocm_gpu_lock(self) -> AbstractContextManager[None]:
        return rocm_gpu_lock(self.session, self.config.lock_path, self.config.lock_timeout)

    def with_rocm_gpu_lock(self, body: Callable[[], T]) -> T:
        return with_rocm_gpu_lock(body, self.session, self.config.lock_path, self.config.lock_timeout)
