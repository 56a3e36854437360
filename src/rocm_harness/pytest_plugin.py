"""pytest integration for HIP debugging tests.

Markers:
    hip: skip unless the host can build and debug HIP programs
    hip_multi_process: additionally require multi-process debug support on every device
    hip_precise_memory: additionally require precise-memory support on every device
    rocm_gpu: run the test body while holding the shared GPU lock

Checks are evaluated lazily, only for marked tests, against a single
HipTestEnvironment per pytest session, so the capability probe runs
at most once per pytest session. Under pytest-xdist each worker has its
own session, so each worker probes once.
"""

from typing import Any, Generator, Optional

import pytest

from rocm_harness.environment import HipTestEnvironment

HIP_MARKERS = frozenset({"hip", "hip_multi_process", "hip_precise_memory"})

_ENVIRONMENT_KEY = pytest.StashKey[HipTestEnvironment]()


def pytest_configure(config: Any) -> None:
    """Register the harness markers."""
    config.addinivalue_line("markers", "hip: requires a host able to build and debug HIP programs")
    config.addinivalue_line("markers", "hip_multi_process: requires multi-process debug support on every AMDGPU device")
    config.addinivalue_line("markers", "hip_precise_memory: requires precise-memory support on every AMDGPU device")
    config.addinivalue_line("markers", "rocm_gpu: run the test while holding the shared GPU lock")


def install_environment(config: Any, environment: HipTestEnvironment) -> None:
    """Use `environment` for this session instead of one built from os.environ."""
    config.stash[_ENVIRONMENT_KEY] = environment


def get_environment(config: Any) -> HipTestEnvironment:
    environment: Optional[HipTestEnvironment] = config.stash.get(_ENVIRONMENT_KEY, None)
    if environment is None:
        environment = HipTestEnvironment()
        config.stash[_ENVIRONMENT_KEY] = environment
    return environment


def pytest_runtest_setup(item: Any) -> None:
    """Skip HIP-marked tests the current host cannot run."""
    markers = {mark.name for mark in item.iter_markers()}
    if not markers & HIP_MARKERS:
        return

    environment = get_environment(item.config)
    result = environment.allow_hipcc_tests()
    if not result:
        pytest.skip(result.reason)

    if "hip_multi_process" in markers and not environment.hip_devices_support_debug_multi_process():
        pytest.skip("AMDGPU devices do not support debugging multiple processes")
    if "hip_precise_memory" in markers and not environment.hip_devices_support_precise_memory():
        pytest.skip("AMDGPU devices do not support precise memory")


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_call(item: Any) -> Generator[None, Any, None]:
    """Hold the GPU lock around rocm_gpu-marked test bodies."""
    # The rocm_gpu_lock fixture already holds the lock for the whole test
    if item.get_closest_marker("rocm_gpu") is None or "rocm_gpu_lock" in getattr(item, "fixturenames", ()):
        yield
        return

    with get_environment(item.config).rocm_gpu_lock():
        yield


@pytest.fixture(scope="session")
def hip_environment(request: Any) -> HipTestEnvironment:
    """The session-wide HipTestEnvironment."""
    return get_environment(request.config)


@pytest.fixture
def hip_targets(hip_environment: HipTestEnvironment) -> list[str]:
    """AMDGPU targets discovered for this test."""
    return hip_environment.hcc_amdgpu_targets()


@pytest.fixture
def rocm_gpu_lock(hip_environment: HipTestEnvironment) -> Generator[Any, None, None]:
    """Hold the GPU lock for the test and yield the debugger session.

    The session is terminated before the lock is released.
    """
    with hip_environment.rocm_gpu_lock():
        yield hip_environment.session
