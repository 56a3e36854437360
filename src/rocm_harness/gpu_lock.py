"""
Exclusive access to the shared GPU across parallel test workers.

Workers may be separate processes (pytest-xdist, parallel make check) or
separate hosts sharing one device through a common directory, so the only
synchronization is an advisory lock file. Waiter ordering is whatever the
underlying lock provides.

Teardown order inside the lock:
    1. body returns or raises
    2. debugger session is terminated
    3. lock is released
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, TypeVar

from filelock import FileLock, Timeout

from rocm_harness.debugger import DebuggerSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GpuLockTimeoutError(Exception):
    """Raised when the GPU lock could not be acquired within the timeout."""

    pass


@contextmanager
def rocm_gpu_lock(session: DebuggerSession, lock_path: Path, timeout: float = -1) -> Iterator[None]:
    """Hold the GPU lock for the duration of the block.

    The debugger session is terminated after the block, on every exit path,
    before the lock is released. Exceptions from the block propagate once
    teardown is complete.

    Args:
        session: Debugger session to tear down before releasing
        lock_path: Lock file shared by every worker in the run
        timeout: Seconds to wait for the lock, negative blocks forever

    Raises:
        GpuLockTimeoutError: If the lock is not acquired within timeout
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path), timeout=timeout)

    logger.debug("Waiting for GPU lock %s", lock_path)
    try:
        lock.acquire()
    except Timeout as e:
        raise GpuLockTimeoutError(f"Timed out after {timeout}s waiting for GPU lock {lock_path}") from e

    try:
        logger.debug("Acquired GPU lock %s", lock_path)
        try:
            yield
        finally:
            session.terminate()
    finally:
        lock.release()
        logger.debug("Released GPU lock %s", lock_path)


def with_rocm_gpu_lock(body: Callable[[], T], session: DebuggerSession, lock_path: Path, timeout: float = -1) -> T:
    """Run body() while holding the GPU lock and return its result."""
    with rocm_gpu_lock(session, lock_path, timeout):
        return body()
