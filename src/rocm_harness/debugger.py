"""
Debugger-under-test helpers.

Two concerns live here:
- Reading the debugger's build configuration (`gdb --configuration`) to see
  whether it was built with amd-dbgapi support.
- Owning a running debugger process so it can be torn down, together with
  any inferiors it spawned, before the GPU lock is handed to another worker.
"""

import logging
import subprocess
from typing import Optional, Protocol, Sequence

import psutil

from rocm_harness.subprocess_utils import safe_popen, safe_run

logger = logging.getLogger(__name__)

AMD_DBGAPI_MARKER = "--with-amd-dbgapi"


def query_configuration(gdb: str, internal_flags: Sequence[str] = ()) -> str:
    """Return the output of `<gdb> <internal_flags> --configuration`.

    Args:
        gdb: Debugger binary
        internal_flags: Flags passed to every debugger invocation

    Returns:
        The configuration text, or "" if the debugger cannot be run or fails
    """
    cmd = [gdb, *internal_flags, "--configuration"]
    try:
        result = safe_run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    except OSError as e:
        logger.debug("Could not run %s: %s", gdb, e)
        return ""

    if result.returncode != 0:
        logger.debug("%s --configuration exited with %d", gdb, result.returncode)
        return ""
    return result.stdout


def supports_amd_dbgapi(configuration: str) -> bool:
    """True if a `--configuration` dump shows amd-dbgapi was compiled in."""
    return AMD_DBGAPI_MARKER in configuration


class DebuggerSession(Protocol):
    """A debugger session that can be ended at any time.

    terminate() must be idempotent: calling it with no live session is a no-op.
    """

    def terminate(self) -> None: ...


class GdbSession:
    """Owns one debugger process and the process tree below it."""

    def __init__(self, gdb: str, internal_flags: Sequence[str] = ()):
        self.gdb = gdb
        self.internal_flags = list(internal_flags)
        self._process: Optional[subprocess.Popen] = None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def start(self, *args: str, **popen_kwargs) -> subprocess.Popen:
        """Spawn the debugger, terminating any previous session first.

        Args:
            *args: Extra debugger arguments appended after the internal flags
            **popen_kwargs: Passed through to subprocess.Popen

        Returns:
            The Popen handle of the new debugger process
        """
        self.terminate()
        self._process = safe_popen([self.gdb, *self.internal_flags, *args], **popen_kwargs)
        return self._process

    def terminate(self, timeout: float = 3.0) -> None:
        """End the debugger and all of its descendants.

        Children are terminated before the root. Anything still alive after
        `timeout` seconds is killed.
        """
        process = self._process
        self._process = None
        if process is None or process.poll() is not None:
            return

        try:
            root = psutil.Process(process.pid)
            procs = root.children(recursive=True)
        except psutil.NoSuchProcess:
            logger.debug("Debugger process %d already exited", process.pid)
            return
        procs.reverse()
        procs.append(root)

        for proc in procs:
            try:
                proc.terminate()
            except psutil.NoSuchProcess:
                pass  # Already dead

        _gone, alive = psutil.wait_procs(procs, timeout=timeout)
        for proc in alive:
            logger.warning("Force killing debugger process %d", proc.pid)
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                pass

        # Reap the Popen handle so no zombie is left behind
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Debugger process %d did not exit after kill", process.pid)
