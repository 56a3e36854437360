"""ROCm toolchain lookup and the HIP compiler wrapper.

Tool Location:
    - ROCM_PATH set: <ROCM_PATH>/bin/<tool> (no PATH fallback)
    - ROCM_PATH unset: <tool> resolved through the caller's PATH

A tool that cannot be located is not an error here. Callers decide whether
a missing tool means "feature unavailable" or something worse.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence

from rocm_harness.subprocess_utils import safe_run

logger = logging.getLogger(__name__)

HIPCC = "hipcc"


def find_rocm_tool(name: str, rocm_path: Optional[Path] = None) -> Optional[Path]:
    """Locate a ROCm executable.

    Args:
        name: Executable name (e.g., "hipcc", "rocm_agent_enumerator")
        rocm_path: ROCm installation root, or None to search PATH

    Returns:
        Path to the executable, or None if it cannot be found
    """
    candidate = str(rocm_path / "bin" / name) if rocm_path is not None else name
    found = shutil.which(candidate)
    if found is None:
        logger.debug("%s not found (looked for %s)", name, candidate)
        return None
    return Path(found)


@dataclass
class CompileResult:
    """Outcome of a single compilation.

    Attributes:
        success: True if the compiler exited with status 0
        output: Combined compiler stdout/stderr (or a lookup failure message)
        executable: Path where the executable was requested
    """

    success: bool
    output: str
    executable: Path


class Compiler(Protocol):
    """Builds a single-file device program into an executable."""

    def compile(self, source: str, output: Path, targets: Sequence[str]) -> CompileResult: ...


class HipCompiler:
    """Compiles HIP sources with hipcc for a set of offload architectures."""

    def __init__(self, rocm_path: Optional[Path] = None, extra_flags: Sequence[str] = ()):
        """Initialize the compiler wrapper.

        Args:
            rocm_path: ROCm installation root, or None to search PATH
            extra_flags: Additional flags passed before the source file
        """
        self.rocm_path = rocm_path
        self.extra_flags = list(extra_flags)

    def compile(self, source: str, output: Path, targets: Sequence[str]) -> CompileResult:
        """Compile HIP source text to an executable.

        The source is written next to the executable as <output>.cpp. Both
        files are left on disk.

        Args:
            source: HIP C++ source text
            output: Path of the executable to produce
            targets: Offload architectures, joined into one --offload-arch flag

        Returns:
            CompileResult describing the outcome
        """
        hipcc = find_rocm_tool(HIPCC, self.rocm_path)
        if hipcc is None:
            return CompileResult(success=False, output=f"{HIPCC} not found", executable=output)

        output.parent.mkdir(parents=True, exist_ok=True)
        source_path = output.with_name(output.name + ".cpp")
        source_path.write_text(source, encoding="utf-8")

        cmd = [
            str(hipcc),
            f"--offload-arch={','.join(targets)}",
            *self.extra_flags,
            str(source_path),
            "-o",
            str(output),
        ]
        try:
            result = safe_run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
        except OSError as e:
            return CompileResult(success=False, output=str(e), executable=output)

        if result.returncode != 0:
            logger.debug("hipcc failed with exit code %d:\n%s", result.returncode, result.stdout)
        return CompileResult(success=result.returncode == 0, output=result.stdout or "", executable=output)
