"""
Command-line interface for rocm-harness.

Lets a developer see, outside of a test run, what the harness would decide:

    rocm-harness targets        # one AMDGPU target per line
    rocm-harness probe          # capability report, exit 0 if HIP tests would run
    rocm-harness -v probe       # same, with debug logging of every tool invocation
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table

from rocm_harness.env import ConfigError, HarnessConfig
from rocm_harness.environment import HipTestEnvironment
from rocm_harness.targets import ExternalToolError

EXIT_OK = 0
EXIT_UNSUPPORTED = 1
EXIT_ERROR = 2


@dataclass
class CliArgs:
    """Parsed command-line arguments."""

    command: str
    verbose: bool = False


def targets_command(environment: HipTestEnvironment, console: Console) -> int:
    for target in environment.hcc_amdgpu_targets():
        console.print(target, highlight=False)
    return EXIT_OK


def probe_command(environment: HipTestEnvironment, console: Console) -> int:
    """Print the capability report.

    Device predicates are only meaningful once the probe passed, but they are
    shown regardless so a misconfigured host can be diagnosed in one run.
    """
    result = environment.allow_hipcc_tests()
    targets = environment.hcc_amdgpu_targets()

    table = Table(title="ROCm debugging support")
    table.add_column("Check")
    table.add_column("Result")
    table.add_row("AMDGPU targets", ", ".join(targets) if targets else "[dim]none[/dim]")
    table.add_row("HIP tests", "[green]yes[/green]" if result else f"[red]no[/red] ({result.reason})")
    table.add_row("Multi-process debug", _yes_no(environment.hip_devices_support_debug_multi_process()))
    table.add_row("Precise memory", _yes_no(environment.hip_devices_support_precise_memory()))
    table.add_row("GPU lock", str(environment.config.lock_path))
    console.print(table)

    return EXIT_OK if result else EXIT_UNSUPPORTED


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


def parse_args(argv: Optional[Sequence[str]] = None) -> CliArgs:
    parser = argparse.ArgumentParser(prog="rocm-harness", description="Inspect ROCm GPU debugging support on this host")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every tool invocation")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("targets", help="List the AMDGPU targets tests would use")
    subparsers.add_parser("probe", help="Report whether HIP debugging tests can run")
    ns = parser.parse_args(argv)
    return CliArgs(command=ns.command, verbose=ns.verbose)


def main(argv: Optional[Sequence[str]] = None, console: Optional[Console] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if console is None:
        console = Console()

    try:
        environment = HipTestEnvironment(HarnessConfig.from_env())
        if args.command == "targets":
            return targets_command(environment, console)
        return probe_command(environment, console)
    except (ConfigError, ExternalToolError) as e:
        console.print(f"[red]ERROR:[/red] {e}", highlight=False)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
