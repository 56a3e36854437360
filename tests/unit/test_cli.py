"""Tests for cli module."""

import io
from unittest.mock import patch

import pytest
from rich.console import Console

from rocm_harness import cli
from rocm_harness.environment import HipTestEnvironment
from rocm_harness.targets import ExternalToolError
from tests.unit.fakes import DBGAPI_CONFIGURATION, PLAIN_CONFIGURATION, FakeCompiler, FakeConfigurationQuery, FakeEnumerator, FakeSession


def _console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None)


def _run(argv, harness_config, targets, configuration=DBGAPI_CONFIGURATION):
    env = HipTestEnvironment(
        harness_config,
        FakeEnumerator(targets),
        FakeCompiler(),
        FakeSession(),
        FakeConfigurationQuery(configuration),
    )
    console = _console()
    with patch("rocm_harness.cli.HipTestEnvironment", return_value=env), patch("sys.platform", "linux"):
        code = cli.main(argv, console=console)
    return code, console.file.getvalue()


def test_parse_args():
    args = cli.parse_args(["-v", "probe"])

    assert args.command == "probe"
    assert args.verbose is True


def test_parse_args_requires_command():
    with pytest.raises(SystemExit):
        cli.parse_args([])


def test_targets_command(harness_config):
    code, output = _run(["targets"], harness_config, ["gfx90a", "gfx1100"])

    assert code == cli.EXIT_OK
    assert output.splitlines() == ["gfx90a", "gfx1100"]


def test_probe_supported(harness_config):
    code, output = _run(["probe"], harness_config, ["gfx1100"])

    assert code == cli.EXIT_OK
    assert "gfx1100" in output
    assert "gpu-parallel.lock" in output


def test_probe_unsupported_shows_reason(harness_config):
    code, output = _run(["probe"], harness_config, ["gfx1100"], configuration=PLAIN_CONFIGURATION)

    assert code == cli.EXIT_UNSUPPORTED
    assert "amd-dbgapi not supported" in output


def test_enumerator_failure_reported(harness_config):
    class FailingEnumerator:
        def list_targets(self):
            raise ExternalToolError("Failed to run rocm_agent_enumerator")

    env = HipTestEnvironment(harness_config, FailingEnumerator(), FakeCompiler(), FakeSession(), FakeConfigurationQuery(DBGAPI_CONFIGURATION))
    console = _console()
    with patch("rocm_harness.cli.HipTestEnvironment", return_value=env):
        code = cli.main(["targets"], console=console)

    assert code == cli.EXIT_ERROR
    assert "Failed to run rocm_agent_enumerator" in console.file.getvalue()


def test_invalid_config_reported(monkeypatch):
    monkeypatch.setenv("ROCM_HARNESS_LOCK_TIMEOUT", "soon")
    console = _console()

    assert cli.main(["probe"], console=console) == cli.EXIT_ERROR
    assert "ROCM_HARNESS_LOCK_TIMEOUT" in console.file.getvalue()
