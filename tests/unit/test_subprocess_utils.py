"""Tests for subprocess_utils module."""

import subprocess
from contextlib import contextmanager
from unittest.mock import patch

from rocm_harness.subprocess_utils import get_subprocess_creation_flags, safe_popen, safe_run

# subprocess only defines CREATE_NO_WINDOW on Windows
CREATE_NO_WINDOW = 0x08000000


@contextmanager
def _on_windows():
    with patch("sys.platform", "win32"), patch("subprocess.CREATE_NO_WINDOW", CREATE_NO_WINDOW, create=True):
        yield


def test_get_subprocess_creation_flags_windows():
    """Test that Windows returns CREATE_NO_WINDOW flag."""
    with _on_windows():
        assert get_subprocess_creation_flags() == CREATE_NO_WINDOW


def test_get_subprocess_creation_flags_linux():
    """Test that Linux returns 0."""
    with patch("sys.platform", "linux"):
        assert get_subprocess_creation_flags() == 0


@patch("subprocess.run")
def test_safe_run_no_flags_on_linux(mock_run):
    """safe_run passes no creationflags on Linux."""
    with patch("sys.platform", "linux"):
        safe_run(["rocm_agent_enumerator"], capture_output=True)

    call_kwargs = mock_run.call_args[1]
    assert "creationflags" not in call_kwargs


@patch("subprocess.run")
def test_safe_run_merges_custom_creationflags(mock_run):
    """Custom creationflags are OR'd with the Windows default."""
    with _on_windows():
        custom_flag = 0x00000200
        safe_run(["hipcc", "--version"], creationflags=custom_flag)

    call_kwargs = mock_run.call_args[1]
    assert call_kwargs["creationflags"] == custom_flag | CREATE_NO_WINDOW


@patch("subprocess.run")
def test_safe_run_redirects_stdin_by_default(mock_run):
    """A debugger must never inherit the test runner's stdin."""
    safe_run(["gdb", "--configuration"])

    assert mock_run.call_args[1]["stdin"] == subprocess.DEVNULL


@patch("subprocess.run")
def test_safe_run_keeps_explicit_stdin(mock_run):
    safe_run(["gdb"], stdin=subprocess.PIPE)

    assert mock_run.call_args[1]["stdin"] == subprocess.PIPE


@patch("subprocess.Popen")
def test_safe_popen_applies_flags_on_windows(mock_popen):
    """safe_popen applies CREATE_NO_WINDOW on Windows."""
    with _on_windows():
        safe_popen(["gdb"])

    call_kwargs = mock_popen.call_args[1]
    assert call_kwargs["creationflags"] == CREATE_NO_WINDOW
    assert call_kwargs["stdin"] == subprocess.DEVNULL
