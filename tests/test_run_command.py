"""Tests for the bash tool."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from agent_harness.tools.run_command import RunCommandTool

from conftest import assert_fail, assert_ok


def _mock_proc(stdout="", stderr="", returncode=0):
    return MagicMock(stdout=stdout, stderr=stderr, returncode=returncode)


class TestRunCommand:
    @pytest.fixture
    def tool(self, workspace):
        return RunCommandTool(str(workspace), timeout=7)

    def test_returns_stdout(self, tool):
        with patch("subprocess.run", return_value=_mock_proc(stdout="hello\n")):
            assert tool.execute({"command": "echo hello"}) == "hello\n"

    def test_falls_back_to_stderr(self, tool):
        with patch("subprocess.run", return_value=_mock_proc(stderr="warned\n")):
            assert tool.execute({"command": "x"}) == "warned\n"

    def test_no_output(self, tool):
        with patch("subprocess.run", return_value=_mock_proc()):
            assert tool.execute({"command": "true"}) == "(no output)"

    def test_non_zero_exit_is_error_with_output(self, tool):
        with patch("subprocess.run", return_value=_mock_proc(stderr="no such file\n", returncode=2)):
            text = tool.execute({"command": "ls missing"})
        assert text.startswith("Error: Command exited with code 2")
        assert "no such file" in text

    def test_timeout(self, tool):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("cmd", 3)):
            r = tool.run({"command": "sleep 99", "timeout_sec": 3})
        assert_fail(r, "TIMEOUT")
        assert "timed out after 3 seconds" in r.message

    def test_stdin_closed_cwd_and_default_timeout(self, tool, workspace):
        with patch("subprocess.run", return_value=_mock_proc()) as mock:
            tool.run({"command": "pwd"})
        kwargs = mock.call_args.kwargs
        assert kwargs["stdin"] is subprocess.DEVNULL
        assert kwargs["cwd"] == str(workspace.resolve())
        assert kwargs["timeout"] == 7
        assert kwargs["shell"] is True

    def test_empty_command(self, tool):
        assert_fail(tool.run({"command": "   "}), "EMPTY_COMMAND")

    def test_os_error(self, tool):
        with patch("subprocess.run", side_effect=OSError("no shell")):
            assert_fail(tool.run({"command": "ls"}), "EXEC_ERROR")

    def test_real_command_runs_in_workspace(self, tool, workspace):
        (workspace / "marker.txt").write_text("x")
        r = tool.run({"command": "ls"})
        assert_ok(r)
        assert "marker.txt" in r.output

    def test_real_command_reading_stdin_does_not_hang(self, tool):
        r = tool.run({"command": "cat", "timeout_sec": 5})
        assert_ok(r)
        assert r.output == "(no output)"
