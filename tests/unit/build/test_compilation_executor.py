"""
Unit tests for CompilationExecutor.
"""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from jlbuild.build.compilation_executor import CompilationExecutor
from jlbuild.errors import CompilationError, LinkingError, StageFailure


def make_process(returncode=0, stdout="", stderr=""):
    proc = Mock()
    proc.returncode = returncode
    proc.pid = 4242
    proc.communicate.return_value = (stdout, stderr)
    return proc


class TestCompilationExecutor:
    """Test suite for CompilationExecutor.run."""

    @patch("jlbuild.build.compilation_executor.subprocess.Popen")
    def test_run_success(self, mock_popen, tmp_path):
        mock_popen.return_value = make_process(stdout="ok\n")

        result = CompilationExecutor().run(["gcc", "-v"], cwd=tmp_path)

        assert isinstance(result, subprocess.CompletedProcess)
        assert result.returncode == 0
        assert result.stdout == "ok\n"
        kwargs = mock_popen.call_args[1]
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["env"] is None

    @patch("jlbuild.build.compilation_executor.subprocess.Popen")
    def test_run_passes_env(self, mock_popen, tmp_path):
        mock_popen.return_value = make_process()
        env = {"PATH": "/usr/bin;/mingw/bin"}

        CompilationExecutor().run(["gcc"], cwd=tmp_path, env=env)

        assert mock_popen.call_args[1]["env"] is env

    @patch("jlbuild.build.compilation_executor.subprocess.Popen")
    def test_run_failure_raises_error_cls(self, mock_popen, tmp_path):
        mock_popen.return_value = make_process(returncode=1, stderr="undefined reference to `foo'")

        with pytest.raises(LinkingError) as exc_info:
            CompilationExecutor().run(
                ["gcc", "-shared", "-o", "app.so"],
                cwd=tmp_path,
                error_cls=LinkingError,
                description='Build shared library "app.so"',
            )

        error = exc_info.value
        assert error.returncode == 1
        assert error.command == ["gcc", "-shared", "-o", "app.so"]
        assert "undefined reference" in error.stderr
        assert str(error).startswith('Linking failed: Build shared library "app.so" (exit status 1)')

    @patch("jlbuild.build.compilation_executor.subprocess.Popen")
    def test_run_default_error_cls(self, mock_popen, tmp_path):
        mock_popen.return_value = make_process(returncode=2)

        with pytest.raises(StageFailure):
            CompilationExecutor().run(["julia"], cwd=tmp_path)

    @patch("jlbuild.build.compilation_executor.subprocess.Popen")
    def test_run_missing_executable(self, mock_popen, tmp_path):
        mock_popen.side_effect = FileNotFoundError("no julia")

        with pytest.raises(CompilationError, match="cannot start julia"):
            CompilationExecutor().run(["julia"], cwd=tmp_path, error_cls=CompilationError)

    @patch("jlbuild.build.compilation_executor.subprocess.Popen")
    def test_show_output(self, mock_popen, tmp_path, capsys):
        mock_popen.return_value = make_process(stdout="hello\n", stderr="warning: x\n")

        CompilationExecutor(show_output=True).run(["gcc"], cwd=tmp_path)

        out = capsys.readouterr().out
        assert "hello" in out
        assert "warning: x" in out

    @patch("jlbuild.build.compilation_executor.handle_keyboard_interrupt_properly")
    @patch("jlbuild.build.compilation_executor.terminate_process_tree")
    @patch("jlbuild.build.compilation_executor.subprocess.Popen")
    def test_keyboard_interrupt_terminates_tree(self, mock_popen, mock_terminate, mock_handle, tmp_path):
        proc = make_process()
        proc.communicate.side_effect = KeyboardInterrupt()
        mock_popen.return_value = proc
        mock_handle.side_effect = KeyboardInterrupt()

        with pytest.raises(KeyboardInterrupt):
            CompilationExecutor().run(["julia"], cwd=tmp_path)

        mock_terminate.assert_called_once_with(4242)


class TestCheckTool:
    """Test suite for CompilationExecutor.check_tool."""

    @patch("jlbuild.build.compilation_executor.subprocess.run")
    def test_tool_runs(self, mock_run):
        mock_run.return_value = Mock(returncode=0)
        assert CompilationExecutor().check_tool(["gcc", "-v"]) is True

    @patch("jlbuild.build.compilation_executor.subprocess.run")
    def test_tool_fails(self, mock_run):
        mock_run.return_value = Mock(returncode=1)
        assert CompilationExecutor().check_tool(["gcc", "-v"]) is False

    @patch("jlbuild.build.compilation_executor.subprocess.run")
    def test_tool_missing(self, mock_run):
        mock_run.side_effect = FileNotFoundError("gcc")
        assert CompilationExecutor().check_tool(["gcc", "-v"]) is False
