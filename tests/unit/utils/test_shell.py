"""Unit tests for shell execution utilities."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest
from enshrine.utils.shell import CommandResult, command_exists, run_command


class TestCommandResult:
    """Tests for CommandResult dataclass."""

    def test_success_on_zero(self) -> None:
        """Return code 0 is success."""
        assert CommandResult(stdout="", stderr="", returncode=0).success is True

    def test_failure_on_nonzero(self) -> None:
        """Non-zero return code is failure."""
        assert CommandResult(stdout="", stderr="boom", returncode=1).success is False

    def test_detail_prefers_stderr(self) -> None:
        result = CommandResult(
            stdout="partial", stderr="fatal: not a git\n  repository\n", returncode=128
        )

        assert result.detail == "fatal: not a git repository"

    def test_detail_falls_back_to_stdout(self) -> None:
        """Some systemctl verbs report only on stdout."""
        result = CommandResult(stdout="Unit foo.service not loaded.\n", stderr="", returncode=5)

        assert result.detail == "Unit foo.service not loaded."

    def test_detail_without_output(self) -> None:
        assert CommandResult(stdout="", stderr="", returncode=4).detail == "exit status 4"


class TestRunCommand:
    """Tests for run_command function."""

    @patch("enshrine.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        """run_command returns captured stdout, stderr and return code."""
        mock_run.return_value = MagicMock(stdout="out", stderr="err", returncode=3)

        result = run_command(["git", "status"])

        assert result == CommandResult(
            stdout="out", stderr="err", returncode=3, args=("git", "status")
        )
        assert mock_run.call_args.kwargs["capture_output"] is True
        assert mock_run.call_args.kwargs["text"] is True

    @patch("enshrine.utils.shell.subprocess.run")
    def test_merges_env(self, mock_run: MagicMock) -> None:
        """Custom env is merged on top of the current environment."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["git"], env={"GIT_CONFIG_NOSYSTEM": "1"})

        call_env = mock_run.call_args.kwargs["env"]
        assert call_env["GIT_CONFIG_NOSYSTEM"] == "1"
        assert "PATH" in call_env

    @patch("enshrine.utils.shell.subprocess.run")
    def test_no_env_inherits(self, mock_run: MagicMock) -> None:
        """Without env, the subprocess inherits the environment unchanged."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["true"])

        assert mock_run.call_args.kwargs["env"] is None

    @patch("enshrine.utils.shell.subprocess.run")
    def test_passes_timeout_and_cwd(self, mock_run: MagicMock) -> None:
        """Timeout None and cwd are forwarded."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["systemctl", "stop", "x"], timeout=None, cwd="/srv")

        assert mock_run.call_args.kwargs["timeout"] is None
        assert mock_run.call_args.kwargs["cwd"] == "/srv"

    @patch("enshrine.utils.shell.subprocess.run")
    def test_forwards_decoding_errors(self, mock_run: MagicMock) -> None:
        """The decoding error handler is passed through; strict by default."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["git", "status"])
        assert mock_run.call_args.kwargs["errors"] is None

        run_command(["git", "status"], errors="backslashreplace")
        assert mock_run.call_args.kwargs["errors"] == "backslashreplace"

    def test_raises_file_not_found(self) -> None:
        """A missing executable raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            run_command(["definitely-not-a-real-command-enshrine"])

    @patch("enshrine.utils.shell.subprocess.run")
    def test_check_propagates(self, mock_run: MagicMock) -> None:
        """check=True lets CalledProcessError propagate."""
        mock_run.side_effect = subprocess.CalledProcessError(1, ["false"])

        with pytest.raises(subprocess.CalledProcessError):
            run_command(["false"], check=True)


class TestCommandExists:
    """Tests for command_exists function."""

    @patch("enshrine.utils.shell.shutil.which", return_value="/usr/bin/git")
    def test_found(self, _mock_which: MagicMock) -> None:
        """Returns True when which finds the command."""
        assert command_exists("git") is True

    @patch("enshrine.utils.shell.shutil.which", return_value=None)
    def test_not_found(self, _mock_which: MagicMock) -> None:
        """Returns False when which finds nothing."""
        assert command_exists("systemctl") is False
