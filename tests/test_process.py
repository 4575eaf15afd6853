"""Tests for process.py module."""

from unittest.mock import MagicMock, patch

from sealed_secrets_rotator.process import COMMAND_NOT_FOUND, CommandResult, SubprocessRunner


class TestSubprocessRunner:
    """Tests for running external commands."""

    def test_run_captures_output(self, mock_subprocess):
        """Test stdout, stderr and the exit code are captured."""
        mock_subprocess.return_value = MagicMock(returncode=0, stdout="ok\n", stderr="")

        result = SubprocessRunner().run(["kubectl", "version"])

        assert result == CommandResult(stdout="ok\n", stderr="", returncode=0)
        assert result.ok

    def test_run_passes_stdin(self, mock_subprocess):
        """Test stdin is passed as text without raising on failure."""
        SubprocessRunner().run(["kubectl", "apply", "-f", "-"], stdin="kind: SealedSecret\n")

        mock_subprocess.assert_called_once_with(
            ["kubectl", "apply", "-f", "-"],
            input="kind: SealedSecret\n",
            capture_output=True,
            text=True,
            check=False,
        )

    def test_run_non_zero_exit(self, mock_subprocess):
        """Test a failing command is returned, not raised."""
        mock_subprocess.return_value = MagicMock(returncode=1, stdout="", stderr="forbidden\n")

        result = SubprocessRunner().run(["kubectl", "get", "secret"])

        assert not result.ok
        assert result.describe() == "exit code 1: forbidden"

    def test_run_missing_binary(self):
        """Test a missing executable reports exit code 127."""
        with patch("subprocess.run", side_effect=FileNotFoundError):
            result = SubprocessRunner().run(["kubeseal", "--fetch-cert"])

        assert result.returncode == COMMAND_NOT_FOUND
        assert "kubeseal: command not found" in result.stderr

    def test_real_process(self):
        """Test running a real command end to end."""
        result = SubprocessRunner().run(["cat"], stdin="hello")

        assert result.stdout == "hello"
        assert result.returncode == 0


class TestCommandResult:
    """Tests for failure descriptions."""

    def test_describe_without_stderr(self):
        """Test the description falls back to the exit code alone."""
        assert CommandResult(stdout="", stderr="  ", returncode=3).describe() == "exit code 3"
