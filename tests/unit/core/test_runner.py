"""Tests for the invoke-based command runner."""

import pytest
from invoke.exceptions import UnexpectedExit

from mergecat.core.runner import Runner


def test_captures_stdout(mock_logger, tmp_path):
    runner = Runner(mock_logger)

    result = runner.execute("pwd", cwd=tmp_path)

    assert result.exited == 0
    assert result.stdout.strip() == str(tmp_path)


def test_base_env_and_call_env_are_merged(mock_logger):
    runner = Runner(mock_logger, env={"FIRST": "a", "SECOND": "b"})

    result = runner.execute(
        'echo "$FIRST$SECOND"', env={"SECOND": "c"}
    )

    assert result.stdout.strip() == "ac"


def test_check_false_returns_failure(mock_logger):
    runner = Runner(mock_logger)

    result = runner.execute("echo oops >&2; exit 3", check=False)

    assert result.exited == 3
    mock_logger.trace.assert_called_with("stderr: {line}", line="oops")


def test_check_true_raises(mock_logger):
    runner = Runner(mock_logger)

    with pytest.raises(UnexpectedExit):
        runner.execute("exit 1")


def test_display_replaces_logged_command(mock_logger):
    runner = Runner(mock_logger)

    runner.execute("echo secret", display="echo ***")

    mock_logger.debug.assert_called_once_with(
        "Executing", command="echo ***", cwd=None
    )


def test_timeout_reports_exit_minus_one(mock_logger):
    runner = Runner(mock_logger)

    result = runner.execute("sleep 5", timeout=1, check=False)

    assert result.exited == -1
