"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def cli_env(tmp_path, graph_definition):
    """Environment pointing the CLI at a temporary graph and database."""
    graph_file = tmp_path / "graph.json"
    graph_file.write_text(json.dumps(graph_definition), encoding="utf-8")

    env = dict(os.environ)
    env.update(
        {
            "LEARNSTATE_DATABASE_URL": f"sqlite:///{tmp_path / 'cli.db'}",
            "LEARNSTATE_CONCEPT_GRAPH_PATH": str(graph_file),
            "LEARNSTATE_LOG_LEVEL": "WARNING",
            "COLUMNS": "200",
        }
    )
    return env


def run_cli_command(command: list[str], env: dict, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        command: Arguments after 'python -m learnstate'
        env: Process environment
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    result = subprocess.run(
        [sys.executable, "-m", "learnstate", *command],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, cli_env):
        code, stdout, stderr = run_cli_command(["--help"], cli_env)

        assert code == 0, f"Help failed: {stderr}"
        assert "validate-graph" in stdout
        assert "complete" in stdout


class TestGraphCommands:
    def test_validate_graph(self, cli_env):
        path = cli_env["LEARNSTATE_CONCEPT_GRAPH_PATH"]
        code, stdout, stderr = run_cli_command(["validate-graph", path], cli_env)

        assert code == 0, f"validate-graph failed: {stderr}"
        assert "7 concepts" in stdout

    def test_validate_graph_reports_cycle(self, cli_env, tmp_path):
        cyclic = tmp_path / "cyclic.json"
        cyclic.write_text(json.dumps({"a": ["b"], "b": ["a"]}), encoding="utf-8")

        code, stdout, _ = run_cli_command(["validate-graph", str(cyclic)], cli_env)

        assert code == 1
        assert "Circular" in stdout

    def test_prereqs(self, cli_env):
        code, stdout, stderr = run_cli_command(["prereqs", "closures"], cli_env)

        assert code == 0, f"prereqs failed: {stderr}"
        assert "functions" in stdout
        assert "scope" in stdout
        assert "Unlocks: decorators" in stdout

    def test_prereqs_unknown_concept(self, cli_env):
        code, stdout, _ = run_cli_command(["prereqs", "monads"], cli_env)

        assert code == 1
        assert "Unknown concept" in stdout


class TestMasteryCommands:
    def test_complete_then_status(self, cli_env):
        code, stdout, stderr = run_cli_command(
            ["complete", "alice", "closures", "-m", "0.7"], cli_env
        )
        assert code == 0, f"complete failed: {stderr}"
        assert "mastery 0.70" in stdout
        assert "reviews 0" in stdout

        code, stdout, stderr = run_cli_command(["complete", "alice", "closures", "-m", "0.8"], cli_env)
        assert code == 0, f"second complete failed: {stderr}"
        assert "reviews 1" in stdout

        code, stdout, stderr = run_cli_command(["status", "alice"], cli_env)
        assert code == 0, f"status failed: {stderr}"
        assert "closures" in stdout

    def test_complete_unknown_concept(self, cli_env):
        code, stdout, _ = run_cli_command(["complete", "alice", "monads"], cli_env)

        assert code == 1
        assert "Unknown concept" in stdout

    def test_due_with_nothing_recorded(self, cli_env):
        code, stdout, stderr = run_cli_command(["due", "alice", "--concept", "closures"], cli_env)

        assert code == 0, f"due failed: {stderr}"
        assert "Nothing due" in stdout

    def test_status_without_records(self, cli_env):
        code, stdout, stderr = run_cli_command(["status", "bob"], cli_env)

        assert code == 0, f"status failed: {stderr}"
        assert "No mastery records" in stdout


class TestConfigCommand:
    def test_shows_effective_settings(self, cli_env):
        cli_env["LEARNSTATE_RETENTION_THRESHOLD"] = "0.65"

        code, stdout, stderr = run_cli_command(["config"], cli_env)

        assert code == 0, f"config failed: {stderr}"
        assert "retention_threshold" in stdout
        assert "0.65" in stdout
        assert "topic_window_size" in stdout
        assert "not configured" in stdout
