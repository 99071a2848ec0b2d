"""Tests for the command line interface."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from click.testing import CliRunner

from ccmeter import cli as cli_module
from ccmeter.cli import cli
from ccmeter.config import ConfigManager

from .conftest import assistant_record, iso, write_log


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's own config file out of CLI runs."""
    manager = ConfigManager(str(tmp_path / "absent.toml"))
    monkeypatch.setattr(cli_module, "config_manager", manager)
    return manager


@pytest.fixture()
def populated(projects_dir, registry_file):
    now = datetime.now(timezone.utc)
    write_log(
        projects_dir / "-home-user-alpha",
        "session.jsonl",
        [
            assistant_record(
                uuid="a1",
                timestamp=iso(now - timedelta(minutes=10)),
                input_tokens=1_000_000,
                output_tokens=1_000_000,
                text="Refactored the parser.",
            ),
            assistant_record(
                uuid="a1",
                timestamp=iso(now - timedelta(minutes=10)),
                input_tokens=1_000_000,
                output_tokens=1_000_000,
            ),
        ],
    )
    return ["--projects-dir", str(projects_dir), "--registry", str(registry_file)]


class TestStatsCommand:
    def test_json_output(self, populated):
        result = CliRunner().invoke(cli, populated + ["stats", "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["total_messages_count"] == 1
        assert data["total_cost"] == 18.0
        assert data["total_tokens"] == 2_000_000
        assert list(data["by_project"]) == ["/home/user/alpha"]
        assert data["by_model"]["claude-sonnet-4-20250514"]["message_count"] == 1

    def test_table_output(self, populated):
        result = CliRunner().invoke(cli, populated + ["stats"])

        assert result.exit_code == 0, result.output
        assert "Claude Code Usage" in result.output
        assert "claude-sonnet-4-20250514" in result.output
        assert "/home/user/alpha" in result.output

    def test_empty_log_root(self, tmp_path):
        result = CliRunner().invoke(
            cli, ["--projects-dir", str(tmp_path / "missing"), "stats"]
        )

        assert result.exit_code == 0
        assert "No claude-code logs found under" in result.output
        assert "No usage recorded yet." in result.output


class TestChartCommand:
    def test_json_output(self, populated):
        result = CliRunner().invoke(
            cli, populated + ["chart", "--days", "7", "--format", "json"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert len(data["daily"]) == 1
        assert data["daily"][0]["messages"] == 1
        assert data["by_model"][0]["name"] == "claude-sonnet-4-20250514"
        assert data["by_project"][0]["tokens"] == 2_000_000

    def test_no_usage_in_window(self, projects_dir):
        result = CliRunner().invoke(cli, ["--projects-dir", str(projects_dir), "chart"])

        assert result.exit_code == 0
        assert "No usage in the last 30 days." in result.output


class TestLatestCommand:
    def test_prints_excerpt(self, populated):
        result = CliRunner().invoke(cli, populated + ["latest"])

        assert result.exit_code == 0
        assert result.output.strip() == "Refactored the parser."

    def test_truncates(self, populated):
        result = CliRunner().invoke(cli, populated + ["latest", "--chars", "10"])
        assert result.output.strip() == "Refactored..."

    def test_nothing_found(self, projects_dir):
        result = CliRunner().invoke(cli, ["--projects-dir", str(projects_dir), "latest"])

        assert result.exit_code == 1
        assert "No assistant response found." in result.output


class TestSessionsCommand:
    @pytest.fixture()
    def two_sessions(self, populated, projects_dir):
        write_log(
            projects_dir / "-tmp-scratch",
            "older.jsonl",
            [
                {"type": "summary", "summary": "Deque [experiments]"},
                {
                    "type": "user",
                    "timestamp": "2026-01-05T09:00:00Z",
                    "message": {"role": "user", "content": "Try a deque for the queue"},
                },
            ],
        )
        return populated

    def test_json_output(self, two_sessions):
        result = CliRunner().invoke(cli, two_sessions + ["sessions", "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [s["session_id"] for s in data] == ["session", "older"]
        assert data[0]["project"] == "/home/user/alpha"
        assert data[0]["message_count"] == 1
        assert data[0]["cost"] == 18.0
        assert data[0]["total_tokens"] == 2_000_000
        assert data[1]["title"] == "Deque [experiments]"
        assert data[1]["cost"] == 0

    def test_project_and_limit(self, two_sessions):
        result = CliRunner().invoke(
            cli, two_sessions + ["sessions", "/tmp/scratch", "--format", "json"]
        )
        assert [s["session_id"] for s in json.loads(result.output)] == ["older"]

        result = CliRunner().invoke(
            cli, two_sessions + ["sessions", "--limit", "1", "--format", "json"]
        )
        assert [s["session_id"] for s in json.loads(result.output)] == ["session"]

    def test_table_output(self, two_sessions):
        result = CliRunner().invoke(cli, two_sessions + ["sessions"])

        assert result.exit_code == 0, result.output
        assert "Sessions" in result.output
        assert "older" in result.output
        assert "Deque" in result.output

    def test_search(self, two_sessions):
        result = CliRunner().invoke(
            cli, two_sessions + ["sessions", "--search", "PARSER", "--format", "json"]
        )

        assert result.exit_code == 0, result.output
        (match,) = json.loads(result.output)
        assert match["session_id"] == "session"
        assert match["matched_text"] == "parser"
        assert match["match_context"] == "Refactored the parser."
        assert match["message_role"] == "assistant"

    def test_search_table(self, two_sessions):
        result = CliRunner().invoke(cli, two_sessions + ["sessions", "-s", "deque"])

        assert result.exit_code == 0, result.output
        assert "Sessions matching 'deque'" in result.output
        assert "older" in result.output
        assert "assistant" not in result.output

    def test_nothing_found(self, projects_dir):
        args = ["--projects-dir", str(projects_dir), "sessions"]

        result = CliRunner().invoke(cli, args)
        assert result.exit_code == 0
        assert "No sessions found." in result.output

        result = CliRunner().invoke(cli, args + ["--search", "x"])
        assert result.exit_code == 0
        assert "No sessions mention 'x'." in result.output


class TestOtherCommands:
    def test_pricing(self):
        result = CliRunner().invoke(cli, ["pricing"])

        assert result.exit_code == 0
        assert "Claude Opus 4.5" in result.output
        assert "Unmatched models use Sonnet pricing." in result.output

    def test_config(self, isolated_config):
        result = CliRunner().invoke(cli, ["config"])

        assert result.exit_code == 0
        header, _, body = result.output.partition("\n")
        assert header == f"# {isolated_config.config_path}"
        assert json.loads(body)["cache"]["stale_after_seconds"] == 30.0

    def test_invalid_config_file(self, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("[analytics]\nchart_days = -1\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["--config", str(bad), "pricing"])

        assert result.exit_code == 1
        assert "Configuration problem" in result.output
