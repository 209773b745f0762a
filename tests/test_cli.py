"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from chatmemory import __version__
from chatmemory.__main__ import app, load_history
from chatmemory.messages import InvalidMessageError

runner = CliRunner()

RECORDS = [
    {"id": "1", "role": "user", "content": "How do I use useState?", "timestamp": "2025-01-01T10:00:00"},
    {"id": "2", "role": "assistant", "content": "Call useState inside a component.", "timestamp": "2025-01-01T10:00:05"},
    {"id": "3", "role": "user", "content": "And useEffect?", "timestamp": "2025-01-01T10:01:00"},
    {"id": "4", "role": "assistant", "content": "useEffect runs after render.", "timestamp": "2025-01-01T10:01:10"},
]  # fmt: skip


@pytest.fixture
def history_file(tmp_path: Path) -> Path:
    """Write the sample history as JSON."""
    path = tmp_path / "session.json"
    path.write_text(json.dumps(RECORDS), encoding="utf-8")
    return path


class TestLoadHistory:
    """Tests for load_history."""

    def test_json_list(self, history_file: Path) -> None:
        """Test loading a JSON list of records."""
        messages = load_history(history_file)

        assert [m.id for m in messages] == ["1", "2", "3", "4"]

    def test_yaml_messages_key(self, tmp_path: Path) -> None:
        """Test loading a YAML object with a messages list."""
        path = tmp_path / "session.yaml"
        path.write_text(yaml.safe_dump({"messages": RECORDS}), encoding="utf-8")

        messages = load_history(path)

        assert len(messages) == 4
        assert messages[0].content == "How do I use useState?"

    def test_invalid_layout(self, tmp_path: Path) -> None:
        """Test that a non-list history is rejected."""
        path = tmp_path / "session.json"
        path.write_text(json.dumps({"id": "1"}), encoding="utf-8")

        with pytest.raises(InvalidMessageError):
            load_history(path)


class TestOptimizeCommand:
    """Tests for the optimize command."""

    def test_json_output(self, history_file: Path) -> None:
        """Test printing the request turns as JSON."""
        result = runner.invoke(
            app,
            ["optimize", str(history_file), "--json", "--no-transcript", "-m", "2"],
        )

        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"role": "user", "content": "And useEffect?"},
            {"role": "assistant", "content": "useEffect runs after render."},
        ]

    def test_json_output_with_system_and_summary(self, history_file: Path) -> None:
        """Test system prompt and dropped-history summary turns."""
        result = runner.invoke(
            app,
            [
                "optimize",
                str(history_file),
                "--json",
                "--no-transcript",
                "--max-messages",
                "2",
                "--system-prompt",
                "You are a React tutor.",
                "--summary",
            ],
        )

        assert result.exit_code == 0
        turns = json.loads(result.output)
        assert [t["role"] for t in turns] == ["system", "system", "user", "assistant"]
        assert turns[0]["content"] == "You are a React tutor."
        assert "Conversation contains 2 messages" in turns[1]["content"]

    def test_table_output(self, history_file: Path) -> None:
        """Test the human readable output."""
        result = runner.invoke(app, ["optimize", str(history_file), "--no-transcript"])

        assert result.exit_code == 0
        assert "Kept 4 of 4 messages" in result.output
        assert "Total messages: 4" in result.output

    def test_writes_transcript(self, history_file: Path, tmp_path: Path) -> None:
        """Test that transcripts are written to the transcript directory."""
        transcript_dir = tmp_path / "transcripts"

        result = runner.invoke(
            app,
            ["optimize", str(history_file), "--transcript-dir", str(transcript_dir)],
        )

        assert result.exit_code == 0
        json_files = list(transcript_dir.glob("session_*.json"))
        assert len(json_files) == 1
        data = json.loads(json_files[0].read_text(encoding="utf-8"))
        assert data["entries"][0]["entry_type"] == "optimization"
        assert list(transcript_dir.glob("session_*.md"))

    def test_invalid_history(self, tmp_path: Path) -> None:
        """Test that a malformed history exits with an error."""
        path = tmp_path / "bad.json"
        records = [dict(RECORDS[0], role="bot")]
        path.write_text(json.dumps(records), encoding="utf-8")

        result = runner.invoke(app, ["optimize", str(path), "--no-transcript"])

        assert result.exit_code == 1
        assert "Invalid role" in result.output

    def test_object_role(self, tmp_path: Path) -> None:
        """Test that a non-string role exits with an error."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([dict(RECORDS[0], role={"a": 1})]), encoding="utf-8")

        result = runner.invoke(app, ["stats", str(path)])

        assert result.exit_code == 1
        assert "Invalid role" in result.output

    def test_invalid_utf8(self, tmp_path: Path) -> None:
        """Test that a history that is not UTF-8 exits with an error."""
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe")

        result = runner.invoke(app, ["stats", str(path)])

        assert result.exit_code == 1
        assert "Cannot read" in result.output

    def test_system_prompt_in_table_output(self, history_file: Path) -> None:
        """Test that the system prompt is shown without --json."""
        result = runner.invoke(
            app,
            ["optimize", str(history_file), "--no-transcript", "-s", "Be brief."],
        )

        assert result.exit_code == 0
        assert "Be brief." in result.output

    def test_unreadable_json(self, tmp_path: Path) -> None:
        """Test that broken JSON exits with an error."""
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")

        result = runner.invoke(app, ["optimize", str(path), "--no-transcript"])

        assert result.exit_code == 1
        assert "Cannot read" in result.output


class TestOtherCommands:
    """Tests for the stats, keywords, search, summary and version commands."""

    def test_stats(self, history_file: Path) -> None:
        """Test printing statistics."""
        result = runner.invoke(app, ["stats", str(history_file)])

        assert result.exit_code == 0
        assert "Total messages: 4" in result.output
        assert "User messages: 2" in result.output

    def test_keywords(self) -> None:
        """Test extracting keywords."""
        result = runner.invoke(app, ["keywords", "cache cache redis the", "--limit", "2"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["cache", "redis"]

    def test_keywords_none(self) -> None:
        """Test text without keywords."""
        result = runner.invoke(app, ["keywords", "the a"])

        assert result.exit_code == 0
        assert "No keywords found" in result.output

    def test_search(self, history_file: Path) -> None:
        """Test searching the history."""
        result = runner.invoke(
            app,
            ["search", str(history_file), "useEffect", "--no-transcript"],
        )

        assert result.exit_code == 0
        assert "2 relevant messages" in result.output

    def test_search_from_text(self, history_file: Path) -> None:
        """Test searching with keywords extracted from text."""
        result = runner.invoke(
            app,
            ["search", str(history_file), "--from-text", "useState", "--no-transcript"],
        )

        assert result.exit_code == 0
        assert "Keywords: usestate" in result.output

    def test_search_without_keywords(self, history_file: Path) -> None:
        """Test that a search needs keywords."""
        result = runner.invoke(app, ["search", str(history_file), "--no-transcript"])

        assert result.exit_code == 1
        assert "Provide keywords" in result.output

    def test_summary(self, history_file: Path) -> None:
        """Test printing a summary."""
        result = runner.invoke(app, ["summary", str(history_file), "--no-transcript"])

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "Conversation contains 4 messages",
            "User questions: 2",
            "Assistant replies: 2",
            "First question: How do I use useState?...",
            "Last question: And useEffect?...",
        ]

    def test_version(self) -> None:
        """Test the version command."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
