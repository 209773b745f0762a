"""Tests for configuration loading."""

import tempfile
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from chatmemory.config import Config, LoggingConfig, MemoryConfig, load_config


class TestConfig:
    """Tests for Config class."""

    def test_memory_config_defaults(self) -> None:
        """Test memory config defaults."""
        config = Config()

        assert config.memory.max_messages == 20
        assert config.memory.max_tokens == 4000
        assert config.memory.enable_summary is False
        assert config.memory.keep_system_messages is True

    def test_logging_config_defaults(self) -> None:
        """Test logging config defaults."""
        config = Config()

        assert config.logging.transcript_dir == Path("./transcripts")
        assert config.logging.enable_json is True
        assert config.logging.enable_markdown is True

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test nested environment variable overrides."""
        monkeypatch.setenv("CHATMEMORY_MEMORY__MAX_TOKENS", "1000")
        monkeypatch.setenv("CHATMEMORY_LOGGING__ENABLE_JSON", "false")

        config = Config()

        assert config.memory.max_tokens == 1000
        assert config.memory.max_messages == 20
        assert config.logging.enable_json is False


class TestMemoryConfig:
    """Tests for MemoryConfig model."""

    def test_frozen(self) -> None:
        """Test that snapshots cannot be modified in place."""
        config = MemoryConfig()

        with pytest.raises(ValidationError):
            config.max_tokens = 10  # type: ignore[misc]

    def test_merged(self) -> None:
        """Test merging changes into a new snapshot."""
        config = MemoryConfig(max_messages=5)

        merged = config.merged({"enable_summary": True})

        assert merged.max_messages == 5
        assert merged.enable_summary is True
        assert config.enable_summary is False

    def test_no_range_checks(self) -> None:
        """Test that nonsensical values are accepted."""
        config = MemoryConfig(max_messages=-1, max_tokens=0)

        assert config.max_messages == -1
        assert config.max_tokens == 0

    def test_unknown_field(self) -> None:
        """Test that misspelled fields are rejected."""
        with pytest.raises(ValidationError):
            MemoryConfig(max_token=100)  # type: ignore[call-arg]

    def test_wrong_type(self) -> None:
        """Test that wrongly typed values are rejected."""
        with pytest.raises(ValidationError):
            MemoryConfig(max_tokens="plenty")  # type: ignore[arg-type]


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_config_no_file(self) -> None:
        """Test loading config without a file."""
        config = load_config()

        assert config.memory == MemoryConfig()

    def test_load_config_missing_file(self) -> None:
        """Test that a missing file falls back to defaults."""
        config = load_config(Path("/nonexistent/chatmemory.yaml"))

        assert config.memory.max_messages == 20

    def test_load_config_from_yaml(self) -> None:
        """Test loading config from YAML file."""
        config_data = {
            "memory": {
                "max_messages": 10,
                "enable_summary": True,
            },
            "logging": {
                "transcript_dir": "/tmp/chat-transcripts",
                "enable_markdown": False,
            },
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(config_data, f)
            config_path = Path(f.name)

        try:
            config = load_config(config_path=config_path)

            assert config.memory.max_messages == 10
            assert config.memory.enable_summary is True
            # Other values should be defaults
            assert config.memory.max_tokens == 4000
            assert config.logging.transcript_dir == Path("/tmp/chat-transcripts")
            assert config.logging.enable_markdown is False
        finally:
            config_path.unlink()

    def test_load_config_empty_yaml(self) -> None:
        """Test that an empty YAML file gives defaults."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            config_path = Path(f.name)

        try:
            config = load_config(config_path=config_path)

            assert config.logging == LoggingConfig()
        finally:
            config_path.unlink()
