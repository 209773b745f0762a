"""Configuration management for chatmemory."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MemoryConfig(BaseModel):
    """Context window budgets and summary settings.

    Instances are frozen snapshots. Values are not range-checked: a
    non-positive budget is accepted and simply yields an empty context.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_messages: int = 20
    max_tokens: int = 4000
    enable_summary: bool = False
    keep_system_messages: bool = True

    def merged(self, changes: dict[str, Any]) -> "MemoryConfig":
        """Return a new snapshot with ``changes`` shallow-merged in."""
        return MemoryConfig(**{**self.model_dump(), **changes})


class LoggingConfig(BaseModel):
    """Transcript settings."""

    transcript_dir: Path = Field(default_factory=lambda: Path("./transcripts"))
    enable_json: bool = True
    enable_markdown: bool = True


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHATMEMORY_",
        env_nested_delimiter="__",
    )

    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional path to YAML config file.

    Returns:
        Loaded configuration.
    """
    config_data: dict[str, Any] = {}

    if config_path and config_path.exists():
        import yaml

        with open(config_path) as f:
            loaded = yaml.safe_load(f)
            if loaded:
                config_data = loaded

    return Config(**config_data)
