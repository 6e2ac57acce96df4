"""Configuration management for Chordbook."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CHORDBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Directories
    output_dir: Path = Field(
        default=Path("./output"),
        description="Default output directory for rendered artifacts",
    )
    template_dir: Path = Field(
        default=Path("./templates"),
        description="Directory searched for templates before the built-in ones",
    )

    # Build policy
    max_workers: int | None = Field(
        default=None,
        description="Worker pool size for parsing and rendering (default: CPU count)",
    )
    failure_policy: Literal["fail-fast", "best-effort"] = Field(
        default="fail-fast",
        description="What a failing song or render does to the build: "
        "fail-fast fails the whole build, best-effort skips and reports it",
    )

    # Song sources
    default_notation: str = Field(
        default="english",
        description="Notation system chord markers are written in",
    )
    encoding: str = Field(
        default="utf-8",
        description="Encoding of song source files",
    )
    directive_open: str = Field(default="{", description="Directive line opener")
    directive_close: str = Field(default="}", description="Directive line closer")
    chord_open: str = Field(default="[", description="Chord marker opener")
    chord_close: str = Field(default="]", description="Chord marker closer")
    comment_prefix: str = Field(default="#", description="Comment line prefix")

    # Console
    show_progress: bool = Field(
        default=True,
        description="Show a progress spinner and per-stage timings",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure(**overrides: object) -> Settings:
    """Configure settings with overrides. Useful for testing."""
    global _settings
    _settings = Settings(**overrides)  # type: ignore[arg-type]
    return _settings
