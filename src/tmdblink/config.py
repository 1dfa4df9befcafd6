"""Configuration management for tmdblink."""

import os
from pathlib import Path

import tomli
from pydantic import BaseModel, Field, field_validator


class LinkerConfig(BaseModel):
    """Main configuration for a linking batch."""

    # Files
    input_path: Path = Field(default=Path("imdb.ttl"))
    output_path: Path = Field(default=Path("tmdb.ttl"))
    log_dir: Path | None = None

    # TMDB API
    tmdb_api_token: str | None = Field(default=None, validate_default=True)
    tmdb_base_url: str = Field(default="https://api.themoviedb.org/3")
    tmdb_language: str | None = None
    tmdb_request_timeout: float = Field(default=30.0)  # seconds

    # Concurrency
    max_workers: int = Field(default=2)

    @field_validator("input_path", "output_path", "log_dir", mode="before")
    @classmethod
    def expand_paths(cls, v: Path | str | None) -> Path | None:
        """Expand user home directory in paths."""
        if v is None:
            return None
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser()

    @field_validator("tmdb_api_token", mode="after")
    @classmethod
    def token_from_environment(cls, v: str | None) -> str | None:
        """Fall back to TMDB_API_TOKEN; absence is checked when a batch starts."""
        v = (v or "").strip()
        if not v:
            v = (os.getenv("TMDB_API_TOKEN") or "").strip()
        return v or None

    @field_validator("tmdb_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("max_workers", mode="after")
    @classmethod
    def positive_workers(cls, v: int) -> int:
        if v < 1:
            msg = "max_workers must be at least 1"
            raise ValueError(msg)
        return v

    @field_validator("tmdb_request_timeout", mode="after")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            msg = "tmdb_request_timeout must be positive"
            raise ValueError(msg)
        return v


def load_config(config_path: Path | None = None) -> LinkerConfig:
    """Load configuration from file or defaults."""
    if config_path is None:
        possible_paths = [
            Path.home() / ".config" / "tmdblink" / "config.toml",  # User config
            Path.cwd() / "tmdblink.toml",  # Current directory
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    if config_path and config_path.exists():
        with open(config_path, "rb") as f:
            config_data = tomli.load(f)
        return LinkerConfig(**config_data)
    return LinkerConfig()


def create_sample_config(path: Path) -> None:
    """Create a sample configuration file."""
    sample_config = """# tmdblink Configuration
# ======================

# TMDB API read access token (v4 bearer token)
tmdb_api_token = "your_tmdb_read_access_token_here"   # Get from themoviedb.org/settings/api

# Files
input_path = "imdb.ttl"                               # Turtle file containing imt:tt... identifiers
output_path = "tmdb.ttl"                              # Created fresh on every run
# log_dir = "~/.local/share/tmdblink/logs"            # Optional: also write a log file here

# Metadata & Language
# tmdb_language = "en-US"                             # Optional language for TMDB responses

# ============================================================================
# ADVANCED SETTINGS
# ============================================================================

max_workers = 2                                       # Concurrent TMDB lookups
tmdb_request_timeout = 30                             # Per-request timeout (seconds)
tmdb_base_url = "https://api.themoviedb.org/3"
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(sample_config)
