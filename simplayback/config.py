"""Configuration management for simplayback.

Two sections:
- source: where the study lives (local directory or HTTP base URL)
- logging: log level for applications that call setup_logging()

Config resolution order (highest priority first):
1. Programmatic (PlaybackConfig constructed in code)
2. Environment variables (SIMPLAYBACK_DATA_SOURCE, SIMPLAYBACK_STUDY_ROOT, etc.)
3. Config file (~/.config/simplayback/config.json)
4. Hardcoded defaults

A .env file in the working directory (or a parent) is loaded into the
environment before the env var layer is applied; existing variables win.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .storage import LocalFileReader, RemoteFileReader, StorageReader

logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "simplayback"
CONFIG_FILE = CONFIG_DIR / "config.json"

DATA_SOURCES = ("local", "remote")


# =============================================================================
# Config dataclasses
# =============================================================================


@dataclass
class SourceConfig:
    """Where study files are read from.

    - data_source: "local" reads from study_root, "remote" from base_url
    - replications_dir: study-relative directory holding rep_* directories
    """

    data_source: str = "local"
    study_root: str = "."
    base_url: str = ""
    http_timeout: float = 30.0
    replications_dir: str = "replications"


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class PlaybackConfig:
    """Top-level simplayback configuration.

    Examples:
        # Package use, no files needed
        config = PlaybackConfig(source=SourceConfig(study_root="./study"))

        # Resolve from config file + env vars
        config = PlaybackConfig.load()
    """

    source: SourceConfig = field(default_factory=SourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_file: Path | None = None) -> "PlaybackConfig":
        """Load config from file + env vars.

        Priority: env var values > config.json values > defaults.
        """
        config = cls()
        path = config_file or CONFIG_FILE

        # Layer 1: Load from config file if it exists
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                _apply_dict(config, data)
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Failed to load config from %s: %s", path, exc)

        # Layer 2: Env var overrides
        _ensure_dotenv()
        if val := os.environ.get("SIMPLAYBACK_DATA_SOURCE"):
            config.source.data_source = val
        if val := os.environ.get("SIMPLAYBACK_STUDY_ROOT"):
            config.source.study_root = val
        if val := os.environ.get("SIMPLAYBACK_BASE_URL"):
            config.source.base_url = val
        if val := os.environ.get("SIMPLAYBACK_HTTP_TIMEOUT"):
            try:
                config.source.http_timeout = float(val)
            except ValueError:
                logger.warning("Invalid SIMPLAYBACK_HTTP_TIMEOUT=%r, ignoring", val)
        if val := os.environ.get("SIMPLAYBACK_REPLICATIONS_DIR"):
            config.source.replications_dir = val
        if val := os.environ.get("SIMPLAYBACK_LOG_LEVEL"):
            config.logging.level = val.upper()

        return config

    def save(self, config_file: Path | None = None) -> None:
        """Save config to ~/.config/simplayback/config.json."""
        path = config_file or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict[str, Any]:
        return {"source": asdict(self.source), "logging": asdict(self.logging)}


# =============================================================================
# Config dict application
# =============================================================================


def _apply_dict(config: PlaybackConfig, data: dict) -> None:
    """Apply a dict of values onto a PlaybackConfig."""
    if "source" in data and isinstance(data["source"], dict):
        for k, v in data["source"].items():
            if hasattr(config.source, k):
                if k == "http_timeout":
                    try:
                        v = float(v)
                    except (TypeError, ValueError):
                        logger.warning("Invalid http_timeout=%r in config file, ignoring", v)
                        continue
                setattr(config.source, k, v)
    if "logging" in data and isinstance(data["logging"], dict):
        for k, v in data["logging"].items():
            if hasattr(config.logging, k):
                setattr(config.logging, k, v)


# =============================================================================
# Environment
# =============================================================================

_dotenv_loaded = False


def _ensure_dotenv() -> None:
    """Load .env file into os.environ if not already loaded."""
    global _dotenv_loaded
    if not _dotenv_loaded:
        _dotenv_loaded = True
        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path=dotenv_path, override=False)


# =============================================================================
# Reader construction
# =============================================================================


def create_reader(config: PlaybackConfig | None = None) -> StorageReader:
    """Build the storage reader selected by ``config.source.data_source``.

    Raises:
        ValueError: If data_source is unknown, or remote without a base_url.
        StorageRootNotFoundError: If a local study root does not exist.
    """
    source = (config or get_config()).source
    if source.data_source == "local":
        return LocalFileReader(source.study_root)
    if source.data_source == "remote":
        if not source.base_url:
            raise ValueError("Remote data source requires source.base_url")
        return RemoteFileReader(source.base_url, timeout=source.http_timeout)
    raise ValueError(
        f"Unknown data_source: {source.data_source!r}. "
        f"Expected one of: {', '.join(DATA_SOURCES)}"
    )


# =============================================================================
# Global config instance
# =============================================================================

_config: PlaybackConfig | None = None


def get_config() -> PlaybackConfig:
    """Get the global PlaybackConfig instance.

    First call loads from file + env vars. Subsequent calls return cached instance.
    Use configure() to replace the global config programmatically.
    """
    global _config
    if _config is None:
        _config = PlaybackConfig.load()
    return _config


def configure(config: PlaybackConfig) -> None:
    """Set the global PlaybackConfig programmatically."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global config (forces reload on next get_config())."""
    global _config
    _config = None
