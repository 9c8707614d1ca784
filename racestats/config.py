"""
Configuration Management Module
===============================
Centralized configuration system for the racestats pipeline.

This module provides:
- Type-safe configuration via dataclasses
- Environment variable overrides
- JSON configuration files
- Default values with documentation

This is the ambient, process-wide configuration (tool names, default remote
locations, logging). The run-scoped, immutable PipelineConfig lives in
racestats.pipeline.context and is derived from this plus CLI flags.

Usage:
    from racestats.config import get_config
    config = get_config()

    job_tool = config.remote.job_command
    video_dir = config.video.video_source

For a custom setup, create a config file and load it:
    config = load_config_file("racestats.json")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os
import json
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================

@dataclass
class RemoteConfig:
    """
    Configuration for the remote execution service.

    Remote locations may start with "~~", which expands to "/<user>".
    """

    # Account that owns all remote locations
    user: Optional[str] = field(default_factory=lambda: os.getenv("MANTA_USER"))

    # Command line tools
    job_command: str = "mjob"
    untar_command: str = "muntar"

    # Where assets are mounted on the workers
    worker_asset_root: str = "/assets"


@dataclass
class AssetConfig:
    """Configuration for remote-fetchable helper code."""

    # Root of everything the pipeline publishes
    asset_root: str = "~~/public/kartlytics"

    # Relative to asset_root
    bin_dir_name: str = "bin"
    toolchain_name: str = "kartvid.tgz"

    # Local directory the publisher archives (flat)
    local_assets_dir: Path = field(
        default_factory=lambda: Path(__file__).resolve().parent.parent / "bin"
    )

    @property
    def bin_location(self) -> str:
        return f"{self.asset_root.rstrip('/')}/{self.bin_dir_name}"

    @property
    def toolchain_location(self) -> str:
        return f"{self.asset_root.rstrip('/')}/{self.toolchain_name}"


@dataclass
class VideoConfig:
    """Configuration for the video corpus."""

    video_source: str = "~~/public/kartlytics/videos"

    # Recognized recordings
    video_extensions: set = field(default_factory=lambda: {'mov', 'mp4'})

    @property
    def discovery_pattern(self) -> str:
        """Regular expression matching video object names."""
        exts = "|".join(sorted(self.video_extensions))
        return rf"\.({exts})$"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    log_level: str = "INFO"

    # JSON lines log file; None disables file logging
    log_file: Optional[str] = None

    log_decisions: bool = True


@dataclass
class AppConfig:
    """
    Master configuration class that aggregates all configuration sections.

    This is the main configuration object used throughout the application.
    """

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    assets: AssetConfig = field(default_factory=AssetConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        def convert(obj):
            if hasattr(obj, '__dataclass_fields__'):
                return {k: convert(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, set):
                return sorted(obj)
            return obj
        return convert(self)

    def save(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {filepath}")

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """Create configuration from dictionary."""
        assets_data = dict(data.get('assets', {}))
        if isinstance(assets_data.get('local_assets_dir'), str):
            assets_data['local_assets_dir'] = Path(assets_data['local_assets_dir'])

        video_data = dict(data.get('video', {}))
        if isinstance(video_data.get('video_extensions'), list):
            video_data['video_extensions'] = set(video_data['video_extensions'])

        return cls(
            remote=RemoteConfig(**data.get('remote', {})),
            assets=AssetConfig(**assets_data),
            video=VideoConfig(**video_data),
            logging=LoggingConfig(**data.get('logging', {})),
        )

    @classmethod
    def load(cls, filepath: str) -> "AppConfig":
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        logger.info(f"Configuration loaded from {filepath}")
        return cls.from_dict(data)


# =============================================================================
# GLOBAL CONFIGURATION SINGLETON
# =============================================================================

_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global application configuration.

    Creates a default configuration on first access.

    Returns:
        The global AppConfig instance
    """
    global _config
    if _config is None:
        _config = AppConfig()
        logger.debug("Initialized default application configuration")
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global application configuration."""
    global _config
    _config = config
    logger.debug("Set global configuration")


def reset_config() -> None:
    """Reset the global configuration to None (forces reload on next get_config)."""
    global _config
    _config = None


def load_config_file(filepath: str) -> AppConfig:
    """
    Load a configuration file and set it as global.

    Args:
        filepath: Path to the configuration JSON file

    Returns:
        The loaded AppConfig instance
    """
    config = AppConfig.load(filepath)
    set_config(config)
    return config


# =============================================================================
# ENVIRONMENT VARIABLE OVERRIDES
# =============================================================================

def apply_environment_overrides(config: AppConfig) -> AppConfig:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern:
    RACESTATS_{SECTION}_{KEY}

    Examples:
        RACESTATS_REMOTE_JOB_COMMAND=/opt/manta/bin/mjob
        RACESTATS_ASSETS_ASSET_ROOT=/dap/public/kartlytics
        RACESTATS_LOGGING_LOG_LEVEL=DEBUG

    Also supports:
        MANTA_USER=dap (maps to remote.user)

    Args:
        config: Base configuration to override

    Returns:
        Configuration with environment overrides applied
    """
    if os.getenv("MANTA_USER"):
        config.remote.user = os.getenv("MANTA_USER")

    prefix = "RACESTATS_"
    sections = ('remote', 'assets', 'video', 'logging')

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        parts = key[len(prefix):].lower().split('_', 1)
        if len(parts) != 2:
            continue

        section, attr = parts
        if section not in sections:
            continue

        section_config = getattr(config, section)
        if not hasattr(section_config, attr) or attr.startswith('_'):
            continue

        current_value = getattr(section_config, attr)
        try:
            if isinstance(current_value, bool):
                typed_value = value.lower() in ('true', '1', 'yes')
            elif isinstance(current_value, int):
                typed_value = int(value)
            elif isinstance(current_value, Path):
                typed_value = Path(value)
            elif isinstance(current_value, set):
                typed_value = {v.strip() for v in value.split(',') if v.strip()}
            else:
                typed_value = value

            setattr(section_config, attr, typed_value)
            logger.debug(f"Environment override: {section}.{attr} = {typed_value}")

        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to apply environment override {key}: {e}")

    return config
