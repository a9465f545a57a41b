"""
MEIUnpack Configuration System
==============================

Persistent configuration with:
- JSON storage
- Environment variable overrides
- Validation
"""

from __future__ import annotations

import os
import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".meiunpack"
CONFIG_FILE = CONFIG_DIR / "config.json"
LOG_DIR = CONFIG_DIR / "logs"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ExtractConfig:
    """Extraction settings."""
    output_dir: str = "unpacked"
    workers: int = 0  # 0 = auto (physical cores)
    search_chunk_size: int = 8192


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = field(default_factory=lambda: str(LOG_DIR))


@dataclass
class Config:
    """Main configuration container."""
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    version: str = "1.0.0"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create from dictionary."""
        return cls(
            extract=ExtractConfig(**data.get("extract", {})),
            logging=LoggingConfig(**data.get("logging", {})),
            version=data.get("version", "1.0.0")
        )

    def validate(self) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []

        if not self.extract.output_dir:
            errors.append("Output directory must not be empty")

        if self.extract.workers < 0 or self.extract.workers > 1024:
            errors.append("Workers must be between 0 (auto) and 1024")

        # Must at least hold the 8-byte marker
        if self.extract.search_chunk_size < 8:
            errors.append("Search chunk size must be at least 8 bytes")

        if self.logging.level.upper() not in LOG_LEVELS:
            errors.append(f"Log level must be one of {', '.join(LOG_LEVELS)}")

        return errors


def load_config(config_file: Path = CONFIG_FILE) -> Config:
    """
    Load configuration from file.
    Falls back to defaults if not found.
    Supports environment variable overrides.
    """
    config = Config()

    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
                config = Config.from_dict(data)
                logger.info(f"Loaded config from {config_file}")
        except Exception as e:
            logger.warning(f"Failed to load config: {e}")

    env_overrides = {
        "MEIUNPACK_OUTPUT": ("extract", "output_dir"),
        "MEIUNPACK_WORKERS": ("extract", "workers", int),
        "MEIUNPACK_LOG_LEVEL": ("logging", "level", str.upper),
    }

    for env_var, path in env_overrides.items():
        value = os.environ.get(env_var)
        if value:
            section, key = path[0], path[1]
            converter = path[2] if len(path) > 2 else str

            try:
                section_obj = getattr(config, section)
                setattr(section_obj, key, converter(value))
                logger.debug(f"Override from {env_var}: {section}.{key}")
            except Exception as e:
                logger.warning(f"Failed to apply {env_var}: {e}")

    return config


def save_config(config: Config, config_file: Path = CONFIG_FILE) -> bool:
    """
    Save configuration to file.
    Creates config directory if needed.
    """
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2)

        logger.info(f"Saved config to {config_file}")
        return True

    except OSError as e:
        logger.error(f"Failed to save config: {e}")
        return False


def ensure_directories(config: Config) -> None:
    """Ensure the log directory exists when file logging is on."""
    if config.logging.log_to_file:
        Path(config.logging.log_dir).mkdir(parents=True, exist_ok=True)
