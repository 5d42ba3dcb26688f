"""Simple YAML configuration loader for QuestCue."""

import os
import yaml
from dataclasses import fields
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..models.audio import ChunkingConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "questcue.yaml"

STREAMING_SETTING_KEYS = (
    "check_interval_ms",
    "max_buffer_chars",
    "recent_fragment_limit",
    "hint_hold_ms",
)


class QuestCueConfig:
    """QuestCue configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for questcue.yaml
                        in current directory and parent directories.
        """
        if config_path is None:
            found = self._find_default_config()
            if found is None:
                raise FileNotFoundError(f"Configuration file not found: {DEFAULT_CONFIG_NAME}")
            config_path = str(found)

        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    @staticmethod
    def _find_default_config() -> Optional[Path]:
        current = Path.cwd()
        for directory in (current, *current.parents):
            candidate = directory / DEFAULT_CONFIG_NAME
            if candidate.exists():
                return candidate
        return None

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        logging_section = config.get('logging')
        if isinstance(logging_section, dict) and logging_section.get('file_path'):
            log_path = logging_section['file_path']
            if not os.path.isabs(log_path):
                logging_section['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'segmenter.sample_rate').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config
        for key in key_path.split('.'):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'segmenter.sample_rate')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_chunking_config(self) -> ChunkingConfig:
        """Build the segmenter configuration from the 'segmenter' section."""
        section = self.get('segmenter', {}) or {}
        known = {f.name for f in fields(ChunkingConfig)}
        unknown = set(section) - known
        if unknown:
            logger.warning(f"Unknown segmenter settings ignored: {sorted(unknown)}")
        return ChunkingConfig(**{key: value for key, value in section.items() if key in known})

    def get_streaming_settings(self) -> Dict[str, Any]:
        """Keyword arguments for StreamingQuestionDetector from the 'streaming' section."""
        section = self.get('streaming', {}) or {}
        return {key: section[key] for key in STREAMING_SETTING_KEYS if key in section}
