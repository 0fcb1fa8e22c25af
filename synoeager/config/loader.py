"""YAML configuration loader for Syno-Eager."""
import logging
from pathlib import Path
from typing import Union

import yaml

from synoeager.config.schema import SynoConfig

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Load and validate the optional endpoint configuration file."""

    def __init__(self, config_path: Union[str, Path], required: bool = False):
        """
        Args:
            config_path: Path to YAML configuration file
            required: Raise when the file is missing instead of using defaults
        """
        self.config_path = Path(config_path)
        self.required = required
        self.config = SynoConfig()

    def load(self) -> SynoConfig:
        """Load and validate configuration from YAML file."""
        if not self.config_path.exists():
            if self.required:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")
            logger.info(f"No config file at {self.config_path}, using built-in defaults")
            self.config = SynoConfig()
            return self.config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML syntax in {self.config_path}: {e}") from e

        # Validate through Pydantic
        try:
            self.config = SynoConfig(**raw_config)
        except Exception as e:
            raise ValueError(f"Configuration validation failed in {self.config_path}: {e}") from e

        return self.config
