"""
Config loader for platform adapter configuration.

Loads and validates YAML config files.
"""
from pathlib import Path
from typing import Optional

import yaml

from .schemas import PlatformsConfig

DEFAULT_CONFIG_FILE = Path(__file__).parent / "platforms.yaml"


class ConfigLoader:
    """Loads and validates platform configurations."""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Args:
            config_file: YAML file with per-platform settings
                         (defaults to the packaged platforms.yaml)
        """
        self.config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE

    def load(self) -> PlatformsConfig:
        """
        Load and validate the platform config.

        Returns:
            Validated PlatformsConfig object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not self.config_file.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_file}")

        with open(self.config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Invalid config in {self.config_file}: expected a mapping")

        try:
            return PlatformsConfig(**raw_config)
        except Exception as e:
            raise ValueError(f"Invalid config in {self.config_file}: {e}")


# Convenience function
def load_platform_config(config_file: Optional[Path] = None) -> PlatformsConfig:
    """
    Load the platform config (convenience function).

    Args:
        config_file: Optional config file override

    Returns:
        Validated PlatformsConfig object
    """
    return ConfigLoader(config_file).load()
