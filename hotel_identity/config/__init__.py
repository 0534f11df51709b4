"""Configuration management for hotel identity resolution."""
from .schemas import PlatformConfig, PlatformsConfig
from .loader import ConfigLoader, load_platform_config
from .settings import settings, Settings, get_settings

__all__ = [
    'PlatformConfig',
    'PlatformsConfig',
    'ConfigLoader',
    'load_platform_config',
    'settings',
    'Settings',
    'get_settings',
]
