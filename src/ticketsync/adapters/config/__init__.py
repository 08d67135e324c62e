"""
Config Adapters - Configuration providers.
"""

from .environment import EnvironmentConfigProvider
from .file_provider import CONFIG_FILE_NAMES, FileConfigProvider


__all__ = ["CONFIG_FILE_NAMES", "EnvironmentConfigProvider", "FileConfigProvider"]
