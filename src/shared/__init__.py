# Shared utilities package
from .config import (
    Config,
    ConfigurationError,
    LinkerConfig,
    Settings,
    VaultConfig,
    get_config,
    init_config,
)

__all__ = [
    "Config",
    "ConfigurationError",
    "LinkerConfig",
    "Settings",
    "VaultConfig",
    "get_config",
    "init_config",
]
