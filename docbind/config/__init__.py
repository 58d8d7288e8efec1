from .loader import SITE_CONFIG_NAME, build_base_config, load_config, resolve_root
from .models import (
    DocbindConfig,
    PluginsConfig,
    ProjectConfig,
    ServeSettings,
    ServerConfig,
    VariableMap,
)

__all__ = [
    "DocbindConfig",
    "PluginsConfig",
    "ProjectConfig",
    "SITE_CONFIG_NAME",
    "ServeSettings",
    "ServerConfig",
    "VariableMap",
    "build_base_config",
    "load_config",
    "resolve_root",
]
