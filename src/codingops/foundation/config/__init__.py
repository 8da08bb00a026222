"""Configuration: connection settings and the module/tool registry."""

from .modules import ModuleConfig, ModuleRegistry, ToolConfig, default_registry
from .settings import DEFAULT_API_BASE_URL, VERSION, CodingSettings, LoggingSettings, load_settings

__all__ = [
    "CodingSettings", "LoggingSettings", "load_settings", "DEFAULT_API_BASE_URL", "VERSION",
    "ModuleConfig", "ModuleRegistry", "ToolConfig", "default_registry",
]
