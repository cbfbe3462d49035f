from .base import SourceDefinition
from .plugin_loader import PluginContext, SourcePluginLoader, default_plugin_dirs
from .registry import SourceRegistry

__all__ = [
    "SourceDefinition",
    "PluginContext",
    "SourcePluginLoader",
    "SourceRegistry",
    "default_plugin_dirs",
]
