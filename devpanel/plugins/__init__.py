"""
Plugin system: base interface and the registry that manages plugins.
"""

from .plugin_interface import (
    BasePlugin,
    PluginInfo,
    PluginStatus,
    require_fields
)

from .plugin_manager import (
    PluginManager,
    PluginEvent,
    PluginStatistics,
    MethodResult
)

__all__ = [
    "BasePlugin",
    "PluginInfo",
    "PluginStatus",
    "require_fields",
    "PluginManager",
    "PluginEvent",
    "PluginStatistics",
    "MethodResult"
]
