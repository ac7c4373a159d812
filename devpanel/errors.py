"""
Exception hierarchy for the plugin host.
"""

from typing import Optional


class PluginError(Exception):
    """Base exception for plugin-related errors."""

    def __init__(self, message: str, plugin_id: Optional[str] = None):
        super().__init__(message)
        self.plugin_id = plugin_id


class InvalidPluginError(PluginError):
    """Raised when a plugin is registered without an id or name."""
    pass


class NotFoundError(PluginError):
    """Raised when an operation addresses an unknown plugin id."""
    pass


class ActivationError(PluginError):
    """Raised when a plugin's own activation logic fails."""
    pass


class ActionDispatchError(PluginError):
    """Raised when a recognized action fails inside a plugin."""

    def __init__(self, plugin_id: str, action: str, message: str):
        super().__init__(f"Action '{action}' failed on plugin '{plugin_id}': {message}",
                         plugin_id=plugin_id)
        self.action = action
        self.reason = message
