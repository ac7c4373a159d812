"""
Plugin interface and base class for the developer panel plugin host.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Any, Callable
from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum

from devpanel.errors import ActionDispatchError

logger = logging.getLogger(__name__)

ActionHandler = Callable[[Dict[str, Any]], Any]


class PluginStatus(str, Enum):
    """Lifecycle states of a registered plugin."""
    REGISTERED = "registered"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"


@dataclass(frozen=True)
class PluginInfo:
    """Snapshot of a plugin's descriptor and runtime state."""
    id: str
    name: str
    version: str
    description: str
    icon: Optional[str]
    category: str
    is_active: bool
    status: Optional[PluginStatus] = None
    last_updated: Optional[datetime] = None
    error: Optional[str] = None
    settings: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value if self.status else None
        data["last_updated"] = self.last_updated.isoformat() if self.last_updated else None
        return data


class BasePlugin(ABC):
    """Base class for all plugins.

    Subclasses describe themselves through the constructor and expose their
    operations through :meth:`get_actions`, a table mapping action names to
    handlers. ``status``, ``last_updated`` and ``error`` are owned by the
    :class:`~devpanel.plugins.plugin_manager.PluginManager` the plugin is
    registered with and must not be written by the plugin itself.
    """

    def __init__(self, plugin_id: str, name: str, version: str = "1.0.0",
                 description: str = "", icon: Optional[str] = None,
                 category: str = "general", settings: Optional[Dict[str, Any]] = None):
        self.id = plugin_id
        self.name = name
        self.version = version
        self.description = description
        self.icon = icon
        self.category = category
        self.settings: Dict[str, Any] = dict(settings or {})
        self.is_active = False

        # Registry-managed runtime state
        self.status: Optional[PluginStatus] = None
        self.last_updated: Optional[datetime] = None
        self.error: Optional[str] = None

    async def activate(self):
        """Prepare the plugin for use."""
        self.is_active = True
        logger.info("%s plugin activated", self.name)

    async def deactivate(self):
        """Release whatever activate() set up."""
        self.is_active = False
        logger.info("%s plugin deactivated", self.name)

    def get_info(self) -> PluginInfo:
        """Get a snapshot of the plugin descriptor and status."""
        return PluginInfo(
            id=self.id,
            name=self.name,
            version=self.version,
            description=self.description,
            icon=self.icon,
            category=self.category,
            is_active=self.is_active,
            status=self.status,
            last_updated=self.last_updated,
            error=self.error,
            settings=self.get_settings()
        )

    def validate_settings(self, settings: Dict[str, Any]):
        """Hook for subclasses; raise ValueError to reject an update."""
        pass

    def update_settings(self, new_settings: Dict[str, Any]):
        """Shallow-merge new settings over the current ones."""
        self.validate_settings(new_settings)
        self.settings = {**self.settings, **new_settings}

    def get_settings(self) -> Dict[str, Any]:
        return dict(self.settings)

    @abstractmethod
    def get_actions(self) -> Dict[str, ActionHandler]:
        """Get the table of action names this plugin recognizes."""
        pass

    async def execute_action(self, action: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """Dispatch an action by name.

        Unknown actions return None. A recognized action that fails is
        raised as ActionDispatchError.
        """
        handler = self.get_actions().get(action)
        if handler is None:
            logger.debug("Plugin %s does not handle action %s", self.id, action)
            return None

        try:
            result = handler(payload or {})
            if inspect.isawaitable(result):
                result = await result
            return result
        except ActionDispatchError:
            raise
        except Exception as e:
            raise ActionDispatchError(self.id, action, str(e)) from e


def require_fields(payload: Dict[str, Any], *keys: str):
    """Raise ValueError naming the first missing or empty payload field."""
    for key in keys:
        if payload.get(key) in (None, ""):
            raise ValueError(f"Missing required payload field: {key}")
