"""
Plugin management: registration, lifecycle, events and action dispatch.
"""

import asyncio
import inspect
import logging
from typing import Dict, List, Optional, Any, Callable
from dataclasses import dataclass
from datetime import datetime

from devpanel.config import Settings
from devpanel.errors import InvalidPluginError, NotFoundError, ActivationError
from .plugin_interface import BasePlugin, PluginInfo, PluginStatus


class PluginEvent:
    """Names of the lifecycle events emitted by the manager."""
    ACTIVATED = "pluginActivated"
    DEACTIVATED = "pluginDeactivated"


@dataclass
class MethodResult:
    """Outcome of a broadcast method call on one plugin."""
    id: str
    result: Any = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


class PluginStatistics:
    """Execution statistics for one registered plugin."""

    def __init__(self):
        self.registered_at = datetime.now()
        self.execution_count = 0
        self.error_count = 0
        self.total_execution_time = 0.0
        self.last_execution: Optional[datetime] = None
        self.last_error: Optional[str] = None

    def record(self, execution_time: float, error: Optional[str] = None):
        self.execution_count += 1
        self.total_execution_time += execution_time
        self.last_execution = datetime.now()
        if error is not None:
            self.error_count += 1
            self.last_error = error

    def to_dict(self) -> Dict[str, Any]:
        """Get plugin execution statistics."""
        avg_execution_time = (self.total_execution_time / self.execution_count
                              if self.execution_count > 0 else 0)

        return {
            "execution_count": self.execution_count,
            "error_count": self.error_count,
            "error_rate": self.error_count / max(1, self.execution_count),
            "average_execution_time": avg_execution_time,
            "total_execution_time": self.total_execution_time,
            "last_execution": self.last_execution.isoformat() if self.last_execution else None,
            "last_error": self.last_error,
            "registered_at": self.registered_at.isoformat()
        }


class PluginManager:
    """Owns registered plugins and drives their lifecycle.

    The manager is the only component that changes a plugin's ``status``.
    ``active_plugin_ids`` always lists exactly the ids whose plugin is in
    the ``active`` state, in activation order.
    """

    def __init__(self, logger: Optional[logging.Logger] = None,
                 settings: Optional[Settings] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.settings = settings or Settings()
        self.plugins: Dict[str, BasePlugin] = {}
        self.active_plugin_ids: List[str] = []
        self.event_listeners: Dict[str, List[Callable[[Any], Any]]] = {}
        self.statistics: Dict[str, PluginStatistics] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, plugin_id: str) -> asyncio.Lock:
        return self._locks.setdefault(plugin_id, asyncio.Lock())

    def _require(self, plugin_id: str) -> BasePlugin:
        plugin = self.plugins.get(plugin_id)
        if plugin is None:
            raise NotFoundError(f"Plugin {plugin_id} not found", plugin_id=plugin_id)
        return plugin

    def _is_current(self, plugin_id: str, plugin: BasePlugin) -> bool:
        return self.plugins.get(plugin_id) is plugin

    def _set_status(self, plugin: BasePlugin, status: PluginStatus, error: Optional[str] = None):
        plugin.status = status
        plugin.error = error
        plugin.last_updated = datetime.now()

    def register_plugin(self, plugin: BasePlugin) -> bool:
        """Register a plugin instance. A plugin with the same id is replaced."""
        plugin_id = getattr(plugin, "id", None)
        plugin_name = getattr(plugin, "name", None)
        if not plugin_id or not plugin_name:
            raise InvalidPluginError("Plugin must have id and name properties", plugin_id=plugin_id)

        if plugin_id in self.plugins:
            self.logger.warning("Replacing already registered plugin: %s", plugin_id)
            if plugin_id in self.active_plugin_ids:
                self.active_plugin_ids.remove(plugin_id)

        self._set_status(plugin, PluginStatus.REGISTERED)
        self.plugins[plugin_id] = plugin
        self.statistics[plugin_id] = PluginStatistics()

        self.logger.info("Plugin registered: %s", plugin_name)
        return True

    async def activate_plugin(self, plugin_id: str) -> bool:
        """Activate a registered plugin.

        Returns False when the plugin was replaced while its activation was
        in flight; the replacement is left untouched.

        Raises:
            NotFoundError: the id is not registered.
            ActivationError: the plugin's activate() failed. The plugin is
                left in the ``error`` state with the failure message.
        """
        self._require(plugin_id)

        async with self._lock_for(plugin_id):
            # re-resolve, the entry may have changed while waiting for the lock
            plugin = self._require(plugin_id)
            try:
                await plugin.activate()
            except Exception as e:
                self._set_status(plugin, PluginStatus.ERROR, error=str(e))
                # only non-empty when re-activating an already active plugin
                if self._is_current(plugin_id, plugin) and plugin_id in self.active_plugin_ids:
                    self.active_plugin_ids.remove(plugin_id)
                self.logger.error("Failed to activate plugin %s: %s", plugin.name, e)
                raise ActivationError(str(e), plugin_id=plugin_id) from e

            if not self._is_current(plugin_id, plugin):
                self.logger.warning("Plugin %s was replaced during activation", plugin_id)
                return False

            self._set_status(plugin, PluginStatus.ACTIVE)
            if plugin_id not in self.active_plugin_ids:
                self.active_plugin_ids.append(plugin_id)

        self.emit(PluginEvent.ACTIVATED, {"id": plugin_id, "plugin": plugin.get_info()})
        self.logger.info("Plugin activated: %s", plugin.name)
        return True

    async def deactivate_plugin(self, plugin_id: str) -> bool:
        """Deactivate a plugin. Unknown ids are tolerated and return False."""
        if plugin_id not in self.plugins:
            return False

        async with self._lock_for(plugin_id):
            plugin = self.plugins.get(plugin_id)
            if plugin is None:
                return False
            return await self._deactivate(plugin_id, plugin)

    async def _deactivate(self, plugin_id: str, plugin: BasePlugin) -> bool:
        """Deactivate ``plugin``. The caller holds the plugin's lock."""
        try:
            await plugin.deactivate()
        except Exception as e:
            self.logger.error("Failed to deactivate plugin %s: %s", plugin.name, e)
            raise

        if not self._is_current(plugin_id, plugin):
            self.logger.warning("Plugin %s was replaced during deactivation", plugin_id)
            return False

        self._set_status(plugin, PluginStatus.INACTIVE)
        if plugin_id in self.active_plugin_ids:
            self.active_plugin_ids.remove(plugin_id)

        self.emit(PluginEvent.DEACTIVATED, {"id": plugin_id, "plugin": plugin.get_info()})
        self.logger.info("Plugin deactivated: %s", plugin.name)
        return True

    async def unregister_plugin(self, plugin_id: str) -> bool:
        """Remove a plugin, deactivating it first when it is active.

        Deactivation and removal happen under one lock acquisition, so an
        activation queued behind the unregister finds the id gone.
        """
        if plugin_id not in self.plugins:
            return False

        async with self._lock_for(plugin_id):
            plugin = self.plugins.get(plugin_id)
            if plugin is None:
                return False

            if plugin_id in self.active_plugin_ids:
                await self._deactivate(plugin_id, plugin)

            if not self._is_current(plugin_id, plugin):
                self.logger.warning("Plugin %s was replaced during unregister", plugin_id)
                return False

            del self.plugins[plugin_id]
            self.statistics.pop(plugin_id, None)
            if plugin_id in self.active_plugin_ids:
                self.active_plugin_ids.remove(plugin_id)
        self._locks.pop(plugin_id, None)

        self.logger.info("Plugin unregistered: %s", plugin.name)
        return True

    def get_all_plugins(self) -> List[PluginInfo]:
        return [plugin.get_info() for plugin in self.plugins.values()]

    def get_active_plugins(self) -> List[PluginInfo]:
        return [
            self.plugins[plugin_id].get_info()
            for plugin_id in self.active_plugin_ids
            if plugin_id in self.plugins
        ]

    def get_plugin(self, plugin_id: str) -> Optional[BasePlugin]:
        """Look up a plugin by id. Returns None when it is not registered."""
        return self.plugins.get(plugin_id)

    def on(self, event: str, callback: Callable[[Any], Any]):
        """Subscribe a callback to an event."""
        self.event_listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable[[Any], Any]) -> bool:
        """Unsubscribe a callback. Returns False when it was not subscribed."""
        listeners = self.event_listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)
            return True
        return False

    def emit(self, event: str, data: Any = None):
        """Invoke every listener of an event in subscription order.

        A listener that raises is logged and does not stop the others.
        """
        for callback in list(self.event_listeners.get(event, [])):
            try:
                callback(data)
            except Exception:
                self.logger.exception("Error in event listener for %s", event)

    async def execute_plugin_method(self, method_name: str, *args, **kwargs) -> List[MethodResult]:
        """Call a method on every active plugin that has it.

        Plugins without the method are skipped. A failing call is recorded
        as an error entry and the broadcast continues.
        """
        results = []

        for plugin_id in list(self.active_plugin_ids):
            plugin = self.plugins.get(plugin_id)
            method = getattr(plugin, method_name, None) if plugin is not None else None
            if not callable(method):
                continue

            try:
                result = method(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
                results.append(MethodResult(id=plugin_id, result=result))
            except Exception as e:
                self.logger.error("Error executing %s on plugin %s: %s", method_name, plugin.name, e)
                results.append(MethodResult(id=plugin_id, error=str(e)))

        return results

    async def execute_action(self, plugin_id: str, action: str,
                             payload: Optional[Dict[str, Any]] = None) -> Any:
        """Dispatch an action to a plugin and record execution statistics."""
        plugin = self.plugins.get(plugin_id)
        if plugin is None:
            raise NotFoundError(f"Plugin {plugin_id} not found", plugin_id=plugin_id)

        stats = self.statistics.setdefault(plugin_id, PluginStatistics())
        start_time = asyncio.get_running_loop().time()

        try:
            result = await plugin.execute_action(action, payload)
        except Exception as e:
            stats.record(asyncio.get_running_loop().time() - start_time, error=str(e))
            raise

        stats.record(asyncio.get_running_loop().time() - start_time)
        return result

    async def update_plugin_settings(self, plugin_id: str, settings: Dict[str, Any]) -> bool:
        """Merge settings into a plugin. Returns False for unknown ids."""
        if plugin_id not in self.plugins:
            return False

        async with self._lock_for(plugin_id):
            plugin = self.plugins.get(plugin_id)
            if plugin is None:
                return False
            plugin.update_settings(settings)
        return True

    def get_plugin_statistics(self, plugin_id: str) -> Optional[Dict[str, Any]]:
        stats = self.statistics.get(plugin_id)
        return stats.to_dict() if stats else None

    def get_system_status(self) -> Dict[str, Any]:
        """Get overall plugin system status."""
        by_status: Dict[str, int] = {}
        by_category: Dict[str, int] = {}
        for plugin in self.plugins.values():
            status = plugin.status.value if plugin.status else "unknown"
            by_status[status] = by_status.get(status, 0) + 1
            by_category[plugin.category] = by_category.get(plugin.category, 0) + 1

        total_executions = sum(s.execution_count for s in self.statistics.values())
        total_errors = sum(s.error_count for s in self.statistics.values())

        return {
            "total_plugins": len(self.plugins),
            "active_plugins": len(self.active_plugin_ids),
            "plugins_by_status": by_status,
            "plugins_by_category": by_category,
            "total_executions": total_executions,
            "total_errors": total_errors,
            "error_rate": total_errors / max(1, total_executions),
            "listeners_registered": sum(len(l) for l in self.event_listeners.values())
        }
