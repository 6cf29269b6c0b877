"""
Plugin registry and hook dispatch.

Hooks run in registration order and are awaited one at a time. A hook
that raises is reported as PluginError, which every engine treats as
fatal.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..collection import as_collection
from ..core.parallel import for_each_parallel
from ..core.sequential import for_each_async, make_context
from ..core.step import bind, invoke_async
from ..errors import PluginError
from ..types import AsyncOptions, IterationContext, resolve_options
from ..utils.validators import validate_async_options, validate_callback, validate_plugin, validate_target
from .base import PluginConfig

logger = logging.getLogger(__name__)


class RegisteredPlugin:
    """A plugin plus its enabled state inside one manager."""

    def __init__(self, plugin: Any, config: PluginConfig) -> None:
        self.plugin = plugin
        self._enabled = config.auto_enable

    @property
    def name(self) -> str:
        return self.plugin.name

    @property
    def version(self) -> str:
        return self.plugin.version

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True
        self.call_lifecycle("on_enable")

    def disable(self) -> None:
        self._enabled = False
        self.call_lifecycle("on_disable")

    def call_lifecycle(self, method_name: str) -> None:
        method = getattr(self.plugin, method_name, None)
        if not callable(method):
            return
        try:
            method()
        except Exception as error:
            raise PluginError(
                f'Plugin "{self.name}" error in {method_name}',
                {"plugin_name": self.name, "hook": method_name, "error": error},
            ) from error

    async def run_hook(self, hook: str, *args: Any) -> None:
        method = getattr(self.plugin, hook, None)
        if method is None:
            return
        result = method(*args)
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        return f"RegisteredPlugin(name={self.name!r}, enabled={self._enabled})"


class PluginManager:
    def __init__(self) -> None:
        self._plugins: Dict[str, RegisteredPlugin] = {}
        self._execution_order: List[str] = []

    def register(self, plugin: Any, config: Optional[PluginConfig] = None) -> None:
        validate_plugin(plugin)
        config = config or PluginConfig()

        if plugin.name in self._plugins and not config.allow_override:
            raise PluginError(
                f'Plugin "{plugin.name}" is already registered',
                {"plugin_name": plugin.name},
            )

        registered = RegisteredPlugin(plugin, config)
        self._plugins[plugin.name] = registered
        if plugin.name not in self._execution_order:
            self._execution_order.append(plugin.name)

        logger.debug("Registered plugin %s %s", plugin.name, plugin.version)
        registered.call_lifecycle("on_install")

    def unregister(self, plugin_name: str) -> bool:
        registered = self._plugins.pop(plugin_name, None)
        if registered is None:
            return False

        self._execution_order.remove(plugin_name)
        registered.call_lifecycle("on_uninstall")
        logger.debug("Unregistered plugin %s", plugin_name)
        return True

    def get(self, plugin_name: str) -> Optional[RegisteredPlugin]:
        return self._plugins.get(plugin_name)

    def get_all(self) -> Tuple[RegisteredPlugin, ...]:
        return tuple(self._plugins[name] for name in self._execution_order)

    def enable(self, plugin_name: str) -> None:
        self._require(plugin_name).enable()

    def disable(self, plugin_name: str) -> None:
        self._require(plugin_name).disable()

    def is_enabled(self, plugin_name: str) -> bool:
        registered = self._plugins.get(plugin_name)
        return registered.enabled if registered else False

    def clear(self) -> None:
        plugins = self.get_all()
        self._plugins.clear()
        self._execution_order.clear()
        for registered in plugins:
            registered.call_lifecycle("on_uninstall")

    def _require(self, plugin_name: str) -> RegisteredPlugin:
        registered = self._plugins.get(plugin_name)
        if registered is None:
            raise PluginError(
                f'Plugin "{plugin_name}" not found',
                {"plugin_name": plugin_name},
            )
        return registered

    async def execute_before_iteration(self, context: IterationContext) -> None:
        await self._execute("before_iteration", (context,))

    async def execute_after_iteration(self, context: IterationContext) -> None:
        await self._execute("after_iteration", (context,))

    async def execute_on_error(self, error: BaseException, context: IterationContext) -> None:
        await self._execute("on_error", (error, context), {"original_error": error})

    async def _execute(
        self,
        hook: str,
        args: Tuple[Any, ...],
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        for plugin_name in list(self._execution_order):
            registered = self._plugins.get(plugin_name)
            if registered is None or not registered.enabled:
                continue
            try:
                await registered.run_hook(hook, *args)
            except Exception as error:
                details: Dict[str, Any] = {
                    "plugin_name": plugin_name,
                    "hook": hook,
                    "error": error,
                }
                if extra:
                    details.update(extra)
                raise PluginError(
                    f'Plugin "{plugin_name}" error in {hook}', details
                ) from error


class ForEachCore:
    """
    Plugin-aware front end for the async engines.

    Example:
        >>> core = ForEachCore()
        >>> core.use(AuditPlugin())
        >>> await core.run(records, save, break_on_error=True)
    """

    def __init__(self) -> None:
        self._plugin_manager = PluginManager()

    @property
    def plugin_manager(self) -> PluginManager:
        return self._plugin_manager

    def use(self, plugin: Any, config: Optional[PluginConfig] = None) -> None:
        self._plugin_manager.register(plugin, config)

    def remove(self, plugin_name: str) -> bool:
        return self._plugin_manager.unregister(plugin_name)

    def get_plugins(self) -> Tuple[Any, ...]:
        return tuple(registered.plugin for registered in self._plugin_manager.get_all())

    async def run(
        self,
        target: Any,
        callback: Callable[..., Any],
        options: Any = None,
        **overrides: Any,
    ) -> None:
        """``for_each_async`` with plugin hooks around every element."""
        hooked, opts = self._prepare(target, callback, options, overrides)
        await for_each_async(target, hooked, opts)

    async def run_parallel(
        self,
        target: Any,
        callback: Callable[..., Any],
        options: Any = None,
        **overrides: Any,
    ) -> None:
        """``for_each_parallel`` with plugin hooks around every element."""
        hooked, opts = self._prepare(target, callback, options, overrides)
        await for_each_parallel(target, hooked, opts)

    def _prepare(
        self,
        target: Any,
        callback: Callable[..., Any],
        options: Any,
        overrides: Dict[str, Any],
    ) -> Tuple[Callable[..., Any], AsyncOptions]:
        validate_target(target)
        validate_callback(callback)
        opts = resolve_options(AsyncOptions, options, **overrides)
        validate_async_options(opts)

        collection = as_collection(target)
        total = len(collection)
        contexts = {
            position.key: make_context(position.ordinal, total, position.key)
            for position in collection.positions(opts.reverse)
        }
        call = bind(callback, opts.this_arg)
        manager = self._plugin_manager

        # before runs first, after only on success, on_error only on failure
        async def hooked(value: Any, key: Any, source: Any) -> Any:
            context = contexts[key]
            await manager.execute_before_iteration(context)
            try:
                result = await invoke_async(call, (value, key, source))
            except Exception as error:
                await manager.execute_on_error(error, context)
                raise
            await manager.execute_after_iteration(context)
            return result

        return hooked, replace(opts, this_arg=None)
