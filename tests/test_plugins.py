"""
Unit tests for plugins.

Covers registration rules, enable/disable, hook ordering and the
ForEachCore wiring around the async engines.
"""

from __future__ import annotations

import asyncio

import pytest

from foreachkit import (
    ForEachCore,
    IterationContext,
    IterationError,
    IterationPlugin,
    PluginConfig,
    PluginError,
    PluginManager,
    ValidationError,
)


class RecordingPlugin(IterationPlugin):
    """Plugin that records every hook and lifecycle call."""

    version = "1.0.0"

    def __init__(self, name: str = "recorder", log=None) -> None:
        self.name = name
        self.log = log if log is not None else []

    def before_iteration(self, context):
        self.log.append((self.name, "before", context.index))

    def after_iteration(self, context):
        self.log.append((self.name, "after", context.index))

    def on_error(self, error, context):
        self.log.append((self.name, "error", context.index, type(error).__name__))

    def on_install(self) -> None:
        self.log.append((self.name, "install"))

    def on_uninstall(self) -> None:
        self.log.append((self.name, "uninstall"))

    def on_enable(self) -> None:
        self.log.append((self.name, "enable"))

    def on_disable(self) -> None:
        self.log.append((self.name, "disable"))


class TestPluginManager:
    """Tests for PluginManager registration."""

    def test_register_calls_install(self) -> None:
        """Test registration installs and enables the plugin."""
        manager = PluginManager()
        plugin = RecordingPlugin()

        manager.register(plugin)

        assert plugin.log == [("recorder", "install")]
        assert manager.is_enabled("recorder")
        assert manager.get("recorder").plugin is plugin

    def test_duplicate_rejected(self) -> None:
        """Test a second plugin with the same name is rejected."""
        manager = PluginManager()
        manager.register(RecordingPlugin())

        with pytest.raises(PluginError):
            manager.register(RecordingPlugin())

    def test_override_replaces(self) -> None:
        """Test allow_override replaces the registered plugin in place."""
        manager = PluginManager()
        manager.register(RecordingPlugin("a"))
        manager.register(RecordingPlugin("b"))
        replacement = RecordingPlugin("a")

        manager.register(replacement, PluginConfig(allow_override=True))

        assert [r.name for r in manager.get_all()] == ["a", "b"]
        assert manager.get("a").plugin is replacement

    def test_auto_enable_false(self) -> None:
        """Test plugins can be registered disabled."""
        manager = PluginManager()
        manager.register(RecordingPlugin(), PluginConfig(auto_enable=False))

        assert not manager.is_enabled("recorder")

    def test_enable_disable(self) -> None:
        """Test enable/disable toggle state and call lifecycle methods."""
        manager = PluginManager()
        plugin = RecordingPlugin()
        manager.register(plugin)

        manager.disable("recorder")
        manager.enable("recorder")

        assert plugin.log[1:] == [("recorder", "disable"), ("recorder", "enable")]

    def test_unknown_plugin(self) -> None:
        """Test enabling an unknown plugin raises PluginError."""
        manager = PluginManager()

        with pytest.raises(PluginError):
            manager.enable("ghost")
        assert not manager.is_enabled("ghost")

    def test_unregister(self) -> None:
        """Test unregister reports whether a plugin was removed."""
        manager = PluginManager()
        plugin = RecordingPlugin()
        manager.register(plugin)

        assert manager.unregister("recorder") is True
        assert manager.unregister("recorder") is False
        assert plugin.log[-1] == ("recorder", "uninstall")
        assert manager.get("recorder") is None

    def test_clear(self) -> None:
        """Test clear uninstalls everything."""
        log = []
        manager = PluginManager()
        manager.register(RecordingPlugin("a", log))
        manager.register(RecordingPlugin("b", log))

        manager.clear()

        assert manager.get_all() == ()
        assert ("a", "uninstall") in log and ("b", "uninstall") in log

    def test_invalid_plugin(self) -> None:
        """Test plugins without a version are rejected."""

        class Nameless(IterationPlugin):
            name = "nameless"

        with pytest.raises(ValidationError):
            PluginManager().register(Nameless())


class TestHookExecution:
    """Tests for hook dispatch."""

    @pytest.mark.asyncio
    async def test_registration_order(self) -> None:
        """Test hooks run in registration order, skipping disabled plugins."""
        log = []
        manager = PluginManager()
        for name in ("first", "second", "third"):
            manager.register(RecordingPlugin(name, log))
        manager.disable("second")
        log.clear()

        await manager.execute_before_iteration(_context())

        assert log == [("first", "before", 0), ("third", "before", 0)]

    @pytest.mark.asyncio
    async def test_async_hook_awaited(self) -> None:
        """Test coroutine hooks are awaited."""
        seen = []

        class Slow(IterationPlugin):
            name = "slow"
            version = "1.0.0"

            async def after_iteration(self, context):
                await asyncio.sleep(0)
                seen.append(context.index)

        manager = PluginManager()
        manager.register(Slow())
        await manager.execute_after_iteration(_context())

        assert seen == [0]

    @pytest.mark.asyncio
    async def test_hook_failure_becomes_plugin_error(self) -> None:
        """Test a raising hook is reported as PluginError."""

        class Faulty(IterationPlugin):
            name = "faulty"
            version = "1.0.0"

            def before_iteration(self, context):
                raise RuntimeError("hook broke")

        manager = PluginManager()
        manager.register(Faulty())

        with pytest.raises(PluginError) as excinfo:
            await manager.execute_before_iteration(_context())

        assert excinfo.value.details["plugin_name"] == "faulty"
        assert excinfo.value.details["hook"] == "before_iteration"
        assert isinstance(excinfo.value.__cause__, RuntimeError)


class TestForEachCore:
    """Tests for ForEachCore."""

    @pytest.mark.asyncio
    async def test_hooks_wrap_each_element(self) -> None:
        """Test before/after hooks surround every callback."""
        log = []
        core = ForEachCore()
        core.use(RecordingPlugin(log=log))
        log.clear()

        async def callback(value, index, target):
            log.append(("callback", value))

        await core.run(["a", "b"], callback)

        assert log == [
            ("recorder", "before", 0),
            ("callback", "a"),
            ("recorder", "after", 0),
            ("recorder", "before", 1),
            ("callback", "b"),
            ("recorder", "after", 1),
        ]

    @pytest.mark.asyncio
    async def test_on_error_then_policy(self) -> None:
        """Test on_error runs for failures and the engine policy still applies."""
        log = []
        core = ForEachCore()
        core.use(RecordingPlugin(log=log))
        log.clear()

        async def callback(value, index, target):
            if value == 1:
                raise ValueError("bad")

        await core.run([0, 1, 2], callback)

        assert ("recorder", "error", 1, "ValueError") in log
        assert ("recorder", "after", 1) not in log
        assert ("recorder", "after", 2) in log

        with pytest.raises(IterationError):
            await core.run([1], callback, break_on_error=True)

    @pytest.mark.asyncio
    async def test_plugin_error_is_fatal(self) -> None:
        """Test a failing hook aborts even with break_on_error=False."""
        calls = []

        class Faulty(IterationPlugin):
            name = "faulty"
            version = "1.0.0"

            def after_iteration(self, context):
                raise RuntimeError("hook broke")

        core = ForEachCore()
        core.use(Faulty())

        with pytest.raises(PluginError):
            await core.run([1, 2, 3], lambda v, i, t: calls.append(v))

        assert calls == [1]

    @pytest.mark.asyncio
    async def test_reverse_context(self) -> None:
        """Test contexts follow processing order when reversed."""
        log = []
        core = ForEachCore()
        core.use(RecordingPlugin(log=log))
        log.clear()

        await core.run({"a": 1, "b": 2}, lambda v, k, t: None, reverse=True)

        assert [entry for entry in log if entry[1] == "before"] == [
            ("recorder", "before", 0),
            ("recorder", "before", 1),
        ]

    @pytest.mark.asyncio
    async def test_run_parallel(self) -> None:
        """Test the parallel variant fires hooks for every element."""
        log = []
        core = ForEachCore()
        core.use(RecordingPlugin(log=log))
        log.clear()

        await core.run_parallel(list(range(5)), lambda v, i, t: None, concurrency=2)

        assert sorted(entry[2] for entry in log if entry[1] == "after") == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_this_arg(self) -> None:
        """Test this_arg reaches the wrapped callback."""
        bucket = []

        def callback(self, value, index, target):
            self.append(value)

        await ForEachCore().run([1, 2], callback, this_arg=bucket)

        assert bucket == [1, 2]

    def test_use_and_remove(self) -> None:
        """Test plugins can be listed and removed."""
        core = ForEachCore()
        plugin = RecordingPlugin()
        core.use(plugin)

        assert core.get_plugins() == (plugin,)
        assert core.remove("recorder") is True
        assert core.get_plugins() == ()


def _context() -> IterationContext:
    return IterationContext(index=0, total=1, is_first=True, is_last=True)
