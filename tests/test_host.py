# -*- coding: utf-8 -*-
"""
插件宿主测试
"""

import asyncio
import logging

import pytest

from pluginhost import Host, HostConfig, Injector, StaticLoader
from pluginhost.exceptions import CyclicDependencyError, MissingDependencyError
from pluginhost.host import REGISTRY_SERVICE
from pluginhost.plugins.registry import BootstrapPhase

DB_PLUGIN = """
def register(registry):
    def setup(plugin, injector):
        injector.value("db", {"dsn": "sqlite://"})

    registry.plugin("db", {"version": "1.3.0"}).initializer(setup)
"""

CACHE_PLUGIN = """
def register(registry):
    def setup(plugin, injector):
        injector.factory("cache", lambda inj: {"backend": inj.get("db")})

    registry.plugin("cache", {"version": "0.1.0", "dependencies": {"db": "^1.0.0"}}) \\
        .initializer(setup)
"""


class TestHost:
    """测试宿主引导流程"""

    def test_bootstrap_from_directory(self, temp_plugin_dir, write_plugin):
        # cache 先于 db 被发现，加载顺序仍由依赖决定
        write_plugin("a_cache/plugin.py", CACHE_PLUGIN)
        write_plugin("b_db/plugin.py", DB_PLUGIN)
        host = Host(HostConfig(directories=[temp_plugin_dir]))

        registry = host.bootstrap()

        assert registry is host.registry
        assert registry.names() == ["cache", "db"]
        assert registry.prioritized.names() == ["db", "cache"]
        assert registry.phase == BootstrapPhase.INITIALIZED
        assert host.injector.get("cache") == {"backend": {"dsn": "sqlite://"}}

    def test_bootstrap_runs_every_phase_once(self, mocker):
        host = Host(loader=StaticLoader([]))
        load = mocker.spy(host, "load")
        resolve = mocker.spy(host.registry, "resolve")
        prioritize = mocker.spy(host.registry, "prioritize")
        initialize = mocker.spy(host.registry, "initialize")

        host.bootstrap()

        for spy in (load, resolve, prioritize, initialize):
            spy.assert_called_once()

    def test_registry_is_injectable(self):
        host = Host(loader=StaticLoader([]))

        assert host.injector.get(REGISTRY_SERVICE) is host.registry

    def test_shared_injector(self):
        injector = Injector()
        injector.value("settings", {"debug": True})
        seen = []

        def register(registry):
            registry.plugin("app", {"version": "1.0.0"}).initializer(
                lambda plugin, inj: seen.append(inj.get("settings"))
            )

        host = Host(injector=injector, loader=StaticLoader([register]))
        host.bootstrap()

        assert host.injector is injector
        assert seen == [{"debug": True}]

    def test_strict_phases_from_config(self):
        assert Host(HostConfig(strict_phases=False), loader=StaticLoader([])).registry.strict is False
        assert Host(loader=StaticLoader([])).registry.strict is True

    def test_log_level_from_config(self):
        Host(HostConfig(log_level="DEBUG"), loader=StaticLoader([]))

        assert logging.getLogger("pluginhost").level == logging.DEBUG

    def test_missing_dependency_fails_bootstrap(self):
        def register(registry):
            registry.plugin("cache", {"version": "1.0.0", "dependencies": {"db": "*"}})

        host = Host(loader=StaticLoader([register]))

        with pytest.raises(MissingDependencyError):
            host.bootstrap()

    def test_cycle_fails_bootstrap(self):
        def register(registry):
            registry.plugin("a", {"version": "1.0.0", "dependencies": {"b": "*"}})
            registry.plugin("b", {"version": "1.0.0", "dependencies": {"a": "*"}})

        with pytest.raises(CyclicDependencyError):
            Host(loader=StaticLoader([register])).bootstrap()

    def test_bootstrap_async(self):
        events = []

        def register(registry):
            async def setup(plugin):
                await asyncio.sleep(0)
                events.append(plugin.name)

            registry.plugin("b", {"version": "1.0.0", "dependencies": {"a": "*"}}).initializer(setup)
            registry.plugin("a", {"version": "1.0.0"}).initializer(setup)

        host = Host(loader=StaticLoader([register]))
        registry = asyncio.run(host.bootstrap_async())

        assert events == ["a", "b"]
        assert registry.phase == BootstrapPhase.INITIALIZED

    def test_missing_plugin_directory_is_not_fatal(self, temp_plugin_dir):
        host = Host(HostConfig(directories=[temp_plugin_dir / "missing"]))

        assert len(host.bootstrap()) == 0


@pytest.fixture(autouse=True)
def _restore_log_level():
    logger = logging.getLogger("pluginhost")
    level = logger.level
    yield
    logger.setLevel(level)
