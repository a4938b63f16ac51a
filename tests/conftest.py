# -*- coding: utf-8 -*-
"""
全局测试配置
提供基本的测试环境设置和共享fixture
"""

import tempfile
import textwrap
from pathlib import Path

import pytest

from pluginhost.core.injector import Injector
from pluginhost.plugins.registry import Registry


@pytest.fixture
def injector():
    """空注入器"""
    return Injector()


@pytest.fixture
def registry(injector):
    """绑定到 injector fixture 的注册表"""
    return Registry(injector)


@pytest.fixture
def chain_registry(registry):
    """a <- b <- c 依赖链，初始化时记录调用顺序"""
    calls = []

    registry.plugin("a", {"version": "1.0.0"}).initializer(lambda: calls.append("a"))
    registry.plugin("b", {"version": "1.0.0", "dependencies": {"a": "^1.0.0"}}).initializer(
        lambda: calls.append("b")
    )
    registry.plugin("c", {"version": "1.0.0", "dependencies": {"b": "^1.0.0"}}).initializer(
        lambda: calls.append("c")
    )

    registry.calls = calls
    return registry


@pytest.fixture
def temp_plugin_dir():
    """临时插件目录"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def write_plugin(temp_plugin_dir):
    """在临时插件目录中写入插件文件"""

    def write(relative_path: str, source: str) -> Path:
        path = temp_plugin_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return write
