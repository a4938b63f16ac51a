# -*- coding: utf-8 -*-
"""
插件注册表

注册表在内存中保存插件，负责解析并校验插件依赖、计算满足依赖关系的
加载顺序，并按该顺序初始化插件。这一过程称为引导（bootstrap），
是插件生命周期的开端：

    registry.resolve().prioritize().initialize()

插件注册约定：

    def register(registry):
        registry.plugin("cache", {"version": "1.0.0", "dependencies": {"db": "^1.0.0"}}) \\
            .initializer(setup_cache)
"""

import itertools
import logging
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import networkx as nx

from ..core.collection import Predicate
from ..core.injector import Injector
from ..exceptions import (
    CyclicDependencyError,
    MissingDependencyError,
    PhaseOrderError,
    TypeMismatchError,
    VersionMismatchError,
)
from .collection import PluginCollection
from .plugin import Plugin, PluginMetadata
from .semver import satisfies

# 报告循环依赖时最多列出的环数量
MAX_REPORTED_CYCLES = 10


class BootstrapPhase(str, Enum):
    """引导阶段"""

    LOAD = "load"  # 注册插件
    RESOLVED = "resolved"  # 依赖已链接
    PRIORITIZED = "prioritized"  # 加载顺序已计算
    INITIALIZED = "initialized"  # 插件已初始化


_PHASE_ORDER = list(BootstrapPhase)


class Registry:
    """
    插件注册表

    _plugins 是插件的唯一来源；prioritized 是最近一次计算出的加载顺序，
    在引导流程运行前为空或已过期。
    """

    def __init__(self, injector: Optional[Injector] = None, strict: bool = False):
        """
        初始化插件注册表

        Args:
            injector: 传给每个插件初始化回调的注入器，默认新建
            strict: 是否强制检查引导阶段的调用顺序
        """
        self.logger = logging.getLogger(__name__)
        self.injector = injector if injector is not None else Injector()
        self.strict = strict

        self._plugins: Dict[str, Plugin] = {}
        self.prioritized = PluginCollection(registry=self)
        self.phase = BootstrapPhase.LOAD

    # 基础映射操作
    def get(self, name: str) -> Optional[Plugin]:
        """获取插件，不存在时返回 None"""
        return self._plugins.get(name)

    def set(self, name: str, plugin: Plugin) -> Plugin:
        """
        设置插件

        Raises:
            TypeMismatchError: plugin 不是 Plugin 实例
            ValueError: name 与 plugin.name 不一致
        """
        if not isinstance(plugin, Plugin):
            raise TypeMismatchError(f"{plugin!r} 不是 Plugin 实例")
        if name != plugin.name:
            raise ValueError(f"注册名称 {name} 与插件名称 {plugin.name} 不一致")

        existing = self._plugins.get(name)
        if existing is not None and existing is not plugin:
            self.logger.warning(
                f"插件 {name} 已存在 (版本: {existing.metadata.version}), "
                f"将被替换为新版本 {plugin.metadata.version}"
            )

        self._plugins[name] = plugin
        self.phase = BootstrapPhase.LOAD
        return plugin

    def delete(self, name: str) -> bool:
        """
        移除插件

        其他插件指向它的链接不会被清理，直到下一次 resolve()。

        Returns:
            插件是否存在并被移除
        """
        if name not in self._plugins:
            return False

        del self._plugins[name]
        self.phase = BootstrapPhase.LOAD
        self.logger.info(f"插件 {name} 已移除")
        return True

    def plugin(
        self, name: str, metadata: Union[PluginMetadata, Mapping[str, Any], None] = None
    ) -> Optional[Plugin]:
        """
        注册或获取插件

        Args:
            name: 插件名称
            metadata: 插件元数据；为 None 时只查询已注册的插件

        Returns:
            插件实例
        """
        if metadata is None:
            return self.get(name)

        plugin = self.set(name, Plugin(name, metadata))
        self.logger.info(f"插件 {name} v{plugin.metadata.version} 注册成功")
        return plugin

    def filter(self, predicate: Predicate) -> PluginCollection:
        """
        查询插件

        查询作用于最近一次计算出的加载顺序，而不是无序的原始映射。

        Example:
            >>> registry.filter({"enabled": True})
            >>> registry.filter(lambda plugin: plugin.name.startswith("db"))
        """
        return self.prioritized.filter(predicate)

    def names(self) -> List[str]:
        return list(self._plugins.keys())

    def plugins(self) -> List[Plugin]:
        return list(self._plugins.values())

    def __getitem__(self, name: str) -> Plugin:
        return self._plugins[name]

    def __setitem__(self, name: str, plugin: Plugin) -> None:
        self.set(name, plugin)

    def __delitem__(self, name: str) -> None:
        if not self.delete(name):
            raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __iter__(self) -> Iterator[str]:
        return iter(self._plugins)

    # 引导流程
    def resolve(self) -> "Registry":
        """
        解析并校验所有插件的依赖，建立双向链接

        每个插件的全部依赖都通过校验后才会为它建立链接；任何失败立即中止，
        之前已建立的链接保留不回滚。

        Raises:
            MissingDependencyError: 依赖插件未注册
            VersionMismatchError: 依赖插件版本不满足范围
        """
        self.logger.info(f"开始解析插件依赖: {self.names()}")

        for plugin in self._plugins.values():
            plugin.dependencies.clear()
            plugin.dependents.clear()

        try:
            for plugin in self._plugins.values():
                resolved = self._validate_dependencies(plugin)
                for name, dependency in resolved.items():
                    dependency.dependents[plugin.name] = plugin
                    plugin.dependencies[name] = dependency
        except (MissingDependencyError, VersionMismatchError) as e:
            self.logger.error(f"依赖解析失败: {e}")
            raise

        self.phase = BootstrapPhase.RESOLVED
        return self

    def prioritize(self) -> "Registry":
        """
        计算满足依赖关系的加载顺序

        先放入没有依赖的插件，然后反复扫描剩余插件，把依赖已全部就位的插件
        移入结果；同一轮中可用的插件保持注册顺序。某一轮没有任何进展时说明
        存在循环依赖或无效链接。

        Raises:
            CyclicDependencyError: 无法确定加载顺序
        """
        self._require_phase("prioritize", BootstrapPhase.RESOLVED)

        ordered: List[Plugin] = []
        placed = set()
        remaining: List[Plugin] = []

        for plugin in self._plugins.values():
            if not plugin.dependencies:
                ordered.append(plugin)
                placed.add(id(plugin))
            else:
                remaining.append(plugin)

        while remaining:
            pending = []
            for plugin in remaining:
                if all(id(dependency) in placed for dependency in plugin.dependencies.values()):
                    ordered.append(plugin)
                    placed.add(id(plugin))
                else:
                    pending.append(plugin)

            if len(pending) == len(remaining):
                names = [plugin.name for plugin in pending]
                error = CyclicDependencyError(names, self._find_cycles(names))
                self.logger.error(f"计算加载顺序失败: {error}")
                raise error

            remaining = pending

        self.prioritized = PluginCollection(ordered, self)
        self.phase = BootstrapPhase.PRIORITIZED
        self.logger.info(f"加载顺序: {self.prioritized.names()}")
        return self

    def initialize(self) -> "Registry":
        """
        按加载顺序依次初始化插件

        后面的插件可能依赖前面插件注入的服务，因此必须严格顺序执行。
        """
        self._require_phase("initialize", BootstrapPhase.PRIORITIZED)

        for plugin in self.prioritized:
            self._log_initialize(plugin)
            try:
                plugin.initialize(self.injector)
            except Exception as e:
                self.logger.error(f"插件 {plugin.name} 初始化失败: {e}")
                raise

        self.phase = BootstrapPhase.INITIALIZED
        return self

    async def initialize_async(self) -> "Registry":
        """
        异步版本的 initialize()

        每个插件（包括其异步工作）完成后才开始初始化下一个插件。
        """
        self._require_phase("initialize", BootstrapPhase.PRIORITIZED)

        for plugin in self.prioritized:
            self._log_initialize(plugin)
            try:
                await plugin.initialize_async(self.injector)
            except Exception as e:
                self.logger.error(f"插件 {plugin.name} 初始化失败: {e}")
                raise

        self.phase = BootstrapPhase.INITIALIZED
        return self

    def graph(self) -> nx.DiGraph:
        """
        导出依赖图

        Returns:
            有向图，边从依赖指向依赖它的插件
        """
        graph = nx.DiGraph()
        for plugin in self._plugins.values():
            graph.add_node(plugin.name, version=plugin.metadata.version, started=plugin.started)
            for dependency in plugin.dependencies.values():
                graph.add_edge(dependency.name, plugin.name)
        return graph

    def _validate_dependencies(self, plugin: Plugin) -> Dict[str, Plugin]:
        resolved = {}
        for name, range in plugin.metadata.dependencies.items():
            dependency = self._plugins.get(name)
            if dependency is None:
                raise MissingDependencyError(plugin.name, name)

            if not satisfies(dependency.parsed_version, range):
                raise VersionMismatchError(name, dependency.metadata.version, range)

            resolved[name] = dependency
        return resolved

    def _find_cycles(self, names: List[str]) -> List[List[str]]:
        subgraph = self.graph().subgraph(names)
        return list(itertools.islice(nx.simple_cycles(subgraph), MAX_REPORTED_CYCLES))

    def _require_phase(self, action: str, expected: BootstrapPhase) -> None:
        if not self.strict:
            return
        if _PHASE_ORDER.index(self.phase) < _PHASE_ORDER.index(expected):
            raise PhaseOrderError(action, expected.value, self.phase.value)

    def _log_initialize(self, plugin: Plugin) -> None:
        self.logger.info(f"初始化插件 {plugin.name} v{plugin.metadata.version}")
