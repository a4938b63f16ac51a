# -*- coding: utf-8 -*-
"""
插件查询结果集合
"""

from typing import TYPE_CHECKING, Dict, List, Optional

from ..core.collection import QueryCollection
from .plugin import Plugin

if TYPE_CHECKING:
    from .registry import Registry


class PluginCollection(QueryCollection[Plugin]):
    """
    插件的有序、可过滤视图

    与 DependencyCollection 的接口一致，values() 直接返回插件本身。

    Example:
        >>> registry.filter({"enabled": True}).names()
        >>> registry.filter(lambda plugin: plugin.name.startswith("db"))
    """

    def __init__(self, items=None, registry: Optional["Registry"] = None):
        super().__init__(items, registry)

    @property
    def registry(self) -> Optional["Registry"]:
        return self._source

    def started(self) -> "PluginCollection":
        """已启动的插件"""
        return self.filter({"started": True})

    def index(self, name: str) -> int:
        """按名称查找插件位置，不存在时抛出 ValueError"""
        for position, plugin in enumerate(self._items):
            if plugin.name == name:
                return position
        raise ValueError(f"插件 {name} 不在集合中")

    def as_dict(self) -> Dict[str, Plugin]:
        return {plugin.name: plugin for plugin in self._items}

    def values(self) -> List[Plugin]:
        return list(self._items)
