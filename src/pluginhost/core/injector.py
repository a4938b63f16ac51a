# -*- coding: utf-8 -*-
"""
依赖注入容器

注入器按名称保存描述符，在被请求时才把描述符解析为具体实例：
- factory: 调用生产函数一次并缓存结果（单例语义）
- value: 直接返回保存的值

其他描述符类型可以通过 register_kind() 扩展。
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from ..exceptions import DuplicateDescriptorError, UnresolvedNameError
from .calling import call_with_supported_args
from .collection import Predicate, QueryCollection

logger = logging.getLogger(__name__)


class DescriptorKind:
    """内置描述符类型"""

    FACTORY = "factory"
    VALUE = "value"


@dataclass
class Descriptor:
    """
    描述符：告诉注入器如何生产或提供一个值

    Attributes:
        name: 唯一名称
        kind: 描述符类型（factory、value 或扩展类型）
        producer: 工厂函数或字面值
        metadata: 附加字段，可被结构匹配过滤使用
    """

    name: str
    kind: str
    producer: Any
    metadata: Dict[str, Any] = field(default_factory=dict)


KindResolver = Callable[["Injector", Descriptor], Any]


class DependencyCollection(QueryCollection[Descriptor]):
    """
    注入器描述符的查询结果集合

    构造和过滤时都不会解析依赖，只有调用 values() 时才通过注入器解析，
    因此可以低成本地查看“将会被解析”的内容。
    """

    def __init__(self, items=None, injector: Optional["Injector"] = None):
        super().__init__(items, injector)

    @property
    def injector(self) -> Optional["Injector"]:
        return self._source

    def values(self) -> List[Any]:
        """按集合顺序解析每个描述符，解析错误原样抛出"""
        return [self._source.get(descriptor.name) for descriptor in self._items]


class Injector:
    """
    依赖注入容器

    描述符映射只应在加载/注册阶段修改，引导完成后以读取为主。
    """

    def __init__(self):
        self._descriptors: Dict[str, Descriptor] = {}
        self._instances: Dict[str, Any] = {}
        self._resolving: Set[str] = set()
        self._resolvers: Dict[str, KindResolver] = {
            DescriptorKind.FACTORY: Injector._resolve_factory,
            DescriptorKind.VALUE: Injector._resolve_value,
        }

    def register(self, descriptor: Descriptor) -> Descriptor:
        """
        注册描述符

        Args:
            descriptor: 描述符

        Returns:
            注册的描述符

        Raises:
            DuplicateDescriptorError: 名称已存在时抛出
        """
        if descriptor.name in self._descriptors:
            raise DuplicateDescriptorError(descriptor.name)

        self._descriptors[descriptor.name] = descriptor
        logger.debug(f"注册描述符 {descriptor.name} ({descriptor.kind})")
        return descriptor

    def factory(self, name: str, producer: Callable, **metadata: Any) -> Descriptor:
        """注册工厂描述符"""
        return self.register(Descriptor(name, DescriptorKind.FACTORY, producer, metadata))

    def value(self, name: str, value: Any, **metadata: Any) -> Descriptor:
        """注册值描述符"""
        return self.register(Descriptor(name, DescriptorKind.VALUE, value, metadata))

    def register_kind(self, kind: str, resolver: KindResolver) -> None:
        """
        注册新的描述符类型

        Args:
            kind: 类型名称
            resolver: 解析函数 (injector, descriptor) -> instance

        Raises:
            ValueError: 试图覆盖内置类型时抛出
        """
        if kind in (DescriptorKind.FACTORY, DescriptorKind.VALUE):
            raise ValueError(f"不能覆盖内置描述符类型: {kind}")
        self._resolvers[kind] = resolver

    def get(self, name: str) -> Any:
        """
        获取名称对应的实例

        Raises:
            UnresolvedNameError: 名称未注册或描述符类型无法解析时抛出
        """
        descriptor = self._descriptors.get(name)
        if descriptor is None:
            raise UnresolvedNameError(name)

        resolver = self._resolvers.get(descriptor.kind)
        if resolver is None:
            raise UnresolvedNameError(name, f"未知的描述符类型 {descriptor.kind}")

        return resolver(self, descriptor)

    def descriptor(self, name: str) -> Optional[Descriptor]:
        return self._descriptors.get(name)

    def has(self, name: str) -> bool:
        return name in self._descriptors

    def names(self) -> List[str]:
        return list(self._descriptors.keys())

    def filter(self, predicate: Predicate) -> DependencyCollection:
        """
        查询描述符

        Args:
            predicate: 结构匹配字典或布尔函数

        Returns:
            绑定到本注入器的 DependencyCollection，保持注册顺序

        Example:
            >>> injector.filter({"kind": "factory"}).values()
            >>> injector.filter(lambda d: d.name.startswith("db."))
        """
        return DependencyCollection(self._descriptors.values(), self).filter(predicate)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    @staticmethod
    def _resolve_factory(injector: "Injector", descriptor: Descriptor) -> Any:
        name = descriptor.name
        if name not in injector._instances:
            if name in injector._resolving:
                raise UnresolvedNameError(name, "工厂存在循环依赖")

            injector._resolving.add(name)
            try:
                # 工厂可以接收注入器以解析自身的依赖
                injector._instances[name] = call_with_supported_args(descriptor.producer, injector)
            finally:
                injector._resolving.discard(name)
            logger.debug(f"工厂 {name} 已实例化")
        return injector._instances[name]

    @staticmethod
    def _resolve_value(injector: "Injector", descriptor: Descriptor) -> Any:
        return descriptor.producer
