# -*- coding: utf-8 -*-
"""
查询结果集合

为注入器描述符和插件提供统一的有序、可过滤视图。
集合显式持有产生它的容器（注入器或注册表），过滤时保持原有顺序。
"""

from collections.abc import Mapping
from typing import (
    Any,
    Callable,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    TypeVar,
    Union,
)

T = TypeVar("T")
R = TypeVar("R")

Predicate = Union[Mapping, Callable[[Any], bool]]

_MISSING = object()


def _lookup(item: Any, key: str) -> Any:
    """先查找对象属性，找不到时再查找其 metadata 中的同名字段"""
    value = getattr(item, key, _MISSING)
    if value is not _MISSING:
        return value

    metadata = getattr(item, "metadata", None)
    if metadata is None:
        return _MISSING
    if isinstance(metadata, Mapping):
        return metadata.get(key, _MISSING)
    return getattr(metadata, key, _MISSING)


def matches(item: Any, predicate: Predicate) -> bool:
    """
    判断元素是否满足谓词

    Args:
        item: 待判断的元素
        predicate: 结构匹配字典（每个键值都必须相等）或返回布尔值的函数

    Returns:
        是否匹配
    """
    if isinstance(predicate, Mapping):
        for key, expected in predicate.items():
            value = _lookup(item, key)
            if value is _MISSING or value != expected:
                return False
        return True

    if callable(predicate):
        return bool(predicate(item))

    raise TypeError(f"不支持的谓词类型: {type(predicate).__name__}")


class QueryCollection(Generic[T]):
    """
    有序查询集合基类

    子类通过 values() 决定如何把元素转换为最终结果。
    """

    def __init__(self, items: Optional[Iterable[T]] = None, source: Any = None):
        self._items: List[T] = list(items or [])
        self._source = source

    @property
    def source(self) -> Any:
        """产生该集合的容器"""
        return self._source

    def _derive(self, items: Iterable[T]) -> "QueryCollection[T]":
        return type(self)(items, self._source)

    def filter(self, predicate: Predicate) -> "QueryCollection[T]":
        """按谓词过滤，返回绑定同一容器的新集合"""
        return self._derive(item for item in self._items if matches(item, predicate))

    def map(self, func: Callable[[T], R]) -> List[R]:
        """对每个元素调用 func，按集合顺序返回结果列表"""
        return [func(item) for item in self._items]

    def values(self) -> List[Any]:
        return list(self._items)

    def names(self) -> List[str]:
        return [getattr(item, "name") for item in self._items]

    def first(self) -> Optional[T]:
        return self._items[0] if self._items else None

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return self._derive(self._items[index])
        return self._items[index]

    def __contains__(self, item: object) -> bool:
        return any(existing is item for existing in self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.names()!r})"
