# -*- coding: utf-8 -*-
"""
依赖注入核心

提供注入器、描述符和查询集合。
"""

from .collection import QueryCollection, matches
from .injector import DependencyCollection, Descriptor, DescriptorKind, Injector

__all__ = [
    "Descriptor",
    "DescriptorKind",
    "Injector",
    "DependencyCollection",
    "QueryCollection",
    "matches",
]
