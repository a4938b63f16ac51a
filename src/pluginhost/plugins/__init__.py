# -*- coding: utf-8 -*-
"""
插件系统

提供插件实体、插件集合、注册表引导流程、加载器和版本范围匹配。
"""

from .collection import PluginCollection
from .loader import DirectoryLoader, PluginLoader, RegistrationFunction, StaticLoader
from .plugin import Plugin, PluginMetadata
from .registry import BootstrapPhase, Registry
from .semver import ComparatorSet, SemanticVersion, parse_range, parse_version, satisfies

__all__ = [
    "Plugin",
    "PluginMetadata",
    "PluginCollection",
    "Registry",
    "BootstrapPhase",
    "PluginLoader",
    "DirectoryLoader",
    "StaticLoader",
    "RegistrationFunction",
    "SemanticVersion",
    "ComparatorSet",
    "parse_version",
    "parse_range",
    "satisfies",
]
