# -*- coding: utf-8 -*-
"""
pluginhost: 依赖注入与插件生命周期核心
"""

__author__ = "pluginhost"
__version__ = "1.0.0"

# 核心组件
from .config import HostConfig, load_config
from .core.injector import DependencyCollection, Descriptor, DescriptorKind, Injector

# 异常
from .exceptions import (
    AlreadyStartedError,
    ConfigurationError,
    CyclicDependencyError,
    DependencyError,
    DuplicateDescriptorError,
    InjectorError,
    InvalidRangeError,
    InvalidVersionError,
    MissingDependencyError,
    PhaseOrderError,
    PluginError,
    PluginHostError,
    PluginLoadError,
    RegistryError,
    TypeMismatchError,
    UnresolvedNameError,
    VersionMismatchError,
)
from .host import Host

# 插件系统
from .plugins.collection import PluginCollection
from .plugins.loader import DirectoryLoader, PluginLoader, StaticLoader
from .plugins.plugin import Plugin, PluginMetadata
from .plugins.registry import BootstrapPhase, Registry

__all__ = [
    # 核心组件
    "Host",
    "HostConfig",
    "load_config",
    "Injector",
    "Descriptor",
    "DescriptorKind",
    "DependencyCollection",
    # 插件系统
    "Plugin",
    "PluginMetadata",
    "PluginCollection",
    "Registry",
    "BootstrapPhase",
    "PluginLoader",
    "DirectoryLoader",
    "StaticLoader",
    # 异常
    "PluginHostError",
    "InjectorError",
    "DuplicateDescriptorError",
    "UnresolvedNameError",
    "PluginError",
    "TypeMismatchError",
    "InvalidVersionError",
    "InvalidRangeError",
    "AlreadyStartedError",
    "DependencyError",
    "MissingDependencyError",
    "VersionMismatchError",
    "CyclicDependencyError",
    "RegistryError",
    "PhaseOrderError",
    "PluginLoadError",
    "ConfigurationError",
]
