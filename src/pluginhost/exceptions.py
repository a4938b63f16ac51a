# -*- coding: utf-8 -*-
"""
pluginhost 核心异常
"""

from typing import Dict, List, Optional, Sequence


class PluginHostError(Exception):
    """所有 pluginhost 自定义异常的基类。"""

    pass


# region 注入器异常


class InjectorError(PluginHostError):
    """与依赖注入容器相关的错误的基类。"""

    pass


class DuplicateDescriptorError(InjectorError):
    """当注入器中已存在同名描述符时引发。"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"描述符 '{name}' 已注册")


class UnresolvedNameError(InjectorError, KeyError):
    """当注入器无法解析指定名称时引发。"""

    def __init__(self, name: str, reason: Optional[str] = None):
        self.name = name
        message = f"无法解析依赖 '{name}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


# endregion

# region 插件异常


class PluginError(PluginHostError):
    """与插件相关的错误的基类。"""

    pass


class TypeMismatchError(PluginError, TypeError):
    """当注册表收到的值不是 Plugin 实例时引发。"""

    pass


class InvalidVersionError(PluginError, ValueError):
    """当插件版本不是合法的语义化版本时引发。"""

    label = "语义化版本"

    def __init__(self, version: object, reason: Optional[str] = None):
        self.version = version
        message = f"无效的{self.label}: {version!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidRangeError(InvalidVersionError):
    """当版本范围表达式无法解析时引发。"""

    label = "版本范围"

    def __init__(self, range: object, reason: Optional[str] = None):
        self.range = range
        super().__init__(range, reason)


class AlreadyStartedError(PluginError):
    """当插件被重复初始化时引发。"""

    def __init__(self, plugin_name: str):
        self.plugin_name = plugin_name
        super().__init__(f"插件 {plugin_name} 已经启动")


# endregion

# region 依赖异常


class DependencyError(PluginHostError):
    """依赖管理基础异常"""

    pass


class MissingDependencyError(DependencyError):
    """缺失依赖异常"""

    def __init__(self, plugin_name: str, dependency_name: str):
        self.plugin_name = plugin_name
        self.dependency_name = dependency_name
        super().__init__(f"插件 {plugin_name} 缺少依赖: {dependency_name}")


class VersionMismatchError(DependencyError):
    """版本不满足依赖范围"""

    def __init__(self, dependency_name: str, version: str, range: str):
        self.dependency_name = dependency_name
        self.version = version
        self.range = range
        super().__init__(f"版本冲突: {dependency_name} {version} 不满足 {range}")


class CyclicDependencyError(DependencyError):
    """循环依赖异常"""

    def __init__(self, remaining: Sequence[str], cycles: Optional[List[List[str]]] = None):
        self.remaining = list(remaining)
        self.cycles = cycles or []
        message = f"无法确定加载顺序，剩余插件: {self.remaining}"
        if self.cycles:
            message = f"检测到循环依赖: {self.cycles}; {message}"
        super().__init__(message)


# endregion

# region 注册表与加载异常


class RegistryError(PluginHostError):
    """与注册表引导流程相关的错误的基类。"""

    pass


class PhaseOrderError(RegistryError):
    """当严格模式下引导阶段的调用顺序不正确时引发。"""

    def __init__(self, phase: str, expected: str, current: str):
        self.phase = phase
        self.expected = expected
        self.current = current
        super().__init__(f"阶段 {phase} 需要先完成 {expected}，当前阶段: {current}")


class PluginLoadError(PluginHostError, ImportError):
    """当无法加载插件文件时引发，例如导入错误或缺少注册入口。"""

    pass


class ConfigurationError(PluginHostError, ValueError):
    """当宿主配置无效时引发。"""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        self.errors = errors or {}
        super().__init__(message)


# endregion
