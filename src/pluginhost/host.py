# -*- coding: utf-8 -*-
"""
插件宿主

宿主根据配置创建注入器、注册表和加载器，并驱动完整的引导流程：
load → resolve → prioritize → initialize。
"""

import logging
from typing import Optional

from .config import HostConfig
from .core.injector import Injector
from .plugins.loader import DirectoryLoader, PluginLoader
from .plugins.registry import Registry

REGISTRY_SERVICE = "registry"


class Host:
    """
    插件宿主

    Example:
        >>> host = Host(HostConfig(directories=["./plugins"]))
        >>> registry = host.bootstrap()
        >>> host.injector.get("database")
    """

    def __init__(
        self,
        config: Optional[HostConfig] = None,
        injector: Optional[Injector] = None,
        loader: Optional[PluginLoader] = None,
    ):
        """
        初始化宿主

        Args:
            config: 宿主配置，默认使用 HostConfig()
            injector: 共享的注入器，默认新建
            loader: 插件加载器，默认根据配置创建 DirectoryLoader
        """
        self.config = config or HostConfig()
        self.logger = logging.getLogger(__name__)
        logging.getLogger("pluginhost").setLevel(self.config.log_level)

        self.injector = injector if injector is not None else Injector()
        self.registry = Registry(self.injector, strict=self.config.strict_phases)
        self.loader = loader or DirectoryLoader(
            self.config.directories,
            pattern=self.config.pattern,
            entry_point=self.config.entry_point,
        )

        # 插件初始化时可以通过注入器取得注册表
        self.injector.value(REGISTRY_SERVICE, self.registry)

    def load(self) -> Registry:
        """调用加载器产出的全部注册函数"""
        functions = self.loader.load()
        for function in functions:
            function(self.registry)
        self.logger.info(f"已加载 {len(functions)} 个注册函数，共 {len(self.registry)} 个插件")
        return self.registry

    def bootstrap(self) -> Registry:
        """
        运行完整的引导流程

        任何阶段失败都会原样抛出，宿主应视为启动失败。
        """
        self.load()
        return self.registry.resolve().prioritize().initialize()

    async def bootstrap_async(self) -> Registry:
        """异步引导，插件按加载顺序逐个等待初始化完成"""
        self.load()
        self.registry.resolve().prioritize()
        return await self.registry.initialize_async()
