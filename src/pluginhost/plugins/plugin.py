# -*- coding: utf-8 -*-
"""
插件实体

一个插件描述一个可插拔单元：名称、版本、声明的依赖范围、
由注册表解析得到的依赖/被依赖链接，以及初始化回调。
"""

import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import (
    AlreadyStartedError,
    InvalidRangeError,
    InvalidVersionError,
    TypeMismatchError,
)
from ..core.calling import call_with_supported_args
from .semver import SemanticVersion, parse_range, parse_version

if TYPE_CHECKING:
    from ..core.injector import Injector

logger = logging.getLogger(__name__)

Initializer = Callable[..., Any]


class PluginMetadata(BaseModel):
    """
    插件元数据

    version 和 dependencies 之外的任意字段都会被保留，供使用方查询。
    """

    version: str = Field(..., description="插件版本 (语义化版本)")
    dependencies: Dict[str, str] = Field(
        default_factory=dict, description="插件依赖 {plugin_name: version_range}"
    )

    model_config = ConfigDict(extra="allow")

    def get(self, key: str, default: Any = None) -> Any:
        """按字段名读取元数据，包括额外字段"""
        return getattr(self, key, default)


class Plugin:
    """
    插件

    dependencies 和 dependents 只是查找用的反向引用，插件并不拥有它们。

    Example:
        >>> plugin = Plugin("cache", {"version": "1.2.0", "dependencies": {"db": "^1.0.0"}})
        >>> plugin.initializer(lambda plugin, injector: injector.get("db"))
    """

    def __init__(self, name: str, metadata: Union[PluginMetadata, Mapping[str, Any]]):
        """
        初始化插件

        Args:
            name: 插件唯一名称
            metadata: 插件元数据，至少包含 version

        Raises:
            TypeMismatchError: 名称不是非空字符串
            InvalidVersionError: 版本无效
            InvalidRangeError: 依赖范围无效
        """
        if not isinstance(name, str) or not name:
            raise TypeMismatchError(f"插件名称必须是非空字符串: {name!r}")

        self.name = name
        self.metadata = self._validate_metadata(metadata)
        self._version = parse_version(self.metadata.version)
        for range in self.metadata.dependencies.values():
            parse_range(range)

        self.dependencies: Dict[str, "Plugin"] = {}
        self.dependents: Dict[str, "Plugin"] = {}
        self.started = False
        self._initializer: Optional[Initializer] = None

    @property
    def parsed_version(self) -> SemanticVersion:
        """解析后的版本"""
        return self._version

    def initializer(self, callback: Initializer) -> "Plugin":
        """
        设置初始化回调，重复设置时以最后一次为准

        回调可以不接收参数，也可以依次接收 (plugin, injector)。
        也可以用作装饰器：

            @registry.plugin("db", {"version": "1.0.0"}).initializer
            def setup(plugin, injector):
                ...
        """
        if not callable(callback):
            raise TypeMismatchError(f"插件 {self.name} 的初始化回调不可调用: {callback!r}")
        self._initializer = callback
        return self

    def initialize(self, injector: Optional["Injector"] = None) -> Any:
        """
        运行初始化回调并标记为已启动

        Raises:
            AlreadyStartedError: 插件已经启动
        """
        self._check_not_started()
        result = None
        if self._initializer is not None:
            result = call_with_supported_args(self._initializer, self, injector)
        else:
            logger.debug(f"插件 {self.name} 未设置初始化回调")
        self.started = True
        return result

    async def initialize_async(self, injector: Optional["Injector"] = None) -> Any:
        """
        异步初始化，回调返回可等待对象时等待其完成后才标记为已启动

        Raises:
            AlreadyStartedError: 插件已经启动
        """
        self._check_not_started()
        result = None
        if self._initializer is not None:
            result = call_with_supported_args(self._initializer, self, injector)
            if inspect.isawaitable(result):
                result = await result
        self.started = True
        return result

    def _check_not_started(self) -> None:
        if self.started:
            raise AlreadyStartedError(self.name)

    @staticmethod
    def _validate_metadata(metadata: Any) -> PluginMetadata:
        if isinstance(metadata, PluginMetadata):
            return metadata
        if not isinstance(metadata, Mapping):
            raise TypeMismatchError(f"插件元数据必须是映射: {metadata!r}")
        if "version" not in metadata:
            raise InvalidVersionError(None, "缺少 version 字段")

        try:
            return PluginMetadata.model_validate(dict(metadata))
        except ValidationError as e:
            fields = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            if "version" in fields:
                raise InvalidVersionError(metadata.get("version"), "版本必须是字符串")
            if "dependencies" in fields:
                raise InvalidRangeError(metadata.get("dependencies"), "依赖必须是 {名称: 范围字符串}")
            raise TypeMismatchError(f"插件元数据无效: {e}")

    def __repr__(self) -> str:
        return f"Plugin(name={self.name!r}, version={self.metadata.version!r}, started={self.started})"
