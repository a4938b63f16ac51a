# -*- coding: utf-8 -*-
"""
插件加载器

加载器负责发现并导入插件源码，产出一组注册函数；注册表只消费这些
注册函数，不关心它们是如何被加载的。
"""

import importlib.util
import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, List, Sequence, Union

from ..exceptions import PluginLoadError

if TYPE_CHECKING:
    from .registry import Registry

RegistrationFunction = Callable[["Registry"], None]

DEFAULT_PATTERN = "**/plugin.py"
DEFAULT_ENTRY_POINT = "register"


class PluginLoader(ABC):
    """插件加载器接口"""

    @abstractmethod
    def load(self) -> List[RegistrationFunction]:
        """返回按顺序调用的注册函数列表"""


class StaticLoader(PluginLoader):
    """直接提供注册函数的加载器，适用于嵌入式宿主和测试"""

    def __init__(self, functions: Iterable[RegistrationFunction]):
        self._functions = list(functions)

    def load(self) -> List[RegistrationFunction]:
        return list(self._functions)


class DirectoryLoader(PluginLoader):
    """
    目录加载器

    在配置的目录中按通配模式查找插件文件，导入后取出其注册入口函数。
    """

    def __init__(
        self,
        directories: Sequence[Union[str, Path]],
        pattern: str = DEFAULT_PATTERN,
        entry_point: str = DEFAULT_ENTRY_POINT,
    ):
        """
        初始化目录加载器

        Args:
            directories: 插件目录列表，重复目录会被忽略
            pattern: 相对于每个目录的文件通配模式
            entry_point: 插件模块中注册函数的名称
        """
        self.logger = logging.getLogger(__name__)
        self.directories: List[Path] = []
        for directory in directories:
            path = Path(directory).resolve()
            if path not in self.directories:
                self.directories.append(path)
        self.pattern = pattern
        self.entry_point = entry_point

    def discover(self) -> List[Path]:
        """
        查找插件文件

        Returns:
            去重后的文件列表，每个目录内按路径排序
        """
        files: List[Path] = []
        for directory in self.directories:
            if not directory.is_dir():
                self.logger.warning(f"插件目录不存在: {directory}")
                continue

            found = sorted(path.resolve() for path in directory.glob(self.pattern) if path.is_file())
            self.logger.info(f"在 {directory} 中找到 {len(found)} 个插件文件")
            for path in found:
                if path not in files:
                    files.append(path)
        return files

    def load(self) -> List[RegistrationFunction]:
        """
        导入插件文件并取出注册函数

        Raises:
            PluginLoadError: 文件导入失败或缺少可调用的注册函数
        """
        return [self._load_file(path) for path in self.discover()]

    def _load_file(self, file_path: Path) -> RegistrationFunction:
        """从文件加载注册函数"""
        module_name = f"pluginhost_plugin_{abs(hash(str(file_path))):x}"
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if not spec or not spec.loader:
            raise PluginLoadError(f"无法为 {file_path} 创建模块规格")

        module = importlib.util.module_from_spec(spec)
        # dataclasses、pickle 和 get_type_hints 通过 sys.modules 查找模块
        sys.modules[spec.name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(spec.name, None)
            raise PluginLoadError(f"加载插件文件失败 {file_path}: {e}") from e

        function = getattr(module, self.entry_point, None)
        if not callable(function):
            raise PluginLoadError(f"插件文件 {file_path} 缺少可调用的 {self.entry_point}()")

        self.logger.debug(f"已加载插件文件 {file_path}")
        return function
