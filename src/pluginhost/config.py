# -*- coding: utf-8 -*-
"""
宿主配置

基于 Pydantic 的配置模型，支持 ${VAR_NAME} 环境变量解析和多环境配置，
可以从 YAML 或 JSON 文件加载。
"""

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigurationError
from .plugins.loader import DEFAULT_ENTRY_POINT, DEFAULT_PATTERN

# 环境变量匹配模式: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\${([A-Za-z0-9_]+)}")

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _default_directories() -> List[Path]:
    return [Path.cwd() / "plugins"]


class HostConfig(BaseModel):
    """
    宿主配置

    1. **严格模式验证**：禁止额外字段，防止配置错误
    2. **环境变量解析**：自动解析 "${VAR_NAME}" 格式的环境变量
    3. **多环境配置**：根据 APP_ENV 环境变量选择配置段
    """

    directories: List[Path] = Field(default_factory=_default_directories, description="插件目录")
    pattern: str = Field(default=DEFAULT_PATTERN, description="插件文件通配模式")
    entry_point: str = Field(default=DEFAULT_ENTRY_POINT, description="插件注册函数名称")
    strict_phases: bool = Field(default=True, description="是否强制引导阶段顺序")
    log_level: str = Field(default="INFO", description="pluginhost 日志级别")

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @model_validator(mode="before")
    @classmethod
    def _resolve_env_vars(cls, data: Any) -> Any:
        """
        在其他验证执行前递归解析环境变量

        Raises:
            ValueError: 当环境变量未设置时抛出
        """
        if not isinstance(data, dict):
            return data

        def _resolve(value: Any) -> Any:
            if isinstance(value, str):
                match = ENV_VAR_PATTERN.match(value)
                if not match:
                    return value
                env_var_name = match.group(1)
                env_var_value = os.getenv(env_var_name)
                if env_var_value is None:
                    raise ValueError(f"环境变量 '{env_var_name}' 未设置")
                return env_var_value
            elif isinstance(value, dict):
                return {k: _resolve(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [_resolve(v) for v in value]
            return value

        return _resolve(data)

    @field_validator("directories")
    @classmethod
    def _unique_directories(cls, value: List[Path]) -> List[Path]:
        unique: List[Path] = []
        for directory in value:
            if directory not in unique:
                unique.append(directory)
        return unique

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"无效的日志级别: {value}")
        return level

    @classmethod
    def load_from_dict(cls, config_data: Dict[str, Any], env: Optional[str] = None) -> "HostConfig":
        """
        从字典加载配置，支持环境特定的配置覆盖

        配置结构示例：
        {
            "default": {"directories": ["plugins"]},
            "production": {"strict_phases": true, "log_level": "WARNING"}
        }

        没有 default 段时整个字典视为基础配置。

        Args:
            config_data: 配置字典
            env: 目标环境，为 None 时使用 os.getenv("APP_ENV", "development")

        Raises:
            ConfigurationError: 配置无效
        """
        if env is None:
            env = os.getenv("APP_ENV", "development")

        if "default" in config_data:
            merged = _deep_merge(config_data.get("default") or {}, config_data.get(env) or {})
        else:
            merged = config_data

        try:
            return cls(**merged)
        except ValidationError as e:
            errors = {".".join(str(p) for p in err["loc"]) or "__root__": err["msg"] for err in e.errors()}
            raise ConfigurationError(f"宿主配置验证失败: {errors}", errors) from e


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """深度合并两个字典，overrides 中的值会覆盖 base 中的值"""
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Union[str, Path], env: Optional[str] = None) -> HostConfig:
    """
    从文件加载宿主配置

    相对路径的插件目录以配置文件所在目录为基准。

    Raises:
        ConfigurationError: 文件不存在、格式不支持或内容无效
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"配置文件不存在: {config_path}")

    suffix = config_path.suffix.lower()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ConfigurationError(f"不支持的配置文件格式: {config_path.suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"加载配置文件失败 {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"配置文件内容必须是映射: {config_path}")

    config = HostConfig.load_from_dict(data, env=env)
    base = config_path.parent.resolve()
    config.directories = [d if d.is_absolute() else base / d for d in config.directories]
    logging.getLogger(__name__).debug(f"已加载宿主配置 {config_path}")
    return config
