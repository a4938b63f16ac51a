# -*- coding: utf-8 -*-
"""
回调调用辅助函数

插件初始化器和工厂函数可以声明零个或多个位置参数，
此模块按回调实际接受的参数个数传参。
"""

import inspect
from typing import Any, Callable


def accepted_positional_count(func: Callable) -> int:
    """
    计算回调可接受的位置参数个数

    Args:
        func: 回调函数

    Returns:
        可接受的位置参数个数；存在 *args 时返回 -1 表示不限
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # 无法获取签名的内置函数按无参处理
        return 0

    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            return -1
        if parameter.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


def call_with_supported_args(func: Callable, *args: Any) -> Any:
    """按回调接受的参数个数截取 args 后调用"""
    count = accepted_positional_count(func)
    if count < 0:
        return func(*args)
    return func(*args[:count])
