# -*- coding: utf-8 -*-
"""
CLI验证器模块
"""

import re
from typing import List

from ..analyzer.main import VALID_VIEWS

VALID_OUTPUT_FORMATS = ('json', 'xlsx')


def _split_options(option_str: str) -> List[str]:
    return [item.strip() for item in option_str.split(',')]


def validate_views(view_str: str) -> List[str]:
    """
    验证视图组合是否合规

    Args:
        view_str: 逗号分隔的视图名称

    Returns:
        List[str]: 验证后的视图列表

    Raises:
        ValueError: 如果视图组合不合法
    """
    if not view_str or not view_str.strip():
        raise ValueError("视图不能为空")

    views = _split_options(view_str)
    for view in views:
        if not view:
            raise ValueError("视图不能为空字符串")
        if view not in VALID_VIEWS:
            raise ValueError(f"不支持的视图: {view}。支持的视图: {', '.join(VALID_VIEWS)}")

    if len(views) != len(set(views)):
        raise ValueError("视图不能重复")

    return views


def parse_output_formats(format_str: str) -> List[str]:
    """
    解析输出格式

    Args:
        format_str: 逗号分隔的输出格式, 例如 "json,xlsx"

    Returns:
        List[str]: 输出格式列表
    """
    if not format_str or not format_str.strip():
        raise ValueError("输出格式不能为空")

    formats = []
    for fmt in _split_options(format_str):
        if not fmt:
            continue
        if fmt not in VALID_OUTPUT_FORMATS:
            raise ValueError(f"不支持的输出格式: {fmt}。支持的格式: {', '.join(VALID_OUTPUT_FORMATS)}")
        if fmt not in formats:
            formats.append(fmt)
    return formats


def validate_filter_options(include_func: str = None, exclude_func: str = None) -> None:
    """
    验证过滤选项是否合规

    Raises:
        ValueError: 如果选项组合不合法
    """
    if include_func and exclude_func:
        raise ValueError("--include-func 和 --exclude-func 不能同时使用")


def parse_filter_patterns(pattern_str: str) -> List[str]:
    """
    解析过滤模式字符串, 每个模式必须是合法的正则表达式

    Args:
        pattern_str: 逗号分隔的模式字符串

    Returns:
        List[str]: 解析后的模式列表
    """
    if not pattern_str or not pattern_str.strip():
        return []

    patterns = [pattern for pattern in _split_options(pattern_str) if pattern]
    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ValueError(f"无效的正则表达式 {pattern!r}: {e}") from e
    return patterns
