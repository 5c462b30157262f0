"""
事件字段处理工具模块
"""

import re
from typing import Callable, List, Optional, Union

from ..models import CodeState

_STATE_MARKERS = {
    '': CodeState.COMPILED,
    '~': CodeState.OPTIMIZABLE,
    '*': CodeState.OPTIMIZED,
}


def parse_address(value: Union[int, str]) -> int:
    """
    解析地址, 支持整数、十六进制字符串 ("0x1a2b") 和十进制字符串

    Args:
        value: 地址值

    Returns:
        int: 地址

    Raises:
        ValueError: 如果无法解析
    """
    if isinstance(value, bool):
        raise ValueError(f"无效的地址: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith(('0x', '-0x')):
            return int(text, 16)
        return int(text, 10)
    raise ValueError(f"无效的地址: {value!r}")


def parse_code_state(value: Union[int, str, None]) -> CodeState:
    """
    解析代码优化状态

    支持整数 (0/1/2)、状态名 (COMPILED/OPTIMIZABLE/OPTIMIZED) 以及日志标记 (""/"~"/"*")
    """
    if value is None:
        return CodeState.COMPILED
    if isinstance(value, int) and not isinstance(value, bool):
        return CodeState(value)
    if isinstance(value, str):
        if value in _STATE_MARKERS:
            return _STATE_MARKERS[value]
        if value.upper() in CodeState.__members__:
            return CodeState[value.upper()]
        if value.isdigit():
            return CodeState(int(value))
    raise ValueError(f"无效的优化状态: {value!r}")


def _compile_patterns(patterns: List[str]) -> List[re.Pattern]:
    return [re.compile(pattern) for pattern in patterns]


def build_skip_function(include_patterns: Optional[List[str]] = None,
                        exclude_patterns: Optional[List[str]] = None) -> Optional[Callable[[str], bool]]:
    """
    根据正则模式构建函数名过滤器

    Args:
        include_patterns: 只保留匹配任一模式的函数
        exclude_patterns: 跳过匹配任一模式的函数

    Returns:
        Optional[Callable[[str], bool]]: 返回 True 表示跳过该函数, 没有模式时返回 None
    """
    include_regexes = _compile_patterns(include_patterns) if include_patterns else []
    exclude_regexes = _compile_patterns(exclude_patterns) if exclude_patterns else []
    if not include_regexes and not exclude_regexes:
        return None

    def skip_function(name: str) -> bool:
        if include_regexes and not any(regex.search(name) for regex in include_regexes):
            return True
        if exclude_regexes and any(regex.search(name) for regex in exclude_regexes):
            return True
        return False

    return skip_function
