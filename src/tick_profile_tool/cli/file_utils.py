"""
文件处理工具模块
"""

import glob
import os
from typing import List

EVENT_LOG_SUFFIXES = ('.json', '.jsonl', '.json.gz', '.jsonl.gz')


def is_event_log(path: str) -> bool:
    return path.lower().endswith(EVENT_LOG_SUFFIXES)


def parse_file_paths(file_pattern: str) -> List[str]:
    """
    解析文件路径，支持 glob 模式

    Args:
        file_pattern: 文件路径模式，支持 glob 通配符

    Returns:
        List[str]: 匹配的文件路径列表
    """
    if '*' in file_pattern or '?' in file_pattern or '[' in file_pattern:
        matched_files = glob.glob(file_pattern)
        if not matched_files:
            raise ValueError(f"glob 模式 {file_pattern} 没有匹配到任何文件")

        log_files = [f for f in matched_files if is_event_log(f)]
        if not log_files:
            raise ValueError(f"glob 模式 {file_pattern} 没有匹配到任何事件日志文件")

        return sorted(log_files)

    if not os.path.exists(file_pattern):
        raise ValueError(f"文件不存在: {file_pattern}")

    if not is_event_log(file_pattern):
        raise ValueError(f"文件不是 JSON 事件日志: {file_pattern}")

    return [file_pattern]


def label_for_file(file_path: str, label: str, multiple: bool) -> str:
    """多个文件时在标签后追加文件名, 避免输出文件互相覆盖"""
    if not multiple:
        return label
    name = os.path.basename(file_path)
    for suffix in EVENT_LOG_SUFFIXES:
        if name.lower().endswith(suffix):
            name = name[:-len(suffix)]
            break
    return f"{label}_{name}"
