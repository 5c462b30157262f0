"""
分析流程

Stage 1: 读取事件日志并回放到 Profile 会话
Stage 2: 查询各视图 (flat / bottom-up / top-down / c-entry)
Stage 3: 展示 (JSON / XLSX / markdown / 图表)
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..export import ExportProfile
from ..models import UnknownCode
from ..parser import parse_event_log
from ..profile import Profile
from .presenter import (build_c_entry_rows, build_flat_profile_rows, build_tree_rows,
                        generate_output_files, print_markdown_table)
from .visualization import plot_flat_profile

logger = logging.getLogger(__name__)

VALID_VIEWS = ('flat', 'bottom-up', 'top-down', 'c-entry')


class UnknownCodeCounter:
    """统计 UnknownCode 事件"""

    def __init__(self):
        self.counts = Counter()

    def __call__(self, unknown: UnknownCode) -> None:
        self.counts[unknown.operation.name] += 1
        logger.debug(f"未知代码: {unknown}")


def analyze_event_log(file_path: Union[str, Path],
                      output_dir: str = '.',
                      label: str = 'profile',
                      views: Sequence[str] = VALID_VIEWS,
                      function: Optional[str] = None,
                      skip_function: Optional[Callable[[str], bool]] = None,
                      output_formats: Sequence[str] = ('json', 'xlsx'),
                      print_markdown: bool = False,
                      plot: bool = False,
                      top: Optional[int] = None,
                      max_depth: Optional[int] = None,
                      min_percent: float = 0.0) -> List[Path]:
    """
    分析单个事件日志

    Args:
        file_path: 事件日志路径
        output_dir: 输出目录
        label: 文件标签, 用作输出文件名前缀
        views: 需要生成的视图
        function: 只分析该函数 (标签) 的 profile
        skip_function: 函数名过滤器
        output_formats: 输出格式
        print_markdown: 是否在 stdout 中打印 markdown 表格
        plot: 是否生成扁平化 profile 条形图
        top: 扁平化 profile 保留的行数
        max_depth: 调用树最大展开深度
        min_percent: 调用树中总占比低于该值的节点不展开

    Returns:
        List[Path]: 生成的文件路径列表
    """
    print("=== Stage 1: 读取事件日志 ===")
    unknown_counter = UnknownCodeCounter()
    generated_files: List[Path] = []

    with Profile(skip_function=skip_function, unknown_code_handler=unknown_counter) as profile:
        stats = parse_event_log(file_path, profile)
        print(f"应用 {stats.applied} 个事件, 跳过 {stats.skipped} 个, 共 {profile.tick_count} 个 tick")
        for operation, count in sorted(unknown_counter.counts.items()):
            print(f"  未知代码 ({operation}): {count}")

        print("=== Stage 2: 计算视图 ===")
        total_ticks = profile.tick_count
        tables = []
        flat_rows = None
        suffix = f"_{_safe_name(function)}" if function else ''

        if 'flat' in views:
            flat_rows = build_flat_profile_rows(profile.get_flat_profile(function), total_ticks,
                                                top=top, label=function)
            tables.append(('flat', f"{label} 扁平化 profile", flat_rows))
        if 'bottom-up' in views:
            rows = build_tree_rows(profile.get_bottom_up_profile(function), max_depth, min_percent)
            tables.append(('bottom_up', f"{label} 自底向上 (heavy) profile", rows))
        if 'top-down' in views:
            rows = build_tree_rows(profile.get_top_down_profile(function), max_depth, min_percent)
            tables.append(('top_down', f"{label} 自顶向下 profile", rows))
        if 'c-entry' in views:
            rows = build_c_entry_rows(profile.get_c_entry_profile())
            tables.append(('c_entry', f"{label} 原生函数入口", rows))

        print("=== Stage 3: 展示 ===")
        for view_name, title, rows in tables:
            base_name = f"{label}_{view_name}{suffix}"
            generated_files.extend(generate_output_files(rows, output_dir, base_name, output_formats))
            if print_markdown:
                print_markdown_table(rows, title)

        if plot and flat_rows:
            generated_files.append(plot_flat_profile(flat_rows, output_dir, f"{label}_flat{suffix}",
                                                     title=f"{label} flat profile"))

    return generated_files


def export_event_log(file_path: Union[str, Path], output_file: Union[str, Path]) -> Path:
    """
    读取事件日志并写出序列化的 profile JSON

    Args:
        file_path: 事件日志路径
        output_file: 输出 JSON 文件路径

    Returns:
        Path: 输出文件路径
    """
    with ExportProfile() as export_profile:
        stats = parse_event_log(file_path, export_profile)
        print(f"应用 {stats.applied} 个事件, 跳过 {stats.skipped} 个")
        return export_profile.save(output_file)


def _safe_name(name: str) -> str:
    return ''.join(c if c.isalnum() or c in '-_' else '_' for c in name)
