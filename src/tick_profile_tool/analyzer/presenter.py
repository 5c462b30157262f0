"""
数据展示 (纯函数实现)

将 profile 查询结果转换为表格行, 输出为 JSON / XLSX (CSV 兜底), 或以 markdown 打印。
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..call_tree import CallTree
from ..models import CEntryNode
from ..utils.tree_utils import flatten_call_tree

logger = logging.getLogger(__name__)


def _percent(weight: int, total: int) -> float:
    return weight * 100.0 / total if total else 0.0


def build_flat_profile_rows(flat_profile: CallTree, total_ticks: int,
                            top: Optional[int] = None, label: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    生成扁平化 profile 表格行, 按 self_ticks 降序

    Args:
        flat_profile: get_flat_profile 返回的调用树
        total_ticks: 总采样数, 用于计算百分比
        top: 只保留前 top 行
        label: 扁平化 profile 的起始标签, 指定时列出该标签下的被调用函数

    Returns:
        List[Dict[str, Any]]: 表格行
    """
    start = flat_profile.get_root()
    if label:
        start = start.find_child(label)
        if start is None:
            return []
    rows = []
    for node in start.export_children():
        rows.append({
            'name': node.label,
            'self_ticks': node.self_weight,
            'self_percent': _percent(node.self_weight, total_ticks),
            'total_ticks': node.total_weight,
            'total_percent': _percent(node.total_weight, total_ticks),
        })
    rows.sort(key=lambda row: (-row['self_ticks'], -row['total_ticks'], row['name']))
    if top is not None:
        rows = rows[:top]
    return rows


def build_tree_rows(tree: CallTree, max_depth: Optional[int] = None,
                    min_percent: float = 0.0) -> List[Dict[str, Any]]:
    """生成调用树表格行, 名称按深度缩进"""
    rows = flatten_call_tree(tree, max_depth=max_depth, min_percent=min_percent)
    for row in rows:
        row['name'] = '  ' * row['depth'] + row['name']
    return rows


def build_c_entry_rows(c_entries: Sequence[CEntryNode]) -> List[Dict[str, Any]]:
    """生成原生函数入口表格行, 第一行为 TOTAL"""
    if not c_entries:
        return []
    total = c_entries[0].ticks
    return [{
        'name': node.name,
        'ticks': node.ticks,
        'percent': _percent(node.ticks, total),
    } for node in c_entries]


def print_markdown_table(rows: List[Dict[str, Any]], title: str) -> None:
    """在stdout中以markdown格式打印表格"""
    if not rows:
        print(f"\n## {title}\n\n无数据可显示\n")
        return

    print(f"\n## {title}\n")

    columns = list(rows[0].keys())
    print("| " + " | ".join(columns) + " |")
    print("| " + " | ".join(["---"] * len(columns)) + " |")

    for row in rows:
        values = []
        for col in columns:
            value = row.get(col, "")
            if isinstance(value, float):
                if col.endswith('_percent') or col == 'percent':
                    values.append(f"{value:.2f}%")
                else:
                    values.append(f"{value:.2f}")
            else:
                values.append(str(value).replace('|', '\\|'))
        print("| " + " | ".join(values) + " |")
    print()


def generate_output_files(rows: List[Dict[str, Any]], output_dir: str, base_name: str,
                          output_formats: Sequence[str] = ('json', 'xlsx')) -> List[Path]:
    """
    生成输出文件 (JSON 和 XLSX)

    Args:
        rows: 数据行列表
        output_dir: 输出目录
        base_name: 基础文件名
        output_formats: 输出格式

    Returns:
        List[Path]: 生成的文件路径列表
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    generated_files = []

    if 'json' in output_formats:
        json_file = output_path / f"{base_name}.json"
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)
        print(f"JSON 文件已生成: {json_file}")
        generated_files.append(json_file)

    if 'xlsx' in output_formats:
        if not rows:
            print("没有数据可以生成 Excel 文件")
            return generated_files

        import pandas as pd

        df = pd.DataFrame(rows)
        try:
            xlsx_file = output_path / f"{base_name}.xlsx"
            with pd.ExcelWriter(xlsx_file, engine='openpyxl') as writer:
                df.to_excel(writer, sheet_name=base_name[:31], index=False)
            print(f"Excel 文件已生成: {xlsx_file}")
            generated_files.append(xlsx_file)
        except ImportError:
            logger.warning("openpyxl 不可用, 改为生成 CSV 文件")
            csv_file = output_path / f"{base_name}.csv"
            df.to_csv(csv_file, index=False, encoding='utf-8')
            print(f"CSV 文件已生成: {csv_file}")
            generated_files.append(csv_file)

    return generated_files
