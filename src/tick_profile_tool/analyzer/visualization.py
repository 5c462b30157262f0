"""
可视化模块
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_flat_profile(rows: List[Dict[str, Any]], output_dir: str, base_name: str,
                      metric: str = 'self_ticks', title: str = 'Flat profile') -> Path:
    """
    绘制扁平化 profile 的水平条形图

    Args:
        rows: build_flat_profile_rows 生成的表格行
        output_dir: 输出目录
        base_name: 基础文件名
        metric: 条形长度使用的列 (self_ticks 或 total_ticks)
        title: 图表标题

    Returns:
        Path: 生成的 PNG 文件路径
    """
    plt.rcParams['font.sans-serif'] = ['DejaVu Sans', 'Arial', 'sans-serif']
    plt.rcParams['axes.unicode_minus'] = False

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    # 最大的条形显示在最上方
    ordered = list(reversed(rows))
    names = [row['name'] for row in ordered]
    values = [row[metric] for row in ordered]

    fig, ax = plt.subplots(figsize=(12, max(3, 0.35 * len(rows) + 1.5)))
    try:
        bars = ax.barh(range(len(values)), values, color='steelblue')
        ax.set_yticks(range(len(names)))
        ax.set_yticklabels(names, fontsize=8)
        ax.set_xlabel(metric)
        ax.set_title(title)
        ax.grid(True, axis='x', alpha=0.3)
        for bar, value in zip(bars, values):
            ax.text(bar.get_width(), bar.get_y() + bar.get_height() / 2, f" {value}",
                    va='center', fontsize=8)
        fig.tight_layout()

        png_file = output_path / f"{base_name}.png"
        fig.savefig(png_file, dpi=150, bbox_inches='tight')
    finally:
        plt.close(fig)

    print(f"图表已生成: {png_file}")
    return png_file
