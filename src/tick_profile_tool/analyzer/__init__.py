"""
分析器模块
"""

from .presenter import (build_flat_profile_rows, build_tree_rows, build_c_entry_rows,
                        generate_output_files, print_markdown_table)
from .visualization import plot_flat_profile
from .main import analyze_event_log, export_event_log, VALID_VIEWS

__all__ = [
    'build_flat_profile_rows',
    'build_tree_rows',
    'build_c_entry_rows',
    'generate_output_files',
    'print_markdown_table',
    'plot_flat_profile',
    'analyze_event_log',
    'export_event_log',
    'VALID_VIEWS',
]
