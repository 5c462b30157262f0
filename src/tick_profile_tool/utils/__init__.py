"""
工具模块
"""

from .event_utils import parse_address, parse_code_state, build_skip_function
from .tree_utils import get_tree_statistics, print_call_tree, flatten_call_tree

__all__ = [
    'parse_address',
    'parse_code_state',
    'build_skip_function',
    'get_tree_statistics',
    'print_call_tree',
    'flatten_call_tree',
]
