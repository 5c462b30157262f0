# -*- coding: utf-8 -*-
"""
Profile 会话

持有一个代码注册表、自顶向下和自底向上两棵调用树以及原生函数入口表,
按记录顺序应用代码事件和 tick 事件, 并提供查询接口。
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .call_tree import CallTree, CallTreeNode
from .flat_profile import project_flat_profile
from .models import CEntryNode, CodeEntity, CodeState, Script
from .ranking import rank_c_entries
from .registry import CodeRegistry, UnknownCodeHandler
from .resolver import TickResolver

logger = logging.getLogger(__name__)


class Profile:
    """
    处理 profile 事件并计算函数执行时间的会话对象

    Example:
        >>> with Profile() as profile:
        ...     profile.add_static_code('Native', 0x100, 0x110)
        ...     profile.record_tick(0, 0, [0x105])
        ...     rows = profile.get_c_entry_profile()
    """

    def __init__(self, skip_function: Optional[Callable[[str], bool]] = None,
                 unknown_code_handler: Optional[UnknownCodeHandler] = None):
        """
        初始化会话

        Args:
            skip_function: 返回 True 的函数名不会出现在调用路径中
            unknown_code_handler: 查找代码实体失败时的回调, 默认忽略
        """
        self.registry = CodeRegistry(unknown_code_handler)
        self.resolver = TickResolver(self.registry, skip_function)
        self.top_down_tree = CallTree()
        self.bottom_up_tree = CallTree()
        self.scripts: Dict[int, Script] = {}
        self.url_to_script: Dict[str, Script] = {}
        self.tick_count = 0
        self.closed = False

    def __enter__(self) -> 'Profile':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """结束会话并释放所有状态"""
        logger.debug(f"关闭 profile 会话, 共处理 {self.tick_count} 个 tick")
        self.registry = CodeRegistry(self.registry.unknown_code_handler)
        self.resolver = TickResolver(self.registry, self.resolver.skip_function)
        self.top_down_tree = CallTree()
        self.bottom_up_tree = CallTree()
        self.scripts.clear()
        self.url_to_script.clear()
        self.closed = True

    @property
    def c_entries(self) -> Dict[str, int]:
        return self.resolver.c_entries

    # 代码事件

    def add_library(self, name: str, start_addr: int, end_addr: int) -> CodeEntity:
        return self.registry.add_library(name, start_addr, end_addr)

    def add_static_code(self, name: str, start_addr: int, end_addr: int) -> CodeEntity:
        return self.registry.add_static_code(name, start_addr, end_addr)

    def add_code(self, kind: str, name: str, timestamp: int, start: int, size: int) -> CodeEntity:
        return self.registry.add_code(kind, name, timestamp, start, size)

    def add_func_code(self, kind: str, name: str, timestamp: int, start: int, size: int,
                      func_addr: int, state: CodeState) -> CodeEntity:
        return self.registry.add_func_code(kind, name, timestamp, start, size, func_addr, state)

    def move_code(self, from_addr: int, to_addr: int) -> None:
        self.registry.move_code(from_addr, to_addr)

    def delete_code(self, start: int) -> None:
        self.registry.delete_code(start)

    def move_func(self, from_addr: int, to_addr: int) -> None:
        self.registry.move_func(from_addr, to_addr)

    def deopt_code(self, timestamp: int, code: int, inlining_id: int, script_offset: int,
                   bailout_type: str, source_position_text: str, deopt_reason_text: str) -> None:
        """查询模式不记录反优化信息"""

    def add_source_positions(self, start: int, script: int, start_pos: int, end_pos: int,
                             source_positions: str, inlining_positions: str,
                             inlined_functions: str) -> None:
        """查询模式不需要源码位置"""

    def add_script_source(self, id: int, url: str, source: str) -> Script:
        script = Script(id, url, source)
        self.scripts[id] = script
        self.url_to_script[url] = script
        return script

    def get_script(self, url: str) -> Optional[Script]:
        return self.url_to_script.get(url)

    def find_entry(self, addr: int) -> Optional[CodeEntity]:
        return self.registry.find_entry(addr)

    def clean_up_func_entries(self) -> int:
        """显式压缩: 删除不再被任何代码引用的函数记录"""
        return self.registry.clean_up_func_entries()

    # tick 事件

    def record_tick(self, timestamp: int, vm_state: int, stack: Sequence[int]) -> List[str]:
        """
        记录一次栈采样

        Args:
            timestamp: 时间戳 (纳秒)
            vm_state: 虚拟机状态
            stack: 地址序列, 从程序计数器开始

        Returns:
            List[str]: 解析后的调用路径 (采样顺序)
        """
        processed_stack = self.resolver.resolve_and_filter_funcs(stack)
        self.bottom_up_tree.add_path(processed_stack)
        self.top_down_tree.add_path(list(reversed(processed_stack)))
        self.tick_count += 1
        return processed_stack

    # 查询接口

    def traverse_top_down_tree(self, f: Callable[[CallTreeNode, Any], Any]) -> None:
        self.top_down_tree.traverse(f)

    def traverse_bottom_up_tree(self, f: Callable[[CallTreeNode, Any], Any]) -> None:
        self.bottom_up_tree.traverse(f)

    def get_top_down_profile(self, label: Optional[str] = None) -> CallTree:
        """计算指定标签的自顶向下 profile, 不指定时返回整棵自顶向下调用树"""
        return self._get_tree_profile(self.top_down_tree, label)

    def get_bottom_up_profile(self, label: Optional[str] = None) -> CallTree:
        """计算指定标签的自底向上 profile, 不指定时返回整棵自底向上调用树"""
        return self._get_tree_profile(self.bottom_up_tree, label)

    @staticmethod
    def _get_tree_profile(tree: CallTree, label: Optional[str]) -> CallTree:
        if not label:
            tree.compute_total_weights()
            return tree
        sub_tree = tree.clone_subtree(label)
        sub_tree.compute_total_weights()
        return sub_tree

    def get_flat_profile(self, label: Optional[str] = None) -> CallTree:
        return project_flat_profile(self.top_down_tree, label)

    def get_c_entry_profile(self) -> List[CEntryNode]:
        return rank_c_entries(self.c_entries)
