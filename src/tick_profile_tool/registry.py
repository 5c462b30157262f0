# -*- coding: utf-8 -*-
"""
代码注册表

在 CodeMap 之上实现代码生命周期事件的领域规则:
添加共享库/静态代码/动态代码/函数代码, 以及移动和删除。
移动或删除未知地址时不抛出异常, 而是以 UnknownCode 通知 unknown_code_handler。
"""

import logging
from typing import Any, Callable, Optional

from .codemap import CodeMap, UnknownAddressError
from .models import (CodeEntity, CodeState, CodeTag, DynamicCodeEntry, DynamicFuncCodeEntry, FunctionEntry,
                     LibraryEntry, Operation, StaticCodeEntry, UnknownCode)

logger = logging.getLogger(__name__)

UnknownCodeHandler = Callable[[UnknownCode], None]


def ignore_unknown_code(unknown: UnknownCode) -> None:
    """默认的 UnknownCode 处理函数: 忽略"""


def log_unknown_code(unknown: UnknownCode) -> None:
    logger.warning(f"未知代码: {unknown}")


def bind_func_code(code_map: CodeMap, start: int, size: int, func: Any, state: CodeState,
                   create_entry: Callable[[], Any]) -> Any:
    """
    在 start 上绑定属于 func 的代码

    start 上已有大小相同且属于同一函数的代码时只更新其优化状态,
    否则删除旧代码并插入 create_entry() 创建的新代码。

    Returns:
        新插入或原地更新的代码实体
    """
    entry = code_map.find_dynamic_entry_by_start_address(start)
    if entry is not None:
        if entry.size == size and entry.tag is CodeTag.DYNAMIC_FUNC and entry.func is func:
            entry.state = state
            return entry
        code_map.delete_code(start)
    entry = create_entry()
    code_map.add_code(start, entry)
    return entry


class CodeRegistry:
    """查询模式的代码注册表, 函数改名时原地修改函数记录"""

    def __init__(self, unknown_code_handler: Optional[UnknownCodeHandler] = None):
        self.code_map = CodeMap()
        self.unknown_code_handler = unknown_code_handler or ignore_unknown_code

    def handle_unknown_code(self, operation: Operation, addr: int, stack_pos: Optional[int] = None) -> None:
        self.unknown_code_handler(UnknownCode(operation, addr, stack_pos))

    def add_library(self, name: str, start_addr: int, end_addr: int) -> LibraryEntry:
        entry = LibraryEntry(end_addr - start_addr, name)
        self.code_map.add_library(start_addr, entry)
        return entry

    def add_static_code(self, name: str, start_addr: int, end_addr: int) -> StaticCodeEntry:
        entry = StaticCodeEntry(end_addr - start_addr, name)
        self.code_map.add_static_code(start_addr, entry)
        return entry

    def add_code(self, kind: str, name: str, timestamp: int, start: int, size: int) -> DynamicCodeEntry:
        entry = DynamicCodeEntry(size, kind, name)
        self.code_map.add_code(start, entry)
        return entry

    def add_func_code(self, kind: str, name: str, timestamp: int, start: int, size: int,
                      func_addr: int, state: CodeState) -> DynamicFuncCodeEntry:
        """
        添加属于某个函数的动态代码

        Args:
            kind: 代码种类
            name: 函数名
            timestamp: 时间戳
            start: 代码起始地址
            size: 代码大小
            func_addr: 函数对象地址
            state: 优化状态

        Returns:
            DynamicFuncCodeEntry: 代码实体
        """
        # 代码和函数对象位于同一地址空间, 可以放在同一个 CodeMap 中
        func = self.code_map.find_dynamic_entry_by_start_address(func_addr)
        if func is None or func.tag is not CodeTag.FUNCTION:
            func = FunctionEntry(name)
            self.code_map.add_code(func_addr, func)
        elif func.name != name:
            # 函数对象被新的函数覆盖
            func.name = name
        return bind_func_code(self.code_map, start, size, func, CodeState(state),
                              lambda: DynamicFuncCodeEntry(size, kind, func, CodeState(state)))

    def move_code(self, from_addr: int, to_addr: int) -> None:
        try:
            self.code_map.move_code(from_addr, to_addr)
        except UnknownAddressError:
            self.handle_unknown_code(Operation.MOVE, from_addr)

    def delete_code(self, start: int) -> None:
        try:
            self.code_map.delete_code(start)
        except UnknownAddressError:
            self.handle_unknown_code(Operation.DELETE, start)

    def move_func(self, from_addr: int, to_addr: int) -> None:
        if self.code_map.find_dynamic_entry_by_start_address(from_addr) is not None:
            self.code_map.move_code(from_addr, to_addr)

    def find_entry(self, addr: int) -> Optional[CodeEntity]:
        return self.code_map.find_entry(addr)

    def clean_up_func_entries(self) -> int:
        """
        清理没有被任何代码引用的函数记录 (标记-清除)

        Returns:
            int: 删除的函数记录数量
        """
        entries = self.code_map.get_all_dynamic_entries_with_addresses()
        for _, entry in entries:
            if entry.tag is CodeTag.FUNCTION:
                entry.used = False
        for _, entry in entries:
            if entry.tag is CodeTag.DYNAMIC_FUNC:
                entry.func.used = True
        removed = 0
        for addr, entry in entries:
            if entry.tag is CodeTag.FUNCTION and not entry.used:
                self.code_map.delete_code(addr)
                removed += 1
        logger.debug(f"清理了 {removed} 个未被引用的函数记录")
        return removed
