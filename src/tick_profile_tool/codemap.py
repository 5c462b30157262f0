# -*- coding: utf-8 -*-
"""
地址区间映射 (CodeMap)

按起始地址保存代码实体, 支持按任意地址查找所在的实体。
共享库、静态代码和动态代码分别保存在三个有序表中:
查找时依次检查静态代码、共享库、动态代码。
"""

import bisect
import logging
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)


class UnknownAddressError(KeyError):
    """指定起始地址上没有代码实体"""


class ResolvedAddress(NamedTuple):
    """地址解析结果"""
    entry: Any
    offset: int


class AddressTree:
    """按起始地址排序的有序表, 使用二分查找定位节点"""

    def __init__(self):
        self._keys: List[int] = []
        self._values: Dict[int, Any] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def insert(self, key: int, value: Any) -> None:
        """插入节点, 已存在的同地址节点会被覆盖"""
        if key not in self._values:
            bisect.insort(self._keys, key)
        self._values[key] = value

    def remove(self, key: int) -> Any:
        """删除节点并返回其值, 不存在时抛出 UnknownAddressError"""
        if key not in self._values:
            raise UnknownAddressError(key)
        index = bisect.bisect_left(self._keys, key)
        del self._keys[index]
        return self._values.pop(key)

    def find(self, key: int) -> Optional[Any]:
        return self._values.get(key)

    def find_greatest_less_than(self, key: int) -> Optional[Tuple[int, Any]]:
        """查找起始地址小于等于 key 的最大节点"""
        index = bisect.bisect_right(self._keys, key)
        if index == 0:
            return None
        start = self._keys[index - 1]
        return start, self._values[start]

    def items(self) -> Iterator[Tuple[int, Any]]:
        for key in list(self._keys):
            yield key, self._values[key]

    def values(self) -> List[Any]:
        return [self._values[key] for key in self._keys]


class CodeMap:
    """代码地址空间映射"""

    def __init__(self):
        self._dynamics = AddressTree()
        self._statics = AddressTree()
        self._libraries = AddressTree()

    def add_code(self, start: int, entry: Any) -> None:
        """添加动态代码, 删除被新代码覆盖的旧动态代码"""
        self._delete_all_covered_nodes(self._dynamics, start, start + entry.size)
        self._dynamics.insert(start, entry)

    def move_code(self, from_addr: int, to_addr: int) -> None:
        """移动动态代码, from_addr 上没有代码时抛出 UnknownAddressError"""
        entry = self._dynamics.remove(from_addr)
        self._delete_all_covered_nodes(self._dynamics, to_addr, to_addr + entry.size)
        self._dynamics.insert(to_addr, entry)

    def delete_code(self, start: int) -> None:
        """删除动态代码, start 上没有代码时抛出 UnknownAddressError"""
        self._dynamics.remove(start)

    def add_library(self, start: int, entry: Any) -> None:
        self._libraries.insert(start, entry)

    def add_static_code(self, start: int, entry: Any) -> None:
        self._statics.insert(start, entry)

    def _delete_all_covered_nodes(self, tree: AddressTree, start: int, end: int) -> None:
        """删除与 [start, end) 相交的所有节点"""
        to_delete = []
        addr = end - 1
        while addr >= start:
            node = tree.find_greatest_less_than(addr)
            if node is None:
                break
            node_start, node_entry = node
            node_end = node_start + node_entry.size
            if node_start < end and start < node_end:
                to_delete.append(node_start)
            addr = node_start - 1
        for node_start in to_delete:
            logger.debug(f"删除被覆盖的代码: 0x{node_start:x}")
            tree.remove(node_start)

    @staticmethod
    def _find_in_tree(tree: AddressTree, addr: int) -> Optional[Tuple[int, Any]]:
        node = tree.find_greatest_less_than(addr)
        # 函数实体大小为 0, 不占据地址区间
        while node is not None and node[1].size == 0:
            node = tree.find_greatest_less_than(node[0] - 1)
        if node is None:
            return None
        start, entry = node
        if addr < start + entry.size:
            return node
        return None

    def find_address(self, addr: int) -> Optional[ResolvedAddress]:
        """
        查找包含 addr 的代码实体

        Args:
            addr: 任意地址

        Returns:
            Optional[ResolvedAddress]: 代码实体及 addr 相对起始地址的偏移, 找不到返回 None
        """
        # 静态代码之间可能有空洞, 空洞部分归属于所在的共享库
        for tree in (self._statics, self._libraries):
            node = self._find_in_tree(tree, addr)
            if node is not None:
                return ResolvedAddress(node[1], addr - node[0])

        node = self._find_in_tree(self._dynamics, addr)
        if node is not None:
            return ResolvedAddress(node[1], addr - node[0])
        return None

    def find_entry(self, addr: int) -> Optional[Any]:
        resolved = self.find_address(addr)
        return resolved.entry if resolved else None

    def find_dynamic_entry_by_start_address(self, addr: int) -> Optional[Any]:
        return self._dynamics.find(addr)

    def get_all_dynamic_entries(self) -> List[Any]:
        return self._dynamics.values()

    def get_all_dynamic_entries_with_addresses(self) -> List[Tuple[int, Any]]:
        return list(self._dynamics.items())

