# -*- coding: utf-8 -*-
"""
带权调用树

每个节点以标签 (函数名) 区分子节点, 同一父节点下同名标签只有一个子节点。
self_weight 为调用路径恰好终止于该节点的采样数, total_weight 为派生值,
只有在显式调用 compute_total_weights 之后才有效。
"""

import logging
import weakref
from collections import deque
from typing import Any, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


class CallTreeNode:
    """调用树节点"""

    def __init__(self, label: str, parent: Optional['CallTreeNode'] = None):
        self.label = label
        self.self_weight = 0
        self.total_weight = 0
        self.children: Dict[str, 'CallTreeNode'] = {}
        # 父节点只用于向上遍历, 使用弱引用避免循环引用
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @property
    def parent(self) -> Optional['CallTreeNode']:
        return self._parent_ref() if self._parent_ref is not None else None

    def add_child(self, label: str) -> 'CallTreeNode':
        child = CallTreeNode(label, self)
        self.children[label] = child
        return child

    def compute_total_weight(self) -> int:
        """计算以当前节点为根的子树中每个节点的总权重"""
        # 先序序列逆序保证子节点先于父节点计算
        order = []
        stack = [self]
        while stack:
            node = stack.pop()
            order.append(node)
            stack.extend(node.children.values())
        for node in reversed(order):
            node.total_weight = node.self_weight + sum(
                child.total_weight for child in node.children.values())
        return self.total_weight

    def export_children(self) -> List['CallTreeNode']:
        return list(self.children.values())

    def find_child(self, label: str) -> Optional['CallTreeNode']:
        return self.children.get(label)

    def find_or_add_child(self, label: str) -> 'CallTreeNode':
        child = self.find_child(label)
        if child is None:
            child = self.add_child(label)
        return child

    def walk_up_to_root(self, f: Callable[['CallTreeNode'], Any]) -> None:
        """从当前节点向上访问到根节点"""
        current = self
        while current is not None:
            f(current)
            current = current.parent

    def descend_to_child(self, labels: Sequence[str],
                         f: Optional[Callable[[Optional['CallTreeNode'], int], Any]] = None) -> Optional['CallTreeNode']:
        """
        按标签路径向下查找节点

        Args:
            labels: 标签路径
            f: 可选的访问函数, 参数为 (子节点或 None, 路径位置)

        Returns:
            Optional[CallTreeNode]: 找到的节点, 路径中断时返回 None
        """
        current = self
        pos = 0
        while pos < len(labels) and current is not None:
            child = current.find_child(labels[pos])
            if f is not None:
                f(child, pos)
            current = child
            pos += 1
        return current

    def get_call_path(self) -> List[str]:
        """获取从根 (不含) 到当前节点的标签路径"""
        path = []
        self.walk_up_to_root(lambda node: path.append(node.label))
        path.pop()
        return list(reversed(path))

    def __repr__(self):
        return f"CallTreeNode({self.label!r}, self={self.self_weight}, total={self.total_weight})"


class CallTree:
    """调用树"""

    ROOT_NODE_LABEL = ''

    def __init__(self):
        self.root = CallTreeNode(CallTree.ROOT_NODE_LABEL)
        self._totals_computed = False

    def get_root(self) -> CallTreeNode:
        return self.root

    def add_path(self, path: Sequence[str]) -> None:
        """
        添加一条调用路径, 按需创建节点, 终点节点 self_weight 加一

        Args:
            path: 调用路径标签序列
        """
        if not path:
            return
        current = self.root
        for label in path:
            current = current.find_or_add_child(label)
        current.self_weight += 1
        self._totals_computed = False

    def find_or_add_child(self, label: str) -> CallTreeNode:
        return self.root.find_or_add_child(label)

    def clone_subtree(self, label: str) -> 'CallTree':
        """
        合并所有以 label 为根的子树, 生成新的调用树

                   <A>--<B>                                     <B>
                  /                                            /
             <root>             == clone on 'A' ==>  <root>--<A>
                  \\                                            \\
                   <C>--<A>--<D>                                <D>

        新树中 <A> 的 self_weight 为原树中所有 <A> 的 self_weight 之和。

        Args:
            label: 新子树根节点的标签

        Returns:
            CallTree: 新的调用树
        """
        sub_tree = CallTree()

        def visit(node: CallTreeNode, parent: Optional[CallTreeNode]) -> Optional[CallTreeNode]:
            if parent is None and node.label != label:
                return None
            child = (parent if parent is not None else sub_tree.root).find_or_add_child(node.label)
            child.self_weight += node.self_weight
            return child

        self.traverse(visit)
        return sub_tree

    def compute_total_weights(self) -> None:
        """计算所有节点的总权重, 树未被修改时不重复计算"""
        if self._totals_computed:
            return
        self.root.compute_total_weight()
        self._totals_computed = True

    def traverse(self, f: Callable[[CallTreeNode, Any], Any]) -> None:
        """
        广度优先遍历调用树

        访问函数的第二个参数为访问父节点时的返回值, 可用于一次遍历构建派生树:

            def visit(node, parent_clone):
                node_clone = clone_node(node)
                if parent_clone:
                    parent_clone.add_child(node_clone)
                return node_clone

        Args:
            f: 访问函数 f(node, parent_result) -> result
        """
        pairs_to_process = deque([(self.root, None)])
        while pairs_to_process:
            node, param = pairs_to_process.popleft()
            new_param = f(node, param)
            for child in node.children.values():
                pairs_to_process.append((child, new_param))

    def traverse_in_depth(self, enter: Callable[[CallTreeNode], Any],
                          exit: Callable[[CallTreeNode], Any]) -> None:
        """
        深度优先遍历调用树

        Args:
            enter: 访问子节点之前调用
            exit: 访问子节点之后调用
        """
        # 调用栈可能很深, 使用显式栈代替递归
        stack = [(self.root, False)]
        while stack:
            node, visited = stack.pop()
            if visited:
                exit(node)
                continue
            enter(node)
            stack.append((node, True))
            for child in reversed(list(node.children.values())):
                stack.append((child, False))
