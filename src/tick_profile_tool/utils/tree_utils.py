"""
调用树处理工具模块
"""

from typing import Any, Dict, List, Optional
import logging

from ..call_tree import CallTree, CallTreeNode

logger = logging.getLogger(__name__)


def _percent(weight: int, total: int) -> float:
    return weight * 100.0 / total if total else 0.0


def flatten_call_tree(tree: CallTree, max_depth: Optional[int] = None,
                      min_percent: float = 0.0) -> List[Dict[str, Any]]:
    """
    将调用树展开为行 (深度优先, 子节点按总权重降序)

    Args:
        tree: 已计算总权重的调用树
        max_depth: 最大展开深度, None 表示不限制
        min_percent: 总权重占比低于该值的节点不展开

    Returns:
        List[Dict[str, Any]]: 每行包含 depth, name, self_ticks, total_ticks, total_percent, parent_percent
    """
    root = tree.get_root()
    total = root.total_weight
    rows = []
    stack = [(child, 0) for child in _sorted_children(root, reverse=True)]
    while stack:
        node, depth = stack.pop()
        total_percent = _percent(node.total_weight, total)
        if total_percent < min_percent:
            continue
        parent = node.parent
        parent_weight = parent.total_weight if parent is not None else total
        rows.append({
            'depth': depth,
            'name': node.label,
            'self_ticks': node.self_weight,
            'total_ticks': node.total_weight,
            'total_percent': total_percent,
            'parent_percent': _percent(node.total_weight, parent_weight),
        })
        if max_depth is None or depth + 1 <= max_depth:
            for child in _sorted_children(node, reverse=True):
                stack.append((child, depth + 1))
    return rows


def _sorted_children(node: CallTreeNode, reverse: bool = False) -> List[CallTreeNode]:
    # 栈是后进先出, reverse=True 使权重最大的子节点最先弹出
    children = sorted(node.export_children(), key=lambda child: (-child.total_weight, child.label))
    return list(reversed(children)) if reverse else children


def print_call_tree(tree: CallTree, max_depth: int = 10) -> None:
    """
    打印调用树结构

    Args:
        tree: 调用树
        max_depth: 最大打印深度
    """
    def _print_node(node: CallTreeNode, depth: int, prefix: str = ""):
        if depth > max_depth:
            return
        print(f"{prefix}{node.label or '(root)'} (self={node.self_weight}, total={node.total_weight})")
        children = _sorted_children(node)
        for i, child in enumerate(children):
            is_last = i == len(children) - 1
            child_prefix = prefix + ("└── " if is_last else "├── ")
            _print_node(child, depth + 1, child_prefix)

    _print_node(tree.get_root(), 0)


def get_tree_statistics(tree: CallTree) -> Dict[str, Any]:
    """
    获取调用树的统计信息

    Returns:
        Dict[str, Any]: 节点数、最大深度、总采样数
    """
    stats = {
        'total_nodes': 0,
        'max_depth': 0,
        'total_ticks': 0,
    }
    stack = [(tree.get_root(), 0)]
    while stack:
        node, depth = stack.pop()
        stats['total_nodes'] += 1
        stats['total_ticks'] += node.self_weight
        stats['max_depth'] = max(stats['max_depth'], depth)
        for child in node.children.values():
            stack.append((child, depth + 1))
    return stats
