# -*- coding: utf-8 -*-
"""
扁平化 profile 投影

从调用树生成一层聚合视图: 合成根节点表示目标标签直接或间接产生的全部权重,
递归调用折叠为一层, 总权重在同一次激活中只计入一次。
"""

from typing import Dict, Optional

from .call_tree import CallTree, CallTreeNode


def project_flat_profile(tree: CallTree, label: Optional[str] = None) -> CallTree:
    """
    计算从指定标签开始的被调用者扁平化 profile

    Args:
        tree: 自顶向下调用树
        label: 起始节点标签, 不指定时从根节点开始

    Returns:
        CallTree: 扁平化 profile, 根节点的子节点为各被调用函数
    """
    counters = CallTree()
    root_label = label or CallTree.ROOT_NODE_LABEL
    # 每个标签当前处于激活状态的次数
    precs: Dict[str, int] = {root_label: 0}
    root = counters.find_or_add_child(root_label)

    def on_enter(node: CallTreeNode) -> None:
        if node.label not in precs:
            precs[node.label] = 0
        node_label_is_root_label = node.label == root_label
        if node_label_is_root_label or precs[root_label] > 0:
            if precs[root_label] == 0:
                root.self_weight += node.self_weight
                root.total_weight += node.total_weight
            else:
                rec = root.find_or_add_child(node.label)
                rec.self_weight += node.self_weight
                if node_label_is_root_label or precs[node.label] == 0:
                    rec.total_weight += node.total_weight
            precs[node.label] += 1

    def on_exit(node: CallTreeNode) -> None:
        if node.label == root_label or precs[root_label] > 0:
            precs[node.label] -= 1

    tree.compute_total_weights()
    tree.traverse_in_depth(on_enter, on_exit)

    if not label:
        # 整个程序的扁平化 profile 不需要额外的根节点
        counters.root = root
    else:
        # 传播权重, 以便正确计算百分比
        counters.root.self_weight = root.self_weight
        counters.root.total_weight = root.total_weight
    # 权重已经直接累加, 不需要再次计算
    counters._totals_computed = True
    return counters
