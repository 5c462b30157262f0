# -*- coding: utf-8 -*-
"""
原生函数入口排名
"""

from typing import List, Mapping

from .models import CEntryNode

TOTAL_LABEL = 'TOTAL'


def rank_c_entries(c_entries: Mapping[str, int]) -> List[CEntryNode]:
    """
    按 tick 数对原生函数入口排序

    第一行固定为 TOTAL (所有入口 tick 之和), 其余按 tick 数降序,
    tick 数相同时按名称降序。

    Args:
        c_entries: 原生函数名 -> tick 数

    Returns:
        List[CEntryNode]: 排序后的入口列表
    """
    rows = [CEntryNode(name, ticks) for name, ticks in c_entries.items()]
    # 稳定排序: 先按名称降序, 再按 tick 数降序
    rows.sort(key=lambda node: node.name, reverse=True)
    rows.sort(key=lambda node: node.ticks, reverse=True)
    total = CEntryNode(TOTAL_LABEL, sum(node.ticks for node in rows))
    return [total] + rows
