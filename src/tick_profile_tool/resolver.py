# -*- coding: utf-8 -*-
"""
Tick 符号化

将栈采样中的原始地址解析为函数名路径, 同时统计原生函数入口。
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence

from .models import Operation, get_name, get_raw_name, is_native, is_static_code
from .registry import CodeRegistry

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = 'UNKNOWN'


class TickResolver:
    """栈采样解析器"""

    def __init__(self, registry: CodeRegistry,
                 skip_function: Optional[Callable[[str], bool]] = None):
        self.registry = registry
        self.skip_function = skip_function or (lambda name: False)
        # 原生函数名 -> tick 数
        self.c_entries: Dict[str, int] = defaultdict(int)

    def resolve_and_filter_funcs(self, stack: Sequence[int]) -> List[str]:
        """
        将地址序列翻译为函数名并过滤不需要的函数

        stack[0] 为程序计数器。无法解析的地址只有在位置 0 时才以 UNKNOWN 占位,
        其余位置直接丢弃。

        Args:
            stack: 栈采样地址序列, 从最内层帧开始

        Returns:
            List[str]: 解析后的函数名路径 (与采样顺序相同)
        """
        result = []
        last_seen_c_function = ''
        look_for_first_c_function = False
        for i, addr in enumerate(stack):
            entry = self.registry.find_entry(addr)
            if entry is not None:
                name = get_name(entry)
                if i == 0 and is_native(entry):
                    look_for_first_c_function = True
                if look_for_first_c_function and is_static_code(entry):
                    last_seen_c_function = get_raw_name(entry)
                if not self.skip_function(name):
                    result.append(name)
            else:
                self.registry.handle_unknown_code(Operation.TICK, addr, i)
                if i == 0:
                    result.append(UNKNOWN_LABEL)
            if (look_for_first_c_function and i > 0 and not is_static_code(entry)
                    and last_seen_c_function != ''):
                self.c_entries[last_seen_c_function] += 1
                look_for_first_c_function = False
        # 原生帧一直延续到栈底
        if look_for_first_c_function and last_seen_c_function != '':
            self.c_entries[last_seen_c_function] += 1
        return result
