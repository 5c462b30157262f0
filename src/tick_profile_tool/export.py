# -*- coding: utf-8 -*-
"""
导出模式的 profile 累加器

与 Profile 使用相同的事件接口, 但不构建调用树, 而是为每个代码实体分配稳定的整数 id,
记录扁平的代码/函数/tick 记录, 用于离线工具读取的 JSON 文件。

与查询模式的区别: 函数改名时创建新的函数记录, 保留旧记录中的代码列表;
同一地址重新添加代码时总是分配新的 code id, 不原地更新优化状态。
"""

import json
import logging
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Sequence, Union

from .codemap import CodeMap, UnknownAddressError
from .models import (CPP_TYPE, SHARED_LIB_TYPE, CodeState, CodeTag, ExportCodeEntry, FunctionRecordOut,
                     Operation, Script, TickRecord, UnknownCode)
from .registry import UnknownCodeHandler, log_unknown_code
from .utils.event_utils import parse_address

logger = logging.getLogger(__name__)

CODE_RECORD_KEYS = ('name', 'type', 'kind', 'tm', 'func', 'source', 'deopt')

STATE_KIND = {
    CodeState.COMPILED: 'Builtin',
    CodeState.OPTIMIZABLE: 'Unopt',
    CodeState.OPTIMIZED: 'Opt',
}


class ExportProfile:
    """导出模式的累加器"""

    def __init__(self, unknown_code_handler: Optional[UnknownCodeHandler] = None):
        self.code_map = CodeMap()
        self.code_entries: List[Dict[str, Any]] = []
        self.function_entries: List[FunctionRecordOut] = []
        self.ticks: List[TickRecord] = []
        self.scripts: Dict[int, Script] = {}
        self.unknown_code_handler = unknown_code_handler or log_unknown_code

    def __enter__(self) -> 'ExportProfile':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """结束会话并释放所有记录"""
        self.code_map = CodeMap()
        self.code_entries = []
        self.function_entries = []
        self.ticks = []
        self.scripts = {}

    def handle_unknown_code(self, operation: Operation, addr: int, stack_pos: Optional[int] = None) -> None:
        self.unknown_code_handler(UnknownCode(operation, addr, stack_pos))

    def _new_code_id(self, record: Dict[str, Any]) -> int:
        code_id = len(self.code_entries)
        self.code_entries.append(record)
        return code_id

    def add_library(self, name: str, start_addr: int, end_addr: int) -> ExportCodeEntry:
        entry = ExportCodeEntry(end_addr - start_addr, name, SHARED_LIB_TYPE, tag=CodeTag.LIBRARY)
        self.code_map.add_library(start_addr, entry)
        entry.code_id = self._new_code_id({'name': entry.name, 'type': entry.type})
        return entry

    def add_static_code(self, name: str, start_addr: int, end_addr: int) -> ExportCodeEntry:
        entry = ExportCodeEntry(end_addr - start_addr, name, CPP_TYPE, tag=CodeTag.STATIC)
        self.code_map.add_static_code(start_addr, entry)
        entry.code_id = self._new_code_id({'name': entry.name, 'type': entry.type})
        return entry

    def add_code(self, kind: str, name: str, timestamp: int, start: int, size: int) -> ExportCodeEntry:
        """
        添加动态代码

        如果该地址上已有静态代码, 复用其 code id, 保证同一段代码在 JSON 中只写一次。
        """
        code_id = len(self.code_entries)
        static_entry = self.code_map.find_address(start)
        if static_entry is not None and static_entry.entry.tag is CodeTag.STATIC:
            code_id = static_entry.entry.code_id

        entry = ExportCodeEntry(size, name, 'CODE', code_id=code_id)
        self.code_map.add_code(start, entry)

        record = {'name': entry.name, 'type': entry.type, 'kind': kind, 'tm': timestamp}
        if code_id == len(self.code_entries):
            self.code_entries.append(record)
        else:
            self.code_entries[code_id] = record
        return entry

    def add_func_code(self, kind: str, name: str, timestamp: int, start: int, size: int,
                      func_addr: int, state: CodeState) -> ExportCodeEntry:
        """
        添加属于某个函数的动态代码

        函数对象被新函数覆盖 (名称变化) 时创建新的函数记录。
        每次调用都写出新的代码记录并替换 start 上的旧代码。
        """
        state = CodeState(state)
        # 代码和函数对象位于同一地址空间, 可以放在同一个 CodeMap 中
        func = self.code_map.find_dynamic_entry_by_start_address(func_addr)
        if func is None or func.tag is not CodeTag.FUNCTION:
            func = ExportCodeEntry(0, name, 'SFI', tag=CodeTag.FUNCTION)
            self.code_map.add_code(func_addr, func)
            func.func_id = self._new_function(name)
        elif func.name != name:
            func.name = name
            func.func_id = self._new_function(name)

        if self.code_map.find_dynamic_entry_by_start_address(start) is not None:
            self.code_map.delete_code(start)

        entry = ExportCodeEntry(size, name, 'JS', func=func, state=state, tag=CodeTag.DYNAMIC_FUNC)
        entry.code_id = self._new_code_id({
            'name': entry.name,
            'type': entry.type,
            'kind': STATE_KIND.get(state, kind),
            'tm': timestamp,
            'func': func.func_id,
        })
        self.function_entries[func.func_id].codes.append(entry.code_id)
        self.code_map.add_code(start, entry)
        return entry

    def _new_function(self, name: str) -> int:
        func_id = len(self.function_entries)
        self.function_entries.append(FunctionRecordOut(name))
        return func_id

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

    def find_entry(self, addr: int) -> Optional[ExportCodeEntry]:
        return self.code_map.find_entry(addr)

    def add_source_positions(self, start: int, script: int, start_pos: int, end_pos: int,
                             source_positions: str, inlining_positions: str,
                             inlined_functions: str) -> None:
        """
        为代码添加源码位置信息

        Args:
            start: 代码起始地址
            script: 脚本 id
            start_pos: 函数在脚本中的起始位置
            end_pos: 函数在脚本中的结束位置
            source_positions: 编码后的源码位置表
            inlining_positions: 编码后的内联位置表
            inlined_functions: 以 "S" 分隔的内联函数地址列表, 例如 "S10S20"
        """
        entry = self.code_map.find_dynamic_entry_by_start_address(start)
        if entry is None:
            return

        fns: List[Optional[int]] = []
        if inlined_functions:
            for text in inlined_functions[1:].split('S'):
                fns.append(self._resolve_inlined_function(text))

        self.code_entries[entry.code_id]['source'] = {
            'script': script,
            'start': start_pos,
            'end': end_pos,
            'positions': source_positions,
            'inlined': inlining_positions,
            'fns': fns,
        }

    def _resolve_inlined_function(self, text: str) -> Optional[int]:
        try:
            func_addr = parse_address(text)
        except ValueError:
            func_addr = None
        func = self.code_map.find_dynamic_entry_by_start_address(func_addr) if func_addr is not None else None
        if func is None or func.func_id is None:
            logger.warning(f"无法找到内联函数: {text}")
            return None
        return func.func_id

    def add_script_source(self, id: int, url: str, source: str) -> Script:
        script = Script(id, url, source)
        self.scripts[id] = script
        return script

    def get_script(self, url: str) -> Optional[Script]:
        for script in self.scripts.values():
            if script.name == url:
                return script
        return None

    def deopt_code(self, timestamp: int, code: int, inlining_id: int, script_offset: int,
                   bailout_type: str, source_position_text: str, deopt_reason_text: str) -> None:
        entry = self.code_map.find_dynamic_entry_by_start_address(code)
        if entry is None:
            return
        record = self.code_entries[entry.code_id]
        # 只记录第一次反优化, 之后的反优化是其他栈上激活的延迟反优化
        if 'deopt' not in record:
            record['deopt'] = {
                'tm': timestamp,
                'inliningId': inlining_id,
                'scriptOffset': script_offset,
                'posText': source_position_text,
                'reason': deopt_reason_text,
                'bailoutType': bailout_type,
            }

    def record_tick(self, timestamp: int, vm_state: int, stack: Sequence[int]) -> TickRecord:
        """
        记录一次栈采样, 每帧记为 (codeId, offset), 无法解析时记为 (-1, address)
        """
        processed_stack = []
        for addr in stack:
            resolved = self.code_map.find_address(addr)
            if resolved is not None:
                processed_stack.extend((resolved.entry.code_id, resolved.offset))
            else:
                processed_stack.extend((-1, addr))
        tick = TickRecord(timestamp, vm_state, processed_stack)
        self.ticks.append(tick)
        return tick

    # 序列化

    @staticmethod
    def _code_record(record: Dict[str, Any]) -> Dict[str, Any]:
        return {key: record[key] for key in CODE_RECORD_KEYS if key in record}

    def _script_list(self) -> List[Optional[Dict[str, Any]]]:
        if not self.scripts:
            return []
        scripts: List[Optional[Dict[str, Any]]] = [None] * (max(self.scripts) + 1)
        for script_id, script in self.scripts.items():
            scripts[script_id] = script.to_dict()
        return scripts

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': [self._code_record(record) for record in self.code_entries],
            'functions': [func.to_dict() for func in self.function_entries],
            'ticks': [tick.to_dict() for tick in self.ticks],
            'scripts': self._script_list(),
        }

    def write_json(self, stream: IO[str]) -> None:
        """
        写出 JSON

        tick 数量可能很大, 每个 tick 单独序列化为一行, 避免一次生成过大的字符串。
        """
        stream.write('{\n')

        stream.write('  "code": ')
        stream.write(json.dumps([self._code_record(record) for record in self.code_entries], indent=2))
        stream.write(',\n')

        stream.write('  "functions": ')
        stream.write(json.dumps([func.to_dict() for func in self.function_entries], indent=2))
        stream.write(',\n')

        stream.write('  "ticks": [\n')
        for i, tick in enumerate(self.ticks):
            stream.write('    ')
            stream.write(json.dumps(tick.to_dict()))
            stream.write(',\n' if i < len(self.ticks) - 1 else '\n')
        stream.write('  ],\n')

        stream.write('  "scripts": ')
        stream.write(json.dumps(self._script_list(), indent=2))
        stream.write('\n}\n')

    def save(self, path: Union[str, Path]) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            self.write_json(f)
        logger.info(f"导出 {len(self.code_entries)} 个代码记录, {len(self.ticks)} 个 tick 到 {output_path}")
        return output_path
