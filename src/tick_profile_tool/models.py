# -*- coding: utf-8 -*-
"""
Tick Profile 数据模型定义

代码实体 (CodeEntity) 是一个封闭的标签联合类型:
    LibraryEntry | StaticCodeEntry | DynamicCodeEntry | DynamicFuncCodeEntry | FunctionEntry
每个变体带有一个 CodeTag 标签, 通过 get_name / get_raw_name / is_native 按标签分派。
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Union


class Operation(IntEnum):
    """需要查找已有代码实体的操作类型"""
    MOVE = 0
    DELETE = 1
    TICK = 2


class CodeState(IntEnum):
    """动态代码的优化状态"""
    COMPILED = 0
    OPTIMIZABLE = 1
    OPTIMIZED = 2

    @property
    def prefix(self) -> str:
        return STATE_PREFIX[self]


STATE_PREFIX = {
    CodeState.COMPILED: '',
    CodeState.OPTIMIZABLE: '~',
    CodeState.OPTIMIZED: '*',
}


class CodeTag(Enum):
    """代码实体变体标签"""
    LIBRARY = 'library'
    STATIC = 'static'
    DYNAMIC = 'dynamic'
    DYNAMIC_FUNC = 'dynamic_func'
    FUNCTION = 'function'


SHARED_LIB_TYPE = 'SHARED_LIB'
CPP_TYPE = 'CPP'


@dataclass(eq=False)
class FunctionEntry:
    """逻辑函数实体, 与其编译后的代码体无关"""
    name: str
    size: int = 0
    used: bool = False
    tag = CodeTag.FUNCTION

    def get_name(self) -> str:
        name = self.name
        if len(name) == 0:
            name = '<anonymous>'
        elif name[0] == ' ':
            # 带位置信息的匿名函数: " aaa.js:10"
            name = '<anonymous>' + name
        return name

    def get_raw_name(self) -> str:
        return self.name


@dataclass(eq=False)
class LibraryEntry:
    """共享库"""
    size: int
    name: str
    type: str = SHARED_LIB_TYPE
    tag = CodeTag.LIBRARY


@dataclass(eq=False)
class StaticCodeEntry:
    """静态编译代码 (C++ 函数)"""
    size: int
    name: str
    type: str = CPP_TYPE
    tag = CodeTag.STATIC


@dataclass(eq=False)
class DynamicCodeEntry:
    """JIT 生成的代码 (stub, builtin 等), type 为日志中的代码种类"""
    size: int
    type: str
    name: str
    tag = CodeTag.DYNAMIC


@dataclass(eq=False)
class DynamicFuncCodeEntry:
    """属于某个 FunctionEntry 的 JIT 代码"""
    size: int
    type: str
    func: FunctionEntry
    state: CodeState = CodeState.COMPILED
    tag = CodeTag.DYNAMIC_FUNC

    @property
    def name(self) -> str:
        return self.func.name


CodeEntity = Union[LibraryEntry, StaticCodeEntry, DynamicCodeEntry, DynamicFuncCodeEntry, FunctionEntry]


def get_name(entry: CodeEntity) -> str:
    """
    获取代码实体的显示名称

    Args:
        entry: 代码实体

    Returns:
        str: 带类型前缀的名称, 例如 "CPP: Native" 或 "LazyCompile: *foo"
    """
    tag = entry.tag
    if tag is CodeTag.LIBRARY or tag is CodeTag.STATIC or tag is CodeTag.DYNAMIC:
        return f"{entry.type}: {entry.name}"
    if tag is CodeTag.DYNAMIC_FUNC:
        return f"{entry.type}: {CodeState(entry.state).prefix}{entry.func.get_name()}"
    if tag is CodeTag.FUNCTION:
        return entry.get_name()
    raise ValueError(f"未知的代码实体类型: {tag}")


def get_raw_name(entry: CodeEntity) -> str:
    """获取不带类型修饰的原始名称"""
    tag = entry.tag
    if tag is CodeTag.LIBRARY or tag is CodeTag.STATIC or tag is CodeTag.DYNAMIC:
        return entry.name
    if tag is CodeTag.DYNAMIC_FUNC:
        return entry.func.get_name()
    if tag is CodeTag.FUNCTION:
        return entry.get_raw_name()
    raise ValueError(f"未知的代码实体类型: {tag}")


def is_native(entry: Optional[CodeEntity]) -> bool:
    """是否为静态代码或共享库"""
    return entry is not None and entry.tag in (CodeTag.STATIC, CodeTag.LIBRARY)


def is_static_code(entry: Optional[CodeEntity]) -> bool:
    return entry is not None and entry.tag is CodeTag.STATIC


@dataclass(frozen=True)
class UnknownCode:
    """查找代码实体失败 (非致命)"""
    operation: Operation
    address: int
    stack_pos: Optional[int] = None

    def __str__(self):
        if self.stack_pos is None:
            return f"{self.operation.name}: unknown address 0x{self.address:x}"
        return f"{self.operation.name}: unknown address 0x{self.address:x} at stack position {self.stack_pos}"


@dataclass
class CEntryNode:
    """原生函数入口统计行"""
    name: str
    ticks: int


class SourcePosition:
    """脚本中的源码位置"""

    def __init__(self, script: 'Script', line: int, column: int):
        self.script = script
        self.line = line
        self.column = column
        self.entries = []

    def add_entry(self, entry) -> None:
        self.entries.append(entry)


class Script:
    """脚本源码, 附带按 (line, column) 懒加载的源码位置索引"""

    def __init__(self, id: int, name: str, source: str):
        self.id = id
        self.name = name
        self.source = source
        self.source_positions: List[SourcePosition] = []
        self.line_to_column: Dict[int, Dict[int, SourcePosition]] = {}

    def add_source_position(self, line: int, column: int, entry) -> SourcePosition:
        columns = self.line_to_column.setdefault(line, {})
        source_position = columns.get(column)
        if source_position is None:
            source_position = SourcePosition(self, line, column)
            self.source_positions.append(source_position)
            columns[column] = source_position
        source_position.add_entry(entry)
        return source_position

    def to_dict(self) -> Dict[str, Union[int, str]]:
        return {'id': self.id, 'name': self.name, 'source': self.source}


@dataclass(eq=False)
class ExportCodeEntry:
    """导出模式下的代码实体, 携带稳定的 code_id"""
    size: int
    name: str
    type: str
    code_id: int = -1
    func_id: Optional[int] = None
    func: Optional['ExportCodeEntry'] = None
    state: Optional[CodeState] = None
    tag: CodeTag = CodeTag.DYNAMIC

    def get_name(self) -> str:
        return self.name


@dataclass
class FunctionRecordOut:
    """导出的函数记录"""
    name: str
    codes: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Union[str, List[int]]]:
        return {'name': self.name, 'codes': list(self.codes)}


@dataclass
class TickRecord:
    """导出的 tick 记录, s 为 (codeId, offset) 或 (-1, address) 交替序列"""
    tm: int
    vm: int
    s: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Union[int, List[int]]]:
        return {'tm': self.tm, 'vm': self.vm, 's': list(self.s)}
