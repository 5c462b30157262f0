"""
事件日志读取器

读取已结构化的事件日志 (JSON 数组、带 "events" 键的 JSON 对象或 JSON lines, 支持 .gz),
并按文件中的顺序将事件应用到 Profile 或 ExportProfile 会话。
"""

import gzip
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Union

from .utils.event_utils import parse_address, parse_code_state

logger = logging.getLogger(__name__)


@dataclass
class ReplayStats:
    """事件回放统计"""
    applied: int = 0
    skipped: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.applied + self.skipped


def _apply_shared_library(session, event: Dict[str, Any]) -> None:
    session.add_library(event['name'], parse_address(event['start']), parse_address(event['end']))


def _apply_cpp(session, event: Dict[str, Any]) -> None:
    session.add_static_code(event['name'], parse_address(event['start']), parse_address(event['end']))


def _apply_code_creation(session, event: Dict[str, Any]) -> None:
    kind = event.get('kind', '')
    name = event.get('name', '')
    timestamp = event.get('timestamp', 0)
    start = parse_address(event['start'])
    size = int(event['size'])
    if event.get('func_addr') is not None:
        session.add_func_code(kind, name, timestamp, start, size,
                              parse_address(event['func_addr']), parse_code_state(event.get('state')))
    else:
        session.add_code(kind, name, timestamp, start, size)


def _apply_code_move(session, event: Dict[str, Any]) -> None:
    session.move_code(parse_address(event['from']), parse_address(event['to']))


def _apply_code_delete(session, event: Dict[str, Any]) -> None:
    session.delete_code(parse_address(event['start']))


def _apply_sfi_move(session, event: Dict[str, Any]) -> None:
    session.move_func(parse_address(event['from']), parse_address(event['to']))


def _apply_code_deopt(session, event: Dict[str, Any]) -> None:
    session.deopt_code(
        event.get('timestamp', 0),
        parse_address(event['code']),
        event.get('inlining_id', -1),
        event.get('script_offset', -1),
        event.get('bailout_type', ''),
        event.get('position', ''),
        event.get('reason', ''),
    )


def _apply_code_source_info(session, event: Dict[str, Any]) -> None:
    session.add_source_positions(
        parse_address(event['start']),
        event.get('script'),
        event.get('start_pos'),
        event.get('end_pos'),
        event.get('positions', ''),
        event.get('inlined_positions', ''),
        event.get('inlined_functions', ''),
    )


def _apply_script_source(session, event: Dict[str, Any]) -> None:
    session.add_script_source(int(event['id']), event.get('url', ''), event.get('source', ''))


def _apply_tick(session, event: Dict[str, Any]) -> None:
    stack = [parse_address(addr) for addr in event.get('stack', [])]
    session.record_tick(event.get('timestamp', 0), event.get('vm_state', 0), stack)


EVENT_HANDLERS: Dict[str, Callable[[Any, Dict[str, Any]], None]] = {
    'shared-library': _apply_shared_library,
    'cpp': _apply_cpp,
    'code-creation': _apply_code_creation,
    'code-move': _apply_code_move,
    'code-delete': _apply_code_delete,
    'sfi-move': _apply_sfi_move,
    'code-deopt': _apply_code_deopt,
    'code-source-info': _apply_code_source_info,
    'script-source': _apply_script_source,
    'tick': _apply_tick,
}


def load_events(file_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    读取事件日志文件

    Args:
        file_path: 事件日志路径

    Returns:
        List[Dict[str, Any]]: 原始事件列表

    Raises:
        FileNotFoundError: 文件不存在
        ValueError: 文件内容不是可识别的事件日志
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"文件不存在: {file_path}")

    open_func = gzip.open if file_path.suffix == '.gz' else open
    with open_func(file_path, 'rt', encoding='utf-8') as f:
        text = f.read()

    stripped = text.lstrip()
    if not stripped:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # 按 JSON lines 处理
        events = []
        for line_no, line in enumerate(text.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"第 {line_no} 行不是合法的 JSON: {e}") from e
        return events

    if isinstance(data, dict):
        if 'events' not in data:
            raise ValueError(f"JSON 对象缺少 events 键: {file_path}")
        data = data['events']
    if not isinstance(data, list):
        raise ValueError(f"无法识别的事件日志格式: {file_path}")
    return data


def replay_events(events: Iterable[Dict[str, Any]], session) -> ReplayStats:
    """
    按顺序将事件应用到会话

    代码注册表的语义依赖事件顺序, 因此不能对事件重新排序。
    单个事件解析失败时记录警告并跳过。

    Args:
        events: 事件序列
        session: Profile 或 ExportProfile

    Returns:
        ReplayStats: 回放统计
    """
    stats = ReplayStats()
    for index, event in enumerate(events):
        event_type = event.get('type') if isinstance(event, dict) else None
        handler = EVENT_HANDLERS.get(event_type)
        if handler is None:
            logger.warning(f"跳过未知类型的事件 #{index}: {event_type!r}")
            stats.skipped += 1
            continue
        try:
            handler(session, event)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"跳过无效的 {event_type} 事件 #{index}: {e!r}")
            stats.skipped += 1
            continue
        stats.applied += 1
        stats.by_type[event_type] = stats.by_type.get(event_type, 0) + 1
    logger.info(f"应用了 {stats.applied} 个事件, 跳过 {stats.skipped} 个")
    return stats


def parse_event_log(file_path: Union[str, Path], session) -> ReplayStats:
    """读取事件日志并回放到会话"""
    events = load_events(file_path)
    print(f"读取到 {len(events)} 个事件")
    return replay_events(events, session)
