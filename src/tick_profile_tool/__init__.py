"""
Tick Profile Tool Package
"""

from .models import CodeState, CodeTag, Operation, UnknownCode
from .codemap import CodeMap
from .call_tree import CallTree, CallTreeNode
from .profile import Profile
from .export import ExportProfile
from .parser import parse_event_log

__version__ = "0.1.0"

__all__ = [
    'CodeState',
    'CodeTag',
    'Operation',
    'UnknownCode',
    'CodeMap',
    'CallTree',
    'CallTreeNode',
    'Profile',
    'ExportProfile',
    'parse_event_log',
]
