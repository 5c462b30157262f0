"""
CLI命令模块
"""

from .analysis import AnalysisCommand
from .export import ExportCommand

__all__ = ['AnalysisCommand', 'ExportCommand']
