"""
导出命令模块
"""

import time
from pathlib import Path

from ..file_utils import parse_file_paths
from ...analyzer import export_event_log


class ExportCommand:
    """导出命令处理器"""

    def run(self, args) -> int:
        """将事件日志导出为离线工具使用的 profile JSON"""
        print(f"=== 导出 profile ===")
        print(f"文件: {args.file}")
        print(f"输出文件: {args.output}")
        print()

        try:
            file_paths = parse_file_paths(args.file)
        except ValueError as e:
            print(f"错误: 解析文件路径失败 - {e}")
            return 1

        if len(file_paths) != 1:
            print(f"错误: export 命令只支持单个文件, 匹配到 {len(file_paths)} 个")
            return 1

        try:
            start_time = time.time()
            output_file = export_event_log(file_paths[0], Path(args.output))
            total_time = time.time() - start_time
            print(f"\n导出完成，总耗时: {total_time:.2f} 秒")
            print(f"生成的文件: {output_file}")
            return 0

        except (OSError, ValueError) as e:
            print(f"错误: {e}")
            import traceback
            traceback.print_exc()
            return 1
