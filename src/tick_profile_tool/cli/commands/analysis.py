"""
分析命令模块
"""

import time
from pathlib import Path

from ..validators import validate_views, parse_output_formats, validate_filter_options, parse_filter_patterns
from ..file_utils import parse_file_paths, label_for_file
from ...analyzer import analyze_event_log
from ...utils.event_utils import build_skip_function


class AnalysisCommand:
    """分析命令处理器"""

    def run(self, args) -> int:
        """运行单个或多个事件日志分析"""
        print(f"=== 文件分析 ===")
        print(f"文件模式: {args.file}")
        print(f"标签: {args.label}")
        print(f"视图: {args.view}")
        print(f"函数: {args.function if args.function else '全部'}")
        print(f"打印markdown表格: {args.print_markdown}")
        print(f"输出格式: {args.output_format}")
        print(f"输出目录: {args.output_dir}")
        print()

        try:
            views = validate_views(args.view)
            output_formats = parse_output_formats(args.output_format)
            validate_filter_options(args.include_func, args.exclude_func)
            include_patterns = parse_filter_patterns(args.include_func) if args.include_func else None
            exclude_patterns = parse_filter_patterns(args.exclude_func) if args.exclude_func else None
        except ValueError as e:
            print(f"错误: 参数验证失败 - {e}")
            return 1

        if include_patterns:
            print(f"包含函数模式: {include_patterns}")
        if exclude_patterns:
            print(f"排除函数模式: {exclude_patterns}")

        try:
            file_paths = parse_file_paths(args.file)
        except ValueError as e:
            print(f"错误: 解析文件路径失败 - {e}")
            return 1

        print(f"找到 {len(file_paths)} 个文件:")
        for i, file_path in enumerate(file_paths[:5]):
            print(f"  {i+1}. {file_path}")
        if len(file_paths) > 5:
            print(f"  ... 还有 {len(file_paths) - 5} 个文件")

        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        skip_function = build_skip_function(include_patterns, exclude_patterns)

        try:
            start_time = time.time()

            generated_files = []
            for file_path in file_paths:
                generated_files.extend(analyze_event_log(
                    file_path,
                    output_dir=str(output_dir),
                    label=label_for_file(file_path, args.label, len(file_paths) > 1),
                    views=views,
                    function=args.function,
                    skip_function=skip_function,
                    output_formats=output_formats,
                    print_markdown=args.print_markdown,
                    plot=args.plot,
                    top=args.top,
                    max_depth=args.max_depth,
                    min_percent=args.min_percent,
                ))

            total_time = time.time() - start_time
            print(f"\n分析完成，总耗时: {total_time:.2f} 秒")

            print("\n生成的文件:")
            for file_path in generated_files:
                print(f"  {file_path}")

            return 0

        except (OSError, ValueError) as e:
            print(f"错误: {e}")
            import traceback
            traceback.print_exc()
            return 1
