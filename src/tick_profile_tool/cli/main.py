"""
CLI主模块
"""

import argparse
import logging
import sys
from .commands import AnalysisCommand, ExportCommand


def parse_arguments(argv=None):
    """解析命令行参数"""
    parser = argparse.ArgumentParser(
        description="Tick Profile Tool - 分析采样 tick 事件日志",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  # 分析单个事件日志 (默认生成全部视图)
  tick-profile-tool analysis events.json --label "baseline" --output-format json,xlsx

  # 只生成扁平化 profile 并打印 markdown 表格
  tick-profile-tool analysis events.json --view flat --top 20 --print-markdown

  # 只分析某个函数的自顶向下调用树
  tick-profile-tool analysis events.json --view top-down --function "JS: *foo"

  # 排除匹配的函数并生成条形图
  tick-profile-tool analysis events.json --exclude-func "^Builtin:,^Stub:" --plot

  # 批量分析目录下所有事件日志
  tick-profile-tool analysis "logs/*.json" --label run --output-dir out/

  # 导出离线工具使用的 profile JSON
  tick-profile-tool export events.json --output profile.json
        """
    )
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='日志级别 (默认: WARNING)')

    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # analysis 命令 - 分析单个或多个事件日志
    analysis_parser = subparsers.add_parser('analysis', help='分析单个或多个事件日志')
    analysis_parser.add_argument('file', help='要分析的事件日志路径，支持 glob 模式 (如: "*.json" 或 "dir/*.json")')
    analysis_parser.add_argument('--label', default='profile', help='文件标签 (默认: profile)')
    analysis_parser.add_argument('--view', default='flat,bottom-up,top-down,c-entry',
                                 help='生成的视图，使用逗号分隔\n'
                                      '支持的视图: flat, bottom-up, top-down, c-entry\n'
                                      '(默认: 全部)')
    analysis_parser.add_argument('--function', default=None,
                                 help='只分析以该标签为根的 profile，例如 "JS: *foo" (默认: 全部)')
    analysis_parser.add_argument('--include-func', type=str, default=None,
                                 help='只保留匹配的函数，逗号分隔的正则表达式')
    analysis_parser.add_argument('--exclude-func', type=str, default=None,
                                 help='排除匹配的函数，逗号分隔的正则表达式')
    analysis_parser.add_argument('--print-markdown', action='store_true',
                                 help='是否在stdout中以markdown格式打印表格 (默认: False)')
    analysis_parser.add_argument('--plot', action='store_true',
                                 help='是否生成扁平化 profile 的条形图 (默认: False)')
    analysis_parser.add_argument('--top', type=int, default=None,
                                 help='扁平化 profile 保留的行数 (默认: 全部)')
    analysis_parser.add_argument('--max-depth', type=int, default=None,
                                 help='调用树最大展开深度 (默认: 不限制)')
    analysis_parser.add_argument('--min-percent', type=float, default=0.0,
                                 help='调用树中总占比低于该值的节点不展开 (默认: 0)')
    analysis_parser.add_argument('--output-format', default='json,xlsx',
                                 choices=['json', 'xlsx', 'json,xlsx'],
                                 help='输出格式 (默认: json,xlsx)')
    analysis_parser.add_argument('--output-dir', default='.', help='输出目录 (默认: 当前目录)')

    # export 命令 - 导出 profile JSON
    export_parser = subparsers.add_parser('export', help='导出序列化的 profile JSON')
    export_parser.add_argument('file', help='事件日志路径')
    export_parser.add_argument('--output', default='profile.json', help='输出文件 (默认: profile.json)')

    return parser.parse_args(argv)


def main(argv=None):
    """主函数"""
    args = parse_arguments(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    if not args.command:
        print("错误: 请指定命令 (analysis, export)")
        print("使用 --help 查看帮助信息")
        return 1

    if args.command == 'analysis':
        command = AnalysisCommand()
        return command.run(args)
    elif args.command == 'export':
        command = ExportCommand()
        return command.run(args)
    else:
        print(f"错误: 未知命令: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
