"""
数据展示和分析流程单元测试
"""

import io
import json
import os
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout

import matplotlib
matplotlib.use('Agg')

from tick_profile_tool.analyzer import (analyze_event_log, build_c_entry_rows, build_flat_profile_rows,
                                        build_tree_rows, export_event_log, generate_output_files,
                                        plot_flat_profile, print_markdown_table)
from tick_profile_tool.profile import Profile
from tick_profile_tool.utils.tree_utils import get_tree_statistics, print_call_tree


def _build_profile():
    profile = Profile()
    profile.add_static_code('v8::Run', 0x100, 0x200)
    profile.add_code('Stub', 'A', 0, 0x1000, 0x100)
    profile.add_code('Stub', 'B', 0, 0x2000, 0x100)
    profile.record_tick(0, 0, [0x1010, 0x2010])
    profile.record_tick(1, 0, [0x2020])
    profile.record_tick(2, 0, [0x150, 0x2020])
    profile.record_tick(3, 0, [0x1010, 0x2010])
    return profile


class TestPresenter(unittest.TestCase):
    """测试数据展示"""

    def setUp(self):
        """设置测试数据"""
        self.temp_dir = tempfile.mkdtemp()
        self.profile = _build_profile()

    def tearDown(self):
        """清理测试数据"""
        self.profile.close()
        shutil.rmtree(self.temp_dir)

    def test_flat_profile_rows(self):
        """测试扁平化 profile 表格行"""
        rows = build_flat_profile_rows(self.profile.get_flat_profile(), self.profile.tick_count)

        self.assertEqual([row['name'] for row in rows], ['Stub: A', 'Stub: B', 'CPP: v8::Run'])
        self.assertEqual(rows[0]['self_ticks'], 2)
        self.assertAlmostEqual(rows[0]['self_percent'], 50.0)
        self.assertEqual(rows[1]['total_ticks'], 4)
        self.assertAlmostEqual(rows[1]['total_percent'], 100.0)

        top = build_flat_profile_rows(self.profile.get_flat_profile(), self.profile.tick_count, top=1)
        self.assertEqual(len(top), 1)

    def test_flat_profile_rows_with_label(self):
        """测试指定标签的扁平化 profile 表格行"""
        flat = self.profile.get_flat_profile('Stub: B')
        rows = build_flat_profile_rows(flat, self.profile.tick_count, label='Stub: B')
        self.assertEqual(sorted(row['name'] for row in rows), ['CPP: v8::Run', 'Stub: A'])

        missing = self.profile.get_flat_profile('Stub: X')
        self.assertEqual(build_flat_profile_rows(missing, 4, label='Stub: X'), [])

    def test_tree_rows(self):
        """测试调用树表格行"""
        rows = build_tree_rows(self.profile.get_top_down_profile())

        self.assertEqual(rows[0]['name'], 'Stub: B')
        self.assertEqual(rows[0]['depth'], 0)
        self.assertEqual(rows[1]['name'], '  Stub: A')
        self.assertAlmostEqual(rows[1]['parent_percent'], 50.0)

        shallow = build_tree_rows(self.profile.get_top_down_profile(), max_depth=0)
        self.assertEqual(len(shallow), 1)

    def test_tree_statistics(self):
        """测试调用树统计和打印"""
        stats = get_tree_statistics(self.profile.get_bottom_up_profile())
        self.assertEqual(stats['total_ticks'], 4)
        self.assertEqual(stats['max_depth'], 2)

        output = io.StringIO()
        with redirect_stdout(output):
            print_call_tree(self.profile.get_top_down_profile(), max_depth=1)
        text = output.getvalue()
        self.assertIn('(root) (self=0, total=4)', text)
        self.assertIn('Stub: B (self=1, total=4)', text)
        self.assertNotIn('Stub: A', text)

    def test_c_entry_rows(self):
        """测试原生函数入口表格行"""
        rows = build_c_entry_rows(self.profile.get_c_entry_profile())
        self.assertEqual(rows, [
            {'name': 'TOTAL', 'ticks': 1, 'percent': 100.0},
            {'name': 'v8::Run', 'ticks': 1, 'percent': 100.0},
        ])

    def test_print_markdown_table(self):
        """测试 markdown 表格打印"""
        rows = build_c_entry_rows(self.profile.get_c_entry_profile())
        output = io.StringIO()
        with redirect_stdout(output):
            print_markdown_table(rows, 'native')
            print_markdown_table([], 'empty')
        text = output.getvalue()

        self.assertIn('## native', text)
        self.assertIn('| name | ticks | percent |', text)
        self.assertIn('| v8::Run | 1 | 100.00% |', text)
        self.assertIn('无数据可显示', text)

    def test_generate_output_files(self):
        """测试生成 JSON 和 XLSX 文件"""
        rows = build_flat_profile_rows(self.profile.get_flat_profile(), self.profile.tick_count)
        with redirect_stdout(io.StringIO()):
            files = generate_output_files(rows, self.temp_dir, 'flat', ['json', 'xlsx'])

        self.assertEqual([f.suffix for f in files], ['.json', '.xlsx'])
        with open(files[0], 'r', encoding='utf-8') as f:
            self.assertEqual(json.load(f), rows)
        self.assertTrue(files[1].exists())

    def test_plot_flat_profile(self):
        """测试扁平化 profile 条形图"""
        rows = build_flat_profile_rows(self.profile.get_flat_profile(), self.profile.tick_count)
        with redirect_stdout(io.StringIO()):
            png_file = plot_flat_profile(rows, self.temp_dir, 'flat')
        self.assertTrue(png_file.exists())
        self.assertEqual(png_file.suffix, '.png')


class TestAnalyzeEventLog(unittest.TestCase):
    """测试分析流程"""

    def setUp(self):
        """设置测试数据"""
        self.temp_dir = tempfile.mkdtemp()
        self.events_file = os.path.join(self.temp_dir, 'events.json')
        events = [
            {"type": "cpp", "name": "v8::Run", "start": "0x100", "end": "0x200"},
            {"type": "code-creation", "kind": "Stub", "name": "A", "start": "0x1000", "size": 256},
            {"type": "tick", "timestamp": 1, "stack": ["0x1010"]},
            {"type": "tick", "timestamp": 2, "stack": ["0x150", "0x1010"]},
            {"type": "code-delete", "start": "0x7000"},
        ]
        with open(self.events_file, 'w', encoding='utf-8') as f:
            json.dump(events, f)

    def tearDown(self):
        """清理测试数据"""
        shutil.rmtree(self.temp_dir)

    def test_analyze_event_log(self):
        """测试完整分析流程"""
        output_dir = os.path.join(self.temp_dir, 'out')
        with redirect_stdout(io.StringIO()):
            files = analyze_event_log(self.events_file, output_dir=output_dir, label='run',
                                      output_formats=['json'], plot=True)

        names = sorted(f.name for f in files)
        self.assertEqual(names, ['run_bottom_up.json', 'run_c_entry.json', 'run_flat.json',
                                 'run_flat.png', 'run_top_down.json'])
        with open(os.path.join(output_dir, 'run_c_entry.json'), 'r', encoding='utf-8') as f:
            self.assertEqual(json.load(f)[1]['name'], 'v8::Run')

    def test_analyze_single_function(self):
        """测试只分析单个函数"""
        with redirect_stdout(io.StringIO()):
            files = analyze_event_log(self.events_file, output_dir=self.temp_dir, label='run',
                                      views=['flat'], function='Stub: A', output_formats=['json'])
        self.assertEqual([f.name for f in files], ['run_flat_Stub__A.json'])
        with open(files[0], 'r', encoding='utf-8') as f:
            rows = json.load(f)
        self.assertEqual([row['name'] for row in rows], ['CPP: v8::Run'])

    def test_export_event_log(self):
        """测试导出流程"""
        output_file = os.path.join(self.temp_dir, 'profile.json')
        with redirect_stdout(io.StringIO()):
            export_event_log(self.events_file, output_file)
        with open(output_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
        self.assertEqual(data['ticks'][1]['s'], [0, 0x50, 1, 0x10])


if __name__ == '__main__':
    unittest.main()
