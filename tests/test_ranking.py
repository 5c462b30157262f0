"""
原生函数入口排名单元测试
"""

import unittest
from tick_profile_tool.ranking import TOTAL_LABEL, rank_c_entries


class TestRankCEntries(unittest.TestCase):
    """测试原生函数入口排名"""

    def test_sorted_by_ticks_then_name_descending(self):
        """测试按 tick 数和名称降序排序"""
        rows = rank_c_entries({'f': 5, 'g': 5, 'h': 3})

        self.assertEqual([row.name for row in rows], [TOTAL_LABEL, 'g', 'f', 'h'])
        self.assertEqual([row.ticks for row in rows], [13, 5, 5, 3])

    def test_empty_table_has_total_only(self):
        """测试空表只有 TOTAL 行"""
        rows = rank_c_entries({})
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].name, TOTAL_LABEL)
        self.assertEqual(rows[0].ticks, 0)

    def test_zero_ticks(self):
        """测试 tick 数为 0 的入口"""
        rows = rank_c_entries({'a': 0, 'b': 0})
        self.assertEqual([row.name for row in rows], [TOTAL_LABEL, 'b', 'a'])
        self.assertEqual(rows[0].ticks, 0)


if __name__ == '__main__':
    unittest.main()
