"""
CodeMap 地址映射单元测试
"""

import unittest
from tick_profile_tool.codemap import AddressTree, CodeMap, UnknownAddressError
from tick_profile_tool.models import DynamicCodeEntry, FunctionEntry, LibraryEntry, StaticCodeEntry


class TestAddressTree(unittest.TestCase):
    """测试 AddressTree 类"""

    def test_find_greatest_less_than(self):
        """测试查找小于等于给定地址的最大节点"""
        tree = AddressTree()
        tree.insert(0x300, 'c')
        tree.insert(0x100, 'a')
        tree.insert(0x200, 'b')

        self.assertEqual(tree.find_greatest_less_than(0x250), (0x200, 'b'))
        self.assertEqual(tree.find_greatest_less_than(0x200), (0x200, 'b'))
        self.assertIsNone(tree.find_greatest_less_than(0xff))
        self.assertEqual([key for key, _ in tree.items()], [0x100, 0x200, 0x300])

    def test_remove_unknown_raises_key_error(self):
        """测试删除不存在的节点"""
        tree = AddressTree()
        with self.assertRaises(KeyError):
            tree.remove(0x100)


class TestCodeMap(unittest.TestCase):
    """测试 CodeMap 类"""

    def setUp(self):
        """设置测试数据"""
        self.code_map = CodeMap()

    def test_find_dynamic_code(self):
        """测试动态代码地址查找"""
        entry = DynamicCodeEntry(0x200, 'Stub', 'CEntry')
        self.code_map.add_code(0x1500, entry)

        self.assertIs(self.code_map.find_entry(0x1500), entry)
        self.assertIs(self.code_map.find_entry(0x16ff), entry)
        self.assertIsNone(self.code_map.find_entry(0x1700))
        self.assertIsNone(self.code_map.find_entry(0x14ff))

        resolved = self.code_map.find_address(0x1510)
        self.assertIs(resolved.entry, entry)
        self.assertEqual(resolved.offset, 0x10)

    def test_add_code_deletes_overlapping_code(self):
        """测试添加代码时删除被覆盖的旧代码"""
        old = DynamicCodeEntry(0x100, 'Stub', 'old')
        keep = DynamicCodeEntry(0x100, 'Stub', 'keep')
        self.code_map.add_code(0x100, old)
        self.code_map.add_code(0x400, keep)

        new = DynamicCodeEntry(0x100, 'Stub', 'new')
        self.code_map.add_code(0x180, new)

        self.assertIsNone(self.code_map.find_entry(0x110))
        self.assertIs(self.code_map.find_entry(0x190), new)
        self.assertIs(self.code_map.find_entry(0x410), keep)
        self.assertEqual(len(self.code_map.get_all_dynamic_entries()), 2)

    def test_move_code(self):
        """测试移动代码"""
        entry = DynamicCodeEntry(0x10, 'Stub', 'moved')
        self.code_map.add_code(0x100, entry)
        self.code_map.move_code(0x100, 0x800)

        self.assertIsNone(self.code_map.find_entry(0x105))
        self.assertIs(self.code_map.find_entry(0x805), entry)

    def test_move_and_delete_unknown_address(self):
        """测试移动和删除未知地址"""
        with self.assertRaises(UnknownAddressError):
            self.code_map.move_code(0x100, 0x200)
        with self.assertRaises(UnknownAddressError):
            self.code_map.delete_code(0x100)

    def test_static_code_has_priority_over_library(self):
        """测试静态代码优先于共享库"""
        lib = LibraryEntry(0x1000, 'libv8.so')
        static = StaticCodeEntry(0x100, 'v8::Run')
        self.code_map.add_library(0x1000, lib)
        self.code_map.add_static_code(0x1100, static)

        self.assertIs(self.code_map.find_entry(0x1150), static)
        self.assertIs(self.code_map.find_entry(0x1300), lib)
        self.assertIsNone(self.code_map.find_entry(0x2000))

    def test_function_entries_do_not_cover_addresses(self):
        """测试函数实体不占据地址区间"""
        code = DynamicCodeEntry(0x200, 'Stub', 'code')
        func = FunctionEntry('f')
        self.code_map.add_code(0x1f00, code)
        self.code_map.add_code(0x2000, func)

        self.assertIs(self.code_map.find_entry(0x2050), code)
        self.assertIs(self.code_map.find_dynamic_entry_by_start_address(0x2000), func)


if __name__ == '__main__':
    unittest.main()
