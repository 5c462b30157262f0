"""
扁平化 profile 单元测试
"""

import unittest
from tick_profile_tool.call_tree import CallTree
from tick_profile_tool.flat_profile import project_flat_profile


class TestFlatProfile(unittest.TestCase):
    """测试扁平化 profile"""

    def setUp(self):
        """设置测试数据"""
        self.tree = CallTree()
        for path in (['A', 'B'], ['A', 'B'], ['C', 'A', 'B'], ['B']):
            self.tree.add_path(path)

    def test_whole_program(self):
        """测试整个程序的扁平化 profile"""
        flat = project_flat_profile(self.tree)
        root = flat.get_root()

        self.assertEqual(root.total_weight, 4)
        self.assertEqual(root.find_child('A').self_weight, 0)
        self.assertEqual(root.find_child('A').total_weight, 3)
        self.assertEqual(root.find_child('B').self_weight, 4)
        self.assertEqual(root.find_child('B').total_weight, 4)
        self.assertEqual(root.find_child('C').total_weight, 1)

    def test_with_label(self):
        """测试指定标签的扁平化 profile"""
        flat = project_flat_profile(self.tree, 'A')
        root = flat.get_root()

        self.assertEqual(root.total_weight, 3)
        a = root.find_child('A')
        self.assertEqual(a.total_weight, 3)
        self.assertEqual(a.find_child('B').self_weight, 3)
        self.assertEqual(a.find_child('B').total_weight, 3)
        self.assertIsNone(a.find_child('C'))

    def test_recursion_counts_total_once(self):
        """测试递归调用的总权重只计入一次"""
        tree = CallTree()
        tree.add_path(['A', 'A', 'A'])

        flat = project_flat_profile(tree)
        a = flat.get_root().find_child('A')
        self.assertEqual(a.self_weight, 1)
        self.assertEqual(a.total_weight, 1)

    def test_recursion_with_label(self):
        """测试指定标签时的递归调用"""
        tree = CallTree()
        tree.add_path(['A', 'A', 'A'])

        flat = project_flat_profile(tree, 'A')
        root = flat.get_root()
        self.assertEqual(root.total_weight, 1)
        inner = root.find_child('A').find_child('A')
        self.assertEqual(inner.self_weight, 1)
        self.assertEqual(inner.total_weight, 2)


if __name__ == '__main__':
    unittest.main()
