"""
CallTree 单元测试
"""

import unittest
from tick_profile_tool.call_tree import CallTree


class TestCallTree(unittest.TestCase):
    """测试 CallTree 类"""

    def test_add_path_accumulates_self_weight(self):
        """测试同一路径多次添加时累加 self_weight"""
        tree = CallTree()
        tree.add_path(['A', 'B', 'C'])
        tree.add_path(['A', 'B', 'C'])

        node = tree.get_root().descend_to_child(['A', 'B', 'C'])
        self.assertIsNotNone(node)
        self.assertEqual(node.self_weight, 2)
        self.assertEqual(tree.get_root().find_child('A').self_weight, 0)

    def test_empty_path_is_ignored(self):
        """测试空路径不创建节点"""
        tree = CallTree()
        tree.add_path([])
        self.assertEqual(tree.get_root().export_children(), [])

    def test_compute_total_weights(self):
        """测试总权重计算及修改后重新计算"""
        tree = CallTree()
        for path in (['A', 'B'], ['A', 'C'], ['A'], ['D']):
            tree.add_path(path)
        tree.compute_total_weights()

        root = tree.get_root()
        self.assertEqual(root.total_weight, 4)
        self.assertEqual(root.find_child('A').total_weight, 3)
        self.assertEqual(root.find_child('A').self_weight, 1)
        self.assertEqual(root.find_child('D').total_weight, 1)

        # 新路径使总权重失效, 需要重新计算
        tree.add_path(['A', 'B'])
        tree.compute_total_weights()
        self.assertEqual(root.total_weight, 5)
        self.assertEqual(root.find_child('A').find_child('B').total_weight, 2)

    def test_parent_and_call_path(self):
        """测试父节点弱引用和调用路径"""
        tree = CallTree()
        tree.add_path(['A', 'B'])
        node = tree.get_root().descend_to_child(['A', 'B'])

        self.assertEqual(node.parent.label, 'A')
        self.assertEqual(node.get_call_path(), ['A', 'B'])
        self.assertIsNone(tree.get_root().descend_to_child(['A', 'X']))

    def test_clone_subtree_merges_all_occurrences(self):
        """测试 clone_subtree 合并所有同名子树"""
        tree = CallTree()
        tree.add_path(['A', 'B'])
        tree.add_path(['C', 'A', 'D'])

        sub_tree = tree.clone_subtree('A')
        sub_tree.compute_total_weights()

        root = sub_tree.get_root()
        self.assertEqual([child.label for child in root.export_children()], ['A'])
        a = root.find_child('A')
        self.assertEqual(a.total_weight, 2)
        self.assertEqual(a.find_child('B').self_weight, 1)
        self.assertEqual(a.find_child('D').self_weight, 1)

    def test_traverse_is_breadth_first(self):
        """测试广度优先遍历顺序"""
        tree = CallTree()
        tree.add_path(['A', 'B'])
        tree.add_path(['C', 'A', 'D'])

        labels = []
        tree.traverse(lambda node, parent: labels.append(node.label))
        self.assertEqual(labels, ['', 'A', 'C', 'B', 'A', 'D'])

    def test_traverse_passes_parent_result(self):
        """测试遍历时传递父节点返回值"""
        tree = CallTree()
        tree.add_path(['A', 'B'])

        depths = {}

        def visit(node, parent_depth):
            depth = 0 if parent_depth is None else parent_depth + 1
            depths[node.label] = depth
            return depth

        tree.traverse(visit)
        self.assertEqual(depths, {'': 0, 'A': 1, 'B': 2})

    def test_traverse_in_depth(self):
        """测试深度优先遍历的进入和退出顺序"""
        tree = CallTree()
        tree.add_path(['A', 'B'])
        tree.add_path(['A', 'C'])

        entered = []
        exited = []
        tree.traverse_in_depth(lambda node: entered.append(node.label),
                               lambda node: exited.append(node.label))
        self.assertEqual(entered, ['', 'A', 'B', 'C'])
        self.assertEqual(exited, ['B', 'C', 'A', ''])

    def test_deep_tree(self):
        """测试很深的调用树不会触发递归限制"""
        tree = CallTree()
        path = [f"f{i}" for i in range(5000)]
        tree.add_path(path)
        tree.compute_total_weights()

        count = []
        tree.traverse_in_depth(lambda node: count.append(1), lambda node: None)
        self.assertEqual(len(count), 5001)
        self.assertEqual(tree.get_root().total_weight, 1)


if __name__ == '__main__':
    unittest.main()
