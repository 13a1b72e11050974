"""森林组装 TreeBuilder 测试"""

import pytest

from ytree.storage import MemoryStorage
from ytree.tree import InvalidDepth, TreeNode, TreeService, calculate_tree_depth


def shape(forest):
    """森林转为 (alias, [子节点...]) 结构，便于比较"""
    return [(n.alias, shape(n.children)) for n in forest]


class TestBuildTree:
    """构建完整森林"""

    def test_whole_forest(self, memory_service, sample_tree):
        forest = memory_service.build_tree()

        assert shape(forest) == [
            ("r1", [
                ("a", [
                    ("a1", [("a1x", [])]),
                    ("a2", []),
                ]),
                ("b", []),
            ]),
            ("r2", []),
            ("r3", []),
        ]

    def test_leaves_have_empty_children(self, memory_service, sample_tree):
        forest = memory_service.build_tree()
        r2 = forest[1]
        assert r2.children == []

    def test_three_roots_two_levels(self, memory_service):
        """三个根节点各带两层，按 order 排序"""
        for name in ("x", "y", "z"):
            root = memory_service.make_root(TreeNode(alias=name))
            first = memory_service.make_last_child_of(TreeNode(alias=f"{name}1"), root.id)
            # 插到最前面，验证按 order 而不是按 ID 排序
            memory_service.make_first_child_of(TreeNode(alias=f"{name}0"), root.id)
            memory_service.make_last_child_of(TreeNode(alias=f"{name}1a"), first.id)

        forest = memory_service.build_tree()
        assert [n.alias for n in forest] == ["x", "y", "z"]
        assert [n.alias for n in forest[0].children] == ["x0", "x1"]
        assert [n.alias for n in forest[2].children[1].children] == ["z1a"]
        assert calculate_tree_depth(forest) == 3

    def test_empty_storage(self, memory_service):
        assert memory_service.build_tree() == []

    def test_depth_bound(self, memory_service, sample_tree):
        """depth 限制根节点以下的层数"""
        forest = memory_service.build_tree(depth=1)
        assert shape(forest) == [
            ("r1", [("a", []), ("b", [])]),
            ("r2", []),
            ("r3", []),
        ]

        assert calculate_tree_depth(memory_service.build_tree(depth=2)) == 3

    def test_negative_depth(self, memory_service):
        with pytest.raises(InvalidDepth):
            memory_service.build_tree(depth=-1)


class TestBuildSubtree:
    """以指定节点为顶层"""

    def test_subtree(self, memory_service, sample_tree):
        forest = memory_service.build_tree(parent_id=sample_tree["a"].id)
        assert shape(forest) == [
            ("a", [
                ("a1", [("a1x", [])]),
                ("a2", []),
            ]),
        ]

    def test_subtree_depth(self, memory_service, sample_tree):
        forest = memory_service.build_tree(parent_id=sample_tree["a"].id, depth=1)
        assert shape(forest) == [("a", [("a1", []), ("a2", [])])]

    def test_missing_node(self, memory_service, sample_tree):
        assert memory_service.build_tree(parent_id=999) == []

    def test_children_tree(self, memory_service, sample_tree):
        """build_children_tree 不包含节点自身"""
        children = memory_service.build_children_tree(sample_tree["r1"])
        assert [n.alias for n in children] == ["a", "b"]
        assert [n.alias for n in children[0].children] == ["a1", "a2"]


class TestIterTree:
    """逐个产出顶层节点"""

    def test_iter_matches_build(self, memory_service, sample_tree):
        assert shape(list(memory_service.iter_tree())) == shape(memory_service.build_tree())

    def test_lazy_generator(self, memory_service, sample_tree):
        iterator = memory_service.iter_tree()
        first = next(iterator)
        assert first.alias == "r1"
        assert [n.alias for n in iterator] == ["r2", "r3"]

    def test_invalid_depth_raised_on_call(self, memory_service):
        """参数错误在调用时抛出，不等到第一次迭代"""
        with pytest.raises(InvalidDepth):
            memory_service.iter_tree(depth=-2)


class TestTranslations:
    def test_nodes_carry_translations(self):
        storage = MemoryStorage(translations={2: [{"locale": "en", "name": "Docs"}]})
        service = TreeService(storage)
        root = service.make_root(TreeNode(alias="root"))
        service.make_last_child_of(TreeNode(alias="docs"), root.id)

        [tree] = service.build_tree(with_translations=True)
        assert tree.extra["translations"] == []
        assert tree.children[0].extra["translations"][0]["name"] == "Docs"
