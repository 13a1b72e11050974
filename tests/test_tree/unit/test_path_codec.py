"""路径编解码 PathCodec 测试

1. 编码 / 解码 / 深度
2. 子孙前缀与别名链
3. 子孙路径重写（rebase）
4. 别名校验
"""

import pytest

from ytree.tree import InvalidAlias, PathCodec, TreeNode


class TestEncodeDecode:
    """编码与解码"""

    def setup_method(self):
        self.codec = PathCodec("/")

    def test_root_path(self):
        """根路径为 /0/"""
        assert self.codec.root_path == "/0/"
        assert self.codec.encode([]) == "/0/"

    def test_encode(self):
        """祖先 ID 链编码"""
        assert self.codec.encode([1]) == "/0/1/"
        assert self.codec.encode([1, 5, 12]) == "/0/1/5/12/"

    def test_decode_keeps_root_marker(self):
        """解码结果包含虚拟根标记，丢弃空片段"""
        assert self.codec.decode("/0/1/5/") == ["0", "1", "5"]
        assert self.codec.decode("//0//1/") == ["0", "1"]
        assert self.codec.decode("") == []
        assert self.codec.decode(None) == []

    @pytest.mark.parametrize("ids", [[1], [1, 2], [3, 10, 7, 42]])
    def test_ancestor_ids_round_trip(self, ids):
        """ancestor_ids(encode(S)) == S"""
        path = self.codec.encode(ids)
        assert self.codec.ancestor_ids(path) == ids
        assert self.codec.decode(path) == ["0", *map(str, ids)]

    def test_ancestor_ids_str_type(self):
        """字符串主键"""
        codec = PathCodec("/", id_type=str)
        assert codec.ancestor_ids("/0/a1/b2/") == ["a1", "b2"]
        assert self.codec.ancestor_ids("/0/7/", id_type=str) == ["7"]

    def test_depth(self):
        """深度 = 片段数 - 1"""
        assert self.codec.depth("/0/") == 0
        assert self.codec.depth("/0/1/") == 1
        assert self.codec.depth("/0/1/5/12/") == 3

    def test_custom_separator(self):
        """自定义分隔符"""
        codec = PathCodec(".")
        assert codec.root_path == ".0."
        assert codec.encode([1, 2]) == ".0.1.2."
        assert codec.ancestor_ids(".0.1.2.") == [1, 2]

    @pytest.mark.parametrize("separator", ["", "a", "1"])
    def test_invalid_separator(self, separator):
        """空分隔符或字母数字分隔符无效"""
        with pytest.raises(ValueError):
            PathCodec(separator)


class TestPrefixAndRealPath:
    """子孙前缀与别名链"""

    def setup_method(self):
        self.codec = PathCodec("/")

    def test_child_prefix(self):
        """节点 path + id + 分隔符"""
        node = TreeNode(id=5, path="/0/1/")
        assert self.codec.child_prefix(node) == "/0/1/5/"

    def test_child_prefix_virtual_root(self):
        """虚拟根的前缀匹配全部节点"""
        assert self.codec.child_prefix(TreeNode()) == "/0/"
        assert self.codec.child_prefix(TreeNode(id=0)) == "/0/"

    def test_join_real_path(self):
        assert self.codec.join_real_path("root/docs", "api") == "root/docs/api"
        assert self.codec.join_real_path("", "api") == "api"
        assert self.codec.join_real_path("root", None) == "root/"


class TestRebase:
    """子孙路径重写"""

    def setup_method(self):
        self.codec = PathCodec("/")

    def test_rebase_under_new_parent(self):
        """锚点之后的 ID 链保持不变"""
        assert self.codec.rebase("/0/1/2/7/", 2, "/0/1/3/") == "/0/1/3/2/7/"

    def test_rebase_to_root(self):
        """锚点变为根节点"""
        assert self.codec.rebase("/0/1/2/7/9/", 2, "/0/") == "/0/2/7/9/"

    def test_rebase_does_not_touch_similar_ids(self):
        """ID 为子串时不会误替换"""
        # 节点 1 移到 5 下，路径中的 21、11 不受影响
        assert self.codec.rebase("/0/21/1/11/", 1, "/0/5/") == "/0/5/1/11/"

    def test_rebase_missing_anchor(self):
        with pytest.raises(ValueError):
            self.codec.rebase("/0/1/2/", 9, "/0/")

    def test_rebase_real(self):
        """保留末尾 offset 段别名"""
        assert self.codec.rebase_real("r1/a/a1/a1x", 2, "r2/b/a") == "r2/b/a/a1/a1x"
        assert self.codec.rebase_real("r1/a/a1", 1, "a") == "a/a1"
        assert self.codec.rebase_real("r1/a", 0, "x") == "x"


class TestValidateAlias:
    """别名校验"""

    def test_alias_with_separator(self):
        codec = PathCodec("/")
        with pytest.raises(InvalidAlias):
            codec.validate_alias("a/b")

    def test_valid_alias(self):
        codec = PathCodec("/")
        codec.validate_alias("docs")
        codec.validate_alias("")
        codec.validate_alias(None)
