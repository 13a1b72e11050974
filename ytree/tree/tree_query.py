"""树形查询

只读算法：按深度取子孙、取祖先链、祖先/子孙判断、叶子判断、根与叶子枚举。
子孙查询基于 path 前缀匹配，不做递归遍历。

使用示例:
    query = TreeQuery(storage, PathCodec("/"), TreeSettings())

    query.children_by_depth(node, 1)     # 直接子节点
    query.children_by_depth(node, 0)     # 全部子孙
    query.children_by_depth(node, 2)     # 两层以内的子孙
    query.parent_by_depth(node)          # 祖先链，根在前
"""

from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

from ytree.config import TreeSettings
from ytree.log import get_logger
from ytree.storage.predicates import (
    Everything,
    FieldCompare,
    IdIn,
    IsLeaf,
    ParentEquals,
    PathPrefix,
    all_of,
)

from .exceptions import InvalidDepth, ModelNotFound
from .node import NodeId, TreeNode
from .path_codec import PathCodec

if TYPE_CHECKING:
    from ytree.storage.base import TreeStorage

logger = get_logger("ytree.tree.query")

# 子孙查询的默认排序：先按层级，再按同级顺序
DEPTH_ORDER = ("depth", "order", "id")
SIBLING_ORDER = ("order", "id")


class TreeQuery:
    """树形查询

    Args:
        storage: 存储适配器
        codec: 路径编解码器
        settings: 树形配置
    """

    def __init__(self, storage: "TreeStorage", codec: PathCodec, settings: TreeSettings):
        self.storage = storage
        self.codec = codec
        self.settings = settings

    def resolve_translations(self, with_translations: Optional[bool]) -> bool:
        """单次调用的参数优先于配置，且存储后端必须支持"""
        flag = self.settings.with_translations if with_translations is None else with_translations
        return bool(flag) and self.storage.supports_translations

    def _is_virtual_root(self, node: Optional[TreeNode]) -> bool:
        return node is None or node.id is None or str(node.id) == PathCodec.ROOT_MARKER

    @staticmethod
    def _require_persisted(node: TreeNode) -> None:
        if node is None or node.id is None:
            raise ModelNotFound()

    # ==================== 子孙查询 ====================

    def children_by_depth(
        self,
        node: Optional[TreeNode],
        depth: int = 0,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        """按深度查询子孙节点

        Args:
            node: 起始节点，None / id 为 None / id 为 0 表示虚拟根
            depth: 1 只取直接子节点，0 取全部子孙，大于 1 取 depth 层以内的子孙
            with_translations: 是否预加载翻译，None 使用配置

        Returns:
            按 (depth, order, id) 排序的节点列表

        Raises:
            InvalidDepth: depth 为负数
        """
        if depth < 0:
            raise InvalidDepth(depth)

        if self._is_virtual_root(node):
            # 虚拟根在 -1 层，根节点是它的直接子节点
            if depth == 1:
                predicate = ParentEquals(None)
            elif depth == 0:
                predicate = Everything()
            else:
                predicate = FieldCompare("depth", "<=", depth - 1)
        elif depth == 1:
            predicate = ParentEquals(node.id)
        else:
            predicate = PathPrefix(self.codec.child_prefix(node))
            if depth > 1:
                predicate = all_of(predicate, FieldCompare("depth", "<=", node.depth + depth))

        return self.storage.scan(
            predicate,
            order_by=DEPTH_ORDER,
            with_translations=self.resolve_translations(with_translations),
        )

    def get_children(self, node: TreeNode, with_translations: Optional[bool] = None) -> List[TreeNode]:
        """直接子节点"""
        return self.children_by_depth(node, 1, with_translations)

    def get_descendants(self, node: TreeNode, with_translations: Optional[bool] = None) -> List[TreeNode]:
        """全部子孙节点"""
        return self.children_by_depth(node, 0, with_translations)

    # ==================== 祖先查询 ====================

    def parent_by_depth(
        self,
        node: TreeNode,
        depth: int = 0,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        """按深度查询祖先节点

        Args:
            node: 起始节点
            depth: 0 取全部祖先，否则只取 depth 层以内的祖先

        Returns:
            祖先列表，根节点在前
        """
        if depth < 0:
            raise InvalidDepth(depth)

        ancestor_ids = self.codec.ancestor_ids(node.path, self.settings.parsed_id_type)
        if not ancestor_ids:
            return []

        predicate = IdIn(tuple(ancestor_ids))
        if depth > 0:
            predicate = all_of(predicate, FieldCompare("depth", ">=", node.depth - depth))

        return self.storage.scan(
            predicate,
            order_by=("depth",),
            with_translations=self.resolve_translations(with_translations),
        )

    def get_ancestors(self, node: TreeNode, with_translations: Optional[bool] = None) -> List[TreeNode]:
        """全部祖先节点，根节点在前"""
        return self.parent_by_depth(node, 0, with_translations)

    def get_parent(self, node: TreeNode) -> Optional[TreeNode]:
        if node.parent_id is None:
            return None
        return self.storage.find_by_id(node.parent_id)

    def get_siblings(
        self,
        node: TreeNode,
        include_self: bool = False,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        """同级节点，按 order 排序"""
        predicate = ParentEquals(node.parent_id)
        if not include_self and node.id is not None:
            predicate = all_of(predicate, FieldCompare("id", "!=", node.id))
        return self.storage.scan(
            predicate,
            order_by=SIBLING_ORDER,
            with_translations=self.resolve_translations(with_translations),
        )

    def get_root(self, node: TreeNode) -> Optional[TreeNode]:
        """所在树的根节点，根节点返回自身"""
        ancestor_ids = self.codec.ancestor_ids(node.path, self.settings.parsed_id_type)
        if not ancestor_ids:
            return node
        return self.storage.find_by_id(ancestor_ids[0])

    # ==================== 判断 ====================

    def is_root(self, node: TreeNode) -> bool:
        return node.parent_id is None

    def is_descendant_of(self, node: TreeNode, ancestor: TreeNode) -> bool:
        """node 是否为 ancestor 的子孙

        Raises:
            ModelNotFound: node 尚未持久化
        """
        self._require_persisted(node)
        if ancestor is None or ancestor.id is None or ancestor.path is None:
            return False
        prefix = self.codec.child_prefix(ancestor)
        return node.path.startswith(prefix) and node.path != ancestor.path

    def is_ancestor_of(self, node: TreeNode, descendant: TreeNode) -> bool:
        """node 是否为 descendant 的祖先

        Raises:
            ModelNotFound: node 尚未持久化
        """
        self._require_persisted(node)
        if descendant is None or descendant.path is None:
            return False
        prefix = self.codec.child_prefix(node)
        return descendant.path.startswith(prefix) and descendant.path != node.path

    def is_leaf(self, node: TreeNode) -> bool:
        """没有直接子节点

        Raises:
            ModelNotFound: node 尚未持久化
        """
        self._require_persisted(node)
        return self.storage.count_where(ParentEquals(node.id)) == 0

    def relative_depth(self, node: TreeNode, other: TreeNode) -> int:
        return abs(node.depth - other.depth)

    # ==================== 统计 ====================

    def children_count(self, node: TreeNode) -> int:
        return self.storage.count_where(ParentEquals(node.id))

    def descendant_count(self, node: TreeNode) -> int:
        return self.storage.count_where(PathPrefix(self.codec.child_prefix(node)))

    def subtree_height(self, node: TreeNode) -> int:
        """子树高度，叶子节点为 0"""
        deepest = self.storage.max_field(PathPrefix(self.codec.child_prefix(node)), "depth")
        return 0 if deepest is None else deepest - node.depth

    # ==================== 枚举 ====================

    def all_root(self, with_translations: Optional[bool] = None) -> List[TreeNode]:
        """所有根节点，按 order 排序"""
        return self.storage.scan(
            ParentEquals(None),
            order_by=SIBLING_ORDER,
            with_translations=self.resolve_translations(with_translations),
        )

    def all_leaf(self, with_translations: Optional[bool] = None) -> List[TreeNode]:
        """所有叶子节点"""
        return self.storage.scan(
            IsLeaf(),
            order_by=DEPTH_ORDER,
            with_translations=self.resolve_translations(with_translations),
        )

    def build_real_path(self, ids: Sequence[NodeId]) -> str:
        """按给定 ID 顺序拼接别名链，不存在的 ID 跳过"""
        if not ids:
            return ""
        found = {node.id: node for node in self.storage.scan(IdIn(tuple(ids)))}
        aliases = [found[i].alias or "" for i in ids if i in found]
        return self.codec.separator.join(aliases)

    # ==================== 一致性检查 ====================

    def find_problems(self) -> Dict[str, List[NodeId]]:
        """检查路径字段的一致性

        Returns:
            {
                "orphans": parent_id 指向不存在的节点,
                "bad_path": path 与父节点不一致,
                "bad_real_path": real_path 与父节点不一致,
                "bad_depth": depth 与 path 不一致,
            }
        """
        nodes = self.storage.scan(Everything(), order_by=DEPTH_ORDER)
        by_id = {node.id: node for node in nodes}
        problems: Dict[str, List[NodeId]] = {
            "orphans": [],
            "bad_path": [],
            "bad_real_path": [],
            "bad_depth": [],
        }

        for node in nodes:
            if node.depth != self.codec.depth(node.path):
                problems["bad_depth"].append(node.id)

            if node.parent_id is None:
                expected_path = self.codec.root_path
                expected_real = node.alias or self.settings.default_root_alias
            else:
                parent = by_id.get(node.parent_id)
                if parent is None:
                    problems["orphans"].append(node.id)
                    continue
                expected_path = self.codec.child_prefix(parent)
                expected_real = self.codec.join_real_path(parent.real_path, node.alias)

            if node.path != expected_path:
                problems["bad_path"].append(node.id)
            if node.real_path != expected_real:
                problems["bad_real_path"].append(node.id)

        found = sum(len(ids) for ids in problems.values())
        if found:
            logger.debug(f"一致性检查发现 {found} 个问题")
        return problems


__all__ = ["TreeQuery"]
