"""树形组装

一次查询取出范围内的全部节点，按 parent_id 分组后组装为嵌套森林。

使用示例:
    builder = TreeBuilder(storage, query, settings)

    forest = builder.build_tree()                     # 全部根节点及其子树
    forest = builder.build_tree(depth=2)              # 根节点下两层
    [node] = builder.build_tree(parent_id=5)          # 节点 5 及其子树
"""

from typing import Iterator, List, Optional, TYPE_CHECKING

from ytree.config import TreeSettings
from ytree.log import get_logger
from ytree.storage.predicates import Everything, FieldCompare, IdIn

from .exceptions import InvalidDepth
from .node import NodeId, TreeNode
from .tree_query import DEPTH_ORDER, TreeQuery
from .tree_utils import build_tree_list

if TYPE_CHECKING:
    from ytree.storage.base import TreeStorage

logger = get_logger("ytree.tree.builder")


class TreeBuilder:
    """树形组装

    Args:
        storage: 存储适配器
        query: 树形查询
        settings: 树形配置
    """

    def __init__(self, storage: "TreeStorage", query: TreeQuery, settings: TreeSettings):
        self.storage = storage
        self.query = query
        self.settings = settings

    def iter_tree(
        self,
        parent_id: Optional[NodeId] = None,
        depth: Optional[int] = None,
        with_translations: Optional[bool] = None,
    ) -> Iterator[TreeNode]:
        """逐个产出顶层节点（每个都带完整的 children），只能遍历一次

        Args:
            parent_id: None 表示全部根节点，否则只产出该节点
            depth: 顶层节点以下的层数，None 或 0 不限制
            with_translations: 是否预加载翻译，None 使用配置

        Raises:
            InvalidDepth: depth 为负数（调用时立即抛出）
        """
        if depth is not None and depth < 0:
            raise InvalidDepth(depth)
        return self._iter_tree(parent_id, depth, with_translations)

    def _iter_tree(
        self,
        parent_id: Optional[NodeId],
        depth: Optional[int],
        with_translations: Optional[bool],
    ) -> Iterator[TreeNode]:
        load_translations = self.query.resolve_translations(with_translations)

        if parent_id is None:
            predicate = Everything() if not depth else FieldCompare("depth", "<=", depth)
            nodes = self.storage.scan(
                predicate,
                order_by=DEPTH_ORDER,
                with_translations=load_translations,
            )
            roots = build_tree_list(nodes, root_parent_id=None)
        else:
            found = self.storage.scan(IdIn((parent_id,)), with_translations=load_translations)
            if not found:
                logger.debug(f"节点 {parent_id} 不存在，返回空树")
                return
            root = found[0]
            root.children = self.build_children_tree(root, depth, with_translations)
            roots = [root]

        yield from roots

    def build_tree(
        self,
        parent_id: Optional[NodeId] = None,
        depth: Optional[int] = None,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        """组装森林，参数同 iter_tree"""
        return list(self.iter_tree(parent_id, depth, with_translations))

    def build_children_tree(
        self,
        node: TreeNode,
        depth: Optional[int] = None,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        """node 下方的森林（不含 node 自身）"""
        nodes = self.query.children_by_depth(node, depth or 0, with_translations)
        return build_tree_list(nodes, root_parent_id=node.id)


__all__ = ["TreeBuilder"]
