"""树形服务

把路径编解码、查询、写操作、组装用同一份 TreeSettings 组装在一起，
业务代码只需要面对这一个对象。

使用示例:
    from ytree import TreeService, TreeNode, TreeSettings
    from ytree.storage import SQLAlchemyStorage

    storage = SQLAlchemyStorage(Category, session, translations="translations")
    service = TreeService(storage, settings=TreeSettings(with_translations=True))

    root = service.make_root(TreeNode(alias="root"))
    docs = service.make_last_child_of(TreeNode(alias="docs"), root.id)
    api = service.make_last_child_of(TreeNode(alias="api"), docs.id)

    api.path                            # "/0/1/2/"
    api.real_path                       # "root/docs/api"
    service.is_descendant_of(api, root) # True

    forest = service.build_tree()
"""

from typing import Dict, Iterator, List, Optional, Sequence, TYPE_CHECKING

from ytree.config import TreeSettings
from ytree.log import get_logger

from .node import NodeId, TreeNode
from .path_codec import PathCodec
from .tree_builder import TreeBuilder
from .tree_mutator import SiblingPosition, TreeMutator
from .tree_query import TreeQuery

if TYPE_CHECKING:
    from ytree.storage.base import TreeStorage

logger = get_logger("ytree.tree.service")


class TreeService:
    """树形服务

    Args:
        storage: 存储适配器
        settings: 树形配置，不传使用默认值（环境变量 YTREE_TREE_*）

    Attributes:
        codec: PathCodec
        query: TreeQuery
        mutator: TreeMutator
        builder: TreeBuilder
    """

    def __init__(self, storage: "TreeStorage", settings: Optional[TreeSettings] = None):
        self.storage = storage
        self.settings = settings or TreeSettings()
        self.codec = PathCodec(self.settings.separator, self.settings.parsed_id_type)
        self.query = TreeQuery(storage, self.codec, self.settings)
        self.mutator = TreeMutator(storage, self.codec, self.query, self.settings)
        self.builder = TreeBuilder(storage, self.query, self.settings)
        logger.debug(
            f"TreeService 初始化: storage={type(storage).__name__}, "
            f"separator={self.settings.separator!r}, "
            f"translations={storage.supports_translations}"
        )

    # ==================== 写操作 ====================

    def make_root(self, node: TreeNode) -> TreeNode:
        return self.mutator.make_root(node)

    def make_first_child_of(self, node: TreeNode, parent_id: NodeId) -> TreeNode:
        return self.mutator.make_first_child_of(node, parent_id)

    def make_last_child_of(self, node: TreeNode, parent_id: NodeId) -> TreeNode:
        return self.mutator.make_last_child_of(node, parent_id)

    def make_previous_sibling_of(self, node: TreeNode, sibling_id: NodeId) -> TreeNode:
        return self.mutator.make_previous_sibling_of(node, sibling_id)

    def make_next_sibling_of(self, node: TreeNode, sibling_id: NodeId) -> TreeNode:
        return self.mutator.make_next_sibling_of(node, sibling_id)

    def process_sibling_of(self, node: TreeNode, sibling_id: NodeId, mode: SiblingPosition) -> TreeNode:
        return self.mutator.process_sibling_of(node, sibling_id, mode)

    def update_node(self, node: TreeNode) -> TreeNode:
        return self.mutator.update_node(node)

    def rebuild(self) -> int:
        return self.mutator.rebuild()

    # ==================== 查询 ====================

    def children_by_depth(
        self,
        node: Optional[TreeNode],
        depth: int = 0,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        return self.query.children_by_depth(node, depth, with_translations)

    def parent_by_depth(
        self,
        node: TreeNode,
        depth: int = 0,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        return self.query.parent_by_depth(node, depth, with_translations)

    def get_children(self, node: TreeNode, with_translations: Optional[bool] = None) -> List[TreeNode]:
        return self.query.get_children(node, with_translations)

    def get_descendants(self, node: TreeNode, with_translations: Optional[bool] = None) -> List[TreeNode]:
        return self.query.get_descendants(node, with_translations)

    def get_ancestors(self, node: TreeNode, with_translations: Optional[bool] = None) -> List[TreeNode]:
        return self.query.get_ancestors(node, with_translations)

    def get_parent(self, node: TreeNode) -> Optional[TreeNode]:
        return self.query.get_parent(node)

    def get_siblings(
        self,
        node: TreeNode,
        include_self: bool = False,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        return self.query.get_siblings(node, include_self, with_translations)

    def get_root(self, node: TreeNode) -> Optional[TreeNode]:
        return self.query.get_root(node)

    def is_root(self, node: TreeNode) -> bool:
        return self.query.is_root(node)

    def is_descendant_of(self, node: TreeNode, ancestor: TreeNode) -> bool:
        return self.query.is_descendant_of(node, ancestor)

    def is_ancestor_of(self, node: TreeNode, descendant: TreeNode) -> bool:
        return self.query.is_ancestor_of(node, descendant)

    def is_leaf(self, node: TreeNode) -> bool:
        return self.query.is_leaf(node)

    def relative_depth(self, node: TreeNode, other: TreeNode) -> int:
        return self.query.relative_depth(node, other)

    def children_count(self, node: TreeNode) -> int:
        return self.query.children_count(node)

    def descendant_count(self, node: TreeNode) -> int:
        return self.query.descendant_count(node)

    def subtree_height(self, node: TreeNode) -> int:
        return self.query.subtree_height(node)

    def all_root(self, with_translations: Optional[bool] = None) -> List[TreeNode]:
        return self.query.all_root(with_translations)

    def all_leaf(self, with_translations: Optional[bool] = None) -> List[TreeNode]:
        return self.query.all_leaf(with_translations)

    def build_real_path(self, ids: Sequence[NodeId]) -> str:
        return self.query.build_real_path(ids)

    def find_problems(self) -> Dict[str, List[NodeId]]:
        return self.query.find_problems()

    # ==================== 组装 ====================

    def build_tree(
        self,
        parent_id: Optional[NodeId] = None,
        depth: Optional[int] = None,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        return self.builder.build_tree(parent_id, depth, with_translations)

    def iter_tree(
        self,
        parent_id: Optional[NodeId] = None,
        depth: Optional[int] = None,
        with_translations: Optional[bool] = None,
    ) -> Iterator[TreeNode]:
        return self.builder.iter_tree(parent_id, depth, with_translations)

    def build_children_tree(
        self,
        node: TreeNode,
        depth: Optional[int] = None,
        with_translations: Optional[bool] = None,
    ) -> List[TreeNode]:
        return self.builder.build_children_tree(node, depth, with_translations)


__all__ = ["TreeService"]
