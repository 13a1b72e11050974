"""树形结构模块

基于物化路径（Materialized Path）维护树形数据：每个节点保存祖先 ID 链，
子孙/祖先查询都是前缀匹配或等值匹配，不需要递归。

核心组件:
    - PathCodec: 路径编解码
    - TreeQuery: 只读查询
    - TreeMutator: 结构写操作（事务内完成）
    - TreeBuilder: 组装嵌套森林
    - TreeService: 以上组件的统一入口

使用示例:
    from ytree.tree import TreeService, TreeNode
    from ytree.storage import MemoryStorage

    service = TreeService(MemoryStorage())
    root = service.make_root(TreeNode(alias="root"))
    child = service.make_first_child_of(TreeNode(alias="a"), root.id)
"""

# node 与 exceptions 必须最先导入，存储模块依赖它们
from .node import NodeId, NodeState, TreeNode, TREE_FIELDS
from .exceptions import (
    TreeError,
    ParentNotFound,
    SiblingNotFound,
    NodeNotFound,
    ModelNotFound,
    MoveCycle,
    MoveException,
    StaleNode,
    InvalidAlias,
    InvalidDepth,
)
from .path_codec import PathCodec
from .tree_query import TreeQuery
from .tree_mutator import SiblingPosition, TreeMutator
from .tree_builder import TreeBuilder
from .tree_service import TreeService
from .tree_utils import (
    build_tree_list,
    flatten_tree,
    find_node_in_tree,
    get_node_path,
    calculate_tree_depth,
    filter_tree,
    tree_to_dicts,
)

__all__ = [
    "NodeId",
    "NodeState",
    "TreeNode",
    "TREE_FIELDS",
    "TreeError",
    "ParentNotFound",
    "SiblingNotFound",
    "NodeNotFound",
    "ModelNotFound",
    "MoveCycle",
    "MoveException",
    "StaleNode",
    "InvalidAlias",
    "InvalidDepth",
    "PathCodec",
    "TreeQuery",
    "SiblingPosition",
    "TreeMutator",
    "TreeBuilder",
    "TreeService",
    "build_tree_list",
    "flatten_tree",
    "find_node_in_tree",
    "get_node_path",
    "calculate_tree_depth",
    "filter_tree",
    "tree_to_dicts",
]
