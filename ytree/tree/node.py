"""树节点记录

核心算法与存储后端之间按值传递的节点数据，不持有任何 ORM 对象的引用。
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


NodeId = Union[int, str]

# 逻辑字段名，存储后端通过 ColumnSettings 映射到实际列名
TREE_FIELDS = ("id", "parent_id", "path", "real_path", "depth", "order", "alias")


class NodeState(str, Enum):
    """节点状态

        DETACHED → POSITIONED ⇄ MOVING

    - DETACHED: 尚未持久化（id 为 None）
    - POSITIONED: 已持久化，path/depth/order 有效
    - MOVING: 移动操作进行中，只出现在 TreeMutator 的调试日志里
    """

    DETACHED = "detached"
    POSITIONED = "positioned"
    MOVING = "moving"


@dataclass
class TreeNode:
    """树节点

    Attributes:
        id: 主键，未持久化时为 None
        parent_id: 父节点 ID，根节点为 None
        path: 祖先 ID 链（如 "/0/1/5/"）
        real_path: 祖先别名链（如 "root/docs/api"）
        depth: 层级，根节点为 0
        order: 同级排序，从 0 开始
        alias: 别名
        extra: 存储后端附带的其他字段（如预加载的 translations）
        children: 子节点列表，只由 TreeBuilder 填充

    使用示例:
        node = TreeNode(alias="docs", extra={"title": "文档"})
        node.state          # NodeState.DETACHED

        node = service.make_last_child_of(node, parent_id=1)
        node.state          # NodeState.POSITIONED
        node.path           # "/0/1/"
    """

    id: Optional[NodeId] = None
    parent_id: Optional[NodeId] = None
    path: Optional[str] = None
    real_path: Optional[str] = None
    depth: int = 0
    order: int = 0
    alias: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    children: List["TreeNode"] = field(default_factory=list, repr=False, compare=False)

    @property
    def state(self) -> NodeState:
        return NodeState.DETACHED if self.id is None else NodeState.POSITIONED

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def tree_fields(self) -> Dict[str, Any]:
        """返回逻辑字段字典（不含 extra 和 children）"""
        return {name: getattr(self, name) for name in TREE_FIELDS}

    def copy(self) -> "TreeNode":
        """复制节点（不含 children）"""
        return TreeNode(
            extra=copy.deepcopy(self.extra),
            **self.tree_fields(),
        )

    def to_dict(self, include_children: bool = True) -> Dict[str, Any]:
        """转换为字典，extra 字段平铺到顶层

        Args:
            include_children: 是否递归包含 children
        """
        data = dict(self.extra)
        data.update(self.tree_fields())
        if include_children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


__all__ = [
    "NodeId",
    "NodeState",
    "TreeNode",
    "TREE_FIELDS",
]
