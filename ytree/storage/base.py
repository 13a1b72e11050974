# -*- coding: utf-8 -*-
"""
树形存储基础定义

包含:
- TreeStorage: 存储适配器抽象基类

核心算法只通过这组接口读写节点，不依赖任何具体的实体类型。
字段名一律使用逻辑名：id, parent_id, path, real_path, depth, order, alias。
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from ytree.tree.node import NodeId, TreeNode, TREE_FIELDS

from .predicates import Predicate


T = TypeVar("T")


class TreeStorage(ABC):
    """树形存储适配器抽象基类

    必须实现的方法:
        - find_by_id(): 按 ID 查询
        - scan(): 按条件查询
        - increment_field(): 批量增减整数字段
        - update_fields(): 更新单个节点的字段
        - insert(): 插入节点
        - count_where(): 按条件计数
        - transaction(): 事务边界

    可选覆盖的方法:
        - max_field(): 按条件取最大值（默认基于 scan 实现）
        - supports_translations: 是否支持预加载翻译关系（默认 False）

    Example:
        class MyStorage(TreeStorage):
            def find_by_id(self, node_id):
                ...
            # ... 实现其他必要方法
    """

    @property
    def supports_translations(self) -> bool:
        """是否支持预加载翻译关系，构造时确定，运行期不变"""
        return False

    # ==================== 必须实现的方法 ====================

    @abstractmethod
    def find_by_id(self, node_id: NodeId) -> Optional[TreeNode]:
        """按 ID 查询节点

        Returns:
            节点副本，不存在时返回 None
        """
        pass

    @abstractmethod
    def scan(
        self,
        predicate: Predicate,
        order_by: Sequence[str] = (),
        with_translations: bool = False,
    ) -> List[TreeNode]:
        """按条件查询节点

        Args:
            predicate: 查询条件
            order_by: 排序字段（逻辑名），"-" 前缀表示降序
            with_translations: 是否预加载翻译关系（放入 extra["translations"]）

        Returns:
            节点副本列表
        """
        pass

    @abstractmethod
    def increment_field(self, predicate: Predicate, field: str, delta: int) -> int:
        """批量增减整数字段（field = field + delta）

        Returns:
            int: 受影响的行数
        """
        pass

    @abstractmethod
    def update_fields(self, node_id: NodeId, values: Dict[str, Any]) -> TreeNode:
        """更新单个节点的字段

        Returns:
            更新后的节点

        Raises:
            NodeNotFound: 节点不存在
        """
        pass

    @abstractmethod
    def insert(self, node: TreeNode) -> NodeId:
        """插入节点

        node.id 为 None 时由存储分配主键。

        Returns:
            新节点的 ID
        """
        pass

    @abstractmethod
    def count_where(self, predicate: Predicate) -> int:
        """按条件计数"""
        pass

    @abstractmethod
    def transaction(self, name: Optional[str] = None) -> AbstractContextManager:
        """事务边界

        上下文内的所有写入一起提交，抛出异常时全部回滚。
        嵌套进入时加入外层事务。name 是发起事务的树形操作名，
        后端可用于保存点命名或日志。

        Example:
            with storage.transaction("make_root"):
                storage.increment_field(...)
                storage.update_fields(...)
        """
        pass

    # ==================== 可选覆盖的方法 ====================

    def max_field(self, predicate: Predicate, field: str) -> Optional[int]:
        """按条件取字段最大值，没有匹配行时返回 None"""
        values = [getattr(node, field) for node in self.scan(predicate)]
        values = [v for v in values if v is not None]
        return max(values) if values else None

    def atomic(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """在事务中执行函数"""
        with self.transaction():
            return func(*args, **kwargs)

    @staticmethod
    def check_fields(values: Dict[str, Any], allowed: Sequence[str] = TREE_FIELDS) -> None:
        """校验逻辑字段名"""
        unknown = [name for name in values if name not in allowed]
        if unknown:
            raise ValueError(f"未知的树形字段: {', '.join(unknown)}")


__all__ = ["TreeStorage"]
