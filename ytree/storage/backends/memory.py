# -*- coding: utf-8 -*-
"""
内存存储后端

将节点存储在内存字典中，适用于：
- 单元测试
- 小规模、无需持久化的树（如启动时从配置文件构建的菜单）

特点：
- 自增主键
- 事务基于快照：最外层进入时复制全部数据，异常时整体恢复
- 线程安全（RLock 串行化读写）
"""

import copy
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from ytree.log import get_logger
from ytree.tree.exceptions import NodeNotFound
from ytree.tree.node import NodeId, TreeNode, TREE_FIELDS

from ..base import TreeStorage
from ..predicates import Predicate, needs_parent_ids

logger = get_logger("ytree.storage.memory")


class MemoryStorage(TreeStorage):
    """内存存储后端

    Args:
        nodes: 初始节点（必须带 id）
        translations: 翻译数据 {节点ID: [翻译记录, ...]}，传入后即支持预加载翻译

    Example:
        storage = MemoryStorage()
        service = TreeService(storage)

        root = service.make_root(TreeNode(alias="root"))
        docs = service.make_last_child_of(TreeNode(alias="docs"), root.id)
    """

    def __init__(
        self,
        nodes: Iterable[TreeNode] = (),
        translations: Optional[Dict[NodeId, List[Any]]] = None,
    ):
        self._rows: Dict[NodeId, TreeNode] = {}
        self._translations = translations
        self._lock = threading.RLock()
        self._tx_depth = 0
        self._next_id = 1
        for node in nodes:
            self._put(node)

    @property
    def supports_translations(self) -> bool:
        return self._translations is not None

    # ==================== 读取 ====================

    def find_by_id(self, node_id: NodeId) -> Optional[TreeNode]:
        with self._lock:
            row = self._rows.get(node_id)
            return row.copy() if row is not None else None

    def scan(
        self,
        predicate: Predicate,
        order_by: Sequence[str] = (),
        with_translations: bool = False,
    ) -> List[TreeNode]:
        with self._lock:
            result = [row.copy() for row in self._select(predicate)]

        # 多字段排序：按字段逆序依次做稳定排序
        for name in reversed(list(order_by)):
            descending = name.startswith("-")
            field = name.lstrip("-")
            result.sort(key=lambda n: _sort_value(getattr(n, field)), reverse=descending)

        if with_translations and self.supports_translations:
            for node in result:
                node.extra["translations"] = copy.deepcopy(self._translations.get(node.id, []))
        return result

    def count_where(self, predicate: Predicate) -> int:
        with self._lock:
            return sum(1 for _ in self._select(predicate))

    # ==================== 写入 ====================

    def increment_field(self, predicate: Predicate, field: str, delta: int) -> int:
        self.check_fields({field: None})
        with self._lock:
            affected = 0
            for row in list(self._select(predicate)):
                setattr(row, field, (getattr(row, field) or 0) + delta)
                affected += 1
            return affected

    def update_fields(self, node_id: NodeId, values: Dict[str, Any]) -> TreeNode:
        with self._lock:
            row = self._rows.get(node_id)
            if row is None:
                raise NodeNotFound(node_id)
            extra = {k: v for k, v in values.items() if k not in TREE_FIELDS}
            tree_values = {k: v for k, v in values.items() if k in TREE_FIELDS}
            if "id" in tree_values:
                raise ValueError("不能修改节点 ID")
            for name, value in tree_values.items():
                setattr(row, name, value)
            row.extra.update(copy.deepcopy(extra))
            return row.copy()

    def insert(self, node: TreeNode) -> NodeId:
        with self._lock:
            stored = self._put(node)
            logger.debug(f"插入节点 {stored.id}: path={stored.path}")
            return stored.id

    @contextmanager
    def transaction(self, name: Optional[str] = None) -> Iterator["MemoryStorage"]:
        with self._lock:
            outermost = self._tx_depth == 0
            if outermost:
                snapshot = (copy.deepcopy(self._rows), self._next_id)
            self._tx_depth += 1
            try:
                yield self
            except Exception:
                if outermost:
                    self._rows, self._next_id = snapshot
                    logger.debug(f"内存事务回滚: {name or '-'}")
                raise
            finally:
                self._tx_depth -= 1

    # ==================== 工具方法 ====================

    def all_nodes(self) -> List[TreeNode]:
        """返回全部节点副本（按 ID 排序）"""
        with self._lock:
            return [self._rows[k].copy() for k in sorted(self._rows, key=_sort_value)]

    def __len__(self) -> int:
        return len(self._rows)

    def _put(self, node: TreeNode) -> TreeNode:
        stored = node.copy()
        if stored.id is None:
            stored.id = self._next_id
        elif stored.id in self._rows:
            raise ValueError(f"节点 ID 已存在: {stored.id}")
        if isinstance(stored.id, int) and stored.id >= self._next_id:
            self._next_id = stored.id + 1
        self._rows[stored.id] = stored
        return stored

    def _select(self, predicate: Predicate) -> Iterator[TreeNode]:
        parent_ids = frozenset()
        if needs_parent_ids(predicate):
            parent_ids = frozenset(
                row.parent_id for row in self._rows.values() if row.parent_id is not None
            )
        return (row for row in self._rows.values() if predicate.matches(row, parent_ids))


def _sort_value(value: Any):
    # None 排在最前，与 SQLite 一致
    return (value is not None, value)


__all__ = ["MemoryStorage"]
