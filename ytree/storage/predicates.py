"""存储查询条件

每种存储后端都理解的查询条件对象。内存后端直接调用 matches() 逐行判断，
SQL 后端把它们编译为 SQLAlchemy 表达式。

使用示例:
    from ytree.storage.predicates import ParentEquals, FieldCompare, all_of

    pred = all_of(ParentEquals(3), FieldCompare("order", ">=", 2))
    storage.increment_field(pred, "order", 1)
"""

import operator
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from ytree.tree.node import TreeNode


COMPARE_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class Predicate(ABC):
    """查询条件基类"""

    @abstractmethod
    def matches(self, node: "TreeNode", parent_ids: FrozenSet = frozenset()) -> bool:
        """判断节点是否满足条件

        Args:
            node: 待判断的节点
            parent_ids: 存储中所有被引用为 parent_id 的 ID（IsLeaf 使用）
        """
        pass


@dataclass(frozen=True)
class ParentEquals(Predicate):
    """parent_id 等于指定值，None 表示 IS NULL"""

    parent_id: Any = None

    def matches(self, node, parent_ids=frozenset()):
        if self.parent_id is None:
            return node.parent_id is None
        return node.parent_id == self.parent_id


@dataclass(frozen=True)
class PathPrefix(Predicate):
    """path 以指定前缀开头（左锚定匹配）"""

    prefix: str

    def matches(self, node, parent_ids=frozenset()):
        return (node.path or "").startswith(self.prefix)


@dataclass(frozen=True)
class FieldCompare(Predicate):
    """逻辑字段比较，op 为 == != < <= > >="""

    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in COMPARE_OPERATORS:
            raise ValueError(f"不支持的比较运算符: {self.op!r}")

    def matches(self, node, parent_ids=frozenset()):
        current = getattr(node, self.field)
        # 与 SQL 的 NULL 语义一致
        if self.value is None:
            if self.op == "==":
                return current is None
            if self.op == "!=":
                return current is not None
            return False
        if current is None:
            return False
        return COMPARE_OPERATORS[self.op](current, self.value)


@dataclass(frozen=True)
class IdIn(Predicate):
    """id 在给定集合中"""

    ids: Tuple[Any, ...] = ()

    def matches(self, node, parent_ids=frozenset()):
        return node.id in self.ids


@dataclass(frozen=True)
class IsLeaf(Predicate):
    """没有任何节点以它为父节点"""

    def matches(self, node, parent_ids=frozenset()):
        return node.id not in parent_ids


@dataclass(frozen=True)
class And(Predicate):
    predicates: Tuple[Predicate, ...] = ()

    def matches(self, node, parent_ids=frozenset()):
        return all(p.matches(node, parent_ids) for p in self.predicates)


@dataclass(frozen=True)
class Everything(Predicate):
    def matches(self, node, parent_ids=frozenset()):
        return True


def all_of(*predicates: Optional[Predicate]) -> Predicate:
    """组合多个条件，忽略 None，只剩一个时直接返回它"""
    flat = []
    for pred in predicates:
        if pred is None:
            continue
        if isinstance(pred, And):
            flat.extend(pred.predicates)
        else:
            flat.append(pred)
    if not flat:
        return Everything()
    if len(flat) == 1:
        return flat[0]
    return And(tuple(flat))


def needs_parent_ids(predicate: Predicate) -> bool:
    """条件中是否包含 IsLeaf"""
    if isinstance(predicate, IsLeaf):
        return True
    if isinstance(predicate, And):
        return any(needs_parent_ids(p) for p in predicate.predicates)
    return False


__all__ = [
    "Predicate",
    "ParentEquals",
    "PathPrefix",
    "FieldCompare",
    "IdIn",
    "IsLeaf",
    "And",
    "Everything",
    "all_of",
    "needs_parent_ids",
    "COMPARE_OPERATORS",
]
