# -*- coding: utf-8 -*-
"""
SQLAlchemy 存储后端

在任意已映射的模型上实现树形存储接口，列名通过 ColumnSettings 绑定。

特点：
- 同级排序的移位使用一条 UPDATE ... SET col = col + delta
- 子孙查询使用 LIKE 前缀匹配（转义通配符）
- 叶子查询使用 NOT EXISTS 自关联子查询
- 事务通过 transaction_manager，默认加入调用方已开启的事务
- 批量 UPDATE 不同步会话中的对象，所有读取都使用 populate_existing 刷新
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import and_, func, inspect as sa_inspect, select, true, update
from sqlalchemy.orm import Session, aliased, selectinload

from ytree.config import ColumnSettings
from ytree.log import get_logger
from ytree.orm.transaction import (
    TransactionContext,
    TransactionPropagation,
    transaction_manager,
)
from ytree.tree.exceptions import NodeNotFound
from ytree.tree.node import NodeId, TreeNode, TREE_FIELDS

from ..base import TreeStorage
from ..predicates import (
    And,
    COMPARE_OPERATORS,
    Everything,
    FieldCompare,
    IdIn,
    IsLeaf,
    ParentEquals,
    PathPrefix,
    Predicate,
)

logger = get_logger("ytree.storage.sql")

LIKE_ESCAPE = "\\"


def escape_like(value: str, escape: str = LIKE_ESCAPE) -> str:
    """转义 LIKE 通配符"""
    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


class SQLAlchemyStorage(TreeStorage):
    """SQLAlchemy 存储后端

    Args:
        model: 已映射的模型类
        session: 数据库会话
        columns: 列名绑定，默认与 TreeFieldsMixin 一致
        translations: 翻译关系名（如 "translations"），不传则不支持预加载翻译
        extra_fields: 随节点读写的其他列（放入 TreeNode.extra）
        propagation: 树形操作的事务传播行为

    Example:
        storage = SQLAlchemyStorage(
            Category,
            session,
            columns=ColumnSettings(order="sort_order"),
            translations="translations",
            extra_fields=("title",),
        )
        service = TreeService(storage, settings=TreeSettings(with_translations=True))
    """

    def __init__(
        self,
        model: type,
        session: Session,
        columns: Optional[ColumnSettings] = None,
        translations: Optional[str] = None,
        extra_fields: Sequence[str] = (),
        propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
    ):
        self.model = model
        self.session = session
        self.columns = columns or ColumnSettings()
        self.propagation = propagation
        self._mapping = self.columns.as_mapping()

        mapper = sa_inspect(model)
        for logical, name in self._mapping.items():
            if name not in mapper.column_attrs:
                raise ValueError(f"模型 {model.__name__} 缺少 {logical} 对应的列: {name}")
        for name in extra_fields:
            if name not in mapper.column_attrs:
                raise ValueError(f"模型 {model.__name__} 没有列: {name}")
        if translations is not None and translations not in mapper.relationships:
            raise ValueError(f"模型 {model.__name__} 没有关系: {translations}")

        self._translations = translations
        self._extra_fields = tuple(extra_fields)

    @property
    def supports_translations(self) -> bool:
        return self._translations is not None

    # ==================== 读取 ====================

    def find_by_id(self, node_id: NodeId) -> Optional[TreeNode]:
        stmt = (
            select(self.model)
            .where(self._column("id") == node_id)
            .execution_options(populate_existing=True)
        )
        row = self.session.scalars(stmt).first()
        return self._to_node(row) if row is not None else None

    def scan(
        self,
        predicate: Predicate,
        order_by: Sequence[str] = (),
        with_translations: bool = False,
    ) -> List[TreeNode]:
        load_translations = with_translations and self.supports_translations
        stmt = (
            select(self.model)
            .where(self._compile(predicate))
            .order_by(*self._order_clauses(order_by))
            .execution_options(populate_existing=True)
        )
        if load_translations:
            stmt = stmt.options(selectinload(getattr(self.model, self._translations)))
        rows = self.session.scalars(stmt).all()
        return [self._to_node(row, load_translations) for row in rows]

    def count_where(self, predicate: Predicate) -> int:
        stmt = select(func.count()).select_from(self.model).where(self._compile(predicate))
        return self.session.scalar(stmt) or 0

    def max_field(self, predicate: Predicate, field: str) -> Optional[int]:
        stmt = select(func.max(self._column(field))).where(self._compile(predicate))
        return self.session.scalar(stmt)

    # ==================== 写入 ====================

    def increment_field(self, predicate: Predicate, field: str, delta: int) -> int:
        self.check_fields({field: None})
        column = self._column(field)
        stmt = (
            update(self.model)
            .where(self._compile(predicate))
            .values({column: column + delta})
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return result.rowcount

    def update_fields(self, node_id: NodeId, values: Dict[str, Any]) -> TreeNode:
        self.check_fields(values, TREE_FIELDS + self._extra_fields)
        if "id" in values:
            raise ValueError("不能修改节点 ID")
        if values:
            stmt = (
                update(self.model)
                .where(self._column("id") == node_id)
                .values({self._attr(name): value for name, value in values.items()})
                .execution_options(synchronize_session=False)
            )
            if self.session.execute(stmt).rowcount == 0:
                raise NodeNotFound(node_id)
        node = self.find_by_id(node_id)
        if node is None:
            raise NodeNotFound(node_id)
        return node

    def insert(self, node: TreeNode) -> NodeId:
        obj = self.model()
        for name, value in node.tree_fields().items():
            if name == "id" and value is None:
                continue
            setattr(obj, self._mapping[name], value)
        for name in self._extra_fields:
            if name in node.extra:
                setattr(obj, name, node.extra[name])
        self.session.add(obj)
        self.session.flush()
        node_id = getattr(obj, self._mapping["id"])
        logger.debug(f"插入节点 {node_id}: path={node.path}")
        return node_id

    @contextmanager
    def transaction(self, name: Optional[str] = None) -> Iterator[TransactionContext]:
        with transaction_manager.transaction(
            self.session,
            propagation=self.propagation,
            savepoint_name=name,
        ) as tx:
            yield tx

    # ==================== 内部方法 ====================

    def _attr(self, name: str):
        if name in self._mapping:
            return getattr(self.model, self._mapping[name])
        return getattr(self.model, name)

    def _column(self, field: str):
        return getattr(self.model, self._mapping[field])

    def _order_clauses(self, order_by: Sequence[str]) -> list:
        clauses = []
        for name in order_by:
            column = self._column(name.lstrip("-"))
            clauses.append(column.desc() if name.startswith("-") else column.asc())
        return clauses

    def _compile(self, predicate: Predicate):
        """把查询条件编译为 SQLAlchemy 表达式"""
        if isinstance(predicate, Everything):
            return true()
        if isinstance(predicate, ParentEquals):
            column = self._column("parent_id")
            if predicate.parent_id is None:
                return column.is_(None)
            return column == predicate.parent_id
        if isinstance(predicate, PathPrefix):
            return self._column("path").like(
                escape_like(predicate.prefix) + "%", escape=LIKE_ESCAPE
            )
        if isinstance(predicate, FieldCompare):
            column = self._column(predicate.field)
            if predicate.value is None and predicate.op in ("==", "!="):
                return column.is_(None) if predicate.op == "==" else column.is_not(None)
            return COMPARE_OPERATORS[predicate.op](column, predicate.value)
        if isinstance(predicate, IdIn):
            return self._column("id").in_(list(predicate.ids))
        if isinstance(predicate, IsLeaf):
            child = aliased(self.model)
            has_child = select(getattr(child, self._mapping["id"])).where(
                getattr(child, self._mapping["parent_id"]) == self._column("id")
            )
            return ~has_child.exists()
        if isinstance(predicate, And):
            return and_(*(self._compile(p) for p in predicate.predicates))
        raise TypeError(f"不支持的查询条件: {predicate!r}")

    def _to_node(self, row: Any, with_translations: bool = False) -> TreeNode:
        m = self._mapping
        node = TreeNode(
            id=getattr(row, m["id"]),
            parent_id=getattr(row, m["parent_id"]),
            path=getattr(row, m["path"]),
            real_path=getattr(row, m["real_path"]),
            depth=getattr(row, m["depth"]),
            order=getattr(row, m["order"]),
            alias=getattr(row, m["alias"]),
            extra={name: getattr(row, name) for name in self._extra_fields},
        )
        if with_translations:
            node.extra["translations"] = list(getattr(row, self._translations))
        return node


__all__ = ["SQLAlchemyStorage", "escape_like"]
