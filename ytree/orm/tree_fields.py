"""树形结构字段定义

提供物化路径所需的列定义 Mixin，列名与 ColumnSettings 的默认绑定一致。

使用示例:
    from sqlalchemy import ForeignKey, Integer, String
    from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
    from ytree.orm import TreeFieldsMixin

    class Base(DeclarativeBase):
        pass

    class Category(Base, TreeFieldsMixin):
        __tablename__ = "category"

        id: Mapped[int] = mapped_column(Integer, primary_key=True)
        # parent_id 需要自行定义（外键目标表名因模型而异）
        parent_id = mapped_column(Integer, ForeignKey("category.id"), nullable=True)
        title = mapped_column(String(100))
"""

from typing import Optional
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column


class TreeFieldsMixin:
    """树形结构字段 Mixin

    - path: 祖先 ID 链（根节点为 "/0/"，子节点如 "/0/1/5/"）
    - real_path: 祖先别名链（如 "root/docs/api"）
    - level: 层级（根节点为 0）
    - position: 同级排序（从 0 开始）
    - alias: 节点别名

    注意：
    - parent_id 字段需要自行定义，或使用 TreeFieldsWithParentMixin
    - 列名不同的旧表可以不用此 Mixin，通过 ColumnSettings 绑定列名
    """

    # 祖先 ID 链，用于前缀匹配子孙节点
    path: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        default=None,
        index=True,
        comment="节点路径（如 /0/1/5/）"
    )

    real_path: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
        default=None,
        comment="别名路径（如 root/docs/api）"
    )

    level: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
        comment="节点层级（根节点为0）"
    )

    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
        comment="同级排序（从0开始）"
    )

    alias: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
        comment="节点别名"
    )


class TreeFieldsWithParentMixin(TreeFieldsMixin):
    """带 parent_id 的树形字段 Mixin

    parent_id 不带外键约束，需要约束时请使用 TreeFieldsMixin 并自行定义。
    """

    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=None,
        index=True,
        comment="父节点ID"
    )


__all__ = [
    "TreeFieldsMixin",
    "TreeFieldsWithParentMixin",
]
