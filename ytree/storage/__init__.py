# -*- coding: utf-8 -*-
"""
树形存储模块

核心算法通过 TreeStorage 接口读写节点，与具体实体类型解耦。

使用示例:
    from ytree.storage import MemoryStorage, SQLAlchemyStorage

    # 测试或临时数据
    storage = MemoryStorage()

    # 数据库
    storage = SQLAlchemyStorage(Category, session, translations="translations")
"""

from .base import TreeStorage
from .predicates import (
    Predicate,
    ParentEquals,
    PathPrefix,
    FieldCompare,
    IdIn,
    IsLeaf,
    And,
    Everything,
    all_of,
)
from .backends import MemoryStorage, SQLAlchemyStorage

__all__ = [
    "TreeStorage",
    "Predicate",
    "ParentEquals",
    "PathPrefix",
    "FieldCompare",
    "IdIn",
    "IsLeaf",
    "And",
    "Everything",
    "all_of",
    "MemoryStorage",
    "SQLAlchemyStorage",
]
