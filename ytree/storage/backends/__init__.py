# -*- coding: utf-8 -*-
"""
存储后端实现

- MemoryStorage: 内存存储（测试、临时树）
- SQLAlchemyStorage: 关系数据库存储
"""

from .memory import MemoryStorage
from .sql import SQLAlchemyStorage, escape_like

__all__ = [
    "MemoryStorage",
    "SQLAlchemyStorage",
    "escape_like",
]
