"""ORM 模块

- TreeFieldsMixin / TreeFieldsWithParentMixin: 树形列定义
- transaction_manager: 事务管理
"""

from .tree_fields import TreeFieldsMixin, TreeFieldsWithParentMixin
from .transaction import (
    TransactionState,
    TransactionPropagation,
    TransactionContext,
    SavepointContext,
    TransactionManager,
    transaction_manager,
    get_current_transaction,
    TransactionError,
    PropagationError,
)

__all__ = [
    "TreeFieldsMixin",
    "TreeFieldsWithParentMixin",
    "TransactionState",
    "TransactionPropagation",
    "TransactionContext",
    "SavepointContext",
    "TransactionManager",
    "transaction_manager",
    "get_current_transaction",
    "TransactionError",
    "PropagationError",
]
