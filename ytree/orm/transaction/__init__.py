"""事务管理模块

- 嵌套事务（Savepoint）
- 事务传播行为（REQUIRED, REQUIRES_NEW, MANDATORY, NESTED）

使用示例:
    from ytree.orm import transaction_manager as tm

    with tm.transaction(session) as tx:
        service.make_first_child_of(node, parent_id)

        with tx.savepoint("import_menu"):
            service.make_root(other)
            # 失败只回滚到 import_menu
"""

from .state import TransactionState
from .exceptions import (
    TransactionError,
    TransactionNotActiveError,
    TransactionAlreadyCommittedError,
    TransactionAlreadyRolledBackError,
    PropagationError,
)
from .propagation import TransactionPropagation
from .context import (
    TransactionContext,
    SavepointContext,
)
from .manager import (
    TransactionManager,
    transaction_manager,
    get_current_transaction,
)

__all__ = [
    "TransactionState",

    "TransactionError",
    "TransactionNotActiveError",
    "TransactionAlreadyCommittedError",
    "TransactionAlreadyRolledBackError",
    "PropagationError",

    "TransactionPropagation",

    "TransactionContext",
    "SavepointContext",

    "TransactionManager",
    "transaction_manager",
    "get_current_transaction",
]
