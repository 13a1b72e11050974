"""事务状态枚举"""

from enum import Enum


class TransactionState(str, Enum):
    """事务状态

    状态转换:

        INACTIVE → ACTIVE → COMMITTED
                      ↓
                  ROLLED_BACK / FAILED
    """

    INACTIVE = "inactive"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        """是否为终态"""
        return self in (
            TransactionState.COMMITTED,
            TransactionState.ROLLED_BACK,
            TransactionState.FAILED,
        )

    def can_commit(self) -> bool:
        return self == TransactionState.ACTIVE

    def can_rollback(self) -> bool:
        return self in (TransactionState.ACTIVE, TransactionState.FAILED)
