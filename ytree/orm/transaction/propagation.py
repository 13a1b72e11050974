"""事务传播行为

树形存储在已有事务中被调用时如何处理事务边界
"""

from enum import Enum


class TransactionPropagation(str, Enum):
    """事务传播行为

    使用示例:
        storage = SQLAlchemyStorage(
            Category, session,
            propagation=TransactionPropagation.NESTED,
        )
        # 每次树形移动都在外层事务的保存点中执行，失败只回滚这一次移动
    """

    REQUIRED = "required"
    """有事务则加入，没有则新建（默认）

    加入外层事务时，移动失败抛出的异常需要外层回滚整个事务。
    """

    REQUIRES_NEW = "requires_new"
    """有事务时在保存点中执行，没有则新建"""

    MANDATORY = "mandatory"
    """必须由调用方先开启事务，否则抛出 PropagationError"""

    NESTED = "nested"
    """必须有外层事务，在其保存点中执行

    外层回滚会一起回滚保存点中的变更。
    """
