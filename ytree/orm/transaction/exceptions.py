"""事务异常类"""


class TransactionError(Exception):
    """事务错误基类"""
    pass


class TransactionNotActiveError(TransactionError):
    """在非活跃事务上执行操作"""

    def __init__(self, message: str = "事务未激活"):
        super().__init__(message)


class TransactionAlreadyCommittedError(TransactionError):
    """事务已提交"""

    def __init__(self, message: str = "事务已提交，无法执行此操作"):
        super().__init__(message)


class TransactionAlreadyRolledBackError(TransactionError):
    """事务已回滚"""

    def __init__(self, message: str = "事务已回滚，无法执行此操作"):
        super().__init__(message)


class PropagationError(TransactionError):
    """事务传播行为不满足条件时抛出

    使用示例:
        raise PropagationError("MANDATORY", "必须在事务中执行")
    """

    def __init__(self, propagation: str, message: str):
        self.propagation = propagation
        super().__init__(f"[{propagation}] {message}")
