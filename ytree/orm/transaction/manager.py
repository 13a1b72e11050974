"""事务管理器

树形存储后端通过它获取事务边界
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Any, Callable, Generator, Optional, TypeVar

from sqlalchemy.orm import Session

from ytree.log import get_logger

from .propagation import TransactionPropagation
from .context import TransactionContext
from .exceptions import PropagationError, TransactionError

logger = get_logger("ytree.orm.transaction")

T = TypeVar('T')

# 当前事务上下文（线程/协程安全）
_current_transaction: ContextVar[Optional[TransactionContext]] = ContextVar(
    '_current_transaction', default=None
)


def get_current_transaction() -> Optional[TransactionContext]:
    """获取当前事务上下文

    Returns:
        当前的事务上下文，不在事务中则返回 None
    """
    return _current_transaction.get()


class TransactionManager:
    """事务管理器（单例）

    使用示例:
        from ytree.orm import transaction_manager as tm

        with tm.transaction(session) as tx:
            service.make_last_child_of(node, parent_id)
            service.make_root(other)
            # 两次移动一起提交

        tm.configure(session_factory=SessionLocal)

        @tm.transactional()
        def reorganize(service):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._session_factory: Optional[Callable[[], Session]] = None
        self._initialized = True

    def configure(self, session_factory: Callable[[], Session] = None) -> None:
        """配置未显式传入 session 时使用的 session 工厂"""
        if session_factory is not None:
            self._session_factory = session_factory

    def get_session(self) -> Session:
        """获取数据库 session"""
        if self._session_factory is None:
            raise TransactionError("未配置 session_factory，请传入 session 或调用 configure()")
        return self._session_factory()

    @property
    def current_transaction(self) -> Optional[TransactionContext]:
        return _current_transaction.get()

    def is_in_transaction(self) -> bool:
        """当前是否在活跃事务中"""
        tx = self.current_transaction
        return tx is not None and tx.is_active

    @contextmanager
    def transaction(
        self,
        session: Session = None,
        propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
        auto_commit: bool = True,
        savepoint_name: Optional[str] = None,
    ) -> Generator[TransactionContext, None, None]:
        """创建事务上下文

        Args:
            session: 数据库会话，不传则使用 configure() 配置的工厂
            propagation: 事务传播行为
            auto_commit: 是否自动提交
            savepoint_name: REQUIRES_NEW / NESTED 在外层事务中创建的保存点名称

        Yields:
            TransactionContext 对象

        注意:
            REQUIRED/MANDATORY 加入外层事务时，内层抛出的异常必须继续向外抛出，
            由外层回滚，否则外层可能提交一半的树形变更。
        """
        current = self.current_transaction

        if propagation in (TransactionPropagation.REQUIRED, TransactionPropagation.MANDATORY):
            if current and current.is_active:
                current.join()
                try:
                    yield current
                finally:
                    current.leave()
                return
            if propagation == TransactionPropagation.MANDATORY:
                raise PropagationError("MANDATORY", "必须在事务中执行")

        elif propagation in (TransactionPropagation.REQUIRES_NEW, TransactionPropagation.NESTED):
            if current and current.is_active:
                logger.debug(f"{propagation.name}: 在现有事务中创建 savepoint")
                with current.savepoint(savepoint_name):
                    yield current
                return
            if propagation == TransactionPropagation.NESTED:
                raise PropagationError("NESTED", "NESTED 需要一个活跃的外层事务")

        if session is None:
            session = self.get_session()

        ctx = TransactionContext(
            session=session,
            auto_commit=auto_commit,
            propagation=propagation,
        )

        token = _current_transaction.set(ctx)
        try:
            with ctx:
                yield ctx
        finally:
            _current_transaction.reset(token)

    def transactional(
        self,
        propagation: TransactionPropagation = TransactionPropagation.REQUIRED,
        session: Session = None,
    ):
        """事务装饰器

        使用示例:
            @tm.transactional()
            def move_many(service, moves):
                for node, parent_id in moves:
                    service.make_last_child_of(node, parent_id)
        """
        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> T:
                with self.transaction(session=session, propagation=propagation):
                    return func(*args, **kwargs)
            return wrapper

        return decorator


# 全局单例
transaction_manager = TransactionManager()
