"""事务上下文

一个 TransactionContext 对应一次真实的数据库事务。REQUIRED 加入外层事务时
只增减嵌套层级，由最外层负责提交；NESTED / REQUIRES_NEW 在外层事务中开保存点，
保存点以树形操作名命名（如 make_first_child_of），便于在日志中定位。
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional, TYPE_CHECKING

from sqlalchemy.orm import Session

from ytree.log import get_logger

from .state import TransactionState
from .propagation import TransactionPropagation
from .exceptions import (
    TransactionNotActiveError,
    TransactionAlreadyCommittedError,
    TransactionAlreadyRolledBackError,
)

if TYPE_CHECKING:
    from sqlalchemy.orm.session import SessionTransaction

logger = get_logger("ytree.orm.transaction")


class SavepointContext:
    """保存点

    包装 session.begin_nested()，失败时只撤销保存点之后的写入。
    """

    def __init__(self, name: str, nested: 'SessionTransaction'):
        self.name = name
        self._nested = nested
        self._state = TransactionState.ACTIVE

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == TransactionState.ACTIVE

    def release(self) -> None:
        """释放保存点，写入并入外层事务"""
        if not self.is_active:
            return
        try:
            self._nested.commit()
        except Exception:
            self._state = TransactionState.FAILED
            raise
        self._state = TransactionState.COMMITTED
        logger.debug(f"保存点 {self.name} 已释放")

    def rollback(self) -> None:
        """撤销保存点之后的写入"""
        if not self.is_active:
            return
        try:
            self._nested.rollback()
        except Exception as e:
            self._state = TransactionState.FAILED
            logger.error(f"保存点 {self.name} 回滚失败: {e}")
            raise
        self._state = TransactionState.ROLLED_BACK
        logger.debug(f"保存点 {self.name} 已回滚")


class TransactionContext:
    """事务上下文

    使用示例:
        with TransactionContext(session) as tx:
            storage.increment_field(ParentEquals(3), "order", 1)

            with tx.savepoint("make_root"):
                service.make_root(node)
                # 这里失败只撤销 make_root 的写入
    """

    def __init__(
        self,
        session: Session,
        auto_commit: bool = True,
        propagation: TransactionPropagation = None,
    ):
        self._session = session
        self._auto_commit = auto_commit
        self._propagation = propagation or TransactionPropagation.REQUIRED
        self._state = TransactionState.INACTIVE
        self._nesting_level = 0
        self._savepoint_counter = 0
        # 当前未结束的保存点名，由外到内
        self._open_savepoints: List[str] = []

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == TransactionState.ACTIVE

    @property
    def nesting_level(self) -> int:
        return self._nesting_level

    @property
    def propagation(self) -> TransactionPropagation:
        return self._propagation

    @property
    def open_savepoints(self) -> List[str]:
        return list(self._open_savepoints)

    # ==================== 生命周期 ====================

    def begin(self) -> 'TransactionContext':
        # SQLAlchemy 2.x session 首次执行时自动开启事务
        self._state = TransactionState.ACTIVE
        self._nesting_level = 1
        logger.debug("事务开始")
        return self

    def join(self) -> None:
        """内层 REQUIRED / MANDATORY 加入本事务"""
        self._nesting_level += 1
        logger.debug(f"加入现有事务 (level={self._nesting_level})")

    def leave(self) -> None:
        if self._nesting_level > 1:
            self._nesting_level -= 1

    def commit(self) -> None:
        if self._state == TransactionState.COMMITTED:
            raise TransactionAlreadyCommittedError()
        if self._state == TransactionState.ROLLED_BACK:
            raise TransactionAlreadyRolledBackError()
        if not self.is_active:
            raise TransactionNotActiveError(f"无法提交：事务状态为 {self._state}")

        try:
            self._session.commit()
        except Exception:
            self._state = TransactionState.FAILED
            raise
        self._state = TransactionState.COMMITTED
        self._nesting_level = 0
        logger.debug("事务提交成功")

    def rollback(self) -> None:
        """回滚事务（幂等）"""
        if self._state == TransactionState.COMMITTED:
            raise TransactionAlreadyCommittedError("无法回滚：事务已提交")
        if self._state not in (TransactionState.ACTIVE, TransactionState.FAILED):
            return

        try:
            self._session.rollback()
        except Exception as e:
            self._state = TransactionState.FAILED
            logger.error(f"事务回滚失败: {e}")
            raise
        self._state = TransactionState.ROLLED_BACK
        self._nesting_level = 0
        self._open_savepoints.clear()
        logger.debug("事务回滚成功")

    # ==================== Savepoint ====================

    @contextmanager
    def savepoint(self, name: Optional[str] = None) -> Iterator[SavepointContext]:
        """开一个保存点，正常退出时释放，异常时回滚后继续抛出

        Args:
            name: 保存点名称，不传则依次生成 sp_1, sp_2 ...
        """
        if not self.is_active:
            raise TransactionNotActiveError("无法创建保存点：事务未激活")

        self._savepoint_counter += 1
        name = name or f"sp_{self._savepoint_counter}"

        sp = SavepointContext(name, self._session.begin_nested())
        self._open_savepoints.append(name)
        logger.debug(f"创建保存点: {name}")
        try:
            yield sp
            sp.release()
        except Exception:
            sp.rollback()
            raise
        finally:
            if name in self._open_savepoints:
                self._open_savepoints.remove(name)

    # ==================== 上下文管理器 ====================

    def __enter__(self) -> 'TransactionContext':
        return self.begin()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.rollback()
            return False

        if self._auto_commit and self.is_active:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        return False

    def __repr__(self) -> str:
        return (
            f"TransactionContext("
            f"state={self._state.value}, "
            f"nesting_level={self._nesting_level})"
        )
