"""事务管理器测试

测试 TransactionManager 的核心功能：
1. 基础事务测试（提交、回滚、状态转换）
2. 嵌套事务测试（Savepoint）
3. 传播行为测试（REQUIRED, REQUIRES_NEW, MANDATORY, NESTED）
4. 事务装饰器
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import scoped_session

from ytree.orm.transaction import (
    PropagationError,
    TransactionAlreadyCommittedError,
    TransactionContext,
    TransactionError,
    TransactionNotActiveError,
    TransactionPropagation,
    TransactionState,
    get_current_transaction,
)

from tests.helpers.transaction_helpers import is_transaction_manager_initialized
from tests.helpers.tree_models import Category


def add_category(session, alias):
    """添加一个根节点记录并 flush"""
    obj = Category(alias=alias, path="/0/", real_path=alias)
    session.add(obj)
    session.flush()
    return obj


@pytest.fixture
def tm(fresh_transaction_manager, session_factory):
    """配置了 scoped_session 的事务管理器，get_session() 始终返回同一个会话"""
    scope = scoped_session(session_factory)
    fresh_transaction_manager.configure(session_factory=scope)
    yield fresh_transaction_manager
    scope.remove()


def count_categories(tm):
    return tm.get_session().scalar(select(func.count()).select_from(Category))


# ==================== 基础事务测试 ====================

class TestBasicTransaction:
    """基础事务测试"""

    def test_transaction_normal_commit(self, tm):
        """测试正常提交"""
        with tm.transaction() as tx:
            add_category(tx.session, "commit")

        assert tx.state == TransactionState.COMMITTED
        assert count_categories(tm) == 1

    def test_transaction_rollback_on_exception(self, tm):
        """测试异常时自动回滚"""
        with pytest.raises(ValueError):
            with tm.transaction() as tx:
                add_category(tx.session, "rollback")
                raise ValueError("测试异常")

        assert tx.state == TransactionState.ROLLED_BACK
        assert count_categories(tm) == 0

    def test_transaction_manual_rollback(self, tm):
        """测试手动回滚"""
        with tm.transaction(auto_commit=False) as tx:
            add_category(tx.session, "manual")
            tx.rollback()
            # 幂等
            tx.rollback()

        assert count_categories(tm) == 0

    def test_commit_twice(self, tm):
        with tm.transaction() as tx:
            pass
        with pytest.raises(TransactionAlreadyCommittedError):
            tx.commit()
        with pytest.raises(TransactionAlreadyCommittedError):
            tx.rollback()

    def test_explicit_session(self, tm, db_session):
        """显式传入 session 时不使用工厂"""
        with tm.transaction(db_session) as tx:
            assert tx.session is db_session
            add_category(db_session, "explicit")

        assert count_categories(tm) == 1

    def test_get_current_transaction(self, tm):
        """测试获取当前事务"""
        assert get_current_transaction() is None

        with tm.transaction() as tx:
            assert get_current_transaction() is tx
            assert tm.current_transaction is tx

        assert get_current_transaction() is None

    def test_is_in_transaction(self, tm):
        assert tm.is_in_transaction() is False

        with tm.transaction():
            assert tm.is_in_transaction() is True

        assert tm.is_in_transaction() is False


class TestTransactionManagerSetup:
    """单例与配置"""

    def test_singleton(self, fresh_transaction_manager):
        from ytree.orm.transaction import TransactionManager

        assert TransactionManager() is fresh_transaction_manager
        assert is_transaction_manager_initialized(fresh_transaction_manager)

    def test_get_session_without_factory(self, fresh_transaction_manager):
        with pytest.raises(TransactionError):
            fresh_transaction_manager.get_session()

        with pytest.raises(TransactionError):
            with fresh_transaction_manager.transaction():
                pass

    def test_configure_keeps_factory(self, tm):
        factory = tm._session_factory
        tm.configure()
        assert tm._session_factory is factory

    def test_commit_requires_active(self, db_session):
        tx = TransactionContext(db_session)
        assert tx.state == TransactionState.INACTIVE
        with pytest.raises(TransactionNotActiveError):
            tx.commit()

    def test_repr(self, db_session):
        tx = TransactionContext(db_session)
        assert "inactive" in repr(tx)


# ==================== 嵌套事务（Savepoint）测试 ====================

class TestNestedTransaction:
    """嵌套事务（Savepoint）测试"""

    def test_savepoint_commit(self, tm):
        """测试保存点正常提交"""
        with tm.transaction() as tx:
            add_category(tx.session, "outer")
            with tx.savepoint("sp1") as sp:
                add_category(tx.session, "inner")
            assert sp.state == TransactionState.COMMITTED

        assert count_categories(tm) == 2

    def test_savepoint_rollback_not_affect_outer(self, tm):
        """测试保存点回滚不影响外层"""
        with tm.transaction() as tx:
            add_category(tx.session, "keep")

            with pytest.raises(ValueError):
                with tx.savepoint("sp1") as sp:
                    add_category(tx.session, "drop")
                    raise ValueError("Savepoint rollback")
            assert sp.state == TransactionState.ROLLED_BACK

        rows = tm.get_session().scalars(select(Category)).all()
        assert [row.alias for row in rows] == ["keep"]

    def test_multiple_savepoints(self, tm):
        """测试多层嵌套保存点"""
        with tm.transaction() as tx:
            add_category(tx.session, "u1")
            with tx.savepoint("sp1"):
                add_category(tx.session, "u2")
                with tx.savepoint("sp2"):
                    add_category(tx.session, "u3")

        assert count_categories(tm) == 3

    def test_auto_named_savepoint(self, tm):
        """测试自动命名保存点"""
        with tm.transaction() as tx:
            with tx.savepoint() as sp1:
                assert sp1.name == "sp_1"
                assert tx.open_savepoints == ["sp_1"]
            with tx.savepoint() as sp2:
                assert sp2.name == "sp_2"
            assert tx.open_savepoints == []

    def test_open_savepoints_nested(self, tm):
        with tm.transaction() as tx:
            with tx.savepoint("outer_sp"):
                with tx.savepoint("inner_sp"):
                    assert tx.open_savepoints == ["outer_sp", "inner_sp"]
                assert tx.open_savepoints == ["outer_sp"]

    def test_named_savepoint_from_propagation(self, tm):
        """NESTED 使用调用方给出的保存点名称"""
        with tm.transaction() as outer:
            with tm.transaction(
                propagation=TransactionPropagation.NESTED,
                savepoint_name="make_root",
            ):
                assert outer.open_savepoints == ["make_root"]

    def test_savepoint_requires_active(self, db_session):
        tx = TransactionContext(db_session)
        with pytest.raises(TransactionNotActiveError):
            with tx.savepoint():
                pass


# ==================== 传播行为测试 ====================

class TestTransactionPropagation:
    """传播行为测试"""

    def test_propagation_required_join_existing(self, tm):
        with tm.transaction() as outer:
            with tm.transaction(propagation=TransactionPropagation.REQUIRED) as inner:
                assert inner is outer
                assert outer.nesting_level == 2
            assert outer.nesting_level == 1
            assert outer.is_active

    def test_required_inner_error_rolls_back_outer(self, tm):
        with pytest.raises(ValueError):
            with tm.transaction() as tx:
                add_category(tx.session, "outer")
                with tm.transaction():
                    add_category(tx.session, "inner")
                    raise ValueError("内层失败")

        assert count_categories(tm) == 0

    def test_propagation_mandatory_requires_existing(self, tm):
        with pytest.raises(PropagationError) as exc_info:
            with tm.transaction(propagation=TransactionPropagation.MANDATORY):
                pass
        assert exc_info.value.propagation == "MANDATORY"
        assert str(exc_info.value).startswith("[MANDATORY]")

    def test_propagation_mandatory_with_existing(self, tm):
        with tm.transaction() as outer:
            with tm.transaction(propagation=TransactionPropagation.MANDATORY) as inner:
                assert inner is outer

    def test_propagation_requires_new_without_existing(self, tm):
        with tm.transaction(propagation=TransactionPropagation.REQUIRES_NEW) as tx:
            add_category(tx.session, "new")
        assert tx.state == TransactionState.COMMITTED
        assert count_categories(tm) == 1

    def test_propagation_requires_new_uses_savepoint(self, tm):
        with tm.transaction() as outer:
            add_category(outer.session, "outer")
            with pytest.raises(ValueError):
                with tm.transaction(propagation=TransactionPropagation.REQUIRES_NEW):
                    add_category(outer.session, "inner")
                    raise ValueError("内层失败")

        assert count_categories(tm) == 1

    def test_propagation_nested_creates_savepoint(self, tm):
        with tm.transaction() as outer:
            add_category(outer.session, "outer")
            with tm.transaction(propagation=TransactionPropagation.NESTED) as inner:
                assert inner is outer
                add_category(outer.session, "nested")

        assert count_categories(tm) == 2

    def test_propagation_nested_requires_existing(self, tm):
        with pytest.raises(PropagationError):
            with tm.transaction(propagation=TransactionPropagation.NESTED):
                pass


# ==================== 装饰器测试 ====================

class TestTransactionalDecorator:
    """事务装饰器测试"""

    def test_transactional_decorator_commits(self, tm):
        @tm.transactional()
        def create():
            add_category(tm.get_session(), "decorated")
            return "ok"

        assert create() == "ok"
        assert count_categories(tm) == 1

    def test_transactional_decorator_rollback_on_exception(self, tm):
        @tm.transactional()
        def create_and_fail():
            add_category(tm.get_session(), "decorated")
            raise ValueError("失败")

        with pytest.raises(ValueError):
            create_and_fail()
        assert count_categories(tm) == 0

    def test_transactional_with_propagation(self, tm):
        @tm.transactional(propagation=TransactionPropagation.MANDATORY)
        def must_join():
            return get_current_transaction()

        with pytest.raises(PropagationError):
            must_join()

        with tm.transaction() as tx:
            assert must_join() is tx
