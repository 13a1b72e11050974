"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 内存 SQLite 引擎与会话
- 内存 / SQLAlchemy 存储与 TreeService
- 每个测试重置的事务管理器
- 示例树

测试模型定义在 tests/helpers/tree_models.py
"""

import os
import tempfile
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ytree.config import TreeSettings
from ytree.orm.transaction import transaction_manager
from ytree.orm.transaction.manager import _current_transaction
from ytree.storage import MemoryStorage, SQLAlchemyStorage
from ytree.tree import TreeNode, TreeService

from tests.helpers.transaction_helpers import reset_transaction_manager
from tests.helpers.tree_models import Base, Category


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_file(temp_dir):
    """创建临时文件的工厂函数"""
    created_files = []

    def _create_file(filename: str, content: str = "") -> str:
        filepath = os.path.join(temp_dir, filename)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        created_files.append(filepath)
        return filepath

    yield _create_file

    for filepath in created_files:
        if os.path.exists(filepath):
            os.remove(filepath)


@pytest.fixture(autouse=True)
def fresh_transaction_manager():
    """每个测试使用重置后的事务管理器"""
    reset_transaction_manager(transaction_manager)
    transaction_manager.__init__()
    token = _current_transaction.set(None)
    yield transaction_manager
    _current_transaction.reset(token)


# ==================== 数据库 Fixtures ====================

@pytest.fixture
def memory_engine():
    """创建内存数据库引擎

    StaticPool + check_same_thread=False 保证所有操作使用同一个连接。
    关闭 pysqlite 的隐式事务，由 SQLAlchemy 显式发出 BEGIN，保存点才能正确工作。
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _explicit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(memory_engine):
    """已建表的 session 工厂"""
    Base.metadata.create_all(bind=memory_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=memory_engine)
    Base.metadata.drop_all(bind=memory_engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """创建数据库会话"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ==================== 存储 Fixtures ====================

@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def memory_service(memory_storage) -> TreeService:
    return TreeService(memory_storage, settings=TreeSettings())


@pytest.fixture
def sql_storage(db_session) -> SQLAlchemyStorage:
    return SQLAlchemyStorage(
        Category,
        db_session,
        translations="translations",
        extra_fields=("title",),
    )


@pytest.fixture
def sql_service(sql_storage) -> TreeService:
    return TreeService(sql_storage, settings=TreeSettings())


def build_sample_tree(svc: TreeService) -> dict:
    """构建示例树

        r1 (root)
        ├── a
        │   ├── a1
        │   │   └── a1x
        │   └── a2
        └── b
        r2
        r3

    ID 依次为 r1=1, r2=2, r3=3, a=4, b=5, a1=6, a2=7, a1x=8
    """
    r1 = svc.make_root(TreeNode(alias="r1"))
    r2 = svc.make_root(TreeNode(alias="r2"))
    r3 = svc.make_root(TreeNode(alias="r3"))
    a = svc.make_last_child_of(TreeNode(alias="a"), r1.id)
    b = svc.make_last_child_of(TreeNode(alias="b"), r1.id)
    a1 = svc.make_last_child_of(TreeNode(alias="a1"), a.id)
    a2 = svc.make_last_child_of(TreeNode(alias="a2"), a.id)
    a1x = svc.make_last_child_of(TreeNode(alias="a1x"), a1.id)
    return {
        "r1": r1, "r2": r2, "r3": r3,
        "a": a, "b": b, "a1": a1, "a2": a2, "a1x": a1x,
    }


@pytest.fixture
def sample_tree(memory_service):
    """内存存储上的示例树"""
    return build_sample_tree(memory_service)


@pytest.fixture
def sql_tree(sql_service):
    """SQLite 上的示例树"""
    return build_sample_tree(sql_service)
