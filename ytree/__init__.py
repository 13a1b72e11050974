"""
YTree - 物化路径树形结构库

提供路径编解码、树形查询、结构移动、森林组装，以及内存和 SQLAlchemy 存储后端
"""

from .version import __version__, __author__, __description__

# 导出树形核心
from .tree import (
    TreeNode,
    NodeState,
    PathCodec,
    TreeQuery,
    TreeMutator,
    TreeBuilder,
    TreeService,
    SiblingPosition,
    # 树形异常
    TreeError,
    ParentNotFound,
    SiblingNotFound,
    NodeNotFound,
    ModelNotFound,
    MoveCycle,
    MoveException,
    StaleNode,
    InvalidAlias,
    InvalidDepth,
)

# 导出存储后端
from .storage import (
    TreeStorage,
    MemoryStorage,
    SQLAlchemyStorage,
)

# 导出配置
from .config import (
    AppSettings,
    TreeSettings,
    ColumnSettings,
    ConfigLoader,
    load_yaml_config,
)

# 导出日志
from .log import get_logger, setup_logger, setup_root_logger

# 导出异常
from .exceptions import (
    ErrorCode,
    BusinessException,
)

# 导出ORM工具
from .orm import (
    TreeFieldsMixin,
    TreeFieldsWithParentMixin,
    transaction_manager,
    TransactionPropagation,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",

    "TreeNode",
    "NodeState",
    "PathCodec",
    "TreeQuery",
    "TreeMutator",
    "TreeBuilder",
    "TreeService",
    "SiblingPosition",
    "TreeError",
    "ParentNotFound",
    "SiblingNotFound",
    "NodeNotFound",
    "ModelNotFound",
    "MoveCycle",
    "MoveException",
    "StaleNode",
    "InvalidAlias",
    "InvalidDepth",

    "TreeStorage",
    "MemoryStorage",
    "SQLAlchemyStorage",

    "AppSettings",
    "TreeSettings",
    "ColumnSettings",
    "ConfigLoader",
    "load_yaml_config",

    "get_logger",
    "setup_logger",
    "setup_root_logger",

    "ErrorCode",
    "BusinessException",

    "TreeFieldsMixin",
    "TreeFieldsWithParentMixin",
    "transaction_manager",
    "TransactionPropagation",
]
