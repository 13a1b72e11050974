"""日志模块

提供树形库使用的日志工具：
- 日志记录器获取（自动推断模块名）
- 日志配置（控制台 / 文件）
- 微秒精度格式化器

使用示例:
    from ytree.log import get_logger, setup_logger

    logger = get_logger()                 # 自动使用当前模块名
    logger = get_logger("tree")           # -> "ytree.tree"

    setup_logger("ytree", level="DEBUG", log_file="logs/tree.log")
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "get_logger",
]
