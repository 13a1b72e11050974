"""
日志工具模块

库内部每个模块用 get_logger("ytree.<子模块>") 取日志器，只输出 debug / warning，
是否落到控制台或文件由使用方调用 setup_logger / setup_root_logger 决定。
"""

import inspect
import logging
import os
import time
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ytree.config import LoggingSettings


# 库的根日志器名称，简写名称都挂在它下面
ROOT_NAME = "ytree"

DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
SQL_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class MicrosecondFormatter(logging.Formatter):
    """时间戳精确到微秒，便于对齐同一事务内的多次写入"""

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        s = time.strftime(datefmt or "%Y-%m-%d %H:%M:%S", ct)
        return "%s.%06d" % (s, (record.created - int(record.created)) * 1000000)


def create_formatter(
    log_format: str = None,
    datefmt: str = "%Y-%m-%d %H:%M:%S",
    use_microseconds: bool = True
) -> logging.Formatter:
    fmt = log_format or DEFAULT_LOG_FORMAT
    formatter_class = MicrosecondFormatter if use_microseconds else logging.Formatter
    return formatter_class(fmt, datefmt=datefmt)


def _file_handler(log_file: str, formatter: logging.Formatter) -> logging.Handler:
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    name: str = None,
    level: str = "INFO",
    log_file: str = None,
    log_format: str = None,
    console: bool = True,
    use_microseconds: bool = True,
    propagate: bool = True,
) -> logging.Logger:
    """配置并返回日志记录器，已有的处理器会被替换

    Args:
        name: 日志记录器名称，None 为根日志器
        level: 日志级别，无法识别时使用 INFO
        log_file: 日志文件路径，目录不存在时自动创建
        log_format: 日志格式，默认 DEFAULT_LOG_FORMAT
        console: 是否输出到控制台
        use_microseconds: 是否使用微秒精度时间戳
        propagate: 是否传播到父日志器

    使用示例:
        from ytree.log import setup_logger

        # 查看树形操作的移位、子孙重写日志
        setup_logger("ytree.tree", level="DEBUG", log_file="logs/tree.log")
    """
    _logger = logging.getLogger(name)
    _logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    _logger.propagate = propagate
    _logger.handlers.clear()

    formatter = create_formatter(log_format, use_microseconds=use_microseconds)
    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        _logger.addHandler(console_handler)
    if log_file:
        _logger.addHandler(_file_handler(log_file, formatter))

    return _logger


def setup_root_logger(
    level: str = "INFO",
    log_file: str = None,
    console: bool = True,
    use_microseconds: bool = True,
    config: Optional["LoggingSettings"] = None,
) -> logging.Logger:
    """配置根日志器，ytree.* 日志器都会继承它的处理器

    传入 config（LoggingSettings）时忽略 level / log_file / console 参数；
    config.sql_log_enabled 为真时 SQLAlchemy 的 SQL 日志单独输出，不传播到根日志器。

    使用示例:
        setup_root_logger(level="INFO", log_file="logs/app.log")
        setup_root_logger(config=settings.logging)
    """
    if config is not None:
        level = config.level
        log_file = config.file_path or None
        console = config.enable_console

        if config.sql_log_enabled:
            setup_logger(
                name="sqlalchemy.engine",
                level=config.sql_log_level,
                log_file=config.sql_log_file_path or None,
                log_format=SQL_LOG_FORMAT,
                console=False,
                propagate=False,
            )

    return setup_logger(
        name=None,
        level=level,
        log_file=log_file,
        console=console,
        use_microseconds=use_microseconds,
        propagate=False,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """获取日志记录器

    - 不传参数：使用调用模块的 __name__
    - 不含点号的简写：挂到 ytree 下（"tree" -> "ytree.tree"）
    - 其他名称原样使用（"sqlalchemy.engine"）
    """
    if name is None:
        frame = inspect.currentframe()
        caller = frame.f_back if frame is not None else None
        name = caller.f_globals.get("__name__", ROOT_NAME) if caller is not None else ROOT_NAME
    elif name != ROOT_NAME and "." not in name:
        name = f"{ROOT_NAME}.{name}"

    return logging.getLogger(name)
