"""配置模块

提供配置管理功能：
- TreeSettings: 树形结构配置（分隔符、列名绑定、翻译预加载等）
- ColumnSettings: 逻辑字段与数据库列名的绑定
- AppSettings: 聚合配置，支持 YAML + 环境变量
- ConfigLoader: YAML 配置加载器

快速开始:
    from ytree.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/settings.yaml", AppSettings)
    service = TreeService(storage, settings=settings.tree)

配置优先级: load_yaml_config 覆盖参数 > 环境变量 > YAML 文件 > 默认值
"""

from .settings import (
    AppSettings,
    TreeSettings,
    ColumnSettings,
    LoggingSettings,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
)

__all__ = [
    # Settings Classes
    "AppSettings",
    "TreeSettings",
    "ColumnSettings",
    "LoggingSettings",

    # Config Loader
    "ConfigLoader",
    "load_yaml_config",
]
