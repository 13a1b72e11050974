"""
配置模块
提供树形库的默认配置，业务项目可以继承并覆盖
"""

from typing import Dict, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class ColumnSettings(BaseSettings):
    """树形字段列名绑定

    逻辑字段名与数据库列名的映射，默认值与 TreeFieldsMixin 的列名一致。

    使用示例:
        from ytree.config import ColumnSettings

        columns = ColumnSettings(order="sort_order", depth="depth")
        columns.as_mapping()["order"]  # "sort_order"
    """
    id: str = Field(default="id", description="主键列名")
    parent_id: str = Field(default="parent_id", description="父节点列名")
    path: str = Field(default="path", description="路径列名")
    real_path: str = Field(default="real_path", description="别名路径列名")
    order: str = Field(default="position", description="同级排序列名")
    depth: str = Field(default="level", description="层级列名")
    alias: str = Field(default="alias", description="别名列名")

    def as_mapping(self) -> Dict[str, str]:
        """返回 逻辑字段名 -> 列名 的字典"""
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "path": self.path,
            "real_path": self.real_path,
            "order": self.order,
            "depth": self.depth,
            "alias": self.alias,
        }

    class Config:
        env_prefix = "YTREE_COLUMN_"


class TreeSettings(BaseSettings):
    """树形结构配置

    使用示例:
        from ytree.config import TreeSettings

        tree_config = TreeSettings(
            separator="/",
            default_root_alias="root",
            with_translations=True,   # 查询时预加载翻译关系（需存储后端支持）
        )

    配置说明:
        - separator: 路径分隔符，不能为空，也不能是字母或数字
        - default_root_alias: 根节点别名为空时使用的默认值
        - with_translations: 默认是否预加载翻译关系，单次调用可覆盖
        - check_stale: 移动前是否校验调用方持有的节点路径与库中一致
        - id_type: 主键类型，用于把路径中的 ID 片段还原为主键值
    """
    separator: str = Field(default="/", description="路径分隔符")
    default_root_alias: str = Field(default="root", description="根节点默认别名")
    with_translations: bool = Field(default=False, description="默认是否预加载翻译关系")
    check_stale: bool = Field(default=True, description="是否校验节点记录是否过期")
    id_type: Literal["int", "str"] = Field(default="int", description="主键类型")
    columns: ColumnSettings = Field(default_factory=ColumnSettings)

    @field_validator("separator")
    @classmethod
    def _check_separator(cls, value: str) -> str:
        if not value:
            raise ValueError("路径分隔符不能为空")
        if value.isalnum():
            raise ValueError(f"路径分隔符不能是字母或数字: {value!r}")
        return value

    @property
    def parsed_id_type(self) -> type:
        """主键类型对应的 Python 类型"""
        return int if self.id_type == "int" else str

    class Config:
        env_prefix = "YTREE_TREE_"


class LoggingSettings(BaseSettings):
    """日志配置

    使用示例:
        from ytree.config import LoggingSettings
        from ytree.log import setup_root_logger

        setup_root_logger(config=LoggingSettings(level="DEBUG"))
    """
    level: str = Field(default="INFO", description="日志级别")
    file_path: str = Field(default="", description="日志文件路径，为空则不写文件")
    enable_console: bool = Field(default=True, description="是否启用控制台输出")

    # SQL 日志配置
    sql_log_enabled: bool = Field(default=False, description="是否启用SQL日志")
    sql_log_file_path: str = Field(default="", description="SQL日志文件路径")
    sql_log_level: str = Field(default="DEBUG", description="SQL日志级别")

    class Config:
        env_prefix = "YTREE_LOG_"


class AppSettings(BaseSettings):
    """应用基础配置

    将各子配置类聚合为嵌套结构。

    配置优先级（从高到低）:
        load_yaml_config 的覆盖参数 > 环境变量 > YAML 配置文件 > 代码中的默认值

    内置子配置及环境变量前缀:
        - tree:      TreeSettings      (YTREE_TREE_)
        - logging:   LoggingSettings   (YTREE_LOG_)

    YAML 配置示例 (config/settings.yaml):
        tree:
          separator: "/"
          with_translations: false
          columns:
            order: "sort_order"
        logging:
          level: "INFO"
    """
    tree: TreeSettings = Field(default_factory=TreeSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        env_prefix = "YTREE_"
