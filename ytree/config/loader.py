"""配置加载器模块

提供从 YAML 文件加载配置的功能。

使用示例:
    from ytree.config import ConfigLoader, load_yaml_config, AppSettings

    # 加载原始字典
    config = ConfigLoader.load("config/settings.yaml")

    # 加载为 Pydantic Settings
    settings = load_yaml_config("config/settings.yaml", AppSettings)
    tree_settings = load_yaml_config("config/settings.yaml", TreeSettings, section="tree")
"""

import os
from typing import Any, Dict, Optional, Type, TypeVar

import yaml
from pydantic_settings import BaseSettings, EnvSettingsSource


T = TypeVar("T")


class ConfigLoader:
    """配置加载器

    从 YAML 文件加载配置，按绝对路径缓存。

    使用示例:
        config = ConfigLoader.load("config/settings.yaml")
        separator = config.get("tree", {}).get("separator", "/")

        config = ConfigLoader.reload("config/settings.yaml")
        ConfigLoader.clear_cache()
    """

    _cache: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _resolve(config_path: str, base_dir: Optional[str] = None) -> str:
        if os.path.isabs(config_path):
            return config_path
        if base_dir:
            return os.path.join(base_dir, config_path)
        return os.path.abspath(config_path)

    @classmethod
    def load(
        cls,
        config_path: str,
        base_dir: Optional[str] = None,
        use_cache: bool = True
    ) -> Dict[str, Any]:
        """加载配置文件

        Args:
            config_path: 配置文件路径（相对或绝对路径）
            base_dir: 基础目录，用于解析相对路径
            use_cache: 是否使用缓存

        Returns:
            配置字典

        Raises:
            FileNotFoundError: 配置文件不存在
            yaml.YAMLError: YAML 解析错误
        """
        abs_path = cls._resolve(config_path, base_dir)

        if use_cache and abs_path in cls._cache:
            return cls._cache[abs_path]

        if not os.path.exists(abs_path):
            raise FileNotFoundError(f"配置文件不存在: {abs_path}")

        with open(abs_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        if use_cache:
            cls._cache[abs_path] = config

        return config

    @classmethod
    def reload(cls, config_path: str, base_dir: Optional[str] = None) -> Dict[str, Any]:
        """重新加载配置文件（忽略缓存）"""
        cls._cache.pop(cls._resolve(config_path, base_dir), None)
        return cls.load(config_path, base_dir, use_cache=True)

    @classmethod
    def clear_cache(cls):
        """清除所有配置缓存"""
        cls._cache.clear()

    @classmethod
    def get_cached_paths(cls) -> list:
        """获取所有已缓存的配置文件路径"""
        return list(cls._cache.keys())


def load_yaml_config(
    config_path: str,
    settings_class: Type[T],
    base_dir: Optional[str] = None,
    section: Optional[str] = None,
    **overrides
) -> T:
    """加载 YAML 配置并创建 Pydantic Settings 实例

    Args:
        config_path: 配置文件路径
        settings_class: Pydantic Settings 类
        base_dir: 基础目录
        section: 只取 YAML 中的某一节（如 "tree"），None 表示整个文件
        **overrides: 覆盖配置的参数

    优先级: 覆盖参数 > 环境变量 > YAML > 默认值

    Returns:
        Settings 实例

    使用示例:
        settings = load_yaml_config(
            "config/settings.yaml",
            TreeSettings,
            section="tree",
            with_translations=True,  # 覆盖配置
        )
    """
    config = ConfigLoader.load(config_path, base_dir)

    if section is not None:
        config = config.get(section) or {}

    return _build_settings(settings_class, config, overrides)


def _build_settings(
    settings_class: Type[T],
    data: Dict[str, Any],
    overrides: Optional[Dict[str, Any]] = None,
) -> T:
    """按 覆盖参数 > 环境变量 > YAML > 默认值 的优先级创建配置实例

    pydantic-settings 中初始化参数优先于环境变量，所以 YAML 里环境变量
    已经提供的键要先去掉；嵌套的子配置递归处理，由子配置自己读取环境变量。
    """
    env_values = EnvSettingsSource(settings_class)()

    kwargs: Dict[str, Any] = {}
    for name, value in data.items():
        if name in env_values:
            continue
        field = settings_class.model_fields.get(name)
        annotation = field.annotation if field is not None else None
        if isinstance(value, dict) and isinstance(annotation, type) and issubclass(annotation, BaseSettings):
            value = _build_settings(annotation, value)
        kwargs[name] = value

    # 不修改 data，避免污染缓存
    kwargs.update(overrides or {})
    return settings_class(**kwargs)
