"""配置模块测试

测试 TreeSettings / ColumnSettings 默认值、环境变量、校验，以及 YAML 加载
"""

import pytest
from pydantic import ValidationError

from ytree.config import (
    AppSettings,
    ColumnSettings,
    ConfigLoader,
    LoggingSettings,
    TreeSettings,
    load_yaml_config,
)


SETTINGS_YAML = """
tree:
  separator: "|"
  default_root_alias: "menu"
  with_translations: true
  columns:
    order: "sort_order"
    depth: "depth"
logging:
  level: "DEBUG"
"""


class TestTreeSettings:
    """树形配置"""

    def test_defaults(self):
        settings = TreeSettings()
        assert settings.separator == "/"
        assert settings.default_root_alias == "root"
        assert settings.with_translations is False
        assert settings.check_stale is True
        assert settings.parsed_id_type is int

    def test_str_id_type(self):
        assert TreeSettings(id_type="str").parsed_id_type is str

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("YTREE_TREE_SEPARATOR", ":")
        monkeypatch.setenv("YTREE_TREE_WITH_TRANSLATIONS", "true")

        settings = TreeSettings()
        assert settings.separator == ":"
        assert settings.with_translations is True

    @pytest.mark.parametrize("separator", ["", "a", "1"])
    def test_invalid_separator(self, separator):
        with pytest.raises(ValidationError):
            TreeSettings(separator=separator)

    def test_invalid_id_type(self):
        with pytest.raises(ValidationError):
            TreeSettings(id_type="uuid")


class TestColumnSettings:
    """列名绑定"""

    def test_default_mapping(self):
        mapping = ColumnSettings().as_mapping()
        assert mapping == {
            "id": "id",
            "parent_id": "parent_id",
            "path": "path",
            "real_path": "real_path",
            "order": "position",
            "depth": "level",
            "alias": "alias",
        }

    def test_override(self):
        mapping = ColumnSettings(order="sort_order", parent_id="pid").as_mapping()
        assert mapping["order"] == "sort_order"
        assert mapping["parent_id"] == "pid"
        assert mapping["path"] == "path"


class TestConfigLoader:
    """YAML 加载"""

    def setup_method(self):
        ConfigLoader.clear_cache()

    def teardown_method(self):
        ConfigLoader.clear_cache()

    def test_load_section(self, temp_file):
        path = temp_file("tree_section.yaml", SETTINGS_YAML)
        settings = load_yaml_config(path, TreeSettings, section="tree")

        assert settings.separator == "|"
        assert settings.default_root_alias == "menu"
        assert settings.with_translations is True
        assert settings.columns.order == "sort_order"
        assert settings.columns.depth == "depth"

    def test_overrides(self, temp_file):
        path = temp_file("tree_overrides.yaml", SETTINGS_YAML)
        settings = load_yaml_config(path, TreeSettings, section="tree", with_translations=False)
        assert settings.with_translations is False

        # 覆盖参数不影响缓存
        assert ConfigLoader.load(path)["tree"]["with_translations"] is True

    def test_load_app_settings(self, temp_file):
        path = temp_file("app.yaml", SETTINGS_YAML)
        settings = load_yaml_config(path, AppSettings)

        assert settings.tree.separator == "|"
        assert isinstance(settings.logging, LoggingSettings)
        assert settings.logging.level == "DEBUG"

    def test_env_overrides_yaml(self, temp_file, monkeypatch):
        """环境变量优先于 YAML，YAML 中其他键仍然生效"""
        monkeypatch.setenv("YTREE_TREE_SEPARATOR", ":")
        path = temp_file("env_over_yaml.yaml", SETTINGS_YAML)

        settings = load_yaml_config(path, TreeSettings, section="tree")
        assert settings.separator == ":"
        assert settings.default_root_alias == "menu"

    def test_overrides_beat_env(self, temp_file, monkeypatch):
        monkeypatch.setenv("YTREE_TREE_SEPARATOR", ":")
        path = temp_file("override_over_env.yaml", SETTINGS_YAML)

        settings = load_yaml_config(path, TreeSettings, section="tree", separator="#")
        assert settings.separator == "#"

    def test_env_overrides_nested_yaml(self, temp_file, monkeypatch):
        """AppSettings 中的子配置同样以环境变量为准"""
        monkeypatch.setenv("YTREE_TREE_SEPARATOR", ":")
        monkeypatch.setenv("YTREE_COLUMN_ORDER", "seq")
        path = temp_file("nested_env.yaml", SETTINGS_YAML)

        settings = load_yaml_config(path, AppSettings)
        assert settings.tree.separator == ":"
        assert settings.tree.default_root_alias == "menu"
        assert settings.tree.columns.order == "seq"
        assert settings.tree.columns.depth == "depth"
        assert settings.logging.level == "DEBUG"

    def test_missing_section(self, temp_file):
        path = temp_file("no_tree.yaml", "logging:\n  level: INFO\n")
        settings = load_yaml_config(path, TreeSettings, section="tree")
        assert settings.separator == "/"

    def test_empty_file(self, temp_file):
        path = temp_file("empty.yaml", "")
        assert ConfigLoader.load(path) == {}

    def test_cache_and_reload(self, temp_file):
        path = temp_file("cached.yaml", "tree:\n  separator: '|'\n")
        first = ConfigLoader.load(path)
        assert ConfigLoader.load(path) is first
        assert path in ConfigLoader.get_cached_paths()

        with open(path, "w", encoding="utf-8") as f:
            f.write("tree:\n  separator: ':'\n")
        assert ConfigLoader.load(path)["tree"]["separator"] == "|"
        assert ConfigLoader.reload(path)["tree"]["separator"] == ":"

    def test_base_dir(self, temp_dir, temp_file):
        temp_file("relative.yaml", "tree:\n  check_stale: false\n")
        settings = load_yaml_config("relative.yaml", TreeSettings, base_dir=temp_dir, section="tree")
        assert settings.check_stale is False

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load("missing.yaml", base_dir=temp_dir)
