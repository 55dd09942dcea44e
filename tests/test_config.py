"""
配置加载单元测试
"""
from pathlib import Path

import pytest

from mdword.config import Settings, load_settings
from mdword.errors import ConfigurationError

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config.yaml"


@pytest.mark.unit
class TestLoadSettings:
    """load_settings"""

    def test_missing_file_uses_defaults(self, tmp_path):
        """测试配置文件不存在时使用默认配置"""
        settings = load_settings(str(tmp_path / "missing.yaml"))

        assert settings == Settings()

    def test_repository_config_matches_defaults(self):
        """测试仓库自带的 config.yaml 与默认配置一致"""
        assert load_settings(str(REPO_CONFIG)) == Settings()

    def test_partial_override(self, tmp_path):
        """测试只覆盖部分字段"""
        path = tmp_path / "config.yaml"
        path.write_text("body_font:\n  name: Arial\n  size: 11\n", encoding="utf-8")

        settings = load_settings(str(path))

        assert settings.body_font.name == "Arial"
        assert settings.body_font.size == 11
        assert settings.code_font.name == "Courier New"

    def test_empty_file_uses_defaults(self, tmp_path):
        """测试空文件使用默认配置"""
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        assert load_settings(str(path)) == Settings()

    def test_invalid_yaml(self, tmp_path):
        """测试非法 YAML 抛出 ConfigurationError"""
        path = tmp_path / "config.yaml"
        path.write_text("body_font: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_settings(str(path))

    def test_invalid_field_type(self, tmp_path):
        """测试字段类型错误抛出 ConfigurationError"""
        path = tmp_path / "config.yaml"
        path.write_text("body_font:\n  size: big\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_settings(str(path))


@pytest.mark.unit
class TestSettings:
    """Settings 辅助方法"""

    def test_configured_heading_font(self):
        """测试已配置的标题字体"""
        font = Settings().heading_font(1)

        assert font.size == 24
        assert font.color == "2E74B5"

    def test_unconfigured_heading_font(self):
        """测试未配置的标题级别使用正文字号并加粗"""
        font = Settings().heading_font(5)

        assert font.size == 12
        assert font.bold is True
