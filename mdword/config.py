# mdword/config.py
import logging
from functools import lru_cache
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE = 'config.yaml'


class FontSettings(BaseModel):
    name: str = 'Calibri'
    size: float = 12
    bold: Optional[bool] = None
    color: Optional[str] = None


class PageSettings(BaseModel):
    # 默认 1 英寸页边距
    margins_cm: Dict[str, float] = Field(
        default_factory=lambda: {'top': 2.54, 'bottom': 2.54, 'left': 2.54, 'right': 2.54})


class LayoutSettings(BaseModel):
    """段落间距 (pt) 与缩进 (cm)。"""
    heading_spacing_before: float = 12
    heading_spacing_after: float = 6
    paragraph_spacing_after: float = 10
    equation_spacing: float = 10
    list_indent_cm: float = 1.27
    list_continuation_indent_cm: float = 2.54
    blockquote_indent_cm: float = 1.27
    ordered_marker: str = '{number}. '
    bullet_marker: str = '• '


class Settings(BaseModel):
    page: PageSettings = Field(default_factory=PageSettings)
    body_font: FontSettings = Field(default_factory=FontSettings)
    code_font: FontSettings = Field(default_factory=lambda: FontSettings(name='Courier New', size=10))
    headings: Dict[int, FontSettings] = Field(default_factory=lambda: {
        1: FontSettings(size=24, bold=True, color='2E74B5'),
        2: FontSettings(size=18, bold=True, color='2E74B5'),
        3: FontSettings(size=14, bold=True),
    })
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    output_filename: str = 'documento.docx'

    def heading_font(self, level: int) -> FontSettings:
        """未配置的标题级别使用正文字号并加粗。"""
        return self.headings.get(level) or FontSettings(name=self.body_font.name, size=self.body_font.size, bold=True)


def load_settings(path: str = CONFIG_FILE) -> Settings:
    """
    读取 YAML 配置文件。文件不存在时使用硬编码的默认配置。

    Raises:
        ConfigurationError: 文件存在但不是合法的 YAML 或不符合 Settings 结构。
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.info("⚠️ %s 未找到，使用默认配置。", path)
        return Settings()
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{path} 不是合法的 YAML: {e}") from e
    try:
        settings = Settings(**raw)
    except (ValidationError, TypeError) as e:
        raise ConfigurationError(f"{path} 格式不正确: {e}") from e
    logger.info("✅ %s 加载成功。", path)
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
