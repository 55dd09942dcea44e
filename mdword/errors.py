# mdword/errors.py


class MdwordError(Exception):
    """所有文档转换错误的基类。"""


class MarkdownParseError(MdwordError):
    """整个 Markdown 文档无法解析。生成调用应当失败，而不是输出空文档。"""


class DocumentRenderError(MdwordError):
    """python-docx 序列化阶段失败。"""


class ConfigurationError(MdwordError):
    """config.yaml 存在但内容无效。"""
