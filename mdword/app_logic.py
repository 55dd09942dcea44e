# mdword/app_logic.py
import logging
from typing import Callable, Literal, Optional, Tuple

from pydantic import BaseModel

from .classifier import classify
from .config import Settings, get_settings
from .doc_builder import assemble
from .doc_generator import create_document
from .errors import MdwordError
from .md_parser import parse_markdown
from .source_preprocessor import preprocess

logger = logging.getLogger(__name__)


class GenerationOptions(BaseModel):
    """单次转换的选项：Markdown 来源、是否转换 CSV/TSV 表格、是否修复过度转义。"""
    origin: Literal['gemini', 'chatgpt'] = 'gemini'
    csv_tables: bool = False
    clean_escapes: bool = False


def markdown_to_docx(markdown: str, options: Optional[GenerationOptions] = None,
                     settings: Optional[Settings] = None) -> bytes:
    """
    预处理 -> 解析 -> 分类 -> 组装 -> 生成 的完整流水线。

    Args:
        markdown (str): AI 助手输出的 Markdown 文本。
        options (Optional[GenerationOptions]): 转换选项，默认按 Gemini 来源处理。
        settings (Optional[Settings]): 版式配置，默认读取 config.yaml。

    Returns:
        bytes: .docx 文件内容。

    Raises:
        MarkdownParseError: 整个文档无法解析。
        DocumentRenderError: DOCX 序列化失败。
    """
    options = options or GenerationOptions()
    settings = settings or get_settings()
    source = preprocess(markdown, origin=options.origin, csv_tables=options.csv_tables,
                        clean=options.clean_escapes)
    blocks = classify(parse_markdown(source))
    logger.debug("分类得到 %d 个块", len(blocks))
    return create_document(assemble(blocks, settings), settings)


def generate_document_from_markdown(
        markdown: str,
        options: Optional[GenerationOptions] = None,
        log_callback: Optional[Callable[[str], None]] = None
) -> Tuple[Optional[bytes], str]:
    """
    协调文档生成流程，并把进度消息实时推送给回调函数。

    Args:
        markdown (str): 输入的 Markdown 文本。
        options (Optional[GenerationOptions]): 转换选项。
        log_callback (Optional[Callable[[str], None]]): 用于流式日志记录的回调函数。

    Returns:
        Tuple[Optional[bytes], str]: 文档字节流 (失败时为 None) 和完整日志。
    """
    log_stream = []

    def log(message: str):
        log_stream.append(message)
        if log_callback:
            log_callback(message)

    options = options or GenerationOptions()
    log(f"🚀 开始转换 ({options.origin}, {len(markdown)} 个字符)...")

    if not markdown.strip():
        log("❌ 输入为空，中止文档生成。")
        return None, "\n".join(log_stream)

    try:
        docx_bytes = markdown_to_docx(markdown, options)
    except MdwordError as e:
        logger.exception("文档生成失败")
        log(f"❌ 文档生成失败: {type(e).__name__}: {e}")
        return None, "\n".join(log_stream)

    log(f"✅ DOCX 文档生成完毕 ({len(docx_bytes)} 字节)。")
    return docx_bytes, "\n".join(log_stream)
