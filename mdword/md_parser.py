# mdword/md_parser.py
import logging
from typing import Any, Dict, List, Optional

import mistune

from .errors import MarkdownParseError
from .schemas import MdNode

logger = logging.getLogger(__name__)

# mistune 的 AST 模式 (renderer=None) 返回 token 字典列表
_markdown = mistune.create_markdown(renderer=None, plugins=['table', 'strikethrough', 'math'])

# token 类型 -> MdNode 类型 (只需改名、直接递归子节点的类型)
CONTAINER_TYPES = {
    'paragraph': 'paragraph',
    'block_text': 'paragraph',
    'block_quote': 'blockquote',
    'list_item': 'listItem',
    'emphasis': 'emphasis',
    'strong': 'strong',
    'strikethrough': 'delete',
}
# token 类型 -> MdNode 类型 (叶子节点，文本来自 raw)
LEAF_TYPES = {
    'text': 'text',
    'codespan': 'inlineCode',
    'inline_math': 'inlineMath',
    'block_math': 'math',
    'block_html': 'html',
    'inline_html': 'html',
}


def _convert_children(tokens: List[Dict[str, Any]]) -> List[MdNode]:
    nodes = []
    for token in tokens:
        node = _convert_token(token)
        if node is not None:
            nodes.append(node)
    return nodes


def _convert_table(token: Dict[str, Any]) -> MdNode:
    rows: List[MdNode] = []
    align: List[Optional[str]] = []
    for part in token.get('children', []):
        if part['type'] == 'table_head':
            align = [cell.get('attrs', {}).get('align') for cell in part.get('children', [])]
            rows.append(MdNode(type='tableRow', children=_convert_children(part.get('children', []))))
        elif part['type'] == 'table_body':
            for row in part.get('children', []):
                rows.append(MdNode(type='tableRow', children=_convert_children(row.get('children', []))))
    return MdNode(type='table', children=rows, align=align)


def _convert_token(token: Dict[str, Any]) -> Optional[MdNode]:
    token_type = token.get('type')
    attrs = token.get('attrs', {}) or {}
    children = token.get('children', []) or []

    if token_type in CONTAINER_TYPES:
        return MdNode(type=CONTAINER_TYPES[token_type], children=_convert_children(children))
    if token_type in LEAF_TYPES:
        return MdNode(type=LEAF_TYPES[token_type], value=token.get('raw', ''))
    if token_type == 'heading':
        return MdNode(type='heading', depth=attrs.get('level', 1), children=_convert_children(children))
    if token_type == 'list':
        return MdNode(type='list', ordered=bool(attrs.get('ordered')), start=attrs.get('start', 1),
                      children=_convert_children(children))
    if token_type == 'block_code':
        return MdNode(type='code', value=token.get('raw', '').rstrip('\n'))
    if token_type == 'thematic_break':
        return MdNode(type='thematicBreak')
    if token_type == 'table':
        return _convert_table(token)
    if token_type == 'table_cell':
        return MdNode(type='tableCell', children=_convert_children(children))
    if token_type == 'softbreak':
        return MdNode(type='text', value=' ')
    if token_type == 'linebreak':
        return MdNode(type='break')
    if token_type in ('link', 'image'):
        return MdNode(type=token_type, url=attrs.get('url'), children=_convert_children(children))
    if token_type == 'blank_line':
        return None
    if 'raw' in token:
        return MdNode(type='text', value=token['raw'])
    logger.debug("忽略不支持的 Markdown token: %s", token_type)
    return None


def parse_markdown(markdown: str) -> List[MdNode]:
    """
    使用 CommonMark + GFM 表格 + 数学扩展解析 Markdown，返回顶层 MdNode 列表。

    Raises:
        MarkdownParseError: 整个文档无法解析时抛出。
    """
    try:
        tokens = _markdown(markdown)
    except Exception as e:
        raise MarkdownParseError(f"Markdown 解析失败: {type(e).__name__}: {e}") from e
    if not isinstance(tokens, list):
        raise MarkdownParseError("Markdown 解析器未返回 AST 列表。")
    return _convert_children(tokens)
