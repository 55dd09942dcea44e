# mdword/classifier.py
import logging
from typing import List, Optional

from .schemas import (Block, BlockquoteBlock, CodeBlock, EquationBlock, HeadingBlock, ListBlock, ListItemBlock,
                      MdNode, ParagraphBlock, TableBlock, ThematicBreakBlock)

logger = logging.getLogger(__name__)

INLINE_TYPES = {'text', 'strong', 'emphasis', 'delete', 'link', 'inlineCode', 'inlineMath', 'break', 'image'}


def _is_blank(node: MdNode) -> bool:
    return (node.type == 'text' and not (node.value or '').strip()) or node.type == 'break'


def math_only_latex(paragraph: MdNode) -> Optional[str]:
    """段落只包含一个行内公式 (忽略空白文本) 时返回其 LaTeX，否则返回 None。"""
    meaningful = [child for child in paragraph.children if not _is_blank(child)]
    if len(meaningful) == 1 and meaningful[0].type == 'inlineMath':
        return meaningful[0].value or ''
    return None


def _classify_table(node: MdNode) -> Optional[TableBlock]:
    rows = [[cell.children for cell in row.children] for row in node.children if row.type == 'tableRow']
    if not rows:
        return None
    width = max(len(row) for row in rows)
    # 不规则的行用空单元格补齐，而不是丢弃
    padded = [row + [[] for _ in range(width - len(row))] for row in rows]
    align = [(a or 'left') for a in (node.align or [])][:width]
    align += ['left'] * (width - len(align))
    return TableBlock(header=padded[0], align=align, rows=padded[1:])


def _classify_item(node: MdNode) -> ListItemBlock:
    return ListItemBlock(blocks=classify(node.children))


def _classify_node(node: MdNode) -> Optional[Block]:
    """把单个非列表节点映射为分类块。"""
    if node.type == 'paragraph':
        latex = math_only_latex(node)
        if latex is not None:
            return EquationBlock(latex=latex)
        return ParagraphBlock(children=node.children)
    if node.type == 'heading':
        return HeadingBlock(depth=node.depth or 1, children=node.children)
    if node.type == 'math':
        return EquationBlock(latex=node.value or '')
    if node.type == 'code':
        return CodeBlock(text=node.value or '')
    if node.type == 'thematicBreak':
        return ThematicBreakBlock()
    if node.type == 'blockquote':
        return BlockquoteBlock(blocks=classify(node.children))
    if node.type == 'table':
        return _classify_table(node)
    if node.type == 'html':
        if not (node.value or '').strip():
            return None
        return ParagraphBlock(children=[MdNode(type='text', value=node.value.strip())])
    if node.type in INLINE_TYPES:
        return ParagraphBlock(children=[node])
    logger.debug("跳过无法分类的节点: %s", node.type)
    return None


def classify(nodes: List[MdNode]) -> List[Block]:
    """
    单次前向遍历 Markdown AST，输出分类块。

    - 仅含一个行内公式的段落提升为 EquationBlock；
    - 相邻且有序性相同的列表合并为一个列表 (保留第一个列表的起始编号)；
    - 列表仍处于打开状态时，紧随其后的公式块和代码块挂到最后一个列表项末尾；
    - 其他任何块都会先把累积的列表输出。

    Args:
        nodes (List[MdNode]): 同一层级的 Markdown 节点。

    Returns:
        List[Block]: 分类后的块序列。
    """
    blocks: List[Block] = []
    pending: Optional[ListBlock] = None

    def flush():
        nonlocal pending
        if pending is not None and pending.items:
            blocks.append(pending)
        pending = None

    for node in nodes:
        if node.type == 'list':
            items = [_classify_item(child) for child in node.children if child.type == 'listItem']
            ordered = bool(node.ordered)
            if pending is not None and pending.ordered == ordered:
                pending.items.extend(items)
                continue
            flush()
            pending = ListBlock(ordered=ordered, start=node.start if node.start is not None else 1, items=items)
            continue

        block = _classify_node(node)
        if block is None:
            continue
        if pending is not None and pending.items and isinstance(block, (EquationBlock, CodeBlock)):
            pending.items[-1].blocks.append(block)
            continue
        flush()
        blocks.append(block)

    flush()
    return blocks
