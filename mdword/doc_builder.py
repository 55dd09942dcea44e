# mdword/doc_builder.py
import logging
import re
from typing import List, Literal, Optional

from .config import Settings, get_settings
from .latex_converter import compile_latex
from .schemas import (AnyElement, AnyRun, Block, BlockquoteBlock, CodeBlock, DocumentModel, EquationBlock,
                      EquationRun, HeadingBlock, ListBlock, ListItemBlock, MdNode, PageSetup, ParagraphBlock,
                      ParagraphElement, ParagraphProperties, TableBlock, TableCellElement, TableElement, TextRun,
                      ThematicBreakBlock)

logger = logging.getLogger(__name__)

# 列表项中被误写成代码块的公式
MATH_LIKE_CODE = re.compile(r"[\\^_{}]")


class ParagraphProxy:
    """一个代理对象，用于对最新创建的段落进行链式操作。"""

    def __init__(self, paragraph: ParagraphElement):
        self._paragraph = paragraph

    @property
    def element(self) -> ParagraphElement:
        return self._paragraph

    def set_alignment(self, alignment: Literal['left', 'center', 'right']) -> 'ParagraphProxy':
        self._paragraph.properties.alignment = alignment
        return self

    def set_indent_cm(self, indent_cm: Optional[float]) -> 'ParagraphProxy':
        """设置左缩进 (厘米)。"""
        self._paragraph.properties.indent_left_cm = indent_cm
        return self

    def set_spacing(self, before: Optional[float] = None, after: Optional[float] = None) -> 'ParagraphProxy':
        self._paragraph.properties.spacing_before = before
        self._paragraph.properties.spacing_after = after
        return self

    def add_bottom_border(self) -> 'ParagraphProxy':
        self._paragraph.properties.border_bottom = True
        return self


class DocumentBuilder:
    """
    文档结构构建器。内部维护一个只追加的元素列表，
    组装器是唯一的写入者，构建完成后通过 get_document() 一次性取出。
    """

    def __init__(self):
        self.page_setup = PageSetup()
        self.elements: List[AnyElement] = []

    def _add_element(self, element: AnyElement):
        self.elements.append(element)

    def set_margins_cm(self, top: float, bottom: float, left: float, right: float) -> 'DocumentBuilder':
        """以厘米为单位，设置页面边距。"""
        self.page_setup.margins = {"top": top, "bottom": bottom, "left": left, "right": right}
        return self

    def add_paragraph(self, runs: Optional[List[AnyRun]] = None, heading_level: Optional[int] = None) -> ParagraphProxy:
        """添加一个新段落，并返回一个可链式操作的代理对象。"""
        element = ParagraphElement(runs=runs or [], properties=ParagraphProperties(heading_level=heading_level))
        self._add_element(element)
        return ParagraphProxy(element)

    def add_table(self, rows: List[List[TableCellElement]]) -> 'DocumentBuilder':
        self._add_element(TableElement(rows=rows))
        return self

    def extend(self, elements: List[AnyElement]) -> 'DocumentBuilder':
        for element in elements:
            self._add_element(element)
        return self

    def get_document(self) -> DocumentModel:
        """获取最终构建的文档模型。"""
        return DocumentModel(page_setup=self.page_setup, elements=self.elements)


# ==============================================================================
# 行内内容
# ==============================================================================
def inline_runs(nodes: List[MdNode], settings: Settings, bold: bool = False, italic: bool = False,
                strike: bool = False) -> List[AnyRun]:
    """把行内 Markdown 节点展开为文本 run 和公式 run。"""
    runs: List[AnyRun] = []

    def text_run(text: str, **extra) -> TextRun:
        return TextRun(text=text, bold=bold or None, italic=italic or None, strike=strike or None, **extra)

    for node in nodes:
        if node.type == 'text' or node.type == 'html':
            if node.value:
                runs.append(text_run(node.value))
        elif node.type == 'strong':
            runs.extend(inline_runs(node.children, settings, True, italic, strike))
        elif node.type == 'emphasis':
            runs.extend(inline_runs(node.children, settings, bold, True, strike))
        elif node.type == 'delete':
            runs.extend(inline_runs(node.children, settings, bold, italic, True))
        elif node.type == 'inlineCode':
            runs.append(text_run(node.value or '', font_name=settings.code_font.name,
                                 font_size=settings.code_font.size))
        elif node.type == 'inlineMath':
            runs.append(EquationRun(nodes=compile_latex(node.value or '')))
        elif node.type == 'break':
            runs.append(text_run(' '))
        else:
            runs.extend(inline_runs(node.children, settings, bold, italic, strike))
    return runs


# ==============================================================================
# 块级内容
# ==============================================================================
def _add_equation(builder: DocumentBuilder, latex: str, settings: Settings) -> ParagraphProxy:
    spacing = settings.layout.equation_spacing
    return builder.add_paragraph([EquationRun(nodes=compile_latex(latex), display=True)]) \
        .set_alignment('center').set_spacing(spacing, spacing)


def _add_code(builder: DocumentBuilder, text: str, settings: Settings) -> ParagraphProxy:
    run = TextRun(text=text, font_name=settings.code_font.name, font_size=settings.code_font.size)
    return builder.add_paragraph([run]).set_spacing(after=settings.layout.paragraph_spacing_after)


def _add_table(builder: DocumentBuilder, block: TableBlock, settings: Settings):
    def alignment(column: int) -> str:
        return block.align[column] if column < len(block.align) else 'left'

    rows = [[TableCellElement(runs=inline_runs(cell, settings, bold=True), alignment=alignment(j))
             for j, cell in enumerate(block.header)]]
    for row in block.rows:
        rows.append([TableCellElement(runs=inline_runs(cell, settings), alignment=alignment(j))
                     for j, cell in enumerate(row)])
    builder.add_table(rows)
    # 表格后的空段落
    builder.add_paragraph()


def _add_list(builder: DocumentBuilder, block: ListBlock, settings: Settings, level: int = 0):
    layout = settings.layout
    item_indent = layout.list_indent_cm * (level + 1)
    continuation_indent = item_indent + layout.list_continuation_indent_cm - layout.list_indent_cm

    for index, item in enumerate(block.items):
        if block.ordered:
            marker = layout.ordered_marker.format(number=block.start + index)
        else:
            marker = layout.bullet_marker
        _add_list_item(builder, item, marker, item_indent, continuation_indent, settings, level)


def _add_list_item(builder: DocumentBuilder, item: ListItemBlock, marker: str, item_indent: float,
                   continuation_indent: float, settings: Settings, level: int):
    """列表项的编号只出现在该项渲染出的第一个段落上；后续段落只缩进。"""
    marker_pending = True

    def marker_runs() -> List[AnyRun]:
        nonlocal marker_pending
        if not marker_pending:
            return []
        marker_pending = False
        return [TextRun(text=marker)]

    for child in item.blocks:
        if isinstance(child, CodeBlock) and MATH_LIKE_CODE.search(child.text):
            child = EquationBlock(latex=child.text)

        if isinstance(child, (ParagraphBlock, HeadingBlock)):
            indent = item_indent if marker_pending else continuation_indent
            builder.add_paragraph(marker_runs() + inline_runs(child.children, settings)).set_indent_cm(indent)
        elif isinstance(child, EquationBlock):
            nodes = compile_latex(child.latex)
            if marker_pending:
                builder.add_paragraph(marker_runs() + [EquationRun(nodes=nodes)]).set_indent_cm(item_indent)
            else:
                builder.add_paragraph([EquationRun(nodes=nodes, display=True)]) \
                    .set_alignment('left').set_indent_cm(continuation_indent)
        elif isinstance(child, CodeBlock):
            runs = marker_runs()
            indent = item_indent if runs else continuation_indent
            runs.append(TextRun(text=child.text, font_name=settings.code_font.name,
                                font_size=settings.code_font.size))
            builder.add_paragraph(runs).set_indent_cm(indent)
        else:
            if marker_pending:
                builder.add_paragraph(marker_runs()).set_indent_cm(item_indent)
            if isinstance(child, ListBlock):
                _add_list(builder, child, settings, level + 1)
            else:
                _add_block(builder, child, settings)

    # 空列表项仍然保留编号
    if marker_pending:
        builder.add_paragraph(marker_runs()).set_indent_cm(item_indent)


def _add_blockquote(builder: DocumentBuilder, block: BlockquoteBlock, settings: Settings):
    inner = DocumentBuilder()
    for child in block.blocks:
        _add_block(inner, child, settings)
    extra = settings.layout.blockquote_indent_cm
    for element in inner.elements:
        if isinstance(element, ParagraphElement):
            element.properties.indent_left_cm = (element.properties.indent_left_cm or 0) + extra
    builder.extend(inner.elements)


def _add_block(builder: DocumentBuilder, block: Block, settings: Settings):
    layout = settings.layout
    if isinstance(block, HeadingBlock):
        builder.add_paragraph(inline_runs(block.children, settings), heading_level=block.depth) \
            .set_spacing(layout.heading_spacing_before, layout.heading_spacing_after)
    elif isinstance(block, ParagraphBlock):
        builder.add_paragraph(inline_runs(block.children, settings)).set_spacing(after=layout.paragraph_spacing_after)
    elif isinstance(block, EquationBlock):
        _add_equation(builder, block.latex, settings)
    elif isinstance(block, ListBlock):
        _add_list(builder, block, settings)
    elif isinstance(block, TableBlock):
        _add_table(builder, block, settings)
    elif isinstance(block, BlockquoteBlock):
        _add_blockquote(builder, block, settings)
    elif isinstance(block, ThematicBreakBlock):
        builder.add_paragraph().add_bottom_border()
    elif isinstance(block, CodeBlock):
        _add_code(builder, block.text, settings)


def assemble(blocks: List[Block], settings: Optional[Settings] = None) -> DocumentModel:
    """
    把分类块转换为目标文档模型。对每个数学片段调用 LaTeX 编译器。
    纯内存操作，无 I/O。

    Args:
        blocks (List[Block]): classify() 的输出。
        settings (Optional[Settings]): 版式配置，默认读取 config.yaml。

    Returns:
        DocumentModel: 组装完成的文档模型。
    """
    settings = settings or get_settings()
    builder = DocumentBuilder()
    margins = settings.page.margins_cm
    builder.set_margins_cm(margins.get('top', 2.54), margins.get('bottom', 2.54),
                           margins.get('left', 2.54), margins.get('right', 2.54))
    for block in blocks:
        _add_block(builder, block, settings)
    logger.info("文档组装完成: %d 个块 -> %d 个元素", len(blocks), len(builder.elements))
    return builder.get_document()
