# mdword/doc_generator.py
import io
import logging
from typing import List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Cm, Pt, RGBColor

from .config import FontSettings, Settings, get_settings
from .errors import DocumentRenderError
from .omml import build_omath, build_omath_para
from .schemas import AnyRun, DocumentModel, EquationRun, ParagraphElement, TableElement, TextRun

logger = logging.getLogger(__name__)

ALIGNMENT_MAP = {
    'left': WD_ALIGN_PARAGRAPH.LEFT,
    'center': WD_ALIGN_PARAGRAPH.CENTER,
    'right': WD_ALIGN_PARAGRAPH.RIGHT,
}

# w:pPr 中位于 w:pBdr 之后的子元素，用于按 schema 顺序插入边框
_PBDR_SUCCESSORS = ('w:shd', 'w:tabs', 'w:suppressAutoHyphens', 'w:kinsoku', 'w:wordWrap', 'w:overflowPunct',
                    'w:topLinePunct', 'w:autoSpaceDE', 'w:autoSpaceDN', 'w:bidi', 'w:adjustRightInd',
                    'w:snapToGrid', 'w:spacing', 'w:ind', 'w:contextualSpacing', 'w:mirrorIndents',
                    'w:suppressOverlap', 'w:jc', 'w:textDirection', 'w:textAlignment', 'w:textboxTightWrap',
                    'w:outlineLvl', 'w:divId', 'w:cnfStyle', 'w:rPr', 'w:sectPr', 'w:pPrChange')


def _apply_font(run, font_settings: FontSettings):
    """把字体配置应用到 run 上，并设置东亚字体以确保中文字体生效。"""
    font = run.font
    if font_settings.name:
        font.name = font_settings.name
        rpr = run._r.get_or_add_rPr()
        rFonts = rpr.get_or_add_rFonts()
        rFonts.set(qn('w:eastAsia'), font_settings.name)
    if font_settings.size:
        font.size = Pt(font_settings.size)
    if font_settings.bold is not None:
        font.bold = font_settings.bold
    if font_settings.color:
        try:
            font.color.rgb = RGBColor.from_string(font_settings.color.lstrip('#'))
        except ValueError:
            logger.warning("无效的颜色格式码 '%s'，已跳过颜色设置。", font_settings.color)


def apply_default_styles(doc, settings: Settings):
    normal = doc.styles['Normal']
    normal.font.name = settings.body_font.name
    normal.font.size = Pt(settings.body_font.size)
    rpr = normal.element.get_or_add_rPr()
    rpr.get_or_add_rFonts().set(qn('w:eastAsia'), settings.body_font.name)


def apply_page_setup(doc, model: DocumentModel):
    """根据文档模型中的页面设置应用页边距 (厘米)。"""
    margins = model.page_setup.margins
    if not margins:
        return
    section = doc.sections[0]
    if margins.get('top') is not None:
        section.top_margin = Cm(margins['top'])
    if margins.get('bottom') is not None:
        section.bottom_margin = Cm(margins['bottom'])
    if margins.get('left') is not None:
        section.left_margin = Cm(margins['left'])
    if margins.get('right') is not None:
        section.right_margin = Cm(margins['right'])


def _set_bottom_border(paragraph):
    """通过操作XML属性，为段落添加底部单线边框 (分隔线)。"""
    pPr = paragraph._p.get_or_add_pPr()
    pBdr = OxmlElement('w:pBdr')
    bottom = OxmlElement('w:bottom')
    bottom.set(qn('w:val'), 'single')
    bottom.set(qn('w:sz'), '6')
    bottom.set(qn('w:space'), '1')
    bottom.set(qn('w:color'), 'auto')
    pBdr.append(bottom)
    pPr.insert_element_before(pBdr, *_PBDR_SUCCESSORS)


def _set_full_width(table):
    tblPr = table._tbl.tblPr
    tblW = tblPr.find(qn('w:tblW'))
    if tblW is None:
        tblW = OxmlElement('w:tblW')
        tblPr.append(tblW)
    tblW.set(qn('w:type'), 'pct')
    tblW.set(qn('w:w'), '5000')


def add_runs(paragraph, runs: List[AnyRun], settings: Settings, heading_font: Optional[FontSettings] = None):
    """
    按顺序把文本 run 与公式 run 写入段落。
    行内公式以 m:oMath 的形式直接追加到 w:p 下。
    """
    for run_item in runs:
        if isinstance(run_item, TextRun):
            run = paragraph.add_run(run_item.text)
            if heading_font is not None:
                _apply_font(run, heading_font)
            if run_item.font_name or run_item.font_size:
                _apply_font(run, FontSettings(name=run_item.font_name or settings.body_font.name,
                                              size=run_item.font_size or settings.body_font.size))
            if run_item.bold is not None:
                run.font.bold = run_item.bold
            if run_item.italic is not None:
                run.font.italic = run_item.italic
            if run_item.strike is not None:
                run.font.strike = run_item.strike
        elif isinstance(run_item, EquationRun):
            paragraph._p.append(build_omath(run_item.nodes))


def apply_paragraph_properties(paragraph, element: ParagraphElement):
    properties = element.properties
    p_format = paragraph.paragraph_format
    if properties.alignment in ALIGNMENT_MAP:
        p_format.alignment = ALIGNMENT_MAP[properties.alignment]
    if properties.indent_left_cm is not None:
        p_format.left_indent = Cm(properties.indent_left_cm)
    if properties.spacing_before is not None:
        p_format.space_before = Pt(properties.spacing_before)
    if properties.spacing_after is not None:
        p_format.space_after = Pt(properties.spacing_after)
    if properties.border_bottom:
        _set_bottom_border(paragraph)


def add_paragraph_from_element(doc, element: ParagraphElement, settings: Settings):
    level = element.properties.heading_level
    style = None
    heading_font = None
    if level:
        heading_font = settings.heading_font(level)
        style_name = f'Heading {min(level, 9)}'
        if any(s.name == style_name for s in doc.styles):
            style = style_name
        else:
            logger.warning("找不到名为 '%s' 的样式，已忽略样式设置。", style_name)

    p = doc.add_paragraph(style=style)
    if element.is_display_equation:
        equation = element.runs[0]
        p._p.append(build_omath_para(equation.nodes, element.properties.alignment or 'center'))
    else:
        add_runs(p, element.runs, settings, heading_font)
    apply_paragraph_properties(p, element)
    return p


def add_table_from_element(doc, element: TableElement, settings: Settings):
    """
    在文档中添加一个表格。首行为表头 (加粗由 run 自身携带)，
    每一列的对齐方式来自单元格。

    Args:
        doc: python-docx的Document对象。
        element (TableElement): 组装好的表格元素。
    """
    if not element.rows or not element.rows[0]:
        logger.warning("表格数据为空，跳过此表格。")
        return None

    cols = max(len(row) for row in element.rows)
    table = doc.add_table(rows=0, cols=cols, style='Table Grid')
    for row_data in element.rows:
        row_cells = table.add_row().cells
        for j, cell_data in enumerate(row_data):
            paragraph = row_cells[j].paragraphs[0]
            add_runs(paragraph, cell_data.runs, settings)
            alignment_enum = ALIGNMENT_MAP.get(cell_data.alignment)
            if alignment_enum is not None:
                paragraph.paragraph_format.alignment = alignment_enum
    _set_full_width(table)
    return table


def create_document(model: DocumentModel, settings: Optional[Settings] = None) -> bytes:
    """
    根据组装好的文档模型创建 Word 文档并返回 .docx 字节流。

    Args:
        model (DocumentModel): assemble() 的输出。
        settings (Optional[Settings]): 字体与样式配置。

    Returns:
        bytes: .docx 包的二进制内容。

    Raises:
        DocumentRenderError: python-docx 序列化失败。
    """
    settings = settings or get_settings()
    doc = Document()
    apply_default_styles(doc, settings)
    apply_page_setup(doc, model)

    for element in model.elements:
        if isinstance(element, ParagraphElement):
            add_paragraph_from_element(doc, element, settings)
        elif isinstance(element, TableElement):
            add_table_from_element(doc, element, settings)

    stream = io.BytesIO()
    try:
        doc.save(stream)
    except Exception as e:
        raise DocumentRenderError(f"DOCX 保存失败: {type(e).__name__}: {e}") from e
    logger.info("DOCX 文档生成完毕: %d 个元素, %d 字节", len(model.elements), stream.tell())
    return stream.getvalue()
