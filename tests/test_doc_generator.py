"""
DOCX 生成器测试：生成后用 python-docx 重新读取并检查结构
"""
import pytest
from docx.oxml.ns import qn

from mdword.doc_builder import assemble
from mdword.doc_generator import create_document
from mdword.errors import DocumentRenderError
from mdword.omml import M_NAMESPACE
from mdword.schemas import (DocumentModel, EquationBlock, HeadingBlock, MdNode, ParagraphBlock, TableBlock,
                            ThematicBreakBlock)

M = "{%s}" % M_NAMESPACE


def text(value):
    return MdNode(type="text", value=value)


def count(element, tag):
    return sum(1 for _ in element.iter(M + tag))


@pytest.mark.integration
class TestCreateDocument:
    """create_document"""

    def test_returns_docx_bytes(self, settings):
        """测试返回 zip 格式的 .docx 字节流"""
        docx_bytes = create_document(DocumentModel(), settings)

        assert docx_bytes[:2] == b"PK"

    def test_heading_style_and_font(self, settings, open_docx):
        """测试标题使用 Heading 样式与配置字号"""
        model = assemble([HeadingBlock(depth=1, children=[text("Title")])], settings)

        doc = open_docx(create_document(model, settings))

        paragraph = doc.paragraphs[0]
        assert paragraph.text == "Title"
        assert paragraph.style.name == "Heading 1"
        assert paragraph.runs[0].font.size.pt == 24
        assert paragraph.runs[0].bold is True

    def test_inline_equation_in_paragraph(self, settings, open_docx):
        """测试行内公式写为 m:oMath"""
        block = ParagraphBlock(children=[text("Energy "), MdNode(type="inlineMath", value="E=mc^2")])

        doc = open_docx(create_document(assemble([block], settings), settings))

        body = doc.element.body
        assert count(body, "oMath") == 1
        assert count(body, "oMathPara") == 0
        assert count(body, "sSup") == 1
        assert doc.paragraphs[0].text == "Energy "

    def test_display_equation(self, settings, open_docx):
        """测试独立公式写为居中的 m:oMathPara"""
        doc = open_docx(create_document(assemble([EquationBlock(latex="\\frac{1}{2}")], settings), settings))

        para = next(doc.element.body.iter(M + "oMathPara"))
        assert para.find(f"{M}oMathParaPr/{M}jc").get(M + "val") == "center"
        assert count(para, "f") == 1

    def test_table_header_bold(self, settings, open_docx):
        """测试表格首行加粗、其余行不加粗"""
        block = TableBlock(header=[[text("H1")], [text("H2")]], align=["left", "center"],
                           rows=[[[text("1")], [text("2")]]])

        doc = open_docx(create_document(assemble([block], settings), settings))

        table = doc.tables[0]
        assert len(table.rows) == 2
        assert len(table.columns) == 2
        assert table.rows[0].cells[0].paragraphs[0].runs[0].bold is True
        assert table.rows[1].cells[0].paragraphs[0].runs[0].bold is None
        assert table.rows[1].cells[1].text == "2"

    def test_thematic_break_border(self, settings, open_docx):
        """测试分隔线段落带底部边框"""
        doc = open_docx(create_document(assemble([ThematicBreakBlock()], settings), settings))

        pPr = doc.paragraphs[0]._p.pPr
        assert pPr.find(qn("w:pBdr")) is not None

    def test_page_margins(self, settings, open_docx):
        """测试页边距"""
        doc = open_docx(create_document(assemble([], settings), settings))

        assert doc.sections[0].left_margin.cm == pytest.approx(2.54, abs=0.01)

    def test_save_failure_wrapped(self, settings, monkeypatch):
        """测试保存失败被包装为 DocumentRenderError"""
        def broken_save(self, stream):
            raise ValueError("disk full")

        monkeypatch.setattr("docx.document.Document.save", broken_save)

        with pytest.raises(DocumentRenderError):
            create_document(DocumentModel(), settings)
