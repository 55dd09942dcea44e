"""
端到端流水线测试
"""
import pytest

from mdword import md_parser
from mdword.app_logic import GenerationOptions, generate_document_from_markdown, markdown_to_docx
from mdword.classifier import classify
from mdword.doc_builder import assemble
from mdword.errors import MarkdownParseError
from mdword.latex_converter import nodes_to_text
from mdword.md_parser import parse_markdown
from mdword.omml import M_NAMESPACE
from mdword.schemas import Fraction, Radical, Run
from mdword.source_preprocessor import preprocess

M = "{%s}" % M_NAMESPACE

QUADRATIC = "# T\n\n$$x=\\frac{-b\\pm\\sqrt{b^2-4ac}}{2a}$$\n"


@pytest.fixture
def broken_parser(monkeypatch):
    def broken(markdown):
        raise RuntimeError("boom")

    monkeypatch.setattr(md_parser, "_markdown", broken)


@pytest.mark.integration
class TestPipelineModel:
    """预处理到组装的中间结果"""

    def test_quadratic_formula_model(self, settings):
        """测试求根公式的组装结果：标题段落 + 居中的独立公式"""
        blocks = classify(parse_markdown(preprocess(QUADRATIC)))

        model = assemble(blocks, settings)

        heading, equation = model.elements
        assert heading.text == "T"
        assert heading.properties.heading_level == 1
        assert equation.is_display_equation
        assert equation.properties.alignment == "center"
        nodes = equation.runs[0].nodes
        assert nodes[0] == Run(text="x")
        assert nodes[1] == Run(text="=")
        assert isinstance(nodes[2], Fraction)
        numerator = nodes[2].numerator
        assert Run(text="±") in numerator
        assert isinstance(numerator[-1], Radical)
        assert nodes_to_text(nodes[2].denominator) == "2a"


@pytest.mark.integration
class TestMarkdownToDocx:
    """markdown_to_docx"""

    def test_heading_and_quadratic_formula(self, settings, open_docx):
        """测试标题加求根公式生成一个标题段落和一个独立公式"""
        doc = open_docx(markdown_to_docx(QUADRATIC, settings=settings))

        assert doc.paragraphs[0].text == "T"
        assert doc.paragraphs[0].style.name == "Heading 1"
        body = doc.element.body
        paras = list(body.iter(M + "oMathPara"))
        assert len(paras) == 1
        fraction = paras[0].find(f"{M}oMath/{M}f")
        assert fraction is not None
        assert fraction.find(f"{M}num/{M}rad") is not None

    def test_list_with_table(self, settings, open_docx):
        """测试列表编号修复与表格"""
        markdown = "1. a\n   - sub\n1. b\n\n| A | B |\n|---|---|\n| 1 | 2 |\n"

        doc = open_docx(markdown_to_docx(markdown, settings=settings))

        texts = [p.text for p in doc.paragraphs]
        assert "1. a" in texts
        assert "2. b" in texts
        assert len(doc.tables) == 1

    def test_chatgpt_origin(self, settings, open_docx):
        """测试 ChatGPT 来源的方括号公式生成独立公式"""
        markdown = "Formula:\n\\[\nE=mc^2\n\\]\n"

        doc = open_docx(markdown_to_docx(markdown, GenerationOptions(origin="chatgpt"), settings))

        assert len(list(doc.element.body.iter(M + "oMathPara"))) == 1

    def test_parse_failure_raises(self, settings, broken_parser):
        """测试解析失败向上抛出 MarkdownParseError"""
        with pytest.raises(MarkdownParseError):
            markdown_to_docx("# T", settings=settings)


@pytest.mark.integration
class TestGenerateDocumentFromMarkdown:
    """带日志回调的生成流程"""

    def test_success_streams_log(self):
        """测试成功时返回字节流并推送日志"""
        messages = []

        docx_bytes, log = generate_document_from_markdown("# T\n\ntext", log_callback=messages.append)

        assert docx_bytes[:2] == b"PK"
        assert messages[0].startswith("🚀")
        assert messages[-1].startswith("✅")
        assert log == "\n".join(messages)

    def test_empty_input(self):
        """测试空输入返回 None"""
        docx_bytes, log = generate_document_from_markdown("   ")

        assert docx_bytes is None
        assert "❌" in log

    def test_parse_failure_returns_none(self, broken_parser):
        """测试解析失败时返回 None 和错误日志"""
        docx_bytes, log = generate_document_from_markdown("# T")

        assert docx_bytes is None
        assert "MarkdownParseError" in log
