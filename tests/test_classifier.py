"""
内容分类器单元测试

专注于测试：
- 仅含公式的段落提升为独立公式
- 列表合并与列表后内容的归属
- 表格补齐
"""
import pytest

from mdword.classifier import classify, math_only_latex
from mdword.md_parser import parse_markdown
from mdword.schemas import (CodeBlock, EquationBlock, HeadingBlock, ListBlock, MdNode, ParagraphBlock, TableBlock,
                            ThematicBreakBlock)


def text(value):
    return MdNode(type="text", value=value)


def paragraph(*children):
    return MdNode(type="paragraph", children=list(children))


def list_node(ordered, *item_texts, start=1):
    items = [MdNode(type="listItem", children=[paragraph(text(t))]) for t in item_texts]
    return MdNode(type="list", ordered=ordered, start=start, children=items)


@pytest.mark.unit
class TestMathOnlyParagraph:
    """仅含行内公式的段落"""

    def test_single_inline_math(self):
        """测试 $E=mc^2$ 段落成为 EquationBlock"""
        blocks = classify(parse_markdown("$E=mc^2$"))

        assert blocks == [EquationBlock(latex="E=mc^2")]

    def test_whitespace_is_ignored(self):
        """测试公式两侧的空白文本不影响判断"""
        node = paragraph(text("  "), MdNode(type="inlineMath", value="x"), MdNode(type="break"))

        assert math_only_latex(node) == "x"

    def test_mixed_paragraph_stays_paragraph(self):
        """测试包含文字的段落保持为段落"""
        blocks = classify(parse_markdown("Energy $E=mc^2$"))

        assert isinstance(blocks[0], ParagraphBlock)

    def test_two_formulas_stay_paragraph(self):
        """测试包含两个公式的段落保持为段落"""
        node = paragraph(MdNode(type="inlineMath", value="a"), text(" "), MdNode(type="inlineMath", value="b"))

        assert math_only_latex(node) is None


@pytest.mark.unit
class TestLists:
    """列表合并"""

    def test_adjacent_lists_merged(self):
        """测试相邻的同类列表合并，保留第一个列表的起始编号"""
        blocks = classify([list_node(True, "a", start=3), list_node(True, "b", start=1)])

        assert len(blocks) == 1
        assert blocks[0].start == 3
        assert len(blocks[0].items) == 2

    def test_different_kinds_not_merged(self):
        """测试有序与无序列表不合并"""
        blocks = classify([list_node(True, "a"), list_node(False, "b")])

        assert [b.ordered for b in blocks] == [True, False]

    def test_equation_after_list_attached_to_last_item(self):
        """测试列表之后的独立公式挂到最后一项"""
        nodes = [list_node(True, "a", "b"), MdNode(type="math", value="x^2")]

        blocks = classify(nodes)

        assert len(blocks) == 1
        assert blocks[0].items[-1].blocks[-1] == EquationBlock(latex="x^2")

    def test_code_after_list_attached_to_last_item(self):
        """测试列表之后的代码块挂到最后一项"""
        blocks = classify([list_node(False, "a"), MdNode(type="code", value="x = 1")])

        assert blocks[0].items[0].blocks[-1] == CodeBlock(text="x = 1")

    def test_paragraph_closes_list(self):
        """测试普通段落结束列表"""
        blocks = classify([list_node(True, "a"), paragraph(text("p")), list_node(True, "b")])

        assert [type(b) for b in blocks] == [ListBlock, ParagraphBlock, ListBlock]

    def test_list_start_zero(self):
        """测试从 0 开始的列表"""
        blocks = classify([list_node(True, "a", start=0)])

        assert blocks[0].start == 0

    def test_nested_list_items_classified(self):
        """测试嵌套列表项内的块也被分类"""
        blocks = classify(parse_markdown("1. a\n   - b\n"))

        item = blocks[0].items[0]
        assert isinstance(item.blocks[0], ParagraphBlock)
        assert isinstance(item.blocks[1], ListBlock)


@pytest.mark.unit
class TestOtherBlocks:
    """其他块类型"""

    def test_heading_then_equation(self):
        """测试标题与独立公式"""
        blocks = classify(parse_markdown("# T\n\n$$\nx\n$$\n"))

        assert isinstance(blocks[0], HeadingBlock)
        assert isinstance(blocks[1], EquationBlock)

    def test_thematic_break(self):
        """测试分隔线"""
        assert classify([MdNode(type="thematicBreak")]) == [ThematicBreakBlock()]

    def test_ragged_table_padded(self):
        """测试不规则的表格行被补齐"""
        row_short = MdNode(type="tableRow", children=[MdNode(type="tableCell", children=[text("1")])])
        row_long = MdNode(type="tableRow", children=[MdNode(type="tableCell", children=[text(c)]) for c in "abc"])
        table = MdNode(type="table", children=[row_long, row_short], align=["center", None])

        blocks = classify([table])

        block = blocks[0]
        assert isinstance(block, TableBlock)
        assert len(block.header) == 3
        assert len(block.rows[0]) == 3
        assert block.align == ["center", "left", "left"]

    def test_html_becomes_text(self):
        """测试 HTML 片段作为普通文本保留"""
        blocks = classify([MdNode(type="html", value="<br>\n")])

        assert blocks[0].children[0].value == "<br>"
