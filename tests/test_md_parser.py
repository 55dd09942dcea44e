"""
Markdown 解析器单元测试
"""
import pytest

from mdword import md_parser
from mdword.errors import MarkdownParseError
from mdword.md_parser import parse_markdown


@pytest.mark.unit
class TestParseMarkdown:
    """mistune AST 转换为 MdNode"""

    def test_heading(self):
        """测试标题层级与文本"""
        nodes = parse_markdown("## Title")

        assert nodes[0].type == "heading"
        assert nodes[0].depth == 2
        assert nodes[0].children[0].value == "Title"

    def test_inline_math(self):
        """测试行内公式"""
        nodes = parse_markdown("$E=mc^2$")

        assert nodes[0].type == "paragraph"
        assert nodes[0].children[0].type == "inlineMath"
        assert nodes[0].children[0].value == "E=mc^2"

    def test_block_math(self):
        """测试独占多行的独立公式"""
        nodes = parse_markdown("$$\nx^2\n$$\n")

        assert nodes[0].type == "math"
        assert nodes[0].value.strip() == "x^2"

    def test_inline_formatting(self):
        """测试加粗、斜体、删除线与行内代码"""
        nodes = parse_markdown("**b** *i* ~~s~~ `c`")

        types = [child.type for child in nodes[0].children]
        assert "strong" in types
        assert "emphasis" in types
        assert "delete" in types
        assert "inlineCode" in types

    def test_soft_break_becomes_space(self):
        """测试段内换行变为空格"""
        nodes = parse_markdown("a\nb")

        assert "".join(child.value for child in nodes[0].children) == "a b"

    def test_ordered_list_start(self):
        """测试有序列表起始编号"""
        nodes = parse_markdown("3. a\n4. b\n")

        assert nodes[0].type == "list"
        assert nodes[0].ordered is True
        assert nodes[0].start == 3
        assert [item.type for item in nodes[0].children] == ["listItem", "listItem"]

    def test_unordered_list_defaults_to_start_one(self):
        """测试无序列表"""
        nodes = parse_markdown("- a\n- b\n")

        assert nodes[0].ordered is False
        assert nodes[0].start == 1

    def test_table(self):
        """测试表格行与对齐方式"""
        nodes = parse_markdown("| a | b |\n|:--|--:|\n| 1 | 2 |\n")

        table = nodes[0]
        assert table.type == "table"
        assert len(table.children) == 2
        assert table.align == ["left", "right"]
        assert table.children[1].children[0].children[0].value == "1"

    def test_fenced_code(self):
        """测试代码块内容"""
        nodes = parse_markdown("```\nprint(1)\n```\n")

        assert nodes[0].type == "code"
        assert nodes[0].value == "print(1)"

    def test_thematic_break(self):
        """测试分隔线"""
        nodes = parse_markdown("a\n\n---\n\nb")

        assert [node.type for node in nodes] == ["paragraph", "thematicBreak", "paragraph"]

    def test_empty_document(self):
        """测试空文档"""
        assert parse_markdown("") == []

    def test_parser_failure_raises(self, monkeypatch):
        """测试解析器异常被包装为 MarkdownParseError"""
        def broken(markdown):
            raise RuntimeError("boom")

        monkeypatch.setattr(md_parser, "_markdown", broken)

        with pytest.raises(MarkdownParseError) as exc_info:
            parse_markdown("# T")

        assert "boom" in str(exc_info.value)
