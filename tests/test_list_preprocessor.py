"""
列表预处理单元测试
"""
import pytest

from mdword.list_preprocessor import normalize_list_markers, parse_list_line, preprocess_lists, renumber_lists


@pytest.mark.unit
class TestParseListLine:
    """列表行识别"""

    def test_ordered(self):
        """测试有序列表行"""
        parsed = parse_list_line("   12) item")

        assert parsed.ordered is True
        assert (parsed.indent, parsed.number, parsed.delimiter, parsed.content) == ("   ", 12, ")", "item")

    def test_thematic_break_is_not_a_list(self):
        """测试分隔线不被当作列表"""
        assert parse_list_line("* * *") is None
        assert parse_list_line("---") is None

    def test_plain_text(self):
        """测试普通文本"""
        assert parse_list_line("hello") is None


@pytest.mark.unit
class TestNormalizeListMarkers:
    """无序列表标记统一"""

    def test_star_and_plus_become_dash(self):
        """测试 * 和 + 统一为 -"""
        assert normalize_list_markers("* a\n  + b") == "- a\n  - b"

    def test_fenced_code_untouched(self):
        """测试代码块内容不变"""
        markdown = "```\n* a\n```"

        assert normalize_list_markers(markdown) == markdown

    def test_thematic_break_untouched(self):
        """测试分隔线不变"""
        assert normalize_list_markers("***") == "***"


@pytest.mark.unit
class TestRenumberLists:
    """有序列表编号修复"""

    def test_restart_after_nested_content(self):
        """测试被嵌套内容打断后从 1 重新开始的项被修正"""
        markdown = "1. a\n   - sub\n1. b"

        assert renumber_lists(markdown) == "1. a\n   - sub\n2. b"

    def test_all_ones(self):
        """测试全部写成 1. 的列表"""
        assert renumber_lists("1. a\n1. b\n1. c") == "1. a\n2. b\n3. c"

    def test_delimiter_preserved(self):
        """测试保留右括号分隔符"""
        assert renumber_lists("1) a\n   - x\n1) b") == "1) a\n   - x\n2) b"

    def test_new_list_after_paragraph(self):
        """测试段落之后的新列表保持从 1 开始"""
        markdown = "1. a\n2. b\n\nParagraph\n\n1. c"

        assert renumber_lists(markdown) == markdown

    def test_small_gap_accepted(self):
        """测试小的编号跳跃保持不变"""
        assert renumber_lists("1. a\n3. b") == "1. a\n3. b"

    def test_fenced_code_untouched(self):
        """测试代码块中的编号不变"""
        markdown = "```\n1. a\n1. b\n```"

        assert renumber_lists(markdown) == markdown

    def test_nested_levels_tracked_separately(self):
        """测试不同缩进层级分别编号"""
        markdown = "1. a\n   1. x\n   1. y\n1. b"

        assert renumber_lists(markdown) == "1. a\n   1. x\n   2. y\n2. b"

    def test_idempotent(self):
        """测试重复执行结果不变"""
        markdown = "1. a\n   - sub\n1. b\n   ```\n   code\n   ```\n1. c"

        once = preprocess_lists(markdown)

        assert preprocess_lists(once) == once
