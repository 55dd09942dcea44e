# mdword/list_preprocessor.py
"""
列表预处理：统一无序列表标记，并修复 AI 助手输出中被嵌套内容打断的有序列表编号。

典型问题：

    13. **Item 13**
        - sub item
    1. **Item 14**

Markdown 解析器会把最后一项当作一个从 1 开始的新列表。这里按缩进层级跟踪期望的编号，
把这种"重新从 1 开始"的项改回连续编号。
"""
import re
from typing import Dict, List, NamedTuple, Optional

ORDERED_ITEM = re.compile(r"^(\s*)(\d+)([.)])\s(.*)$")
UNORDERED_ITEM = re.compile(r"^(\s*)([-*+])\s(.*)$")
FENCE = re.compile(r"^\s*(```|~~~)")
THEMATIC_BREAK = re.compile(r"^\s{0,3}([-*_])(?:\s*\1){2,}\s*$")

# 距上一项不超过这么多行的 "1." 视为编号错误而不是新列表
RESTART_WINDOW = 5
# 允许的编号跳跃
MAX_GAP = 5


class ListLine(NamedTuple):
    ordered: bool
    indent: str
    number: Optional[int]
    delimiter: str
    content: str


def parse_list_line(line: str) -> Optional[ListLine]:
    if THEMATIC_BREAK.match(line):
        return None
    match = ORDERED_ITEM.match(line)
    if match:
        return ListLine(True, match.group(1), int(match.group(2)), match.group(3), match.group(4))
    match = UNORDERED_ITEM.match(line)
    if match:
        return ListLine(False, match.group(1), None, match.group(2), match.group(3))
    return None


def normalize_list_markers(markdown: str) -> str:
    """把 * 和 + 无序列表标记统一为 -。代码块与分隔线保持不变。"""
    result = []
    in_fence = False
    for line in markdown.split('\n'):
        if FENCE.match(line):
            in_fence = not in_fence
        elif not in_fence:
            parsed = parse_list_line(line)
            if parsed and not parsed.ordered and parsed.delimiter in '*+':
                line = f"{parsed.indent}- {parsed.content}"
        result.append(line)
    return '\n'.join(result)


def renumber_lists(markdown: str) -> str:
    """按缩进层级跟踪有序列表编号，修正被嵌套内容打断后错误地从 1 重新开始的项。"""
    lines = markdown.split('\n')
    result: List[str] = []
    state: Dict[int, Dict[str, int]] = {}
    consecutive_non_list = 0
    in_nested_content = False
    in_fence = False

    for i, line in enumerate(lines):
        if FENCE.match(line):
            in_fence = not in_fence
            result.append(line)
            continue
        if in_fence:
            result.append(line)
            continue

        parsed = parse_list_line(line)
        if parsed is None:
            if not line.strip():
                consecutive_non_list += 1
            elif line[:1].isspace():
                in_nested_content = True
                consecutive_non_list = 0
            else:
                # 顶格的非列表内容 (标题除外) 结束所有列表
                if not line.strip().startswith('#'):
                    if consecutive_non_list > 1 or not in_nested_content:
                        state.clear()
                consecutive_non_list += 1
                in_nested_content = False
            result.append(line)
            continue

        consecutive_non_list = 0
        if not parsed.ordered:
            if parsed.indent:
                in_nested_content = True
            result.append(line)
            continue

        level = len(parsed.indent)
        number = parsed.number
        current = state.get(level)
        if current is None:
            state[level] = {'number': number, 'index': i}
            in_nested_content = False
            result.append(line)
            continue

        expected = current['number'] + 1
        if number == expected or expected < number <= expected + MAX_GAP:
            current['number'] = number
        elif number == 1 and (in_nested_content or i - current['index'] <= RESTART_WINDOW):
            current['number'] = expected
            line = f"{parsed.indent}{expected}{parsed.delimiter} {parsed.content}"
        else:
            # 其他编号视为新列表的开始
            current['number'] = number
        current['index'] = i
        in_nested_content = False
        result.append(line)

    return '\n'.join(result)


def preprocess_lists(markdown: str) -> str:
    """完整的列表预处理：先统一标记，再修正编号。"""
    return renumber_lists(normalize_list_markers(markdown))
