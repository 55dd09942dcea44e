# mdword/source_preprocessor.py
import csv
import logging
import re
from typing import Callable, List, Literal, Optional

from .list_preprocessor import FENCE, preprocess_lists

logger = logging.getLogger(__name__)

Origin = Literal['gemini', 'chatgpt']

# ==============================================================================
# SECTION 1: AI 过度转义清理
# ==============================================================================
OVER_ESCAPED_OPERATOR = re.compile(r"\\{2,}([+=\-()])")
OVER_ESCAPED_COMMAND = re.compile(
    r"\\{2,}(frac|sqrt|int|sum|prod|lim|alpha|beta|gamma|delta|partial|infty|pm|times|cdot|ldots|left|right)"
    r"(?![a-zA-Z])")


def clean_escapes(markdown: str) -> str:
    """修复 AI 输出中被过度转义的运算符 (\\\\+ -> +) 和 LaTeX 命令 (\\\\frac -> \\frac)。"""
    cleaned = OVER_ESCAPED_OPERATOR.sub(r"\1", markdown)
    return OVER_ESCAPED_COMMAND.sub(r"\\\1", cleaned)


# ==============================================================================
# SECTION 2: 受保护片段 (代码块与公式) 之外的文本变换
# ==============================================================================
PROTECTED_BLOCKS = re.compile(r"(```[\s\S]*?```|~~~[\s\S]*?~~~|\$\$[\s\S]*?\$\$)")
PROTECTED_INLINE = re.compile(r"(```[\s\S]*?```|~~~[\s\S]*?~~~|\$\$[\s\S]*?\$\$|`[^`\n]+`|\$[^$\n]+\$)")


def _map_unprotected(text: str, pattern: re.Pattern, transform: Callable[[str], str]) -> str:
    parts = pattern.split(text)
    # 奇数下标是受保护片段
    return ''.join(part if index % 2 else transform(part) for index, part in enumerate(parts))


# ==============================================================================
# SECTION 3: ChatGPT
# ==============================================================================
LATEX_DISPLAY = re.compile(r"\\\[([\s\S]+?)\\\]")
LATEX_INLINE = re.compile(r"\\\(([\s\S]+?)\\\)")
BRACKET_DISPLAY = re.compile(r"\[\s*\n([^\]]+?)\n\s*\]")
BRACKET_LINE = re.compile(r"^\[([^\]\n]+)\]$", re.MULTILINE)
MATHY = re.compile(r"[\^_{}=+\-*/]")
PAREN_COMMAND = re.compile(r"\(\\([a-zA-Z]+)(\{[^)]+)\)(?![^\[]*\])")


def _convert_display_brackets(text: str) -> str:
    text = LATEX_DISPLAY.sub(lambda m: f"$${m.group(1).strip()}$$", text)
    text = BRACKET_DISPLAY.sub(lambda m: f"$${m.group(1).strip()}$$", text)

    def single_line(match: re.Match) -> str:
        formula = match.group(1)
        if '\\' in formula or MATHY.search(formula):
            return f"$${formula.strip()}$$"
        return match.group(0)

    return BRACKET_LINE.sub(single_line, text)


def _convert_inline_parens(text: str) -> str:
    text = LATEX_INLINE.sub(lambda m: f"${m.group(1).strip()}$", text)
    return PAREN_COMMAND.sub(lambda m: f"$\\{m.group(1)}{m.group(2)}$", text)


def preprocess_chatgpt(markdown: str) -> str:
    """
    ChatGPT 复制出的文本用 [ ... ] 表示独立公式、用 (\\cmd{...}) 表示行内公式。
    先转换独立公式，再只在公式之外转换行内公式。
    """
    processed = _map_unprotected(markdown, PROTECTED_BLOCKS, _convert_display_brackets)
    return _map_unprotected(processed, PROTECTED_INLINE, _convert_inline_parens)


# ==============================================================================
# SECTION 4: Gemini (表格修复与 CSV/TSV 表格)
# ==============================================================================
SEPARATOR_RUN = re.compile(r"\|(?:\s*:?-{3,}:?\s*\|)+")
SEPARATOR_ROW = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$")
CELL_SPLIT = re.compile(r"(?<!\\)\|")
LIST_OR_BLOCK = re.compile(r"^\s*(?:[-*+>#]|\d+[.)])\s")
MAX_CSV_FIELD = 60


def _is_table_row(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith('|') and stripped.count('|') >= 2


def split_cells(row: str) -> List[str]:
    """拆分一行表格的单元格，去掉首尾的管道符。"""
    stripped = row.strip()
    if stripped.startswith('|'):
        stripped = stripped[1:]
    if stripped.endswith('|') and not stripped.endswith('\\|'):
        stripped = stripped[:-1]
    return [cell.strip() for cell in CELL_SPLIT.split(stripped)]


def _format_row(cells: List[str]) -> str:
    return '| ' + ' | '.join(cells) + ' |'


def _split_concatenated_row(line: str) -> List[str]:
    """
    Gemini 有时把整张表输出在一行里：| A | B | |---|---| | 1 | 2 | | 3 | 4 |
    以分隔行的列数为游程长度切分；只有在单元格数量严格符合游程模式时才拆分。
    """
    stripped = line.strip()
    if not stripped.startswith('|'):
        return [line]
    match = SEPARATOR_RUN.search(stripped)
    if match is None or match.start() == 0:
        return [line]
    header = stripped[:match.start()].strip()
    rest = stripped[match.end():].strip()
    if not header.startswith('|') or not rest:
        return [line]
    columns = match.group(0).count('|') - 1
    if len(split_cells(header)) != columns:
        return [line]

    cells = split_cells(rest)
    # 行与行之间以一个空单元格 ("| |" 或 "||") 分隔
    if (len(cells) + 1) % (columns + 1) != 0:
        return [line]
    rows = []
    for start in range(0, len(cells), columns + 1):
        row = cells[start:start + columns]
        boundary = cells[start + columns:start + columns + 1]
        if boundary and boundary[0]:
            return [line]
        rows.append(_format_row(row))
    return [header, match.group(0)] + rows


def _pad_table(table: List[str]) -> List[str]:
    """把表头、分隔行和数据行补齐到相同列数。"""
    if len(table) < 2 or not SEPARATOR_ROW.match(table[1]):
        return table
    width = max(len(split_cells(row)) for row in table)
    padded = []
    for index, row in enumerate(table):
        cells = split_cells(row)
        if len(cells) == width:
            padded.append(row)
        elif index == 1:
            padded.append(_format_row(cells + ['---'] * (width - len(cells))))
        else:
            padded.append(_format_row(cells + [''] * (width - len(cells))))
    return padded


def repair_tables(markdown: str) -> str:
    """拆分被拼接的行，移除表格行之间的空行，在表格前补空行，并补齐不规则的行。"""
    lines: List[str] = []
    in_fence = False
    for line in markdown.split('\n'):
        if FENCE.match(line):
            in_fence = not in_fence
        lines.extend([line] if in_fence else _split_concatenated_row(line))

    result: List[str] = []
    table: List[str] = []
    in_fence = False

    def flush_table():
        if table:
            result.extend(_pad_table(table))
            table.clear()

    i = 0
    while i < len(lines):
        line = lines[i]
        if FENCE.match(line):
            flush_table()
            in_fence = not in_fence
            result.append(line)
            i += 1
            continue
        if in_fence or not _is_table_row(line):
            if not line.strip() and table:
                # 表格行之间的空行：下一非空行仍是同一张表的数据行时跳过
                j = i
                while j < len(lines) and not lines[j].strip():
                    j += 1
                starts_new_table = j + 1 < len(lines) and SEPARATOR_ROW.match(lines[j + 1])
                if j < len(lines) and _is_table_row(lines[j]) and not SEPARATOR_ROW.match(lines[j]) \
                        and not starts_new_table:
                    i = j
                    continue
            flush_table()
            result.append(line)
            i += 1
            continue

        if not table and result and result[-1].strip():
            result.append('')
        table.append(line)
        i += 1
    flush_table()
    return '\n'.join(result)


def _csv_rows(block: List[str]) -> Optional[List[List[str]]]:
    delimiter = '\t' if all('\t' in line for line in block) else ','
    if delimiter == ',' and not all(',' in line for line in block):
        return None
    rows = [[field.strip() for field in row] for row in csv.reader(block, delimiter=delimiter)]
    widths = {len(row) for row in rows}
    if len(widths) != 1 or widths.pop() < 2:
        return None
    if any(len(field) > MAX_CSV_FIELD for row in rows for field in row):
        return None
    return rows


def convert_csv_tables(markdown: str) -> str:
    """把连续两行以上、列数一致的 CSV/TSV 文本块转换为管道表格。"""
    result: List[str] = []
    block: List[str] = []
    in_fence = False

    def flush_block():
        rows = _csv_rows(block) if len(block) >= 2 else None
        if rows is None:
            result.extend(block)
        else:
            logger.debug("将 %d 行 CSV/TSV 转换为表格", len(rows))
            if result and result[-1].strip():
                result.append('')
            escaped = [[field.replace('|', '\\|') for field in row] for row in rows]
            result.append(_format_row(escaped[0]))
            result.append(_format_row(['---'] * len(escaped[0])))
            result.extend(_format_row(row) for row in escaped[1:])
        block.clear()

    for line in markdown.split('\n'):
        if FENCE.match(line):
            flush_block()
            in_fence = not in_fence
            result.append(line)
            continue
        candidate = (not in_fence and line.strip() and not _is_table_row(line)
                     and not LIST_OR_BLOCK.match(line) and ('\t' in line or ',' in line) and '$' not in line)
        if candidate:
            block.append(line)
            continue
        flush_block()
        result.append(line)
    flush_block()
    return '\n'.join(result)


def preprocess_gemini(markdown: str, csv_tables: bool = False) -> str:
    processed = repair_tables(markdown)
    if csv_tables:
        processed = convert_csv_tables(processed)
    return processed


# ==============================================================================
# SECTION 5: 独立公式规范化
# ==============================================================================
INLINE_DISPLAY = re.compile(r"\$\$(.+?)\$\$")


def _inline_display_to_inline(line: str) -> str:
    return INLINE_DISPLAY.sub(lambda m: f"${m.group(1).strip()}$" if m.group(1).strip() else m.group(0), line)


def normalize_display_math(markdown: str) -> str:
    """
    把各种 $$ 写法统一为解析器要求的规范形式：

        (空行)
        $$
        公式
        $$
        (空行)

    行中间的 $$x$$ 改为行内公式 $x$。
    """
    lines = markdown.split('\n')
    out: List[str] = []
    in_fence = False
    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        if FENCE.match(line):
            in_fence = not in_fence
            out.append(line)
            i += 1
            continue
        if in_fence or not stripped.startswith('$$'):
            out.append(line if in_fence else _inline_display_to_inline(line))
            i += 1
            continue

        indent = line[:len(line) - len(line.lstrip())]
        rest = stripped[2:]
        if '$$' in rest:
            if rest.find('$$') != len(rest) - 2:
                out.append(_inline_display_to_inline(line))
                i += 1
                continue
            content, end = [rest[:-2].strip()], i
        else:
            content, end = [rest.strip()], None
            for j in range(i + 1, len(lines)):
                candidate = lines[j].strip()
                if candidate.endswith('$$'):
                    content.append(candidate[:-2].strip())
                    end = j
                    break
                content.append(candidate)
            if end is None:
                out.append(line)
                i += 1
                continue

        content = [c for c in content if c]
        if not content:
            out.extend(lines[i:end + 1])
            i = end + 1
            continue
        if out and out[-1].strip():
            out.append('')
        out.append(indent + '$$')
        out.extend(indent + c for c in content)
        out.append(indent + '$$')
        if end + 1 < len(lines) and lines[end + 1].strip():
            out.append('')
        i = end + 1
    return '\n'.join(out)


# ==============================================================================
# SECTION 6: 入口
# ==============================================================================
def preprocess(markdown: str, origin: Origin = 'gemini', csv_tables: bool = False, clean: bool = False) -> str:
    """
    按来源对 Markdown 做预处理。只会添加结构 (空行、表格管道符、修正后的编号)，
    不删除内容；对已经规范的 Markdown 重复执行结果不变。

    Args:
        markdown (str): 原始 Markdown 文本。
        origin (Origin): 'gemini' 或 'chatgpt'。
        csv_tables (bool): 是否把 CSV/TSV 文本块转换为表格。
        clean (bool): 是否先修复过度转义。

    Returns:
        str: 处理后的 Markdown。
    """
    processed = markdown.replace('\r\n', '\n')
    if clean:
        processed = clean_escapes(processed)
    if origin == 'chatgpt':
        processed = preprocess_chatgpt(processed)
        if csv_tables:
            processed = convert_csv_tables(processed)
    else:
        processed = preprocess_gemini(processed, csv_tables)
    processed = preprocess_lists(processed)
    return normalize_display_math(processed)
