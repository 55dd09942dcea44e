# mdword/latex_converter.py
import logging
import re
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from .schemas import Bar, Fraction, MathNode, Radical, Run, SubScript, SubSuperScript, SuperScript
from .symbols import COMBINING_ACCENTS, FUNCTION_NAMES, blackboard, lookup

logger = logging.getLogger(__name__)

# --- 1. 常量 ---
BIG_OPERATORS = {'int': '∫', 'iint': '∬', 'iiint': '∭', 'oint': '∮', 'sum': '∑', 'prod': '∏',
                 'coprod': '∐', 'bigcup': '⋃', 'bigcap': '⋂'}
BAR_ACCENTS = {'overline': 'top', 'bar': 'top', 'hat': 'top', 'widehat': 'top', 'underline': 'bottom'}
# 字符级规则中直接丢弃的字符 (对齐符、注释符、多余的 $ 等)
DISCARDED_CHARS = set('{}$#%&~@')
# 超过该嵌套层数的子表达式按原文输出为一个 Run
MAX_NESTING_DEPTH = 50
COMMAND_TOKEN = re.compile(r"\\(?:[a-zA-Z]+|.)")
LIMITS_MODIFIER = re.compile(r"\s*\\(?:no)?limits(?![a-zA-Z])")


# --- 2. 编译器状态 ---
def _match_pairs(source: str, opener: str, closer: str, skip_escapes: bool) -> Dict[int, int]:
    """
    单次栈扫描，记录每个左括号对应的右括号位置。
    未闭合的左括号不出现在结果中；skip_escapes 为真时 \\{ 与 \\} 不参与配对。
    """
    pairs: Dict[int, int] = {}
    stack: List[int] = []
    i = 0
    while i < len(source):
        ch = source[i]
        if ch == '\\' and skip_escapes:
            i += 2
            continue
        if ch == opener:
            stack.append(i)
        elif ch == closer and stack:
            pairs[stack.pop()] = i
        i += 1
    return pairs


class CompilerState:
    """单次编译调用的游标与输出缓冲区。输出缓冲区支持弹出最后一个节点以绑定上下标。"""

    def __init__(self, source: str, depth: int = 0):
        self.source, self.pos, self.depth = source, 0, depth
        self.output: List[MathNode] = []
        self.braces = _match_pairs(source, '{', '}', skip_escapes=True)
        self.brackets = _match_pairs(source, '[', ']', skip_escapes=False)

    def has_input(self) -> bool: return self.pos < len(self.source)
    def emit(self, *nodes: MathNode): self.output.extend(nodes)

    def pop_last(self) -> List[MathNode]:
        return [self.output.pop()] if self.output else []

    def compile(self, latex: str) -> List[MathNode]:
        """编译一个参数 (至少返回一个节点)，嵌套层数加一。"""
        return compile_latex(latex, self.depth + 1)

    def compile_inner(self, latex: str) -> List[MathNode]:
        """编译一个花括号组的内容，可能返回空列表。"""
        return _compile(latex, self.depth + 1)


# --- 3. 参数读取辅助函数 ---
def _skip_spaces(source: str, pos: int) -> int:
    while pos < len(source) and source[pos].isspace():
        pos += 1
    return pos


def _read_group(state: CompilerState, pos: int) -> Optional[Tuple[str, int]]:
    """
    读取从 pos 开始 (允许前导空白) 的花括号组，右括号来自预先计算的配对表。
    括号不平衡时返回 None。

    Returns:
        (组内文本, 右括号之后的位置) 或 None。
    """
    pos = _skip_spaces(state.source, pos)
    end = state.braces.get(pos)
    if end is None:
        return None
    return state.source[pos + 1:end], end + 1


def _read_argument(state: CompilerState, pos: int) -> Optional[Tuple[str, int]]:
    """读取一个命令参数：花括号组、单个控制序列，或单个字符。"""
    source = state.source
    pos = _skip_spaces(source, pos)
    if pos >= len(source):
        return None
    if source[pos] == '{':
        return _read_group(state, pos)
    command = COMMAND_TOKEN.match(source, pos)
    if command:
        return command.group(0), command.end()
    if source[pos] in '}^_':
        return None
    return source[pos], pos + 1


def _read_optional(state: CompilerState, pos: int) -> Tuple[Optional[str], int]:
    """读取可选的方括号参数，例如 \\sqrt[3]{x} 中的 [3]。"""
    start = _skip_spaces(state.source, pos)
    end = state.brackets.get(start)
    if end is None:
        return None, pos
    return state.source[start + 1:end], end + 1


def _read_scripts(state: CompilerState, pos: int, lower: Optional[str] = None,
                  upper: Optional[str] = None) -> Tuple[Optional[str], Optional[str], int]:
    """读取紧随其后的 _ 与 ^ (任意顺序，各至多一次)。已填充的一侧遇到重复脚本时停止。"""
    source = state.source
    for _ in range(2):
        modifier = LIMITS_MODIFIER.match(source, pos)
        if modifier:
            pos = modifier.end()
        probe = _skip_spaces(source, pos)
        if probe >= len(source) or source[probe] not in '_^':
            break
        argument = _read_argument(state, probe + 1)
        if argument is None:
            break
        if source[probe] == '_' and lower is None:
            lower, pos = argument
        elif source[probe] == '^' and upper is None:
            upper, pos = argument
        else:
            break
    return lower, upper, pos


def _attach_scripts(state: CompilerState, base: List[MathNode], lower: Optional[str],
                    upper: Optional[str]) -> List[MathNode]:
    if lower is not None and upper is not None:
        return [SubSuperScript(base=base, sub=state.compile(lower), sup=state.compile(upper))]
    if lower is not None:
        return [SubScript(base=base, subscript=state.compile(lower))]
    if upper is not None:
        return [SuperScript(base=base, exponent=state.compile(upper))]
    return base


Handler = Callable[[CompilerState, re.Match], Optional[int]]


# --- 4. 规则处理函数 (返回新的游标位置；返回 None 表示放弃匹配) ---
def _handle_whitespace(state: CompilerState, match: re.Match) -> Optional[int]:
    return match.end()


def _handle_fraction(state: CompilerState, match: re.Match) -> Optional[int]:
    numerator = _read_argument(state, match.end())
    if numerator is None:
        return None
    denominator = _read_argument(state, numerator[1])
    if denominator is None:
        return None
    state.emit(Fraction(numerator=state.compile(numerator[0]), denominator=state.compile(denominator[0])))
    return denominator[1]


def _handle_binomial(state: CompilerState, match: re.Match) -> Optional[int]:
    top = _read_argument(state, match.end())
    if top is None:
        return None
    bottom = _read_argument(state, top[1])
    if bottom is None:
        return None
    state.emit(Run(text='('), Fraction(numerator=state.compile(top[0]), denominator=state.compile(bottom[0])),
               Run(text=')'))
    return bottom[1]


def _handle_radical(state: CompilerState, match: re.Match) -> Optional[int]:
    degree, pos = _read_optional(state, match.end())
    content = _read_argument(state, pos)
    if content is None:
        return None
    degree_nodes = state.compile(degree) if degree and degree.strip() else None
    state.emit(Radical(content=state.compile(content[0]), degree=degree_nodes))
    return content[1]


def _handle_big_operator(state: CompilerState, match: re.Match) -> Optional[int]:
    glyph = BIG_OPERATORS[match.group(1)]
    lower, upper, pos = _read_scripts(state, match.end())
    state.emit(*_attach_scripts(state, [Run(text=glyph)], lower, upper))
    return pos


def _handle_limit(state: CompilerState, match: re.Match) -> Optional[int]:
    pos = match.end()
    modifier = LIMITS_MODIFIER.match(state.source, pos)
    if modifier:
        pos = modifier.end()
    probe = _skip_spaces(state.source, pos)
    if probe < len(state.source) and state.source[probe] == '_':
        lower = _read_argument(state, probe + 1)
        if lower is not None:
            state.emit(SubScript(base=[Run(text='lim', plain=True)], subscript=state.compile(lower[0])))
            return lower[1]
    state.emit(Run(text='lim', plain=True))
    return pos


def _handle_function_name(state: CompilerState, match: re.Match) -> Optional[int]:
    state.emit(Run(text=match.group(1), plain=True))
    return match.end()


def _handle_char_subsup(state: CompilerState, match: re.Match) -> Optional[int]:
    lower = _read_argument(state, match.end())
    if lower is None:
        return None
    probe = _skip_spaces(state.source, lower[1])
    if probe >= len(state.source) or state.source[probe] != '^':
        return None
    upper = _read_argument(state, probe + 1)
    if upper is None:
        return None
    state.emit(SubSuperScript(base=[Run(text=match.group(1))], sub=state.compile(lower[0]),
                              sup=state.compile(upper[0])))
    return upper[1]


def _handle_standalone_script(state: CompilerState, match: re.Match) -> Optional[int]:
    argument = _read_argument(state, match.end())
    if argument is None:
        return None
    if not state.output:
        # 前面没有底数时只输出脚本内容
        state.emit(*state.compile_inner(argument[0]))
        return argument[1]
    base = state.pop_last()
    lower, upper = (argument[0], None) if match.group(0) == '_' else (None, argument[0])
    # 已有上标 (或下标) 的节点再接另一种脚本时合并为 SubSuperScript
    if len(base) == 1 and isinstance(base[0], SuperScript) and lower is not None:
        state.emit(SubSuperScript(base=base[0].base, sub=state.compile(lower), sup=base[0].exponent))
        return argument[1]
    if len(base) == 1 and isinstance(base[0], SubScript) and upper is not None:
        state.emit(SubSuperScript(base=base[0].base, sub=base[0].subscript, sup=state.compile(upper)))
        return argument[1]
    lower, upper, pos = _read_scripts(state, argument[1], lower, upper)
    state.emit(*_attach_scripts(state, base, lower, upper))
    return pos


def _handle_char_script(state: CompilerState, match: re.Match) -> Optional[int]:
    lower, upper, pos = _read_scripts(state, match.end(1))
    if lower is None and upper is None:
        return None
    state.emit(*_attach_scripts(state, [Run(text=match.group(1))], lower, upper))
    return pos


def _handle_bar(state: CompilerState, match: re.Match) -> Optional[int]:
    content = _read_argument(state, match.end())
    if content is None:
        return None
    state.emit(Bar(position=BAR_ACCENTS[match.group(1)], content=state.compile(content[0])))
    return content[1]


def _handle_combining_accent(state: CompilerState, match: re.Match) -> Optional[int]:
    content = _read_argument(state, match.end())
    if content is None:
        return None
    mark = COMBINING_ACCENTS['\\' + match.group(1)]
    text = nodes_to_text(state.compile(content[0]))
    state.emit(Run(text="".join(ch + mark if not ch.isspace() else ch for ch in text)))
    return content[1]


def _handle_symbol(state: CompilerState, match: re.Match) -> Optional[int]:
    glyph = lookup(match.group(0))
    if glyph is None:
        return None
    if glyph:
        state.emit(Run(text=glyph))
    return match.end()


def _handle_delimiter(state: CompilerState, match: re.Match) -> Optional[int]:
    delimiter = match.group(2)
    if delimiter != '.':
        glyph = lookup(delimiter) if delimiter.startswith('\\') else delimiter
        if glyph:
            state.emit(Run(text=glyph))
    return match.end()


def _handle_text_mode(state: CompilerState, match: re.Match) -> Optional[int]:
    content = _read_argument(state, match.end())
    if content is None:
        return None
    if content[0]:
        state.emit(Run(text=content[0], plain=True))
    return content[1]


def _handle_bold(state: CompilerState, match: re.Match) -> Optional[int]:
    content = _read_argument(state, match.end())
    if content is None:
        return None
    state.emit(*state.compile_inner(content[0]))
    return content[1]


def _handle_blackboard(state: CompilerState, match: re.Match) -> Optional[int]:
    content = _read_argument(state, match.end())
    if content is None:
        return None
    state.emit(Run(text=blackboard(content[0].strip())))
    return content[1]


def _handle_environment(state: CompilerState, match: re.Match) -> Optional[int]:
    logger.debug("丢弃环境标记: %s", match.group(0))
    return match.end()


def _handle_group(state: CompilerState, match: re.Match) -> Optional[int]:
    group = _read_group(state, match.start())
    if group is None:
        return None
    inner = state.compile_inner(group[0])
    lower, upper, pos = _read_scripts(state, group[1])
    if lower is not None or upper is not None:
        state.emit(*_attach_scripts(state, inner, lower, upper))
        return pos
    state.emit(*inner)
    return group[1]


def _handle_word(state: CompilerState, match: re.Match) -> Optional[int]:
    text, end = match.group(0), match.end()
    probe = _skip_spaces(state.source, end)
    # 下一个字符是上下标时，最后一个字符留给脚本规则作为底数
    if probe < len(state.source) and state.source[probe] in '^_' and len(text) > 1:
        text, end = text[:-1], end - 1
    state.emit(Run(text=text))
    return end


def _handle_character(state: CompilerState, match: re.Match) -> Optional[int]:
    state.emit(Run(text=match.group(0)))
    return match.end()


def _handle_unknown_command(state: CompilerState, match: re.Match) -> Optional[int]:
    logger.debug("丢弃未知命令: %s", match.group(0))
    return match.end()


_FUNCTION_ALTERNATION = "|".join(sorted(FUNCTION_NAMES, key=len, reverse=True))
_BIG_OPERATOR_ALTERNATION = "|".join(sorted(BIG_OPERATORS, key=len, reverse=True))

# --- 5. 有序规则表：先匹配者胜出 ---
RULES: List[Tuple[Pattern, Handler]] = [
    (re.compile(r"\s+"), _handle_whitespace),
    (re.compile(r"\\[dtc]?frac(?![a-zA-Z])"), _handle_fraction),
    (re.compile(r"\\[dt]?binom(?![a-zA-Z])"), _handle_binomial),
    (re.compile(r"\\sqrt(?![a-zA-Z])"), _handle_radical),
    (re.compile(r"\\(%s)(?![a-zA-Z])" % _BIG_OPERATOR_ALTERNATION), _handle_big_operator),
    (re.compile(r"\\lim(?![a-zA-Z])"), _handle_limit),
    (re.compile(r"\\(%s)(?![a-zA-Z])" % _FUNCTION_ALTERNATION), _handle_function_name),
    (re.compile(r"([A-Za-z0-9)\]])\s*_"), _handle_char_subsup),
    (re.compile(r"[\^_]"), _handle_standalone_script),
    (re.compile(r"([A-Za-z0-9)\]])(?=\s*[\^_])"), _handle_char_script),
    (re.compile(r"\\(%s)(?![a-zA-Z])" % "|".join(BAR_ACCENTS)), _handle_bar),
    (re.compile(r"\\(%s)(?![a-zA-Z])" % "|".join(c[1:] for c in COMBINING_ACCENTS)), _handle_combining_accent),
    (COMMAND_TOKEN, _handle_symbol),
    (re.compile(r"\\(left|right|[bB]igg?[lr]?)(?![a-zA-Z])\s*(\\[a-zA-Z]+|\\.|[^\s\\])"), _handle_delimiter),
    (re.compile(r"\\(?:text|textrm|textit|textbf|textnormal|mathrm|mathit|mathsf|mathtt|mbox|operatorname)"
                r"(?![a-zA-Z])\*?"), _handle_text_mode),
    (re.compile(r"\\(?:mathbf|boldsymbol|bm|mathcal|mathscr|mathfrak)(?![a-zA-Z])"), _handle_bold),
    (re.compile(r"\\mathbb(?![a-zA-Z])"), _handle_blackboard),
    (re.compile(r"\\(?:begin|end)\s*\{[^{}]*\}(?:\{[lcr|\s]+\})?"), _handle_environment),
    (re.compile(r"\{"), _handle_group),
    (re.compile(r"[0-9]+\.[0-9]+|[A-Za-z0-9]+"), _handle_word),
    (re.compile(r"[^\\{}^_$#%&~@\s]"), _handle_character),
    (re.compile(r"\\(?:[a-zA-Z]+\*?|.)"), _handle_unknown_command),
]


# --- 6. 公共接口 ---
def _compile(latex: str, depth: int = 0) -> List[MathNode]:
    """执行规则循环，可能返回空列表。每次迭代游标至少前进一个字符。"""
    if depth > MAX_NESTING_DEPTH:
        logger.warning("公式嵌套超过 %d 层，剩余部分按原文输出", MAX_NESTING_DEPTH)
        return [Run(text=latex)]
    state = CompilerState(latex, depth)
    while state.has_input():
        for pattern, handler in RULES:
            match = pattern.match(state.source, state.pos)
            if match is None:
                continue
            new_pos = handler(state, match)
            if new_pos is not None and new_pos > state.pos:
                state.pos = new_pos
                break
        else:
            if state.source[state.pos] not in DISCARDED_CHARS:
                logger.debug("丢弃无法识别的字符: %r", state.source[state.pos])
            state.pos += 1
    return state.output


def compile_latex(latex: str, depth: int = 0) -> List[MathNode]:
    """
    将 LaTeX 数学字符串编译为数学节点序列。

    该函数是全函数：对任何输入都不会抛出异常。无法识别的命令被丢弃；
    如果最终没有产生任何节点，返回包含原始字符串的单个 Run。
    嵌套超过 MAX_NESTING_DEPTH 层的子表达式原样输出。

    Args:
        latex (str): 数学定界符之间的原始 LaTeX 文本。
        depth (int): 当前嵌套层数，仅供递归调用使用。

    Returns:
        List[MathNode]: 至少包含一个节点的列表。
    """
    nodes = _compile(latex.strip(), depth)
    if not nodes:
        return [Run(text=latex)]
    return nodes


def nodes_to_text(nodes: List[MathNode]) -> str:
    """把节点树展平成可见文本，用于日志和重音字符的拼接。"""
    parts = []
    for node in nodes:
        if isinstance(node, Run):
            parts.append(node.text)
        elif isinstance(node, Fraction):
            parts.append(nodes_to_text(node.numerator) + "/" + nodes_to_text(node.denominator))
        elif isinstance(node, Radical):
            parts.append("√" + nodes_to_text(node.content))
        elif isinstance(node, SuperScript):
            parts.append(nodes_to_text(node.base) + "^" + nodes_to_text(node.exponent))
        elif isinstance(node, SubScript):
            parts.append(nodes_to_text(node.base) + "_" + nodes_to_text(node.subscript))
        elif isinstance(node, SubSuperScript):
            parts.append(nodes_to_text(node.base) + "_" + nodes_to_text(node.sub) + "^" + nodes_to_text(node.sup))
        elif isinstance(node, Bar):
            parts.append(nodes_to_text(node.content))
    return "".join(parts)
