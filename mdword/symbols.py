# mdword/symbols.py
from typing import Dict, Optional

# --- 1. 希腊字母 ---
GREEK_LETTERS = {'\\alpha': 'α', '\\beta': 'β', '\\gamma': 'γ', '\\delta': 'δ', '\\epsilon': 'ε', '\\zeta': 'ζ',
                 '\\eta': 'η', '\\theta': 'θ', '\\iota': 'ι', '\\kappa': 'κ', '\\lambda': 'λ', '\\mu': 'μ', '\\nu': 'ν',
                 '\\xi': 'ξ', '\\omicron': 'ο', '\\pi': 'π', '\\rho': 'ρ', '\\sigma': 'σ', '\\tau': 'τ',
                 '\\upsilon': 'υ', '\\phi': 'φ', '\\chi': 'χ', '\\psi': 'ψ', '\\omega': 'ω', '\\Gamma': 'Γ',
                 '\\Delta': 'Δ', '\\Theta': 'Θ', '\\Lambda': 'Λ', '\\Xi': 'Ξ', '\\Pi': 'Π', '\\Sigma': 'Σ',
                 '\\Upsilon': 'Υ', '\\Phi': 'Φ', '\\Psi': 'Ψ', '\\Omega': 'Ω', '\\varepsilon': 'ɛ', '\\vartheta': 'ϑ',
                 '\\varpi': 'ϖ', '\\varrho': 'ϱ', '\\varsigma': 'ς', '\\varphi': 'ϕ', '\\digamma': 'ϝ'}

# --- 2. 运算符与关系符 ---
OPERATORS = {'\\pm': '±', '\\mp': '∓', '\\times': '×', '\\div': '÷', '\\cdot': '·', '\\centerdot': '·',
             '\\ast': '∗', '\\star': '⋆', '\\bullet': '•', '\\circ': '∘', '\\oplus': '⊕', '\\ominus': '⊖',
             '\\otimes': '⊗', '\\odot': '⊙', '\\wedge': '∧', '\\vee': '∨', '\\setminus': '∖', '\\dagger': '†'}
RELATIONS = {'\\leq': '≤', '\\le': '≤', '\\geq': '≥', '\\ge': '≥', '\\neq': '≠', '\\ne': '≠', '\\approx': '≈',
             '\\equiv': '≡', '\\sim': '∼', '\\simeq': '≃', '\\cong': '≅', '\\propto': '∝', '\\ll': '≪',
             '\\gg': '≫', '\\leqslant': '⩽', '\\geqslant': '⩾', '\\perp': '⊥', '\\parallel': '∥', '\\mid': '∣',
             '\\models': '⊨', '\\vdash': '⊢', '\\doteq': '≐', '\\prec': '≺', '\\succ': '≻'}
SET_THEORY = {'\\subset': '⊂', '\\supset': '⊃', '\\subseteq': '⊆', '\\supseteq': '⊇', '\\in': '∈',
              '\\notin': '∉', '\\ni': '∋', '\\cup': '∪', '\\cap': '∩', '\\emptyset': '∅', '\\varnothing': '∅',
              '\\bigcup': '⋃', '\\bigcap': '⋂'}
LOGIC = {'\\forall': '∀', '\\exists': '∃', '\\nexists': '∄', '\\neg': '¬', '\\lnot': '¬', '\\land': '∧',
         '\\lor': '∨', '\\therefore': '∴', '\\because': '∵', '\\top': '⊤', '\\bot': '⊥'}
ARROWS = {'\\Rightarrow': '⇒', '\\Leftarrow': '⇐', '\\Leftrightarrow': '⇔', '\\rightarrow': '→',
          '\\leftarrow': '←', '\\leftrightarrow': '↔', '\\to': '→', '\\gets': '←', '\\uparrow': '↑',
          '\\downarrow': '↓', '\\Uparrow': '⇑', '\\Downarrow': '⇓', '\\implies': '⇒', '\\impliedby': '⇐',
          '\\iff': '⇔', '\\mapsto': '↦', '\\longrightarrow': '⟶', '\\longleftarrow': '⟵',
          '\\Longrightarrow': '⟹', '\\Longleftarrow': '⟸', '\\longleftrightarrow': '⟷',
          '\\Longleftrightarrow': '⟺', '\\longmapsto': '⟼', '\\hookrightarrow': '↪', '\\hookleftarrow': '↩',
          '\\nearrow': '↗', '\\searrow': '↘', '\\rightleftharpoons': '⇌'}
CALCULUS = {'\\infty': '∞', '\\partial': '∂', '\\nabla': '∇', '\\oint': '∮', '\\iint': '∬', '\\iiint': '∭',
            '\\hbar': 'ħ', '\\ell': 'ℓ', '\\Re': 'ℜ', '\\Im': 'ℑ', '\\aleph': 'ℵ', '\\wp': '℘',
            '\\coprod': '∐', '\\bigoplus': '⨁', '\\bigotimes': '⨂'}
MISC = {'\\angle': '∠', '\\triangle': '△', '\\square': '□', '\\diamond': '◇', '\\ldots': '…', '\\dots': '…',
        '\\cdots': '⋯', '\\vdots': '⋮', '\\ddots': '⋱', '\\prime': '′', '\\degree': '°', '\\langle': '⟨',
        '\\rangle': '⟩', '\\lceil': '⌈', '\\rceil': '⌉', '\\lfloor': '⌊', '\\rfloor': '⌋', '\\vert': '|',
        '\\Vert': '‖', '\\lvert': '|', '\\rvert': '|', '\\lVert': '‖', '\\rVert': '‖', '\\|': '‖',
        '\\checkmark': '✓', '\\cdotp': '·'}

# --- 3. 空白与转义 ---
# 零宽命令 \! 映射为空字符串；\\ (换行) 在单行公式中退化为一个空格
EM_SPACE, THIN_SPACE, MEDIUM_SPACE, THICK_SPACE = chr(0x2003), chr(0x2009), chr(0x205F), chr(0x2004)
SPACING = {'\\quad': EM_SPACE, '\\qquad': EM_SPACE * 2, '\\,': THIN_SPACE, '\\:': MEDIUM_SPACE,
           '\\;': THICK_SPACE, '\\ ': ' ', '\\!': '', '\\\\': ' ', '\\enspace': chr(0x2002),
           '\\thinspace': THIN_SPACE}
ESCAPES = {'\\$': '$', '\\%': '%', '\\&': '&', '\\#': '#', '\\_': '_', '\\{': '{', '\\}': '}',
           '\\lbrace': '{', '\\rbrace': '}', '\\lbrack': '[', '\\rbrack': ']'}

SYMBOL_MAP: Dict[str, str] = {**GREEK_LETTERS, **OPERATORS, **RELATIONS, **SET_THEORY, **LOGIC, **ARROWS,
                              **CALCULUS, **MISC, **SPACING, **ESCAPES}

# --- 4. 函数名与其他字母表 ---
FUNCTION_NAMES = ('arcsin', 'arccos', 'arctan', 'sinh', 'cosh', 'tanh', 'coth', 'sin', 'cos', 'tan', 'cot',
                  'sec', 'csc', 'log', 'ln', 'exp', 'min', 'max', 'sup', 'inf', 'det', 'gcd', 'lcm', 'deg',
                  'arg', 'ker', 'dim', 'hom', 'mod', 'Pr', 'lg')

BLACKBOARD_LETTERS = {'C': 'ℂ', 'H': 'ℍ', 'N': 'ℕ', 'P': 'ℙ', 'Q': 'ℚ', 'R': 'ℝ', 'Z': 'ℤ',
                      'A': '𝔸', 'B': '𝔹', 'D': '𝔻', 'E': '𝔼', 'F': '𝔽', 'G': '𝔾', 'I': '𝕀', 'J': '𝕁',
                      'K': '𝕂', 'L': '𝕃', 'M': '𝕄', 'O': '𝕆', 'S': '𝕊', 'T': '𝕋', 'U': '𝕌', 'V': '𝕍',
                      'W': '𝕎', 'X': '𝕏', 'Y': '𝕐', '1': '𝟙'}

# 组合字符重音：\tilde, \dot, \ddot, \vec
COMBINING_ACCENTS = {'\\tilde': chr(0x0303), '\\widetilde': chr(0x0303), '\\dot': chr(0x0307),
                     '\\ddot': chr(0x0308), '\\vec': chr(0x20D7)}


def lookup(command: str) -> Optional[str]:
    """按完整命令（含反斜杠）查找对应的 Unicode 字符；未知命令返回 None。"""
    return SYMBOL_MAP.get(command)


def blackboard(text: str) -> str:
    """将 \\mathbb{...} 的内容映射为双线体字母，无对应字符的保持原样。"""
    return "".join(BLACKBOARD_LETTERS.get(ch, ch) for ch in text)
