# mdword/schemas.py

from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

Alignment = Literal['left', 'center', 'right']

# ==============================================================================
# SECTION 1: MATH NODE SCHEMA (LaTeX 编译器的输出)
# ==============================================================================
class Run(BaseModel): type: Literal['run'] = 'run'; text: str; plain: bool = False
class Fraction(BaseModel): type: Literal['fraction'] = 'fraction'; numerator: List['MathNode']; denominator: List['MathNode']
class Radical(BaseModel): type: Literal['radical'] = 'radical'; content: List['MathNode']; degree: Optional[List['MathNode']] = None
class SuperScript(BaseModel): type: Literal['sup'] = 'sup'; base: List['MathNode']; exponent: List['MathNode']
class SubScript(BaseModel): type: Literal['sub'] = 'sub'; base: List['MathNode']; subscript: List['MathNode']
class SubSuperScript(BaseModel): type: Literal['subsup'] = 'subsup'; base: List['MathNode']; sub: List['MathNode']; sup: List['MathNode']


class Bar(BaseModel):
    """上划线/下划线。\\hat 也近似为顶部横线。"""
    type: Literal['bar'] = 'bar'
    position: Literal['top', 'bottom'] = 'top'
    content: List['MathNode']


MathNode = Annotated[Union[Run, Fraction, Radical, SuperScript, SubScript, SubSuperScript, Bar],
                     Field(discriminator='type')]

for _model in (Fraction, Radical, SuperScript, SubScript, SubSuperScript, Bar):
    _model.model_rebuild()

# ==============================================================================
# SECTION 2: MARKDOWN CONTENT NODE (Markdown 解析器输出的通用 AST 节点)
# ==============================================================================
MdNodeType = Literal['heading', 'paragraph', 'list', 'listItem', 'table', 'tableRow', 'tableCell', 'code',
                     'thematicBreak', 'blockquote', 'text', 'strong', 'emphasis', 'delete', 'link',
                     'inlineCode', 'inlineMath', 'math', 'break', 'image', 'html']


class MdNode(BaseModel):
    """
    Markdown AST 中的一个节点，只读地传给分类器和组装器。
    value 保存叶子节点的文本 (text / inlineCode / inlineMath / math / code)。
    """
    type: MdNodeType
    children: List['MdNode'] = Field(default_factory=list)
    value: Optional[str] = None
    depth: Optional[int] = None
    ordered: Optional[bool] = None
    start: Optional[int] = None
    align: Optional[List[Optional[Alignment]]] = None
    url: Optional[str] = None


MdNode.model_rebuild()

# ==============================================================================
# SECTION 3: CLASSIFIED BLOCK SCHEMA (分类器输出)
# ==============================================================================
class HeadingBlock(BaseModel): type: Literal['heading'] = 'heading'; depth: int = 1; children: List[MdNode] = Field(default_factory=list)
class ParagraphBlock(BaseModel): type: Literal['paragraph'] = 'paragraph'; children: List[MdNode] = Field(default_factory=list)
class EquationBlock(BaseModel): type: Literal['equation'] = 'equation'; latex: str
class ThematicBreakBlock(BaseModel): type: Literal['thematic_break'] = 'thematic_break'
class CodeBlock(BaseModel): type: Literal['code'] = 'code'; text: str = ""


class TableBlock(BaseModel):
    """header 与 rows 中每个单元格都是一组行内节点；所有行的列数一致。"""
    type: Literal['table'] = 'table'
    header: List[List[MdNode]] = Field(default_factory=list)
    align: List[Alignment] = Field(default_factory=list)
    rows: List[List[List[MdNode]]] = Field(default_factory=list)


class ListItemBlock(BaseModel):
    type: Literal['list_item'] = 'list_item'
    blocks: List['Block'] = Field(default_factory=list)


class ListBlock(BaseModel):
    type: Literal['list'] = 'list'
    ordered: bool = False
    start: int = 1
    items: List[ListItemBlock] = Field(default_factory=list)


class BlockquoteBlock(BaseModel):
    type: Literal['blockquote'] = 'blockquote'
    blocks: List['Block'] = Field(default_factory=list)


Block = Annotated[Union[HeadingBlock, ParagraphBlock, EquationBlock, ListBlock, TableBlock, ThematicBreakBlock,
                        CodeBlock, BlockquoteBlock], Field(discriminator='type')]

for _model in (ListItemBlock, ListBlock, BlockquoteBlock):
    _model.model_rebuild()

# ==============================================================================
# SECTION 4: FINAL DOCUMENT STRUCTURE SCHEMA (组装器输出，生成器输入)
# ==============================================================================
class TextRun(BaseModel):
    type: Literal['text'] = 'text'
    text: str
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    strike: Optional[bool] = None
    font_name: Optional[str] = None
    font_size: Optional[float] = None


class EquationRun(BaseModel): type: Literal['equation'] = 'equation'; nodes: List[MathNode]; display: bool = False


AnyRun = Annotated[Union[TextRun, EquationRun], Field(discriminator='type')]


class ParagraphProperties(BaseModel):
    heading_level: Optional[int] = None
    alignment: Optional[Alignment] = None
    indent_left_cm: Optional[float] = None
    spacing_before: Optional[float] = None
    spacing_after: Optional[float] = None
    border_bottom: bool = False


class ParagraphElement(BaseModel):
    type: Literal['paragraph'] = 'paragraph'
    runs: List[AnyRun] = Field(default_factory=list)
    properties: ParagraphProperties = Field(default_factory=ParagraphProperties)

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs if isinstance(r, TextRun))

    @property
    def is_display_equation(self) -> bool:
        return len(self.runs) == 1 and isinstance(self.runs[0], EquationRun) and self.runs[0].display


class TableCellElement(BaseModel):
    runs: List[AnyRun] = Field(default_factory=list)
    alignment: Alignment = 'left'


class TableElement(BaseModel):
    type: Literal['table'] = 'table'
    rows: List[List[TableCellElement]] = Field(default_factory=list)


AnyElement = Annotated[Union[ParagraphElement, TableElement], Field(discriminator='type')]


class PageSetup(BaseModel):
    margins: Optional[Dict[str, float]] = None


class DocumentModel(BaseModel):
    page_setup: PageSetup = Field(default_factory=PageSetup)
    elements: List[AnyElement] = Field(default_factory=list)
