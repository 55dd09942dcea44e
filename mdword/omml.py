# mdword/omml.py
from typing import List

from lxml import etree

from .schemas import Bar, Fraction, MathNode, Radical, Run, SubScript, SubSuperScript, SuperScript

# --- 1. OMML 命名空间和常量 ---
M_NAMESPACE = "http://schemas.openxmlformats.org/officeDocument/2006/math"
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
M_PREFIX = "{%s}" % M_NAMESPACE
NSMAP = {'m': M_NAMESPACE}


def _m_tag(tag_name: str) -> str: return M_PREFIX + tag_name


# --- 2. OMML 元素构建器 (Element Builders) ---
def _create_run_omml(text: str, is_plain: bool = False) -> etree._Element:
    mr = etree.Element(_m_tag('r'), nsmap=NSMAP)
    if is_plain:
        rpr = etree.SubElement(mr, _m_tag('rPr'))
        sty = etree.SubElement(rpr, _m_tag('sty')); sty.set(_m_tag('val'), 'p')
    mt = etree.SubElement(mr, _m_tag('t'))
    if text != text.strip(): mt.set('{%s}space' % XML_NAMESPACE, 'preserve')
    mt.text = text
    return mr


def _append_all(parent: etree._Element, children: List[etree._Element]):
    for el in children: parent.append(el)


def _create_fraction_omml(num: List[etree._Element], den: List[etree._Element]) -> etree._Element:
    mf = etree.Element(_m_tag('f'), nsmap=NSMAP)
    _append_all(etree.SubElement(mf, _m_tag('num')), num)
    _append_all(etree.SubElement(mf, _m_tag('den')), den)
    return mf


def _create_radical_omml(base: List[etree._Element], degree: List[etree._Element] = None) -> etree._Element:
    mrad = etree.Element(_m_tag('rad'), nsmap=NSMAP)
    if not degree:
        mradPr = etree.SubElement(mrad, _m_tag('radPr'))
        mdegHide = etree.SubElement(mradPr, _m_tag('degHide')); mdegHide.set(_m_tag('val'), '1')
    _append_all(etree.SubElement(mrad, _m_tag('deg')), degree or [])
    _append_all(etree.SubElement(mrad, _m_tag('e')), base)
    return mrad


def _create_superscript_omml(base: List[etree._Element], sup: List[etree._Element]) -> etree._Element:
    msSup = etree.Element(_m_tag('sSup'), nsmap=NSMAP)
    _append_all(etree.SubElement(msSup, _m_tag('e')), base)
    _append_all(etree.SubElement(msSup, _m_tag('sup')), sup)
    return msSup


def _create_subscript_omml(base: List[etree._Element], sub: List[etree._Element]) -> etree._Element:
    msSub = etree.Element(_m_tag('sSub'), nsmap=NSMAP)
    _append_all(etree.SubElement(msSub, _m_tag('e')), base)
    _append_all(etree.SubElement(msSub, _m_tag('sub')), sub)
    return msSub


def _create_subsup_omml(base: List[etree._Element], sub: List[etree._Element],
                        sup: List[etree._Element]) -> etree._Element:
    msSubSup = etree.Element(_m_tag('sSubSup'), nsmap=NSMAP)
    _append_all(etree.SubElement(msSubSup, _m_tag('e')), base)
    _append_all(etree.SubElement(msSubSup, _m_tag('sub')), sub)
    _append_all(etree.SubElement(msSubSup, _m_tag('sup')), sup)
    return msSubSup


def _create_bar_omml(base: List[etree._Element], position: str) -> etree._Element:
    mbar = etree.Element(_m_tag('bar'), nsmap=NSMAP)
    mbarPr = etree.SubElement(mbar, _m_tag('barPr'))
    mpos = etree.SubElement(mbarPr, _m_tag('pos')); mpos.set(_m_tag('val'), 'top' if position == 'top' else 'bot')
    _append_all(etree.SubElement(mbar, _m_tag('e')), base)
    return mbar


# --- 3. 数学节点 -> OMML ---
def nodes_to_omml(nodes: List[MathNode]) -> List[etree._Element]:
    """将数学节点序列逐个降级为 OMML 元素。"""
    elements = []
    for node in nodes:
        if isinstance(node, Run):
            elements.append(_create_run_omml(node.text, node.plain))
        elif isinstance(node, Fraction):
            elements.append(_create_fraction_omml(nodes_to_omml(node.numerator), nodes_to_omml(node.denominator)))
        elif isinstance(node, Radical):
            degree = nodes_to_omml(node.degree) if node.degree else None
            elements.append(_create_radical_omml(nodes_to_omml(node.content), degree))
        elif isinstance(node, SuperScript):
            elements.append(_create_superscript_omml(nodes_to_omml(node.base), nodes_to_omml(node.exponent)))
        elif isinstance(node, SubScript):
            elements.append(_create_subscript_omml(nodes_to_omml(node.base), nodes_to_omml(node.subscript)))
        elif isinstance(node, SubSuperScript):
            elements.append(_create_subsup_omml(nodes_to_omml(node.base), nodes_to_omml(node.sub),
                                                nodes_to_omml(node.sup)))
        elif isinstance(node, Bar):
            elements.append(_create_bar_omml(nodes_to_omml(node.content), node.position))
    return elements


def build_omath(nodes: List[MathNode]) -> etree._Element:
    """构建一个行内 m:oMath 元素。"""
    omml_math = etree.Element(_m_tag('oMath'), nsmap=NSMAP)
    _append_all(omml_math, nodes_to_omml(nodes))
    return omml_math


def build_omath_para(nodes: List[MathNode], alignment: str = 'center') -> etree._Element:
    """构建一个独立公式段落 m:oMathPara，并设置对齐方式。"""
    omml_para = etree.Element(_m_tag('oMathPara'), nsmap=NSMAP)
    omml_para_pr = etree.SubElement(omml_para, _m_tag('oMathParaPr'))
    jc = etree.SubElement(omml_para_pr, _m_tag('jc')); jc.set(_m_tag('val'), alignment)
    omml_para.append(build_omath(nodes))
    return omml_para
