"""Flatten an arbitrary XML tree into a multi-valued Solr document.

Every element and attribute becomes a field named after its path from the
flattened element, e.g. ``<e><e1 at="x">v</e1></e>`` gives ``e_sim``,
``e_e1_sim`` and ``e_e1_at_sim``. An element's value is all of the text
beneath it, whitespace-collapsed; repeated siblings accumulate values in
document order. Elements and attributes without text produce no field.
"""
from __future__ import annotations

from typing import Iterator, List, Optional

from lxml import etree

from dor_indexer.index.fields import FieldMap

FIELD_SUFFIX = "_sim"
XML_NS = "http://www.w3.org/XML/1998/namespace"


def field_name(path: List[str]) -> str:
    return "_".join(path) + FIELD_SUFFIX


def _segment(local: str, prefix: Optional[str]) -> str:
    return f"{prefix}_{local}" if prefix else local


def _is_element(node) -> bool:
    # comments and processing instructions have callables as their tag
    return isinstance(node.tag, str)


def _element_segment(el) -> str:
    return _segment(etree.QName(el).localname, el.prefix)


def _attribute_prefix(el, namespace: Optional[str]) -> Optional[str]:
    if not namespace:
        return None
    if namespace == XML_NS:
        return "xml"
    for prefix, uri in el.nsmap.items():
        if prefix and uri == namespace:
            return prefix
    return None


def _text_runs(el) -> Iterator[str]:
    if el.text:
        yield el.text
    for child in el:
        if _is_element(child):
            yield from _text_runs(child)
        if child.tail:
            yield child.tail


def element_text(el) -> str:
    """All text under ``el`` in document order, joined by single spaces."""
    return " ".join(" ".join(_text_runs(el)).split())


def _flatten_into(fields: FieldMap, el, path: List[str]) -> None:
    fields.add(field_name(path), element_text(el))

    for key, value in el.attrib.items():
        qname = etree.QName(key)
        segment = _segment(qname.localname, _attribute_prefix(el, qname.namespace))
        fields.add(field_name(path + [segment]), value)

    for child in el:
        if _is_element(child):
            _flatten_into(fields, child, path + [_element_segment(child)])


def flatten(element) -> FieldMap:
    """Flatten ``element`` and all of its descendants, keyed from ``element``."""
    if isinstance(element, etree._ElementTree):
        element = element.getroot()
    fields = FieldMap()
    _flatten_into(fields, element, [_element_segment(element)])
    return fields


def flatten_document(root) -> FieldMap:
    """Flatten each child of a document root; the root's own name is dropped.

    Used for MODS, where every field would otherwise start with ``mods_``.
    """
    if isinstance(root, etree._ElementTree):
        root = root.getroot()
    fields = FieldMap()
    for child in root:
        if _is_element(child):
            fields.combine(flatten(child))
    return fields
