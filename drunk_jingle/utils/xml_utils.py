"""
Helpers for working with opaque ElementTree nodes.
"""

from typing import Optional

from slixmpp.xmlstream import ET


def local_name(tag: str) -> str:
    """Strip the '{namespace}' prefix from a qualified tag."""
    return tag.split('}')[-1]


def namespace_of(tag: str) -> Optional[str]:
    """Return the namespace of a qualified tag, or None if unqualified."""
    if tag.startswith('{'):
        return tag[1:].split('}', 1)[0]
    return None


def _norm_text(text: Optional[str]) -> str:
    return (text or '').strip()


def elements_equal(first: ET.Element, second: ET.Element) -> bool:
    """
    Structural equality of two elements.

    Compares tag, attributes, whitespace-trimmed text and tail, and children
    in order. ElementTree elements only compare by identity, which is useless
    for round-trip checks.
    """
    if first is second:
        return True
    if first.tag != second.tag or first.attrib != second.attrib:
        return False
    if _norm_text(first.text) != _norm_text(second.text):
        return False
    if _norm_text(first.tail) != _norm_text(second.tail):
        return False
    if len(first) != len(second):
        return False
    return all(elements_equal(a, b) for a, b in zip(first, second))


def element_lists_equal(first, second) -> bool:
    """Pairwise structural equality of two element sequences."""
    first = list(first)
    second = list(second)
    if len(first) != len(second):
        return False
    return all(elements_equal(a, b) for a, b in zip(first, second))
