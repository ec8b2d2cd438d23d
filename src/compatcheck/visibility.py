"""Counting visible elements in static markup.

Visibility is judged from inline styles only: an element is hidden when its
``display`` is ``none`` or its ``visibility`` is ``hidden``. Zero size,
``opacity: 0`` and off-screen positioning do not count as hidden.
"""

from typing import Dict

from bs4 import BeautifulSoup
from bs4.element import Tag


def parse_markup(markup: str) -> BeautifulSoup:
    """Parse markup with tag and attribute names lower-cased."""
    return BeautifulSoup(markup or "", "html.parser")


def inline_style(element: Tag) -> Dict[str, str]:
    """Declarations of an element's style attribute.

    Later declarations win. Property names and values are lower-cased and
    ``!important`` is dropped.
    """
    style = element.get("style")
    if not style:
        return {}
    if isinstance(style, list):
        style = " ".join(style)

    declarations = {}
    for declaration in style.split(";"):
        prop, sep, value = declaration.partition(":")
        if not sep:
            continue
        prop = prop.strip().lower()
        value = value.lower().replace("!important", "").strip()
        if prop:
            declarations[prop] = value
    return declarations


def is_visible(element: Tag) -> bool:
    style = inline_style(element)
    return style.get("display") != "none" and style.get("visibility") != "hidden"


def count_visible_elements(document: BeautifulSoup, selector: str) -> int:
    """Count elements matching a CSS selector that are not hidden.

    Args:
        document: Parsed document
        selector: CSS selector, usually a tag name

    Returns:
        Number of matching visible elements
    """
    return sum(1 for element in document.select(selector) if is_visible(element))
