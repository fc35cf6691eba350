from __future__ import annotations

from typing import Optional

from bs4 import Tag
from loguru import logger

from .calculator import format_unit_price
from .config import ANNOTATION_CLASS, ANNOTATION_STYLE, ANNOTATION_TAG
from .markers import ProcessedMarkers
from .pipeline_types import ProductBlock
from .tree import DocumentTree


def _too_high(tree: DocumentTree, el: Tag) -> bool:
    if el is tree.root or tree.tag_of(el) == "html":
        return True
    parent = el.parent
    return parent is None or tree.is_document(parent)


def inject_annotation(tree: DocumentTree, block: ProductBlock, markers: ProcessedMarkers) -> Optional[Tag]:
    """
    Put "- ~X.XX / kg" right after the price element, at most once.

    The price element is marked first, so it is never considered again
    whatever happens below.  Returns the new annotation element, or None
    when nothing was inserted.
    """
    price_el = block.price_element
    markers.mark(price_el)

    if _too_high(tree, price_el):
        logger.warning("Skipping price element that is too high in the tree: <{}>", tree.tag_of(price_el))
        return None

    nxt = tree.next_element_sibling(price_el)
    if nxt is not None and tree.is_annotation(nxt):
        return None

    unit_price_text = format_unit_price(block.price, block.weight, block.unit)
    annotation = tree.create_element(
        ANNOTATION_TAG,
        text=f"- {unit_price_text}",
        class_name=ANNOTATION_CLASS,
        style=ANNOTATION_STYLE,
    )

    try:
        tree.insert_after(price_el, annotation)
    except ValueError as e:
        logger.warning("Failed to inject unit price: {}", e)
        return None

    logger.info("Injected {} for price {}", unit_price_text, block.price)
    return annotation
