from __future__ import annotations

"""
Container resolution: from one price element to one ProductBlock.

Walks outward from the price element one ancestor at a time and stops at
the first (narrowest) ancestor holding a usable weight mention.  Two known
simplifications:

* the first weight mention in document order wins; there is no proximity
  scoring between the price and competing weights;
* a processed ancestor ends the walk for good, even when the new price
  would have resolved to a different, unprocessed product.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from bs4 import Tag
from loguru import logger

from .config import MatchPolicy, default_policy
from .markers import ProcessedMarkers
from .normalize import clean_number, is_positive_number
from .patterns import match_price, match_weight
from .pipeline_types import ProductBlock, TextMatch, ValidatedPair
from .tree import DocumentTree
from .utils.text_clean import preview_text


class ResolveStatus(str, Enum):
    FOUND = "found"
    ALREADY_HANDLED = "already_handled"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class Resolution:
    status: ResolveStatus
    block: Optional[ProductBlock] = None
    depth: Optional[int] = None


def first_weight_element(tree: DocumentTree, scope: Tag) -> Optional[Tuple[Tag, TextMatch]]:
    """First descendant of `scope` (document order) whose text has a weight."""
    for el in tree.iter_elements(scope):
        if tree.is_annotation(el) or tree.inside_non_rendered(el):
            continue
        match = match_weight(tree.text_of(el))
        if match is not None:
            return el, match.with_element(el)
    return None


def validate_pair(price: TextMatch, weight: TextMatch) -> Optional[ValidatedPair]:
    price_value = clean_number(price.literal)
    weight_value = clean_number(weight.literal)
    if not (is_positive_number(price_value) and is_positive_number(weight_value)):
        return None
    return ValidatedPair(price=price, weight=weight, price_value=price_value, weight_value=weight_value)


def resolve_product_block(
    tree: DocumentTree,
    price_element: Tag,
    markers: ProcessedMarkers,
    policy: Optional[MatchPolicy] = None,
) -> Resolution:
    policy = policy or default_policy()

    price_match = match_price(tree.text_of(price_element))
    if price_match is None:
        return Resolution(ResolveStatus.NO_MATCH)
    price_match = price_match.with_element(price_element)

    current: Optional[Tag] = price_element
    for depth in range(policy.max_ancestor_depth):
        if current is None:
            break
        if markers.is_processed(current):
            logger.debug("Ancestor at depth {} already processed; skipping '{}'", depth, preview_text(price_match.text))
            return Resolution(ResolveStatus.ALREADY_HANDLED, depth=depth)

        found = first_weight_element(tree, current)
        if found is not None:
            _, weight_match = found
            pair = validate_pair(price_match, weight_match)
            if pair is not None:
                block = ProductBlock(
                    container=current,
                    price_element=price_element,
                    price=pair.price_value,
                    weight=pair.weight_value,
                    unit=weight_match.token,
                    pair=pair,
                )
                return Resolution(ResolveStatus.FOUND, block=block, depth=depth)

        current = tree.parent_of(current)

    logger.debug("No valid weight within {} levels of '{}'", policy.max_ancestor_depth, preview_text(tree.text_of(price_element)))
    return Resolution(ResolveStatus.NO_MATCH)
