from __future__ import annotations

from typing import Dict, List, Optional

from bs4 import Tag
from loguru import logger

from .config import IGNORED_TAGS, MatchPolicy, default_policy
from .patterns import match_price
from .tree import DocumentTree


def _eligible(tree: DocumentTree, el: Tag, root: Tag) -> bool:
    if tree.tag_of(el) in IGNORED_TAGS:
        return False
    if el is root:
        return False
    if tree.inside_non_rendered(el):
        return False
    return not tree.inside_annotation(el)


def scan_price_candidates(tree: DocumentTree, policy: Optional[MatchPolicy] = None) -> List[Tag]:
    """
    Leaf-most elements whose rendered text contains a price, in document order.

    Already-processed elements are *not* filtered here; the resolver decides
    what to do with them.  No tree writes.
    """
    policy = policy or default_policy()
    root = tree.root
    elements = list(tree.iter_elements())

    # id() keys are safe: every element stays referenced by `elements` for the whole scan.
    has_price: Dict[int, bool] = {}
    for el in elements:
        # Prices hidden in noscript / template never count, not even as descendants.
        has_price[id(el)] = not tree.inside_non_rendered(el) and match_price(tree.text_of(el)) is not None

    # Walk in reverse document order so children are settled before parents.
    below: Dict[int, bool] = {}
    for el in reversed(elements):
        found = False
        for child in el.children:
            if not isinstance(child, Tag) or tree.is_annotation(child):
                continue
            if has_price.get(id(child)) or below.get(id(child)):
                found = True
                break
        below[id(el)] = found

    candidates: List[Tag] = []
    for el in elements:
        if not has_price[id(el)] or not _eligible(tree, el, root):
            continue
        if policy.leaf_preference and below[id(el)]:
            continue
        candidates.append(el)

    logger.info("Found {} potential price elements", len(candidates))
    return candidates
