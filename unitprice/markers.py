from __future__ import annotations

from bs4 import Tag

from .config import PROCESSED_ATTR
from .tree import DocumentTree


class ProcessedMarkers:
    """
    Append-only "already processed" record kept on the elements themselves.

    bs4 tags have content-based equality and no stable identity we could key
    a set on across re-parses, so the mark lives in a reserved attribute.
    This class is the only code allowed to touch that attribute: marks are
    set, never cleared.
    """

    def __init__(self, tree: DocumentTree, attr: str = PROCESSED_ATTR):
        self.tree = tree
        self.attr = attr

    def is_processed(self, el: Tag) -> bool:
        return self.tree.has_attribute(el, self.attr)

    def mark(self, el: Tag) -> bool:
        """Mark `el`; returns False when it was already marked."""
        if self.is_processed(el):
            return False
        self.tree.set_attribute(el, self.attr, "true")
        return True
