from __future__ import annotations

"""
BeautifulSoup-backed document tree with change notifications.

This is the host collaborator the engine reads from and writes to:
element queries in document order, rendered text, parent / sibling
relations, attribute and class access, element creation, sibling insertion
and a MutationObserver-style `observe()` hook.

Every structural insertion made through the tree (`insert_after`,
`append_html`) is reported to the observers whose target covers the
insertion point.  Edits made on the underlying soup directly are invisible
to observers.

bs4 tags compare by *content*, not identity, so everything in here uses
`is` for element identity and never `==` / `in`.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString
from loguru import logger

from .config import ANNOTATION_CLASS, NON_RENDERED_TAGS

DEFAULT_PARSER = "lxml"


@dataclass
class MutationRecord:
    """One structural change: nodes added under `target`."""

    target: Tag
    added_nodes: List[object] = field(default_factory=list)


MutationCallback = Callable[[List[MutationRecord]], None]


@dataclass
class Observation:
    tree: "DocumentTree"
    target: Tag
    callback: MutationCallback
    subtree: bool = True
    active: bool = True

    def disconnect(self) -> None:
        if self.active:
            self.active = False
            self.tree._drop_observation(self)


class DocumentTree:
    def __init__(self, soup: BeautifulSoup):
        self.soup = soup
        self._observations: List[Observation] = []

    @classmethod
    def from_html(cls, markup: str, parser: str = DEFAULT_PARSER) -> "DocumentTree":
        return cls(BeautifulSoup(markup or "", parser))

    # -----------------------
    # Structure
    # -----------------------

    @property
    def root(self) -> Tag:
        """The root container: <body> when present, else the document itself."""
        body = self.soup.body
        return body if body is not None else self.soup

    def is_document(self, node: object) -> bool:
        return node is self.soup

    def iter_elements(self, scope: Optional[Tag] = None) -> Iterator[Tag]:
        """Descendant elements of `scope` (default: whole document) in document order."""
        scope = self.soup if scope is None else scope
        for node in scope.descendants:
            if isinstance(node, Tag):
                yield node

    def tag_of(self, el: Tag) -> str:
        return (el.name or "").lower()

    def parent_of(self, el: Tag) -> Optional[Tag]:
        """Parent element, or None at <html> / for detached nodes."""
        parent = el.parent
        if parent is None or parent is self.soup:
            return None
        return parent

    def next_element_sibling(self, el: Tag) -> Optional[Tag]:
        return el.find_next_sibling()

    def contains(self, ancestor: Tag, node: object) -> bool:
        cur = node
        while cur is not None:
            if cur is ancestor:
                return True
            cur = cur.parent
        return False

    # -----------------------
    # Attributes / classes
    # -----------------------

    @staticmethod
    def classes_of(el: Tag) -> List[str]:
        raw = el.get("class") or []
        if isinstance(raw, str):
            return raw.split()
        return list(raw)

    def has_class(self, el: Tag, name: str) -> bool:
        return name in self.classes_of(el)

    def has_attribute(self, el: Tag, name: str) -> bool:
        return el.has_attr(name)

    def set_attribute(self, el: Tag, name: str, value: str) -> None:
        el[name] = value

    def is_annotation(self, node: object) -> bool:
        return isinstance(node, Tag) and self.has_class(node, ANNOTATION_CLASS)

    def inside_annotation(self, el: Tag) -> bool:
        cur: object = el
        while isinstance(cur, Tag) and cur is not self.soup:
            if self.is_annotation(cur):
                return True
            cur = cur.parent
        return False

    def inside_non_rendered(self, el: Tag) -> bool:
        """True when `el` is, or sits inside, a tag whose content is never rendered."""
        cur: object = el
        while isinstance(cur, Tag) and cur is not self.soup:
            if self.tag_of(cur) in NON_RENDERED_TAGS:
                return True
            cur = cur.parent
        return False

    # -----------------------
    # Text
    # -----------------------

    def text_of(self, el: object) -> str:
        """
        Rendered text of `el`: its text nodes concatenated in document order,
        skipping comments, non-rendered tags and annotation subtrees.
        """
        if isinstance(el, NavigableString):
            return "" if isinstance(el, PreformattedString) else str(el)
        if not isinstance(el, Tag) or self._skips_text(el):
            return ""

        parts: List[str] = []
        stack: List[object] = list(reversed(el.contents))
        while stack:
            node = stack.pop()
            if isinstance(node, NavigableString):
                if not isinstance(node, PreformattedString):
                    parts.append(str(node))
            elif isinstance(node, Tag) and not self._skips_text(node):
                stack.extend(reversed(node.contents))
        return "".join(parts)

    def _skips_text(self, el: Tag) -> bool:
        return self.tag_of(el) in NON_RENDERED_TAGS or self.is_annotation(el)

    # -----------------------
    # Mutation
    # -----------------------

    def create_element(
        self,
        tag: str,
        text: str = "",
        class_name: Optional[str] = None,
        style: Optional[str] = None,
    ) -> Tag:
        attrs = {}
        if class_name:
            attrs["class"] = class_name
        if style:
            attrs["style"] = style
        el = self.soup.new_tag(tag, attrs=attrs)
        if text:
            el.string = text
        return el

    def insert_after(self, ref: Tag, new: Tag) -> Tag:
        """
        Insert `new` as the immediate next sibling of `ref`.

        Raises ValueError when `ref` is detached (no parent), same as bs4.
        """
        parent = ref.parent
        if parent is None:
            raise ValueError("Reference element has no parent; cannot insert after it")
        ref.insert_after(new)
        self._notify([MutationRecord(target=parent, added_nodes=[new])])
        return new

    def append_html(self, parent: Tag, markup: str) -> List[object]:
        """Parse `markup` as a fragment and append its nodes to `parent`."""
        fragment = BeautifulSoup(markup, "html.parser")
        nodes = list(fragment.contents)
        for node in nodes:
            parent.append(node.extract())
        if nodes:
            self._notify([MutationRecord(target=parent, added_nodes=nodes)])
        return nodes

    # -----------------------
    # Change notification
    # -----------------------

    def observe(self, target: Tag, callback: MutationCallback, subtree: bool = True) -> Observation:
        obs = Observation(tree=self, target=target, callback=callback, subtree=subtree)
        self._observations.append(obs)
        logger.debug("Observing <{}> (subtree={})", getattr(target, "name", "?"), subtree)
        return obs

    def _drop_observation(self, obs: Observation) -> None:
        self._observations = [o for o in self._observations if o is not obs]

    def _covers(self, obs: Observation, record: MutationRecord) -> bool:
        if record.target is obs.target:
            return True
        return obs.subtree and self.contains(obs.target, record.target)

    def _notify(self, records: List[MutationRecord]) -> None:
        for obs in list(self._observations):
            if not obs.active:
                continue
            batch = [r for r in records if self._covers(obs, r)]
            if batch:
                obs.callback(batch)

    # -----------------------
    # Serialisation
    # -----------------------

    def to_html(self) -> str:
        return str(self.soup)
