from loguru import logger

from unitprice.config import ANNOTATION_CLASS, PROCESSED_ATTR
from unitprice.injector import inject_annotation
from unitprice.markers import ProcessedMarkers
from unitprice.pipeline_types import ProductBlock
from unitprice.tree import DocumentTree

PAGE = "<body><div id='prod'><span>500 g</span><b id='price'>99 kr</b><i>Köp</i></div></body>"


def _block(tree, price_el, container=None):
    return ProductBlock(
        container=container if container is not None else tree.soup.find(id="prod"),
        price_element=price_el,
        price=99.0,
        weight=500.0,
        unit="g",
    )


def _capture_warnings():
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    return messages, handler_id


def test_inserts_annotation_as_next_sibling():
    tree = DocumentTree.from_html(PAGE)
    markers = ProcessedMarkers(tree)
    price = tree.soup.find(id="price")

    ann = inject_annotation(tree, _block(tree, price), markers)

    assert ann is not None
    assert ann.get_text() == "- ~198.00 / kg"
    assert tree.is_annotation(ann)
    assert tree.next_element_sibling(price) is ann
    assert price.get(PROCESSED_ATTR) == "true"


def test_existing_annotation_is_not_duplicated():
    tree = DocumentTree.from_html(
        "<body><div id='prod'><span>500 g</span><b id='price'>99 kr</b>"
        f"<span class='{ANNOTATION_CLASS}'>- ~198.00 / kg</span></div></body>"
    )
    markers = ProcessedMarkers(tree)
    price = tree.soup.find(id="price")

    assert inject_annotation(tree, _block(tree, price), markers) is None
    assert len(tree.soup.find_all(class_=ANNOTATION_CLASS)) == 1
    assert markers.is_processed(price)


def test_root_level_price_is_skipped_with_warning():
    tree = DocumentTree.from_html("<body>99 kr 500 g</body>")
    markers = ProcessedMarkers(tree)
    messages, handler_id = _capture_warnings()
    try:
        result = inject_annotation(tree, _block(tree, tree.root, container=tree.root), markers)
    finally:
        logger.remove(handler_id)

    assert result is None
    assert markers.is_processed(tree.root)
    assert any("too high" in m for m in messages)
    assert tree.soup.find(class_=ANNOTATION_CLASS) is None


def test_detached_price_element_is_skipped():
    tree = DocumentTree.from_html(PAGE)
    markers = ProcessedMarkers(tree)
    price = tree.soup.find(id="price").extract()

    assert inject_annotation(tree, _block(tree, price), markers) is None
    assert markers.is_processed(price)


def test_insertion_failure_is_reported_not_raised(monkeypatch):
    tree = DocumentTree.from_html(PAGE)
    markers = ProcessedMarkers(tree)
    price = tree.soup.find(id="price")

    def boom(ref, new):
        raise ValueError("node went away")

    monkeypatch.setattr(tree, "insert_after", boom)
    messages, handler_id = _capture_warnings()
    try:
        result = inject_annotation(tree, _block(tree, price), markers)
    finally:
        logger.remove(handler_id)

    assert result is None
    assert any("Failed to inject" in m for m in messages)
    assert markers.is_processed(price)
