import pytest
from pydantic import ValidationError

from unitprice import config
from unitprice.config import (
    AnnotateRequest,
    AnnotateResponse,
    AnnotationItem,
    HealthResponse,
    MatchPolicy,
)


def test_match_policy_defaults():
    policy = MatchPolicy()
    assert policy.max_ancestor_depth == 8
    assert policy.tie_break == "first_in_document_order"
    assert policy.leaf_preference is True


@pytest.mark.parametrize("depth", [0, -1, 65])
def test_match_policy_rejects_out_of_range_depth(depth):
    with pytest.raises(ValidationError):
        MatchPolicy(max_ancestor_depth=depth)


def test_match_policy_only_supports_document_order_tie_break():
    with pytest.raises(ValidationError):
        MatchPolicy(tie_break="closest")


def test_match_policy_is_frozen():
    policy = MatchPolicy()
    with pytest.raises(ValidationError):
        policy.max_ancestor_depth = 3


def test_annotate_request_needs_exactly_one_source():
    assert AnnotateRequest(html="<p>1 kr</p>").html == "<p>1 kr</p>"
    assert AnnotateRequest(url="https://shop.example/p/1").url == "https://shop.example/p/1"
    with pytest.raises(ValidationError):
        AnnotateRequest()
    with pytest.raises(ValidationError):
        AnnotateRequest(html="  ")
    with pytest.raises(ValidationError):
        AnnotateRequest(html="<p>x</p>", url="https://shop.example")


def test_annotate_request_policy_overrides():
    req = AnnotateRequest(html="<p>x</p>", max_ancestor_depth=3, leaf_preference=False)
    policy = req.policy()
    assert policy.max_ancestor_depth == 3
    assert policy.leaf_preference is False


def test_annotation_item_requires_positive_values():
    item = AnnotationItem(
        price_text="99 kr",
        weight_text="500 g",
        unit_price="~198.00 / kg",
        price=99.0,
        weight=500.0,
        unit="g",
    )
    resp = AnnotateResponse(html="<p></p>", candidates=1, annotations=[item])
    assert len(resp.annotations) == 1

    with pytest.raises(ValidationError):
        AnnotationItem(price_text="0 kr", weight_text="500 g", unit_price="", price=0, weight=500, unit="g")


def test_health_response():
    health = HealthResponse(status="healthy")
    assert health.status == "healthy"


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, 8),
        ("", 8),
        ("12", 12),
        ("100", 64),
        ("0", 1),
        ("deep", 8),
    ],
)
def test_env_depth_is_clamped_to_the_policy_range(monkeypatch, raw, expected):
    if raw is None:
        monkeypatch.delenv("UNITPRICE_MAX_ANCESTOR_DEPTH", raising=False)
    else:
        monkeypatch.setenv("UNITPRICE_MAX_ANCESTOR_DEPTH", raw)

    depth = config._env_int("UNITPRICE_MAX_ANCESTOR_DEPTH", 8, 1, config.MAX_ANCESTOR_DEPTH_LIMIT)

    assert depth == expected
    assert MatchPolicy(max_ancestor_depth=depth).max_ancestor_depth == expected
