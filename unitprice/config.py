from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import List, Literal, Optional

from loguru import logger
from pydantic import BaseModel, Field, model_validator


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]
LOG_DIR = PROJECT_ROOT / "logs"


# ---------------------------
# In-tree markers (stable idempotence keys, never rename)
# ---------------------------

PROCESSED_ATTR = "data-unit-price-processed"
ANNOTATION_CLASS = "unit-price-kr-kg-appended"
ANNOTATION_TAG = "span"
ANNOTATION_STYLE = (
    "font-weight: 500; color: #4b5563; font-size: 0.85em; "
    "margin-left: 4px; display: inline-block"
)

# Tags that never hold a price candidate
IGNORED_TAGS = frozenset(
    {"script", "style", "noscript", "html", "head", "meta", "link", "title", "template", "base"}
)

# Tags whose text is not rendered and never feeds a match
NON_RENDERED_TAGS = frozenset({"script", "style", "noscript", "template"})


# ---------------------------
# Matching heuristics & env toggles
# ---------------------------

def _env_int(name: str, default: int, lo: int, hi: int) -> int:
    """Integer env toggle; unparsable values fall back to `default`, others are clamped to [lo, hi]."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring {}={!r}: not an integer, using {}", name, raw, default)
        return default
    clamped = min(max(value, lo), hi)
    if clamped != value:
        logger.warning("{}={} is outside [{}, {}], using {}", name, value, lo, hi, clamped)
    return clamped


DEFAULT_MAX_ANCESTOR_DEPTH = 8
MAX_ANCESTOR_DEPTH_LIMIT = 64
MAX_ANCESTOR_DEPTH = _env_int(
    "UNITPRICE_MAX_ANCESTOR_DEPTH", DEFAULT_MAX_ANCESTOR_DEPTH, 1, MAX_ANCESTOR_DEPTH_LIMIT
)

TIE_BREAK_FIRST = "first_in_document_order"

# Debounce window between the last change and a re-scan
DEFAULT_DEBOUNCE_MS = 200
DEBOUNCE_MS = _env_int("UNITPRICE_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS, 0, 60_000)
DEBOUNCE_SECONDS = DEBOUNCE_MS / 1000.0


# ---------------------------
# Page fetch / HTTP hardening
# ---------------------------

HTTP_CONNECT_TIMEOUT = 3.0
HTTP_READ_TIMEOUT = 10.0
HTTP_MAX_REDIRECTS = 3
HTTP_MAX_BYTES = 5_000_000  # 5 MB cap

HTTP_USER_AGENT = "unitprice-annotator/1.0 (+https://example.com)"


# ---------------------------
# Logging / observability
# ---------------------------

LOG_LEVEL = os.getenv("UNITPRICE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {name}:{line} - {message}"


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """
    Replace loguru's default sink with a stderr sink at the requested level.

    A rotating DEBUG file sink is added when `log_file` is given; a bare
    file name lands under LOG_DIR.
    """
    logger.remove()
    logger.add(sys.stderr, level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
    if log_file is not None:
        log_file = Path(log_file)
        if log_file.parent == Path("."):
            log_file = LOG_DIR / log_file
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", rotation="5 MB", retention=3)


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class MatchPolicy(BaseModel):
    """
    Heuristic knobs for candidate scanning and container resolution.

    Only first-in-document-order tie-breaking is implemented; the field
    exists so the choice shows up in configuration rather than in code.
    """

    max_ancestor_depth: int = Field(default=DEFAULT_MAX_ANCESTOR_DEPTH, ge=1, le=MAX_ANCESTOR_DEPTH_LIMIT)
    tie_break: Literal["first_in_document_order"] = TIE_BREAK_FIRST
    leaf_preference: bool = True

    model_config = {"frozen": True}


def default_policy() -> MatchPolicy:
    return MatchPolicy(max_ancestor_depth=MAX_ANCESTOR_DEPTH)


class AnnotateRequest(BaseModel):
    """
    Request body for POST /annotate. Exactly one of `html` / `url`.
    """

    html: Optional[str] = None
    url: Optional[str] = None
    max_ancestor_depth: Optional[int] = Field(default=None, ge=1, le=MAX_ANCESTOR_DEPTH_LIMIT)
    leaf_preference: Optional[bool] = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> "AnnotateRequest":
        has_html = bool(self.html and self.html.strip())
        has_url = bool(self.url and self.url.strip())
        if has_html == has_url:
            raise ValueError("Provide exactly one of 'html' or 'url'")
        return self

    def policy(self) -> MatchPolicy:
        base = default_policy()
        return MatchPolicy(
            max_ancestor_depth=self.max_ancestor_depth or base.max_ancestor_depth,
            leaf_preference=base.leaf_preference if self.leaf_preference is None else self.leaf_preference,
        )


class AnnotationItem(BaseModel):
    """One injected unit price, as reported back to API callers."""

    price_text: str
    weight_text: str
    unit_price: str
    price: float = Field(gt=0)
    weight: float = Field(gt=0)
    unit: str


class AnnotateResponse(BaseModel):
    """
    Response body for POST /annotate.
    """

    html: str
    candidates: int = Field(ge=0)
    annotations: List[AnnotationItem]


class HealthResponse(BaseModel):
    status: str
