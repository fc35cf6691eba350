from __future__ import annotations

"""
FastAPI application for the unit-price annotator.

- POST /annotate takes raw HTML or a URL, runs one pass and returns the
  annotated HTML plus one entry per injected unit price
- GET /health for liveness checks
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config import (
    AnnotateRequest,
    AnnotateResponse,
    AnnotationItem,
    HealthResponse,
    MatchPolicy,
)
from .engine import annotate_html
from .page_fetch import fetch_page_html


def run_annotation(html: str, policy: MatchPolicy) -> AnnotateResponse:
    annotated, report = annotate_html(html, policy=policy)
    items = [
        AnnotationItem(
            price_text=a.price_text,
            weight_text=a.weight_text,
            unit_price=a.unit_price,
            price=a.price,
            weight=a.weight,
            unit=a.unit,
        )
        for a in report.injected
    ]
    return AnnotateResponse(html=annotated, candidates=report.candidates, annotations=items)


# -----------------------
# FastAPI app
# -----------------------

app = FastAPI(title="unitprice")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


@app.post("/annotate", response_model=AnnotateResponse)
def annotate(req: AnnotateRequest) -> AnnotateResponse:
    if req.url:
        url = req.url.strip()
        logger.info("Annotating remote page: {}", url)
        html = fetch_page_html(url)
        if not html:
            raise HTTPException(status_code=502, detail=f"Could not fetch {url}")
    else:
        html = req.html or ""
    return run_annotation(html, req.policy())
