from __future__ import annotations

"""
One processing pass: scan -> resolve -> mark container -> inject.

The pass is synchronous and never raises for a single bad candidate; the
worst a candidate can do is be counted in `PassReport.failed`.
"""

from typing import Optional, Tuple

from loguru import logger

from .calculator import format_unit_price
from .config import MatchPolicy, default_policy
from .injector import inject_annotation
from .markers import ProcessedMarkers
from .normalize import collapse_whitespace
from .pipeline_types import InjectedAnnotation, PassReport, ProductBlock
from .resolver import ResolveStatus, resolve_product_block
from .scanner import scan_price_candidates
from .tree import DocumentTree


class UnitPriceEngine:
    def __init__(
        self,
        tree: DocumentTree,
        policy: Optional[MatchPolicy] = None,
        markers: Optional[ProcessedMarkers] = None,
    ):
        self.tree = tree
        self.policy = policy or default_policy()
        self.markers = markers or ProcessedMarkers(tree)

    def run_pass(self) -> PassReport:
        report = PassReport()
        candidates = scan_price_candidates(self.tree, self.policy)
        report.candidates = len(candidates)

        for price_el in candidates:
            resolution = resolve_product_block(self.tree, price_el, self.markers, self.policy)
            if resolution.status is ResolveStatus.ALREADY_HANDLED:
                report.already_handled += 1
                continue
            if resolution.block is None:
                report.unmatched += 1
                continue

            block = resolution.block
            # Reentrancy guard: claim the container before touching the tree.
            if not self.markers.mark(block.container):
                report.already_handled += 1
                continue

            annotation = inject_annotation(self.tree, block, self.markers)
            if annotation is None:
                report.failed += 1
                continue
            report.injected.append(_describe(block))

        logger.info(
            "Pass done: {} candidates, {} injected, {} already handled, {} unmatched, {} skipped",
            report.candidates,
            report.injected_count,
            report.already_handled,
            report.unmatched,
            report.failed,
        )
        return report


def _describe(block: ProductBlock) -> InjectedAnnotation:
    pair = block.pair
    return InjectedAnnotation(
        price_text=collapse_whitespace(pair.price.text) if pair else "",
        weight_text=collapse_whitespace(pair.weight.text) if pair else "",
        unit_price=format_unit_price(block.price, block.weight, block.unit),
        price=block.price,
        weight=block.weight,
        unit=block.unit,
    )


def annotate_html(html: str, policy: Optional[MatchPolicy] = None) -> Tuple[str, PassReport]:
    """Run a single pass over a static HTML document and serialise the result."""
    tree = DocumentTree.from_html(html)
    report = UnitPriceEngine(tree, policy=policy).run_pass()
    return tree.to_html(), report
