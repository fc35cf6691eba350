# unitprice/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import ValidationError

from . import config
from .engine import annotate_html
from .page_fetch import fetch_page_html


def _read_input(args: argparse.Namespace) -> Optional[str]:
    if args.url:
        return fetch_page_html(args.url)
    path = Path(args.input)
    if not path.exists():
        logger.error("File not found: {}", path)
        return None
    return path.read_text(encoding="utf-8", errors="replace")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="unitprice",
        description="Annotate prices in an HTML page with their price per kg / L.",
    )
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("input", nargs="?", help="HTML file to annotate")
    src.add_argument("--url", help="fetch and annotate this page instead of a file")
    ap.add_argument("-o", "--output", help="write annotated HTML here (default: stdout)")
    ap.add_argument("--max-depth", type=int, default=config.MAX_ANCESTOR_DEPTH,
                    help="ancestor levels to search for a weight (default: %(default)s)")
    ap.add_argument("--no-leaf-preference", action="store_true",
                    help="also treat parents of price elements as candidates")
    ap.add_argument("--log-level", default=config.LOG_LEVEL)
    ap.add_argument("--log-file", help="also write DEBUG logs to this file (bare names go under logs/)")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config.setup_logging(args.log_level, log_file=args.log_file)

    html = _read_input(args)
    if html is None:
        print("error: could not read input", file=sys.stderr)
        return 2

    try:
        policy = config.MatchPolicy(
            max_ancestor_depth=args.max_depth,
            leaf_preference=not args.no_leaf_preference,
        )
    except ValidationError as e:
        print(f"error: invalid policy: {e.errors()[0]['msg']}", file=sys.stderr)
        return 2
    annotated, report = annotate_html(html, policy=policy)

    if args.output:
        Path(args.output).write_text(annotated, encoding="utf-8")
    else:
        sys.stdout.write(annotated)

    print(
        f"{report.candidates} price candidates, {report.injected_count} unit prices injected",
        file=sys.stderr,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
