from __future__ import annotations

"""
Debounced re-scanning of a live document.

The coordinator is the change callback registered on the tree.  It drops
batches that only carry our own annotations, collapses bursts of real
changes into a single pass fired `delay` seconds after the last one, and
refuses to start a pass while another is running.

State machine::

    IDLE --notify--> SCHEDULED --notify--> SCHEDULED (timer restarted)
    SCHEDULED --timer--> RUNNING --pass done--> IDLE

A firing that lands while RUNNING is dropped; changes made during a pass
are only picked up by a later notification.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Protocol

from bs4 import NavigableString, Tag
from loguru import logger

from .config import DEBOUNCE_SECONDS, MatchPolicy
from .engine import UnitPriceEngine
from .pipeline_types import PassReport
from .tree import DocumentTree, MutationRecord, Observation


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class CoordinatorState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"


def _is_self_generated(tree: DocumentTree, node: object) -> Optional[bool]:
    """True for our annotations, False for foreign content, None for neutral whitespace."""
    if isinstance(node, Tag):
        if tree.is_annotation(node):
            return True
        has_annotation = any(tree.is_annotation(el) for el in tree.iter_elements(node))
        if has_annotation and not tree.text_of(node).strip():
            return True
        return False
    if isinstance(node, NavigableString) and not str(node).strip():
        return None
    return False


def is_self_mutation(tree: DocumentTree, records: Iterable[MutationRecord]) -> bool:
    """
    True when every node added in the batch is (or only wraps) an annotation.

    Batches with no added nodes are not ours to suppress.
    """
    verdicts = []
    for record in records:
        for node in record.added_nodes:
            verdict = _is_self_generated(tree, node)
            if verdict is not None:
                verdicts.append(verdict)
    return bool(verdicts) and all(verdicts)


class MutationCoordinator:
    def __init__(
        self,
        engine: UnitPriceEngine,
        delay: float = DEBOUNCE_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ):
        self.engine = engine
        self.delay = delay
        self.state = CoordinatorState.IDLE
        self.last_report: Optional[PassReport] = None
        self.passes = 0
        self._scheduler = scheduler
        self._timer: Optional[TimerHandle] = None
        self._observation: Optional[Observation] = None

    @property
    def tree(self) -> DocumentTree:
        return self.engine.tree

    def _get_scheduler(self) -> Scheduler:
        if self._scheduler is None:
            self._scheduler = asyncio.get_running_loop()
        return self._scheduler

    # -----------------------
    # Lifecycle
    # -----------------------

    def start(self) -> PassReport:
        """First pass right away, then watch the root container for insertions."""
        report = self.run_now()
        if self._observation is None:
            self._observation = self.tree.observe(self.tree.root, self.notify, subtree=True)
        return report

    def stop(self) -> None:
        if self._observation is not None:
            self._observation.disconnect()
            self._observation = None
        self._cancel_timer()
        if self.state is CoordinatorState.SCHEDULED:
            self.state = CoordinatorState.IDLE

    # -----------------------
    # Change callback
    # -----------------------

    def notify(self, records: List[MutationRecord]) -> bool:
        """Returns True when a pass was (re)scheduled."""
        if is_self_mutation(self.tree, records):
            logger.debug("Ignoring {} self-generated mutation record(s)", len(records))
            return False
        self._cancel_timer()
        self._timer = self._get_scheduler().call_later(self.delay, self._on_timer)
        if self.state is not CoordinatorState.RUNNING:
            self.state = CoordinatorState.SCHEDULED
        return True

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self.state is CoordinatorState.RUNNING:
            logger.debug("Pass already running; dropping timer firing")
            return
        self.run_now()

    def run_now(self) -> PassReport:
        if self.state is CoordinatorState.RUNNING:
            logger.debug("Pass already running; not starting another")
            return PassReport()
        self.state = CoordinatorState.RUNNING
        try:
            report = self.engine.run_pass()
        finally:
            self.state = CoordinatorState.SCHEDULED if self._timer is not None else CoordinatorState.IDLE
        self.passes += 1
        self.last_report = report
        return report


def start_engine(
    tree: DocumentTree,
    policy: Optional[MatchPolicy] = None,
    delay: float = DEBOUNCE_SECONDS,
    scheduler: Optional[Scheduler] = None,
) -> MutationCoordinator:
    """Startup trigger: build the engine, run the first pass, begin observing."""
    coordinator = MutationCoordinator(UnitPriceEngine(tree, policy=policy), delay=delay, scheduler=scheduler)
    coordinator.start()
    return coordinator
