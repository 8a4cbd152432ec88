from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional

from .ai import SearchResult

logger = logging.getLogger(__name__)


class TaskRole(str, Enum):
    AI_MOVE = "ai_move"
    SUGGESTION = "suggestion"


class SearchTask:
    """Handle on one background search, tagged with the generation it belongs to."""

    def __init__(
        self,
        role: TaskRole,
        generation: int,
        future: "Future[SearchResult]",
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.role = role
        self.generation = generation
        self.future = future
        self._cancel_event = cancel_event or threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        # A search already past its pacing delay runs to the end; its result is dropped.
        self._cancel_event.set()
        self.future.cancel()

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> SearchResult:
        return self.future.result(timeout=timeout)

    def __repr__(self) -> str:
        return f"SearchTask(role={self.role.value}, generation={self.generation}, cancelled={self.cancelled})"


class TaskRunner:
    def __init__(self, max_workers: int = 2) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="stacktoe-search"
        )

    def submit(
        self,
        role: TaskRole,
        generation: int,
        search: Callable[[], SearchResult],
        delay_s: float = 0.0,
    ) -> SearchTask:
        cancel_event = threading.Event()

        def run() -> SearchResult:
            if delay_s > 0:
                cancel_event.wait(delay_s)
            if cancel_event.is_set():
                logger.debug("%s task (generation %d) cancelled before search", role.value, generation)
                return SearchResult(best_move=None, score=0, nodes=0)
            started = time.time()
            result = search()
            logger.debug(
                "%s task (generation %d) finished in %.3fs, %d nodes",
                role.value, generation, time.time() - started, result.nodes,
            )
            return result

        return SearchTask(role, generation, self._executor.submit(run), cancel_event)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
