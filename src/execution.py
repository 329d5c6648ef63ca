"""execution.py

Execution backends for the frequency sweep.

Every frequency step is independent, so the sweep is a map of a task function
over frequency indices. A backend runs that map and calls `store(i, result)`
for each finished index; the caller writes into its own column i, so no two
tasks touch the same memory and nothing needs locking.

- SequentialBackend: plain loop, deterministic order.
- ParallelBackend: concurrent.futures pool (threads by default; LAPACK
  releases the GIL, so threads scale for the eigen-solves). With
  kind="process" the task function and its arguments must be picklable.

Progress reporting is a callback and never affects results.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

Progress = Callable[[int, int], None]


class LogProgress:
    """Log a progress line every `every` completed steps."""

    def __init__(self, every: int = 10, level: int = logging.INFO):
        self.every = max(1, int(every))
        self.level = level

    def __call__(self, done: int, total: int) -> None:
        if done == total or done % self.every == 0:
            logger.log(self.level, "frequency steps: %d/%d", done, total)


@dataclass
class SequentialBackend:
    def run(
        self,
        task: Callable[[Any], Any],
        items: Sequence[Any],
        store: Callable[[int, Any], None],
        progress: Optional[Progress] = None,
    ) -> None:
        total = len(items)
        for i, item in enumerate(items):
            store(i, task(item))
            if progress is not None:
                progress(i + 1, total)


@dataclass
class ParallelBackend:
    max_workers: int = 4
    kind: str = "thread"  # "thread" or "process"

    def _executor(self):
        if self.kind == "thread":
            return ThreadPoolExecutor(max_workers=self.max_workers)
        if self.kind == "process":
            return ProcessPoolExecutor(max_workers=self.max_workers)
        raise ValueError(f"Unknown executor kind: {self.kind!r} (use 'thread' or 'process')")

    def run(
        self,
        task: Callable[[Any], Any],
        items: Sequence[Any],
        store: Callable[[int, Any], None],
        progress: Optional[Progress] = None,
    ) -> None:
        total = len(items)
        logger.debug("running %d tasks on %d %s workers", total, self.max_workers, self.kind)
        with self._executor() as pool:
            futures = {pool.submit(task, item): i for i, item in enumerate(items)}
            for done, fut in enumerate(as_completed(futures), start=1):
                store(futures[fut], fut.result())
                if progress is not None:
                    progress(done, total)
