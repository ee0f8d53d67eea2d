"""
Bounded worker pool for the independent pairwise tests run by each analysis phase.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, List, Optional, Sequence, TypeVar

from config import settings
from engine.errors import AnalysisCancelled

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def check_cancelled(cancel: Optional[threading.Event], label: str = "analysis") -> None:
    if cancel is not None and cancel.is_set():
        raise AnalysisCancelled(f"{label} cancelled")


async def bounded_map(
    fn: Callable[[T], R],
    items: Sequence[T],
    *,
    cancel: Optional[threading.Event] = None,
    limit: int | None = None,
    label: str = "task",
) -> List[Optional[R]]:
    """Run ``fn`` over ``items`` in worker threads, preserving input order.

    A failing item is logged and yields ``None``; cancellation is checked
    before each item is dispatched and aborts the whole map.
    """
    if limit is None:
        limit = settings.analyzer_max_parallel_cpu_tasks
    sem = asyncio.Semaphore(max(1, int(limit)))

    async def _one(index: int, item: T) -> Optional[R]:
        async with sem:
            check_cancelled(cancel, label)
            try:
                return await asyncio.to_thread(fn, item)
            except AnalysisCancelled:
                raise
            except Exception as exc:
                log.warning("%s: skipping item %d: %s", label, index, exc)
                return None

    tasks = [asyncio.ensure_future(_one(i, item)) for i, item in enumerate(items)]
    try:
        return list(await asyncio.gather(*tasks))
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
