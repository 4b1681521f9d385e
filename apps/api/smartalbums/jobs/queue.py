"""Contract of the job system as consumed by the smart album engine."""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Protocol

from smartalbums.core.enums import PipelineStage


@dataclass(frozen=True)
class QueueCounts:
    waiting: int = 0
    active: int = 0

    @property
    def drained(self) -> bool:
        return self.waiting == 0 and self.active == 0


class JobQueue(Protocol):
    async def get_queue_counts(self, stage: PipelineStage) -> QueueCounts:
        """Current backlog of a stage; raises ConnectionError/OSError when the queue is unreachable."""
        ...


class InMemoryJobQueue:
    """In-process stage counters, for a single-node deployment and tests."""

    def __init__(self):
        self._waiting: dict[PipelineStage, int] = defaultdict(int)
        self._active: dict[PipelineStage, int] = defaultdict(int)
        self._lock = asyncio.Lock()

    async def get_queue_counts(self, stage: PipelineStage) -> QueueCounts:
        async with self._lock:
            return QueueCounts(waiting=self._waiting[stage], active=self._active[stage])

    async def enqueue(self, stage: PipelineStage, count: int = 1) -> None:
        async with self._lock:
            self._waiting[stage] += count

    async def start(self, stage: PipelineStage) -> None:
        async with self._lock:
            if self._waiting[stage] <= 0:
                raise ValueError(f"no waiting job on {stage}")
            self._waiting[stage] -= 1
            self._active[stage] += 1

    async def finish(self, stage: PipelineStage) -> None:
        async with self._lock:
            if self._active[stage] <= 0:
                raise ValueError(f"no active job on {stage}")
            self._active[stage] -= 1
