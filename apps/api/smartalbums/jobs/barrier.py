import asyncio
import logging
import time
from typing import Optional

from smartalbums.core.enums import PipelineStage
from smartalbums.core.errors import InfrastructureUnavailable
from smartalbums.jobs.queue import JobQueue

logger = logging.getLogger(__name__)


class CompletionBarrier:
    """Waits until named pipeline stages have no waiting or active work.

    This is queue-wide quiescence. It does not know whether the jobs of one
    particular asset have been enqueued yet.
    """

    def __init__(self, queue: JobQueue, poll_interval: float = 2.0, timeout: Optional[float] = None):
        self.queue = queue
        self.poll_interval = poll_interval
        self.timeout = timeout

    async def wait_for_completion(self, *stages: PipelineStage) -> None:
        pending = list(dict.fromkeys(stages))
        deadline = None if self.timeout is None else time.monotonic() + self.timeout

        while pending:
            try:
                counts = [await self.queue.get_queue_counts(stage) for stage in pending]
            except (ConnectionError, OSError) as e:
                raise InfrastructureUnavailable("job queue", str(e)) from e

            pending = [stage for stage, c in zip(pending, counts) if not c.drained]
            if not pending:
                break
            if deadline is not None and time.monotonic() >= deadline:
                raise InfrastructureUnavailable(
                    "job queue", f"timed out waiting for {', '.join(pending)}"
                )
            logger.debug("Waiting for upstream stages: %s", ", ".join(pending))
            await asyncio.sleep(self.poll_interval)
