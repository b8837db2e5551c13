import asyncio
import logging
import time
from typing import NamedTuple, List

import aiohttp

from config import REQUEST_TIMEOUT_SECONDS
from gate import StartingGate
from launcher import launch_request
from outcome import OutcomeRecord
from template import RequestTemplate

logger = logging.getLogger(__name__)


class FanOutResult(NamedTuple):
    duration_seconds: float  # From gate open until the last outcome was drained
    results: List[OutcomeRecord]  # Completion order

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if r.failed)


class FanOutCoordinator:
    def __init__(self, session: aiohttp.ClientSession,
                 timeout_seconds: float = REQUEST_TIMEOUT_SECONDS):
        self.session = session
        self.timeout_seconds = timeout_seconds

    async def fire(self, template: RequestTemplate, count: int) -> FanOutResult:
        if count < 1:
            raise ValueError(f"count must be a positive integer, got {count}")

        # Room for every outcome, so no launcher ever blocks on reporting.
        sink: asyncio.Queue = asyncio.Queue(maxsize=count)
        gate = StartingGate(count)

        launchers = [
            asyncio.create_task(
                launch_request(self.session, template, gate, sink, self.timeout_seconds),
                name=f"launcher-{i}",
            )
            for i in range(count)
        ]

        await gate.ready()
        start_time = time.perf_counter()
        gate.open()

        await asyncio.gather(*launchers)

        results: List[OutcomeRecord] = []
        while not sink.empty():
            results.append(sink.get_nowait())
        duration_seconds = time.perf_counter() - start_time

        if len(results) != count:
            logger.error(f"Fan-out to {template.url} collected {len(results)} outcomes, expected {count}")

        result = FanOutResult(duration_seconds, results)
        logger.info(f"Fired {count}x {template.method} {template.url} in {duration_seconds * 1000:.2f} ms "
                    f"({count - result.failure_count} ok, {result.failure_count} failed)")
        return result
