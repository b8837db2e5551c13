import asyncio
import logging

logger = logging.getLogger(__name__)


class StartingGate:
    # Parties check in via wait() or give up their place via withdraw().

    def __init__(self, parties: int):
        if parties < 0:
            raise ValueError(f"parties must be >= 0, got {parties}")
        self._pending = parties
        self._all_checked_in = asyncio.Event()
        self._opened = asyncio.Event()
        if parties == 0:
            self._all_checked_in.set()

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def is_open(self) -> bool:
        return self._opened.is_set()

    def _check_in(self):
        if self._pending == 0:
            logger.warning("StartingGate: check-in beyond the expected number of parties ignored.")
            return
        self._pending -= 1
        if self._pending == 0:
            self._all_checked_in.set()

    def withdraw(self):
        self._check_in()

    async def wait(self):
        self._check_in()
        await self._opened.wait()

    async def ready(self):
        await self._all_checked_in.wait()

    def open(self):
        self._opened.set()
