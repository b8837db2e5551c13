import asyncio

import pytest

from gate import StartingGate


class TestStartingGate:
    @pytest.mark.asyncio
    async def test_waiters_are_held_until_open(self):
        gate = StartingGate(3)
        released = []

        async def party(i):
            await gate.wait()
            released.append(i)

        tasks = [asyncio.create_task(party(i)) for i in range(3)]
        await asyncio.wait_for(gate.ready(), timeout=1)
        assert gate.pending == 0
        assert released == []

        gate.open()
        await asyncio.wait_for(asyncio.gather(*tasks), timeout=1)
        assert sorted(released) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_ready_counts_withdrawals(self):
        gate = StartingGate(2)
        waiter = asyncio.create_task(gate.wait())
        gate.withdraw()
        await asyncio.wait_for(gate.ready(), timeout=1)
        assert not waiter.done()
        gate.open()
        await asyncio.wait_for(waiter, timeout=1)

    @pytest.mark.asyncio
    async def test_ready_not_reached_while_parties_missing(self):
        gate = StartingGate(2)
        gate.withdraw()
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(gate.ready(), timeout=0.05)

    @pytest.mark.asyncio
    async def test_open_is_one_shot_and_idempotent(self):
        gate = StartingGate(1)
        gate.open()
        gate.open()
        assert gate.is_open
        await asyncio.wait_for(gate.wait(), timeout=1)  # Late arrival passes straight through

    @pytest.mark.asyncio
    async def test_zero_parties_is_ready_immediately(self):
        await asyncio.wait_for(StartingGate(0).ready(), timeout=1)

    def test_negative_parties_rejected(self):
        with pytest.raises(ValueError):
            StartingGate(-1)
