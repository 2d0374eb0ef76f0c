import asyncio

import pytest

from chatroom.errors import StorageError
from chatroom.participants import ParticipantRegistry
from chatroom.reaper import PresenceReaper


async def test_sweep_evicts_stale_participants(storage, clock):
    registry = ParticipantRegistry(storage, clock=clock)
    await registry.register('Alice')
    await registry.register('Bob')
    clock.advance(8)
    await registry.heartbeat('Bob')
    clock.advance(5)

    evicted = await PresenceReaper(storage, timeout=10, clock=clock).sweep()

    assert evicted == ['Alice']
    assert [p.name for p in await registry.list()] == ['Bob']
    departures = await storage.find_messages({'text': 'has left the room...'})
    assert departures == [
        {
            'from': 'Alice',
            'to': 'Todos',
            'text': 'has left the room...',
            'type': 'status',
            'time': '12:00:13',
        }
    ]


async def test_second_sweep_is_a_noop(storage, clock):
    registry = ParticipantRegistry(storage, clock=clock)
    await registry.register('Alice')
    clock.advance(11)
    reaper = PresenceReaper(storage, timeout=10, clock=clock)
    await reaper.sweep()
    before = await storage.find_messages({})

    assert await reaper.sweep() == []
    assert await storage.find_messages({}) == before


async def test_sweep_with_no_participants(storage, clock):
    assert await PresenceReaper(storage, clock=clock).sweep() == []
    assert await storage.find_messages({}) == []


async def test_participant_at_cutoff_is_kept(storage, clock):
    registry = ParticipantRegistry(storage, clock=clock)
    await registry.register('Alice')
    clock.advance(10)

    assert await PresenceReaper(storage, timeout=10, clock=clock).sweep() == []


class FlakyStorage:
    """Fails the first call to one gateway method, then delegates to the real gateway."""

    def __init__(self, storage, method='find_participants', error=None):
        self._storage = storage
        self._method = method
        self._error = error or StorageError(f'{method} failed: connection refused')
        self.calls = 0

    def __getattr__(self, name):
        target = getattr(self._storage, name)
        if name != self._method:
            return target

        async def flaky(*args, **kwargs):
            self.calls += 1
            if self.calls == 1:
                raise self._error
            return await target(*args, **kwargs)

        return flaky


async def test_loop_survives_storage_errors(storage, clock):
    registry = ParticipantRegistry(storage, clock=clock)
    await registry.register('Alice')
    clock.advance(30)
    flaky = FlakyStorage(storage)
    reaper = PresenceReaper(flaky, interval=0.01, timeout=10, clock=clock)

    reaper.start()
    try:
        for _ in range(200):
            if not await registry.list():
                break
            await asyncio.sleep(0.01)
    finally:
        await reaper.stop()

    assert flaky.calls >= 2
    assert await registry.list() == []
    assert not reaper.running


async def test_stop_without_start(storage):
    await PresenceReaper(storage).stop()


async def test_loop_survives_unexpected_errors(storage, clock):
    registry = ParticipantRegistry(storage, clock=clock)
    await registry.register('Alice')
    clock.advance(30)
    flaky = FlakyStorage(storage, error=KeyError('name'))
    reaper = PresenceReaper(flaky, interval=0.01, timeout=10, clock=clock)

    reaper.start()
    try:
        for _ in range(200):
            if not await registry.list():
                break
            await asyncio.sleep(0.01)
        assert reaper.running
    finally:
        await reaper.stop()

    assert flaky.calls >= 2
    assert await registry.list() == []


async def test_failed_delete_is_retried_on_next_sweep(storage, clock):
    registry = ParticipantRegistry(storage, clock=clock)
    await registry.register('Alice')
    clock.advance(30)
    flaky = FlakyStorage(storage, method='delete_participants')
    reaper = PresenceReaper(flaky, timeout=10, clock=clock)

    with pytest.raises(StorageError):
        await reaper.sweep()
    assert [p.name for p in await registry.list()] == ['Alice']

    assert await reaper.sweep() == ['Alice']
    assert await registry.list() == []
    # The departure written before the failed delete is kept, so the retry adds a second one
    departures = await storage.find_messages({'text': 'has left the room...'})
    assert [m['from'] for m in departures] == ['Alice', 'Alice']
