"""
Presence reaper.

Runs as an asyncio task owned by the app lifespan. Every ``interval`` seconds it
evicts participants whose last heartbeat is older than ``timeout`` seconds and
posts a departure status message for each of them.
"""

import asyncio
import logging
from contextlib import suppress

from chatroom.clock import clock_time, epoch_ms, now
from chatroom.errors import StorageError
from chatroom.models import LEAVE_TEXT, Message

logger = logging.getLogger(__name__)


class PresenceReaper:
    def __init__(self, storage, interval: float = 15, timeout: float = 10, clock=now):
        self._storage = storage
        self.interval = interval
        self.timeout = timeout
        self._clock = clock
        self._task: asyncio.Task | None = None

    async def sweep(self) -> list[str]:
        moment = self._clock()
        cutoff = epoch_ms(moment) - int(self.timeout * 1000)
        stale = await self._storage.find_participants({'lastSeen': {'$lt': cutoff}})
        if not stale:
            return []

        names = [doc['name'] for doc in stale]
        departures = [
            Message.status(name, LEAVE_TEXT, clock_time(moment)).to_document()
            for name in names
        ]
        await self._storage.insert_messages(departures)
        # A heartbeat landing mid-sweep moves lastSeen past the cutoff and keeps the participant
        await self._storage.delete_participants(
            {'name': {'$in': names}, 'lastSeen': {'$lt': cutoff}}
        )
        logger.info('Evicted %d inactive participant(s): %s', len(names), ', '.join(names))
        return names

    async def run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except StorageError as exc:
                logger.warning('Presence sweep failed, retrying next cycle: %s', exc)
            except Exception:
                logger.exception('Presence sweep crashed, retrying next cycle')

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            logger.info(
                'Presence reaper started (interval=%ss, timeout=%ss)',
                self.interval,
                self.timeout,
            )

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info('Presence reaper stopped')

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
