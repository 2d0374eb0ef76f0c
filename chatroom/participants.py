import logging

from chatroom.clock import clock_time, epoch_ms, now
from chatroom.errors import NotFound
from chatroom.models import ENTER_TEXT, Message, Participant
from chatroom.validation import validate_participant

logger = logging.getLogger(__name__)


class ParticipantRegistry:
    def __init__(self, storage, clock=now):
        self._storage = storage
        self._clock = clock

    async def register(self, name) -> Participant:
        """Create a participant and announce it with a status message.

        Raises ValidationError for an empty name and Conflict when the name is
        taken. Uniqueness is decided by the store's unique index, so two
        concurrent registrations of the same name cannot both succeed.
        """
        payload = {} if name is None else {'name': name}
        participant_in = validate_participant(payload)

        moment = self._clock()
        participant = Participant(name=participant_in.name, lastSeen=epoch_ms(moment))
        await self._storage.insert_participant(participant.model_dump())

        status = Message.status(participant.name, ENTER_TEXT, clock_time(moment))
        await self._storage.insert_message(status.to_document())

        logger.info('Participant %s registered', participant.name)
        return participant

    async def list(self) -> list[Participant]:
        docs = await self._storage.find_participants()
        return [Participant(**doc) for doc in docs]

    async def heartbeat(self, name):
        name = name.strip() if isinstance(name, str) else ''
        if not name:
            raise NotFound('missing participant identity')

        moment = self._clock()
        if not await self._storage.touch_participant(name, epoch_ms(moment)):
            raise NotFound(f'participant {name!r} not found')
