import logging

from chatroom.clock import clock_time, now
from chatroom.errors import InvalidLimit, UnknownSender
from chatroom.models import BROADCAST, Message
from chatroom.validation import validate_message

logger = logging.getLogger(__name__)

# MongoDB stores limits as signed 64-bit integers
MAX_LIMIT = 2**63 - 1


def parse_limit(limit) -> int | None:
    """Turn a ``limit`` argument (int or query-string text) into a positive int."""
    if limit is None:
        return None
    if isinstance(limit, bool):
        raise InvalidLimit(f'invalid limit: {limit!r}')
    if isinstance(limit, int):
        value = limit
    else:
        text = str(limit).strip()
        if not (text.isascii() and text.isdigit()) or len(text) > 19:
            raise InvalidLimit(f'invalid limit: {limit!r}')
        value = int(text)
    if not 0 < value <= MAX_LIMIT:
        raise InvalidLimit(f'limit must be a positive integer up to {MAX_LIMIT}')
    return value


def visibility_query(requester: str | None) -> dict:
    clauses = [{'type': 'message'}, {'to': BROADCAST}]
    if requester:
        clauses += [{'to': requester}, {'from': requester}]
    return {'$or': clauses}


class MessageLog:
    def __init__(self, storage, clock=now):
        self._storage = storage
        self._clock = clock

    async def post(self, sender, to=None, text=None, type=None) -> Message:
        payload = {
            key: value
            for key, value in (('to', to), ('text', text), ('type', type))
            if value is not None
        }
        message_in = validate_message(payload, sender)

        if await self._storage.find_participant(message_in.frm) is None:
            raise UnknownSender(f'sender {message_in.frm!r} is not a participant')

        message = Message(
            frm=message_in.frm,
            to=message_in.to,
            text=message_in.text,
            type=message_in.type,
            time=clock_time(self._clock()),
        )
        await self._storage.insert_message(message.to_document())
        logger.debug('Message from %s to %s stored', message.frm, message.to)
        return message

    async def list(self, requester=None, limit=None) -> list[Message]:
        # Public messages, broadcasts, and anything the requester sent or received
        limit = parse_limit(limit)
        requester = requester.strip() if isinstance(requester, str) else None
        docs = await self._storage.find_messages(visibility_query(requester), limit)
        return [Message.model_validate(doc) for doc in docs]
