"""
Storage gateway over MongoDB (Motor).

Two collections are used: ``participants`` and ``messages``. The gateway is the
only shared mutable resource; every component gets it injected. Driver errors
never leak out of this module: they are re-raised as ``StorageError`` (or
``Conflict`` for a duplicate participant name).
"""

import logging
from contextlib import contextmanager

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from chatroom.errors import Conflict, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str):
    try:
        yield
    except PyMongoError as exc:
        logger.error('MongoDB %s failed: %s', operation, exc)
        raise StorageError(f'{operation} failed: {exc}') from exc


def _strip_ids(docs):
    for doc in docs:
        doc.pop('_id', None)
    return docs


class StorageGateway:
    def __init__(self, client, database_name: str):
        self._client = client
        self.db = client[database_name]
        self.participants = self.db['participants']
        self.messages = self.db['messages']

    @classmethod
    def from_settings(cls, settings) -> 'StorageGateway':
        client = AsyncIOMotorClient(
            settings.DATABASE_URL,
            serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
        )
        database = client.get_default_database(default=settings.DATABASE_NAME)
        return cls(client, database.name)

    async def init(self):
        # The unique index is what makes registration a conditional insert
        with _storage_errors('index setup'):
            await self.participants.create_index([('name', ASCENDING)], unique=True)
            await self.participants.create_index([('lastSeen', ASCENDING)])
        logger.info('MongoDB collections ready on database %s', self.db.name)

    async def ping(self) -> bool:
        with _storage_errors('ping'):
            await self.db.command('ping')
        return True

    def close(self):
        self._client.close()

    # --- participants ---

    async def insert_participant(self, doc: dict):
        with _storage_errors('insert participant'):
            try:
                await self.participants.insert_one(dict(doc))
            except DuplicateKeyError as exc:
                raise Conflict(f"participant {doc['name']!r} already exists") from exc

    async def find_participant(self, name: str) -> dict | None:
        with _storage_errors('find participant'):
            doc = await self.participants.find_one({'name': name})
        if doc is not None:
            doc.pop('_id', None)
        return doc

    async def find_participants(self, query: dict | None = None) -> list[dict]:
        with _storage_errors('find participants'):
            cursor = self.participants.find(query or {})
            docs = await cursor.to_list(length=None)
        return _strip_ids(docs)

    async def touch_participant(self, name: str, last_seen: int) -> bool:
        with _storage_errors('update participant'):
            result = await self.participants.update_one(
                {'name': name}, {'$set': {'lastSeen': last_seen}}
            )
        return result.matched_count > 0

    async def delete_participants(self, query: dict) -> int:
        with _storage_errors('delete participants'):
            result = await self.participants.delete_many(query)
        return result.deleted_count

    # --- messages ---

    async def insert_message(self, doc: dict):
        with _storage_errors('insert message'):
            await self.messages.insert_one(dict(doc))

    async def insert_messages(self, docs: list[dict]):
        if not docs:
            return
        with _storage_errors('insert messages'):
            await self.messages.insert_many([dict(doc) for doc in docs])

    async def find_messages(self, query: dict, limit: int | None = None) -> list[dict]:
        """Matching messages in insertion order.

        With ``limit`` only the newest ``limit`` are fetched, still returned
        oldest first.
        """
        with _storage_errors('find messages'):
            if limit is None:
                cursor = self.messages.find(query, sort=[('_id', ASCENDING)])
                docs = await cursor.to_list(length=None)
            else:
                cursor = self.messages.find(
                    query, sort=[('_id', DESCENDING)], limit=limit
                )
                docs = await cursor.to_list(length=None)
                docs.reverse()
        return _strip_ids(docs)
