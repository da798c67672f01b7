import logging
from datetime import timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from bson.codec_options import CodecOptions, TypeCodec, TypeRegistry
from bson.decimal128 import Decimal128
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import DeleteOne, UpdateOne

from shop_ledger.core.config import settings
from shop_ledger.db.store import (
    CUSTOMERS,
    PARTIES,
    PARTY_TRANSACTIONS,
    TRANSACTIONS,
    USERS,
    DocRef,
    Document,
    DocumentStore,
    Mutator,
    Update,
)

logger = logging.getLogger(__name__)


class DecimalCodec(TypeCodec):
    """Store ``Decimal`` amounts as BSON Decimal128."""

    python_type = Decimal
    bson_type = Decimal128

    def transform_python(self, value: Decimal) -> Decimal128:
        return Decimal128(value)

    def transform_bson(self, value: Decimal128) -> Decimal:
        return value.to_decimal()


CODEC_OPTIONS = CodecOptions(
    tz_aware=True,
    tzinfo=timezone.utc,
    type_registry=TypeRegistry([DecimalCodec()]),
)


class MongoDocumentStore(DocumentStore):
    """DocumentStore backed by a Motor database."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    def collection(self, name: str):
        return self.db.get_collection(name, codec_options=CODEC_OPTIONS)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        return await self.collection(collection).find_one({"_id": doc_id})

    async def query(self, collection: str, filters: Optional[Document] = None) -> List[Document]:
        cursor = self.collection(collection).find(filters or {})
        return await cursor.to_list(None)

    async def transactional_update(self, ref: DocRef, mutator: Mutator) -> Optional[Document]:
        coll = self.collection(ref.collection)
        async with await self.db.client.start_session() as session:
            async with session.start_transaction():
                current = await coll.find_one({"_id": ref.id}, session=session)
                fields = mutator(current)
                if fields is None:
                    return None
                await coll.update_one(
                    {"_id": ref.id},
                    {"$set": fields},
                    upsert=True,
                    session=session
                )
                return fields

    async def batch_write(self, updates: Sequence[Update], deletes: Iterable[DocRef] = ()) -> None:
        # Group per collection, keeping the order operations were given in
        operations: dict[str, list] = {}
        for ref, fields in updates:
            operations.setdefault(ref.collection, []).append(
                UpdateOne({"_id": ref.id}, {"$set": fields})
            )
        for ref in deletes:
            operations.setdefault(ref.collection, []).append(DeleteOne({"_id": ref.id}))

        if not operations:
            return

        async with await self.db.client.start_session() as session:
            async with session.start_transaction():
                for name, requests in operations.items():
                    await self.collection(name).bulk_write(requests, ordered=True, session=session)

    async def delete(self, ref: DocRef) -> None:
        await self.collection(ref.collection).delete_one({"_id": ref.id})


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    await mongodb.db[USERS].create_index("phone", unique=True)
    await mongodb.db[USERS].create_index("approved")

    await mongodb.db[TRANSACTIONS].create_index("customer_id")
    await mongodb.db[PARTY_TRANSACTIONS].create_index("party_id")
    await mongodb.db[CUSTOMERS].create_index("name")
    await mongodb.db[PARTIES].create_index("name")

def get_store() -> DocumentStore:
    """Get the document store for the active connection."""
    return MongoDocumentStore(mongodb.db)
