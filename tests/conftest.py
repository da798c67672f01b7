import copy
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from pymongo.errors import AutoReconnect

from shop_ledger.core.auth import create_access_token
from shop_ledger.core.security import hash_password
from shop_ledger.db.mongo import get_store
from shop_ledger.db.store import USERS, DocumentStore
from shop_ledger.main import app
from shop_ledger.models.customer import CustomerInput
from shop_ledger.models.party import PartyInput
from shop_ledger.services.customer_service import CustomerService
from shop_ledger.services.party_service import PartyService
from shop_ledger.services.transaction_service import TransactionService
from shop_ledger.services.user_service import UserService


class InMemoryStore(DocumentStore):
    """DocumentStore kept in dicts. Records come back in insertion order."""

    def __init__(self):
        self.collections = defaultdict(dict)
        self.fail_batches = 0
        self.batch_calls = 0

    def records(self, collection):
        return [copy.deepcopy(doc) for doc in self.collections[collection].values()]

    async def get(self, collection, doc_id):
        doc = self.collections[collection].get(doc_id)
        return copy.deepcopy(doc)

    async def query(self, collection, filters=None):
        filters = filters or {}
        return [
            copy.deepcopy(doc)
            for doc in self.collections[collection].values()
            if all(doc.get(key) == value for key, value in filters.items())
        ]

    async def transactional_update(self, ref, mutator):
        current = await self.get(ref.collection, ref.id)
        fields = mutator(current)
        if fields is None:
            return None
        doc = self.collections[ref.collection].setdefault(ref.id, {"_id": ref.id})
        doc.update(copy.deepcopy(fields))
        return fields

    async def batch_write(self, updates, deletes=()):
        self.batch_calls += 1
        if self.fail_batches:
            self.fail_batches -= 1
            raise AutoReconnect("connection dropped")

        for ref, fields in updates:
            doc = self.collections[ref.collection].get(ref.id)
            if doc is not None:
                doc.update(copy.deepcopy(fields))
        for ref in deletes:
            self.collections[ref.collection].pop(ref.id, None)

    async def delete(self, ref):
        self.collections[ref.collection].pop(ref.id, None)


def day(n: int, hour: int = 12) -> datetime:
    """Noon UTC on the n-th of January 2024."""
    return datetime(2024, 1, n, hour, tzinfo=timezone.utc)


def money(value) -> Decimal:
    return Decimal(str(value))


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def transaction_service(store):
    return TransactionService(store)


@pytest.fixture
def party_service(store):
    return PartyService(store)


@pytest.fixture
def customer_service(store):
    return CustomerService(store)


@pytest.fixture
def user_service(store):
    return UserService(store)


@pytest_asyncio.fixture
async def customer_id(customer_service):
    return await customer_service.save_customer(
        CustomerInput(name="Ramesh Kumar", phone="9876543210", address="Main Bazaar")
    )


@pytest_asyncio.fixture
async def party_ids(party_service):
    first = await party_service.save_party(PartyInput(name="Sharma Textiles", phone="9000000001"))
    second = await party_service.save_party(PartyInput(name="Gupta Traders", phone="9000000002"))
    return first, second


@pytest_asyncio.fixture
async def staff_user(store):
    """An approved staff account written straight into the store."""
    user_id = store.new_id()
    store.collections[USERS][user_id] = {
        "_id": user_id,
        "name": "Counter Staff",
        "phone": "9111111111",
        "password_hash": hash_password("staffpass"),
        "role": "STAFF",
        "approved": True,
        "created_at": day(1),
    }
    return user_id


@pytest_asyncio.fixture
async def admin_user(user_service, store):
    await user_service.ensure_admin_user(name="Shop Admin", phone="9999999999", password="adminpass")
    users = await store.query(USERS, {"phone": "9999999999"})
    return users[0]["_id"]


@pytest.fixture
def staff_headers(staff_user):
    return {"Authorization": f"Bearer {create_access_token(staff_user)}"}


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user)}"}


@pytest_asyncio.fixture
async def client(store):
    """API client wired to the in-memory store. The lifespan does not run."""
    app.dependency_overrides[get_store] = lambda: store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
