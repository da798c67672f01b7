import logging
from decimal import Decimal
from typing import List

from shop_ledger.core.errors import NotFound, ValidationError
from shop_ledger.db.store import (
    CUSTOMERS,
    PARTY_TRANSACTIONS,
    TRANSACTIONS,
    DocRef,
    DocumentStore,
)
from shop_ledger.models.base import utcnow
from shop_ledger.models.customer import CustomerInDB, CustomerInput
from shop_ledger.models.party_transaction import PartyTransactionType
from shop_ledger.services.recalculator import Recalculator
from shop_ledger.utils.listing import matches

logger = logging.getLogger(__name__)


class CustomerService:
    """Customer records. Balances are only ever written by the recalculator."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.recalculator = Recalculator(store)

    async def save_customer(self, data: CustomerInput) -> str:
        name = data.name.strip()
        if not name:
            raise ValidationError("Customer name is required.")

        fields = {
            "name": name,
            "phone": data.phone.strip(),
            "address": data.address.strip(),
            "notes": data.notes.strip(),
        }
        ref = DocRef(CUSTOMERS, data.id) if data.id else self.store.ref(CUSTOMERS)

        def apply(current):
            if data.id is None:
                return {**fields, "current_balance": Decimal("0"), "created_at": utcnow()}
            if current is None:
                raise NotFound("Customer not found.")
            return fields

        await self.store.transactional_update(ref, apply)
        return ref.id

    async def get_customer(self, customer_id: str) -> CustomerInDB:
        doc = await self.store.get(CUSTOMERS, customer_id)
        if doc is None:
            raise NotFound("Customer not found.")
        return CustomerInDB(**doc)

    async def list_customers(self, search: str = "") -> List[CustomerInDB]:
        customers = [CustomerInDB(**doc) for doc in await self.store.query(CUSTOMERS)]
        return [
            c for c in customers
            if matches(search, c.name, c.phone, c.address, c.notes)
        ]

    async def delete_customer(self, customer_id: str) -> None:
        """
        Delete a customer together with every transaction in their ledger.

        Mirrors owned by those transactions go in the same batch; the parties
        they sat in are recalculated afterwards.
        """
        transactions = await self.store.query(TRANSACTIONS, {"customer_id": customer_id})
        deletes = [DocRef(TRANSACTIONS, doc["_id"]) for doc in transactions]

        affected_parties = []
        for doc in transactions:
            mirror = await self.store.get(PARTY_TRANSACTIONS, doc["_id"])
            if mirror is None or mirror.get("type") != PartyTransactionType.CUSTOMER_DIRECT.value:
                continue
            deletes.append(DocRef(PARTY_TRANSACTIONS, doc["_id"]))
            if mirror.get("party_id") and mirror["party_id"] not in affected_parties:
                affected_parties.append(mirror["party_id"])

        deletes.append(DocRef(CUSTOMERS, customer_id))
        await self.store.batch_write([], deletes)
        logger.info("Deleted customer %s and %d transactions", customer_id, len(transactions))

        for party_id in affected_parties:
            await self.recalculator.recalculate_party(party_id)
