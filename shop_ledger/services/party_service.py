import logging
from decimal import Decimal
from typing import List

from shop_ledger.core.errors import InvalidOperation, NotFound, ValidationError
from shop_ledger.db.store import PARTIES, PARTY_TRANSACTIONS, DocRef, DocumentStore
from shop_ledger.models.base import utcnow
from shop_ledger.models.party import PartyInDB, PartyInput
from shop_ledger.models.party_transaction import (
    PartyTransactionInDB,
    PartyTransactionInput,
    PartyTransactionType,
)
from shop_ledger.services.recalculator import Recalculator
from shop_ledger.utils.listing import matches, newest_first

logger = logging.getLogger(__name__)

MIRROR_MANAGED = "Direct customer payment entries are managed from customer transactions."


class PartyService:
    """Suppliers and their ledgers. Party writes never reach customer records."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.recalculator = Recalculator(store)

    async def save_party(self, data: PartyInput) -> str:
        name = data.name.strip()
        if not name:
            raise ValidationError("Party name is required.")

        fields = {
            "name": name,
            "phone": data.phone.strip(),
            "notes": data.notes.strip(),
        }
        ref = DocRef(PARTIES, data.id) if data.id else self.store.ref(PARTIES)

        def apply(current):
            if data.id is None:
                return {**fields, "current_due": Decimal("0"), "created_at": utcnow()}
            if current is None:
                raise NotFound("Party not found.")
            return fields

        await self.store.transactional_update(ref, apply)
        return ref.id

    async def get_party(self, party_id: str) -> PartyInDB:
        doc = await self.store.get(PARTIES, party_id)
        if doc is None:
            raise NotFound("Party not found.")
        return PartyInDB(**doc)

    async def list_parties(self, search: str = "") -> List[PartyInDB]:
        parties = [PartyInDB(**doc) for doc in await self.store.query(PARTIES)]
        return [p for p in parties if matches(search, p.name, p.phone, p.notes)]

    async def delete_party(self, party_id: str) -> None:
        """
        Delete a party with its hand-entered transactions.

        CUSTOMER_DIRECT entries are kept, along with the customer payments
        they mirror, and end up pointing at a party that no longer exists.
        """
        docs = await self.store.query(PARTY_TRANSACTIONS, {"party_id": party_id})
        deletes = [
            DocRef(PARTY_TRANSACTIONS, doc["_id"])
            for doc in docs
            if doc.get("type") != PartyTransactionType.CUSTOMER_DIRECT.value
        ]
        orphaned = len(docs) - len(deletes)
        deletes.append(DocRef(PARTIES, party_id))

        await self.store.batch_write([], deletes)
        logger.info("Deleted party %s and %d transactions", party_id, len(deletes) - 1)
        if orphaned:
            logger.warning(
                "Party %s deleted with %d customer-direct entries left in place",
                party_id, orphaned
            )

    async def save_party_transaction(self, data: PartyTransactionInput) -> str:
        party_id = (data.party_id or "").strip()
        if not party_id:
            raise ValidationError("Party is required.")
        if data.amount is None or data.amount <= 0:
            raise ValidationError("Amount should be greater than zero.")
        if await self.store.get(PARTIES, party_id) is None:
            raise NotFound("Party not found.")

        payload = {
            "party_id": party_id,
            "type": data.type.value,
            "amount": data.amount,
            "note": data.note.strip(),
            "date": data.date,
        }
        ref = DocRef(PARTY_TRANSACTIONS, data.id) if data.id else self.store.ref(PARTY_TRANSACTIONS)
        previous_party_id = None

        def apply(current):
            nonlocal previous_party_id
            if data.id is None:
                return {**payload, "due_after": Decimal("0"), "created_at": utcnow()}
            if current is None:
                raise NotFound("Transaction not found.")
            if current.get("type") == PartyTransactionType.CUSTOMER_DIRECT.value:
                raise InvalidOperation(MIRROR_MANAGED)
            previous_party_id = current.get("party_id")
            return payload

        await self.store.transactional_update(ref, apply)
        logger.info("Saved %s party transaction %s for party %s", data.type.value, ref.id, party_id)

        if previous_party_id and previous_party_id != party_id:
            await self.recalculator.recalculate_party(previous_party_id)
        await self.recalculator.recalculate_party(party_id)
        return ref.id

    async def delete_party_transaction(self, transaction_id: str) -> None:
        doc = await self.store.get(PARTY_TRANSACTIONS, transaction_id)
        if doc is None:
            return

        txn = PartyTransactionInDB(**doc)
        if txn.type == PartyTransactionType.CUSTOMER_DIRECT:
            raise InvalidOperation(MIRROR_MANAGED)

        await self.store.delete(DocRef(PARTY_TRANSACTIONS, transaction_id))
        await self.recalculator.recalculate_party(txn.party_id)

    async def get_party_transaction(self, transaction_id: str) -> PartyTransactionInDB:
        doc = await self.store.get(PARTY_TRANSACTIONS, transaction_id)
        if doc is None:
            raise NotFound("Transaction not found.")
        return PartyTransactionInDB(**doc)

    async def list_party_transactions(self, party_id: str) -> List[PartyTransactionInDB]:
        docs = await self.store.query(PARTY_TRANSACTIONS, {"party_id": party_id})
        return newest_first(PartyTransactionInDB(**doc) for doc in docs)
