import logging
from decimal import Decimal
from typing import List, Optional

from shop_ledger.core.errors import NotFound, ValidationError
from shop_ledger.db.store import CUSTOMERS, PARTIES, TRANSACTIONS, DocRef, DocumentStore
from shop_ledger.models.base import utcnow
from shop_ledger.models.transaction import (
    PaymentMode,
    TransactionInDB,
    TransactionInput,
    TransactionType,
)
from shop_ledger.services.mirror_sync import MirrorSync, MirrorTarget
from shop_ledger.services.recalculator import Recalculator
from shop_ledger.utils.listing import newest_first

logger = logging.getLogger(__name__)


class TransactionService:
    """
    Write path for customer transactions.

    Every save or delete runs, in order:
    1. the record write (atomic on its own)
    2. a whole-ledger recalculation of the customer
    3. mirror sync for direct-to-party payments

    The steps are not wrapped together. If one fails, the records written
    so far stay, and the next recalculation of that ledger repairs the
    derived values.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self.recalculator = Recalculator(store)
        self.mirror_sync = MirrorSync(store, self.recalculator)

    async def save_transaction(self, data: TransactionInput) -> str:
        """Create or edit a transaction. Returns its id."""
        customer_id = (data.customer_id or "").strip()
        if not customer_id:
            raise ValidationError("Customer is required.")
        if data.amount is None or data.amount <= 0:
            raise ValidationError("Amount should be greater than zero.")

        payment_mode: Optional[PaymentMode] = None
        party_id: Optional[str] = None
        if data.type == TransactionType.PAYMENT:
            payment_mode = data.payment_mode
            if payment_mode == PaymentMode.PARTY_DIRECT:
                party_id = (data.party_id or "").strip()
                if not party_id:
                    raise ValidationError("Select party for direct payment mode.")

        if await self.store.get(CUSTOMERS, customer_id) is None:
            raise NotFound("Customer not found.")
        if party_id and await self.store.get(PARTIES, party_id) is None:
            raise NotFound("Party not found.")

        payload = {
            "customer_id": customer_id,
            "type": data.type.value,
            "amount": data.amount,
            "note": data.note.strip(),
            "date": data.date,
            "payment_mode": payment_mode.value if payment_mode else None,
            "party_id": party_id,
            "bill_image_url": data.bill_image_url,
        }

        ref = DocRef(TRANSACTIONS, data.id) if data.id else self.store.ref(TRANSACTIONS)
        previous_party_id: Optional[str] = None
        previous_customer_id: Optional[str] = None
        created_at = utcnow()

        if data.id:
            def apply_edit(current):
                nonlocal previous_party_id, previous_customer_id, created_at
                if current is None:
                    raise NotFound("Transaction not found.")
                previous = TransactionInDB(**current)
                previous_party_id = previous.direct_party_id
                previous_customer_id = previous.customer_id
                if previous.created_at is not None:
                    created_at = previous.created_at
                return payload

            await self.store.transactional_update(ref, apply_edit)
        else:
            def apply_create(current):
                return {**payload, "balance_after": Decimal("0"), "created_at": created_at}

            await self.store.transactional_update(ref, apply_create)

        logger.info("Saved %s transaction %s for customer %s", data.type.value, ref.id, customer_id)

        await self.recalculator.recalculate_customer(customer_id)
        if previous_customer_id and previous_customer_id != customer_id:
            await self.recalculator.recalculate_customer(previous_customer_id)

        target = None
        if party_id:
            target = MirrorTarget(
                party_id=party_id,
                customer_id=customer_id,
                amount=payload["amount"],
                date=data.date,
                note=data.note,
                created_at=created_at,
            )
        if target is not None or previous_party_id:
            await self.mirror_sync.sync(ref.id, target, previous_party_id)

        return ref.id

    async def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction. Deleting a missing transaction does nothing."""
        doc = await self.store.get(TRANSACTIONS, transaction_id)
        if doc is None:
            return

        txn = TransactionInDB(**doc)
        await self.store.delete(DocRef(TRANSACTIONS, transaction_id))
        logger.info("Deleted transaction %s of customer %s", transaction_id, txn.customer_id)

        await self.recalculator.recalculate_customer(txn.customer_id)

        if txn.payment_mode == PaymentMode.PARTY_DIRECT:
            await self.mirror_sync.remove(transaction_id, txn.direct_party_id)

    async def get_transaction(self, transaction_id: str) -> TransactionInDB:
        doc = await self.store.get(TRANSACTIONS, transaction_id)
        if doc is None:
            raise NotFound("Transaction not found.")
        return TransactionInDB(**doc)

    async def list_transactions(self, customer_id: str) -> List[TransactionInDB]:
        docs = await self.store.query(TRANSACTIONS, {"customer_id": customer_id})
        return newest_first(TransactionInDB(**doc) for doc in docs)

    async def list_all_transactions(self) -> List[TransactionInDB]:
        docs = await self.store.query(TRANSACTIONS)
        return newest_first(TransactionInDB(**doc) for doc in docs)
