import logging

from shop_ledger.db.store import (
    CUSTOMERS,
    PARTIES,
    PARTY_TRANSACTIONS,
    TRANSACTIONS,
    DocRef,
    DocumentStore,
)
from shop_ledger.models.base import as_utc
from shop_ledger.models.party_transaction import PartyTransactionInDB
from shop_ledger.models.transaction import TransactionInDB
from shop_ledger.services.ledger_math import (
    FoldEntry,
    LedgerFold,
    customer_delta,
    fold_ledger,
    party_delta,
)

logger = logging.getLogger(__name__)


class Recalculator:
    """
    Rebuilds derived ledger values from the stored transactions.

    Each pass reads the entity's entire ledger, folds it, and writes every
    transaction's running value together with the entity's total and
    last_activity in one batch. A pass that fails leaves stale values
    behind; the next successful pass overwrites them.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def recalculate_customer(self, customer_id: str) -> LedgerFold:
        docs = await self.store.query(TRANSACTIONS, {"customer_id": customer_id})
        transactions = [TransactionInDB(**doc) for doc in docs]

        fold = fold_ledger(
            (
                FoldEntry(
                    id=txn.id,
                    kind=txn.type.value,
                    amount=txn.amount,
                    date=as_utc(txn.date),
                    created_at=as_utc(txn.created_at),
                )
                for txn in transactions
            ),
            customer_delta,
        )

        types = {txn.id: txn.type.value for txn in transactions}
        updates = [
            (DocRef(TRANSACTIONS, txn_id), {"type": types[txn_id], "balance_after": value})
            for txn_id, value in fold.snapshots
        ]
        updates.append((
            DocRef(CUSTOMERS, customer_id),
            {"current_balance": fold.total, "last_activity": fold.last_activity}
        ))
        await self.store.batch_write(updates)

        logger.info(
            "Recalculated customer %s: %d transactions, balance %s",
            customer_id, len(fold.snapshots), fold.total
        )
        return fold

    async def recalculate_party(self, party_id: str) -> LedgerFold:
        docs = await self.store.query(PARTY_TRANSACTIONS, {"party_id": party_id})
        transactions = [PartyTransactionInDB(**doc) for doc in docs]

        fold = fold_ledger(
            (
                FoldEntry(
                    id=txn.id,
                    kind=txn.type.value,
                    amount=txn.amount,
                    date=as_utc(txn.date),
                    created_at=as_utc(txn.created_at),
                )
                for txn in transactions
            ),
            party_delta,
        )

        updates = [
            (DocRef(PARTY_TRANSACTIONS, txn_id), {"due_after": value})
            for txn_id, value in fold.snapshots
        ]
        updates.append((
            DocRef(PARTIES, party_id),
            {"current_due": fold.total, "last_activity": fold.last_activity}
        ))
        await self.store.batch_write(updates)

        logger.info(
            "Recalculated party %s: %d transactions, due %s",
            party_id, len(fold.snapshots), fold.total
        )
        return fold
