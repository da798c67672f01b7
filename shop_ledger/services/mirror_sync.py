"""
Mirror of direct-to-party customer payments in the party ledger.

A customer PAYMENT made in PARTY_DIRECT mode owns exactly one
CUSTOMER_DIRECT entry in the target party's ledger. The entry reuses the
customer transaction's id, which is how it is found again on edit or
delete. Any change is applied as delete-then-recreate, each step followed
by a due recalculation of the party it touched.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from shop_ledger.core.errors import NotFound
from shop_ledger.db.store import PARTIES, PARTY_TRANSACTIONS, DocRef, DocumentStore
from shop_ledger.models.base import utcnow
from shop_ledger.models.party_transaction import PartyTransactionType
from shop_ledger.services.recalculator import Recalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MirrorTarget:
    """What the mirror entry should look like after a customer write."""
    party_id: str
    customer_id: str
    amount: Decimal
    date: datetime
    note: str = ""
    created_at: Optional[datetime] = None


class MirrorSync:

    def __init__(self, store: DocumentStore, recalculator: Optional[Recalculator] = None):
        self.store = store
        self.recalculator = recalculator or Recalculator(store)

    async def sync(
        self,
        origin_id: str,
        target: Optional[MirrorTarget],
        previous_party_id: Optional[str] = None,
    ) -> None:
        """
        Bring the mirror of customer transaction ``origin_id`` in line with ``target``.

        ``previous_party_id`` is the party the transaction pointed at before
        the write. It is recalculated even when no mirror is found, so a
        party left stale by an earlier failure gets healed.
        """
        ref = DocRef(PARTY_TRANSACTIONS, origin_id)

        existing = await self.store.get(PARTY_TRANSACTIONS, origin_id)
        if existing is not None:
            await self.store.delete(ref)
            stale_party_id = existing.get("party_id") or previous_party_id
            logger.info("Removed mirror %s from party %s", origin_id, stale_party_id)
        else:
            stale_party_id = previous_party_id

        if stale_party_id:
            await self.recalculator.recalculate_party(stale_party_id)

        if target is None:
            return
        if await self.store.get(PARTIES, target.party_id) is None:
            raise NotFound("Party not found.")

        def write_mirror(current):
            return {
                "party_id": target.party_id,
                "type": PartyTransactionType.CUSTOMER_DIRECT.value,
                "amount": target.amount,
                "note": target.note.strip(),
                "date": target.date,
                "customer_id": target.customer_id,
                "due_after": Decimal("0"),
                "created_at": target.created_at or utcnow(),
            }

        await self.store.transactional_update(ref, write_mirror)
        logger.info("Mirrored payment %s into party %s", origin_id, target.party_id)

        await self.recalculator.recalculate_party(target.party_id)

    async def remove(self, origin_id: str, previous_party_id: Optional[str] = None) -> None:
        await self.sync(origin_id, None, previous_party_id)
