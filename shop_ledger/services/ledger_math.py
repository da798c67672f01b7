"""
Running-balance fold over a ledger.

A ledger is an unordered set of entries, each contributing a signed delta.
Folding it in date order yields the value after every entry, the final
total and the date of the last activity. The fold is pure and always runs
over the whole ledger, so applying it twice gives the same result.

Ordering:
- ascending by date; entries without a date come first
- equal dates fall back to created_at, then to the order the entries
  were handed in (sorted() is stable)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Tuple

from shop_ledger.models.party_transaction import PartyTransactionType
from shop_ledger.models.transaction import TransactionType


_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class FoldEntry:
    id: str
    kind: str
    amount: Decimal
    date: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class LedgerFold:
    """Result of folding one ledger."""
    snapshots: List[Tuple[str, Decimal]] = field(default_factory=list)
    total: Decimal = Decimal("0")
    last_activity: Optional[datetime] = None

    def value_after(self, entry_id: str) -> Decimal:
        for snapshot_id, value in self.snapshots:
            if snapshot_id == entry_id:
                return value
        raise KeyError(entry_id)


def customer_delta(kind: str, amount: Decimal) -> Decimal:
    """CREDIT adds to the balance, PAYMENT takes away."""
    if TransactionType.normalize(kind) == TransactionType.CREDIT:
        return amount
    return -amount


def party_delta(kind: str, amount: Decimal) -> Decimal:
    """Only PURCHASE raises the due."""
    if kind == PartyTransactionType.PURCHASE.value:
        return amount
    return -amount


def sort_key(entry: FoldEntry):
    return (entry.date or _EARLIEST, entry.created_at or _EARLIEST)


def fold_ledger(
    entries: Iterable[FoldEntry],
    delta: Callable[[str, Decimal], Decimal],
) -> LedgerFold:
    result = LedgerFold()
    running = Decimal("0")

    for entry in sorted(entries, key=sort_key):
        running += delta(entry.kind, entry.amount)
        result.snapshots.append((entry.id, running))
        if entry.date is not None:
            result.last_activity = entry.date

    result.total = running
    return result
