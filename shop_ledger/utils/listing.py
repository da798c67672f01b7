"""Helpers shared by the list endpoints."""

from shop_ledger.models.base import as_utc, utcnow


def matches(search: str, *fields: str) -> bool:
    """Case-insensitive substring match of ``search`` over the joined fields."""
    lowered = search.strip().lower()
    return lowered in " ".join(fields).lower()


def newest_first(transactions):
    return sorted(
        transactions,
        key=lambda txn: as_utc(txn.date) or as_utc(txn.created_at) or utcnow(),
        reverse=True
    )
