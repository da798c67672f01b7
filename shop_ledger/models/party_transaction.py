"""
Party (supplier) ledger transactions.

PURCHASE raises what the shop owes the party; PAYMENT, DISCOUNT and
CUSTOMER_DIRECT lower it. CUSTOMER_DIRECT entries mirror a customer payment
that went straight to the party. They share the id of that customer
transaction and are only ever written by mirror sync.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from shop_ledger.models.base import StoredModel, as_utc


class PartyTransactionType(str, Enum):
    PURCHASE = "PURCHASE"
    PAYMENT = "PAYMENT"
    DISCOUNT = "DISCOUNT"
    CUSTOMER_DIRECT = "CUSTOMER_DIRECT"


class PartyEntryType(str, Enum):
    """Types a user may record by hand."""
    PURCHASE = "PURCHASE"
    PAYMENT = "PAYMENT"
    DISCOUNT = "DISCOUNT"


class PartyTransactionInput(BaseModel):
    """Create/edit payload for a party transaction. ``id`` is set when editing."""
    id: Optional[str] = None
    party_id: str = ""
    type: PartyEntryType
    amount: Decimal
    note: str = ""
    date: datetime

    @field_validator("date")
    @classmethod
    def _date_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class PartyTransactionInDB(StoredModel):
    """Party transaction database schema."""
    party_id: str
    type: PartyTransactionType = PartyTransactionType.PURCHASE
    amount: Decimal = Decimal("0")
    note: str = ""
    date: Optional[datetime] = None
    due_after: Decimal = Decimal("0")
    customer_id: Optional[str] = None

    @field_validator("amount", "due_after", mode="before")
    @classmethod
    def _decimal(cls, value):
        return Decimal(str(value)) if value is not None else Decimal("0")


class PartyTransactionResponse(BaseModel):
    """Party transaction response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    party_id: str
    type: PartyTransactionType
    amount: Decimal
    note: str
    date: Optional[datetime] = None
    due_after: Decimal
    customer_id: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )
