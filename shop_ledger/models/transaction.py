"""
Customer ledger transactions.

- CREDIT raises the customer's balance, PAYMENT lowers it
- payment_mode only means something for PAYMENT
- party_id is set only when a payment went directly to a party
- balance_after is derived; callers never set it
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from shop_ledger.models.base import StoredModel, as_utc


class TransactionType(str, Enum):
    CREDIT = "CREDIT"
    PAYMENT = "PAYMENT"

    @classmethod
    def normalize(cls, raw) -> "TransactionType":
        """Map stored values, including the legacy IN/OUT pair, onto CREDIT/PAYMENT."""
        value = getattr(raw, "value", raw)
        if value in ("PAYMENT", "OUT"):
            return cls.PAYMENT
        return cls.CREDIT


class PaymentMode(str, Enum):
    CASH = "CASH"
    ONLINE = "ONLINE"
    PARTY_DIRECT = "PARTY_DIRECT"

    @classmethod
    def normalize(cls, raw) -> "PaymentMode":
        value = getattr(raw, "value", raw)
        if value in (cls.ONLINE.value, cls.PARTY_DIRECT.value):
            return cls(value)
        return cls.CASH


class TransactionInput(BaseModel):
    """Create/edit payload for a customer transaction. ``id`` is set when editing."""
    id: Optional[str] = None
    customer_id: str = ""
    type: TransactionType
    amount: Decimal
    note: str = ""
    date: datetime
    payment_mode: PaymentMode = PaymentMode.CASH
    party_id: Optional[str] = None
    bill_image_url: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _date_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class TransactionInDB(StoredModel):
    """Transaction database schema."""
    customer_id: str
    type: TransactionType = TransactionType.CREDIT
    amount: Decimal = Decimal("0")
    note: str = ""
    date: Optional[datetime] = None
    balance_after: Decimal = Decimal("0")
    payment_mode: Optional[PaymentMode] = None
    party_id: Optional[str] = None
    bill_image_url: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        return TransactionType.normalize(value)

    @field_validator("payment_mode", mode="before")
    @classmethod
    def _normalize_payment_mode(cls, value):
        if value is None:
            return None
        return PaymentMode.normalize(value)

    @field_validator("amount", "balance_after", mode="before")
    @classmethod
    def _decimal(cls, value):
        # Older records may hold plain floats
        return Decimal(str(value)) if value is not None else Decimal("0")

    @property
    def direct_party_id(self) -> Optional[str]:
        """The party this payment was routed to, if any."""
        if (
            self.type == TransactionType.PAYMENT
            and self.payment_mode == PaymentMode.PARTY_DIRECT
            and self.party_id
        ):
            return self.party_id
        return None


class TransactionResponse(BaseModel):
    """Transaction response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    customer_id: str
    type: TransactionType
    amount: Decimal
    note: str
    date: Optional[datetime] = None
    balance_after: Decimal
    payment_mode: Optional[PaymentMode] = None
    party_id: Optional[str] = None
    bill_image_url: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )
