from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from shop_ledger.models.base import StoredModel


class PartyBase(BaseModel):
    """Editable supplier fields."""
    name: str = ""
    phone: str = ""
    notes: str = ""


class PartyInput(PartyBase):
    """Party create/edit payload. ``id`` is set when editing."""
    id: Optional[str] = None


class PartyInDB(StoredModel, PartyBase):
    """Party database schema."""
    current_due: Decimal = Decimal("0")
    last_activity: Optional[datetime] = None


class PartyResponse(PartyBase):
    """Party response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    current_due: Decimal
    last_activity: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )
