from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from shop_ledger.models.base import StoredModel


class CustomerBase(BaseModel):
    """Editable customer fields."""
    name: str = ""
    phone: str = ""
    address: str = ""
    notes: str = ""


class CustomerInput(CustomerBase):
    """Customer create/edit payload. ``id`` is set when editing."""
    id: Optional[str] = None


class CustomerInDB(StoredModel, CustomerBase):
    """Customer database schema."""
    current_balance: Decimal = Decimal("0")
    last_activity: Optional[datetime] = None


class CustomerResponse(CustomerBase):
    """Customer response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    current_balance: Decimal
    last_activity: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )
