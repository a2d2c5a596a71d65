from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PhoneNumberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    phone_number: str
    created_at: datetime


class AirtimeTransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    phone_number: str
    amount: Decimal
    currency: str
    status: str
    network_provider: Optional[str] = None
    transaction_reference: Optional[str] = None
    created_at: datetime
    processed_at: Optional[datetime] = None


class PhoneNumberListOut(BaseModel):
    total: int
    items: list[PhoneNumberOut]


class AirtimeTransactionListOut(BaseModel):
    total: int
    items: list[AirtimeTransactionOut]
