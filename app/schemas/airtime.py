from typing import Optional

from pydantic import BaseModel, ConfigDict


class AirtimeRequest(BaseModel):
    # retailer and amount are accepted from older clients and ignored.
    model_config = ConfigDict(extra="ignore")

    recipient: Optional[str] = None
    retailer: Optional[str] = None
    amount: Optional[str] = None


class AirtimeResultData(BaseModel):
    recipient: str
    amount: str
    currency: str
    status: str
    transaction_id: int
    reference: Optional[str] = None
    balance: Optional[str] = None


class AirtimeResponse(BaseModel):
    success: bool
    message: str
    data: Optional[AirtimeResultData] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error_code: Optional[str] = None
