from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies import require_admin_key
from app.schemas.admin import (
    AirtimeTransactionListOut,
    AirtimeTransactionOut,
    PhoneNumberListOut,
    PhoneNumberOut,
)
from app.services.registry import list_phone_numbers, list_transactions_for_number

router = APIRouter(dependencies=[Depends(require_admin_key)])


@router.get("/phone-numbers", response_model=PhoneNumberListOut)
def phone_numbers(db: Session = Depends(get_db)):
    items = [PhoneNumberOut.model_validate(row) for row in list_phone_numbers(db)]
    return {"total": len(items), "items": items}


@router.get("/phone-numbers/{phone_number}/transactions", response_model=AirtimeTransactionListOut)
def phone_number_transactions(phone_number: str, db: Session = Depends(get_db)):
    rows = list_transactions_for_number(db, phone_number.strip())
    items = [AirtimeTransactionOut.model_validate(row) for row in rows]
    return {"total": len(items), "items": items}
