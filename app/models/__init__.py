from app.models.phone_number import PhoneNumber
from app.models.airtime_transaction import AirtimeTransaction, TransactionStatus, TERMINAL_STATUSES

__all__ = [
    "PhoneNumber",
    "AirtimeTransaction",
    "TransactionStatus",
    "TERMINAL_STATUSES",
]
