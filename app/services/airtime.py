import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import AirtimeError, AlreadyServedError, InvalidInputError
from app.core.logging import mask_phone
from app.models import TransactionStatus
from app.services.one4all import One4AllClient, ProviderResult
from app.services.registry import (
    create_transaction,
    ensure_schema,
    find_phone_number,
    save_phone_number,
    update_transaction_status,
)


settings = get_settings()
logger = logging.getLogger(__name__)

MIN_RECIPIENT_LENGTH = 10


@dataclass
class TopupOutcome:
    success: bool
    status: str
    message: str
    recipient: str
    amount: Decimal
    currency: str
    transaction_id: int
    reference: str | None = None
    balance: str | None = None
    http_status: int = 200


def _ref(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(8)}"


def normalize_recipient(recipient) -> str:
    if not isinstance(recipient, str):
        raise InvalidInputError()
    value = recipient.strip()
    if len(value) < MIN_RECIPIENT_LENGTH:
        raise InvalidInputError()
    return value


def _finalize(db: Session, transaction_id: int, status: TransactionStatus, reference: str | None) -> None:
    # Bookkeeping only: the caller's response is already decided.
    try:
        update_transaction_status(
            db,
            transaction_id,
            status,
            reference,
            clear_reference=status == TransactionStatus.FAILED,
        )
    except (SQLAlchemyError, AirtimeError) as exc:
        db.rollback()
        logger.warning("Could not mark airtime transaction %s as %s: %s", transaction_id, status.value, exc)


def process_topup(db: Session, recipient, client: One4AllClient | None = None) -> TopupOutcome:
    recipient = normalize_recipient(recipient)
    masked = mask_phone(recipient)

    ensure_schema(db)
    # Advisory pre-check so a served number gets a 403 before any write.
    if find_phone_number(db, recipient) is not None:
        logger.info("Rejected top-up for already served number %s", masked)
        raise AlreadyServedError()
    # The unique insert is the actual gate; losing a race here is a duplicate too.
    if save_phone_number(db, recipient) is None:
        logger.info("Concurrent request already reserved %s", masked)
        raise AlreadyServedError()

    amount = Decimal(str(settings.airtime_amount))
    tx = create_transaction(db, recipient, amount, currency=settings.airtime_currency)
    transaction_id = tx.id
    currency = tx.currency

    try:
        client = client or One4AllClient()
        result: ProviderResult = client.send_airtime(recipient)
    except Exception:
        _finalize(db, transaction_id, TransactionStatus.FAILED, None)
        raise

    if result.success:
        reference = result.transaction_id or _ref("AIRTIME")
        _finalize(db, transaction_id, TransactionStatus.COMPLETED, reference)
        logger.info("Airtime top-up %s for %s status=%s", transaction_id, masked, result.status)
        return TopupOutcome(
            success=True,
            status=result.status,
            message=result.message or (
                "Airtime top-up is being processed." if result.pending else "Airtime sent successfully."
            ),
            recipient=recipient,
            amount=amount,
            currency=currency,
            transaction_id=transaction_id,
            reference=reference,
            balance=result.balance,
        )

    _finalize(db, transaction_id, TransactionStatus.FAILED, None)
    logger.warning("Airtime top-up %s for %s failed: %s", transaction_id, masked, result.message)
    return TopupOutcome(
        success=False,
        status=result.status,
        message=result.message or "Airtime top-up failed.",
        recipient=recipient,
        amount=amount,
        currency=currency,
        transaction_id=transaction_id,
        http_status=result.http_status,
    )
