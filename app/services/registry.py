"""
Persistence for the served-number registry and the airtime transaction log.

Consistency relies on the store: the unique constraint on
``phone_numbers.phone_number`` is the real duplicate gate and the foreign key
from ``airtime_transactions`` keeps transactions tied to a registered number.
Nothing here takes in-process locks.
"""
import logging
from contextlib import contextmanager
from decimal import Decimal

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    DatabaseNotConfiguredError,
    InvalidStatusError,
    RelationConstraintError,
    is_missing_relation,
)
from app.models import AirtimeTransaction, PhoneNumber, TransactionStatus, TERMINAL_STATUSES
from app.models.base import utcnow


logger = logging.getLogger(__name__)

REQUIRED_TABLES = (PhoneNumber.__tablename__, AirtimeTransaction.__tablename__)

_INSERT_IGNORE = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


@contextmanager
def _store_errors(db: Session):
    try:
        yield
    except (OperationalError, ProgrammingError) as exc:
        db.rollback()
        if is_missing_relation(exc):
            raise DatabaseNotConfiguredError() from exc
        raise


def ensure_schema(db: Session) -> None:
    inspector = inspect(db.get_bind())
    missing = [name for name in REQUIRED_TABLES if not inspector.has_table(name)]
    if missing:
        logger.error("Airtime tables missing: %s", ", ".join(missing))
        raise DatabaseNotConfiguredError()


def save_phone_number(db: Session, phone_number: str) -> PhoneNumber | None:
    """Insert-or-ignore. Returns the new record, or None if the number was already registered."""
    insert = _INSERT_IGNORE.get(db.get_bind().dialect.name)
    with _store_errors(db):
        if insert is None:
            record = PhoneNumber(phone_number=phone_number)
            db.add(record)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                return None
            db.refresh(record)
            return record

        stmt = (
            insert(PhoneNumber)
            .values(phone_number=phone_number, created_at=utcnow())
            .on_conflict_do_nothing(index_elements=["phone_number"])
            .returning(PhoneNumber.id)
        )
        new_id = db.execute(stmt).scalar_one_or_none()
        db.commit()
    if new_id is None:
        return None
    return db.get(PhoneNumber, new_id)


def find_phone_number(db: Session, phone_number: str) -> PhoneNumber | None:
    with _store_errors(db):
        return db.query(PhoneNumber).filter(PhoneNumber.phone_number == phone_number).first()


def list_phone_numbers(db: Session) -> list[PhoneNumber]:
    with _store_errors(db):
        return (
            db.query(PhoneNumber)
            .order_by(PhoneNumber.created_at.desc(), PhoneNumber.id.desc())
            .all()
        )


def create_transaction(
    db: Session,
    phone_number: str,
    amount: Decimal,
    network_provider: str | None = None,
    currency: str | None = None,
) -> AirtimeTransaction:
    tx = AirtimeTransaction(
        phone_number=phone_number,
        amount=Decimal(str(amount)),
        status=TransactionStatus.PENDING.value,
        network_provider=network_provider,
    )
    if currency:
        tx.currency = currency
    with _store_errors(db):
        db.add(tx)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise RelationConstraintError(
                f"Cannot create transaction: {phone_number!r} is not in the phone number registry."
            ) from exc
    db.refresh(tx)
    return tx


def coerce_status(status) -> TransactionStatus:
    try:
        return TransactionStatus(status)
    except (TypeError, ValueError) as exc:
        raise InvalidStatusError(f"Invalid transaction status: {status!r}") from exc


def update_transaction_status(
    db: Session,
    transaction_id: int,
    status,
    reference: str | None = None,
    *,
    clear_reference: bool = False,
) -> AirtimeTransaction | None:
    """
    Move a transaction to ``status``.

    ``reference`` overwrites the stored value only when given; pass
    ``clear_reference=True`` to null it. ``processed_at`` is stamped on every
    move into a terminal status and is never cleared.
    """
    new_status = coerce_status(status)
    with _store_errors(db):
        tx = db.get(AirtimeTransaction, transaction_id)
        if tx is None:
            return None
        tx.status = new_status.value
        if clear_reference:
            tx.transaction_reference = None
        elif reference is not None:
            tx.transaction_reference = reference
        if new_status in TERMINAL_STATUSES:
            tx.processed_at = utcnow()
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
    db.refresh(tx)
    return tx


def list_transactions_for_number(db: Session, phone_number: str) -> list[AirtimeTransaction]:
    with _store_errors(db):
        return (
            db.query(AirtimeTransaction)
            .filter(AirtimeTransaction.phone_number == phone_number)
            .order_by(AirtimeTransaction.created_at.desc(), AirtimeTransaction.id.desc())
            .all()
        )
