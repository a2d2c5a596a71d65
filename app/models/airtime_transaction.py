import enum
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({TransactionStatus.COMPLETED, TransactionStatus.FAILED})


class AirtimeTransaction(Base, TimestampMixin):
    """
    One row per top-up attempt.

    Status is stored as a plain string guarded by a CHECK constraint so the
    schema does not need a database ENUM type.
    """

    __tablename__ = "airtime_transactions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'cancelled')",
            name="status_check",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(
        String(20),
        ForeignKey("phone_numbers.phone_number", name="fk_phone_number"),
        nullable=False,
        index=True,
    )
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(10), nullable=False, default="NGN")
    status = Column(String(20), nullable=False, default=TransactionStatus.PENDING.value, index=True)
    network_provider = Column(String(50), nullable=True)
    transaction_reference = Column(String(100), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    phone = relationship("PhoneNumber", back_populates="transactions")


Index("ix_airtime_transactions_created_at", AirtimeTransaction.created_at)
