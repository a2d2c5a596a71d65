from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.models.base import TimestampMixin


class PhoneNumber(Base, TimestampMixin):
    """
    Registry of numbers that have been served.

    A row is written once and never updated or deleted; its presence makes the
    number permanently ineligible for another top-up.
    """

    __tablename__ = "phone_numbers"

    id = Column(Integer, primary_key=True, index=True)
    phone_number = Column(String(20), nullable=False, unique=True, index=True)

    transactions = relationship("AirtimeTransaction", back_populates="phone")
