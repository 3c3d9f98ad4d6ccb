"""BankTransaction model - a transaction owned by a bank connection."""

from sqlalchemy import Column, Date, DateTime, Numeric, String

from database import Base
from models.utils import generate_uuid, utcnow


class BankTransaction(Base):
    """A transaction pulled from a bank connection.

    ``bank_connection_id`` is a plain reference column: the record store
    has no cascading constraints, so ConnectionService removes owned
    transactions before removing the connection.
    """

    __tablename__ = "bank_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    bank_connection_id = Column(String(36), index=True, nullable=False)
    transaction_id = Column(String, nullable=True)  # Aggregator transaction ID
    description = Column(String, nullable=True)
    amount = Column(Numeric(precision=18, scale=2), nullable=True)
    currency = Column(String(3), nullable=True)
    booking_date = Column(Date, nullable=True)
    value_date = Column(Date, nullable=True)
    merchant_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
