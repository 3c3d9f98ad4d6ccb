"""BankConnection model - one linked bank account via the aggregator."""

from sqlalchemy import Column, DateTime, String

from database import Base
from models.utils import generate_uuid, utcnow

STATUS_PENDING = "pending"
STATUS_CONNECTED = "connected"
STATUS_ERROR = "error"
STATUS_EXPIRED = "expired"


class BankConnection(Base):
    """A bank authorisation session and the account it resolved to.

    Created as ``pending`` when the requisition is opened, then moved to
    ``connected``/``error``/``expired`` by the callback.
    """

    __tablename__ = "bank_connections"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    institution_id = Column(String, nullable=False)
    institution_name = Column(String, nullable=True)
    requisition_id = Column(String, unique=True, index=True, nullable=True)
    account_id = Column(String, nullable=True)  # Aggregator account UUID
    status = Column(String, default=STATUS_PENDING, nullable=False)
    iban = Column(String, nullable=True)  # Masked, e.g. "ES91****1332"
    account_name = Column(String, nullable=True)
    last_sync = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )
