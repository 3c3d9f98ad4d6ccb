"""SQLAlchemy ORM models."""

from .aggregator_config import AggregatorConfig
from .bank_connection import BankConnection
from .bank_transaction import BankTransaction
from .utils import generate_uuid, utcnow

__all__ = ["AggregatorConfig", "BankConnection", "BankTransaction", "generate_uuid", "utcnow"]
