"""AggregatorConfig model - the single stored set of aggregator credentials."""

from sqlalchemy import Boolean, Column, DateTime, String

from database import Base
from models.utils import generate_uuid, utcnow


class AggregatorConfig(Base):
    """Credentials and current tokens for the bank data aggregator.

    At most one row exists. Its absence means the integration is not
    configured. Token columns are rewritten in place on every refresh or
    re-authentication.
    """

    __tablename__ = "aggregator_config"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    secret_id = Column(String, nullable=False)
    secret_key = Column(String, nullable=False)
    access_token = Column(String, nullable=True)
    refresh_token = Column(String, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)
    refresh_expires_at = Column(DateTime, nullable=True)
    is_configured = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )
