"""Test fixtures and sample data."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from models import AggregatorConfig, BankConnection, BankTransaction


def create_config(
    db: Session,
    expires_in: timedelta,
    access_token: str = "access-stored",
    refresh_token: str | None = "refresh-stored",
) -> AggregatorConfig:
    """Create the aggregator config with an access token expiring after ``expires_in``."""
    config = AggregatorConfig(
        secret_id="secret-id",
        secret_key="secret-key",
        access_token=access_token,
        refresh_token=refresh_token,
        token_expires_at=datetime.now(timezone.utc) + expires_in,
        is_configured=True,
    )
    db.add(config)
    db.commit()
    db.refresh(config)
    return config


def create_transactions(
    db: Session, connection_id: str, transaction_ids: list[str]
) -> list[BankTransaction]:
    """Create transactions with the given ids owned by ``connection_id``.

    This is a helper function (not a fixture) so tests can choose ids
    and counts.
    """
    transactions = [
        BankTransaction(
            id=tx_id,
            bank_connection_id=connection_id,
            transaction_id=f"ext-{tx_id}",
            description="Card payment",
            amount=Decimal("-12.50"),
            currency="EUR",
        )
        for tx_id in transaction_ids
    ]
    db.add_all(transactions)
    db.commit()
    return transactions


def snapshot_config(db: Session) -> dict:
    """Return the stored config's column values, re-read from the database."""
    db.expire_all()
    config = db.query(AggregatorConfig).one()
    return {col.name: getattr(config, col.name) for col in AggregatorConfig.__table__.columns}


@pytest.fixture
def aggregator_config(db: Session) -> AggregatorConfig:
    """Create a config whose access token is valid for another 12 hours."""
    return create_config(db, expires_in=timedelta(hours=12))


@pytest.fixture
def expiring_config(db: Session) -> AggregatorConfig:
    """Create a config whose access token expires within the safety margin."""
    return create_config(db, expires_in=timedelta(minutes=1))


@pytest.fixture
def bank_connection(db: Session) -> BankConnection:
    """Create a connected bank connection with id "c1"."""
    conn = BankConnection(
        id="c1",
        institution_id="SANTANDER_BSCHESMM",
        institution_name="Banco Santander",
        requisition_id="req-c1",
        account_id="acc-c1",
        status="connected",
        iban="ES91****1332",
    )
    db.add(conn)
    db.commit()
    db.refresh(conn)
    return conn
