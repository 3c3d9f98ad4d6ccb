"""Shared API helpers for route handlers.

Dependency providers and the mapping from service exceptions to HTTP
responses, used across the aggregator and connection routers.
"""

import logging

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from integrations.exceptions import (
    AggregatorError,
    InvalidCredentialsError,
    NotConfiguredError,
    StoreError,
    TransportError,
    UpstreamError,
)
from integrations.nordigen_client import NordigenClient
from integrations.provider_registry import ProviderRegistry, get_provider_registry
from logging_config import redact
from services.record_store import RecordStore, SQLRecordStore

logger = logging.getLogger(__name__)

UNAVAILABLE_DETAIL = "Bank integration is temporarily unavailable. Please try again later."
STORE_BUSY_DETAIL = "The database is busy. Please try again shortly."
STORE_ERROR_DETAIL = "Internal error while accessing stored data."


def get_store(db: Session = Depends(get_db)) -> RecordStore:
    """Dependency providing the record store for the request's session."""
    return SQLRecordStore(db)


def get_nordigen_client():
    """Dependency providing a Nordigen client (overridable in tests)."""
    client = NordigenClient()
    try:
        yield client
    finally:
        client.close()


def get_registry() -> ProviderRegistry:
    """Get the provider registry (dependency for injection in tests)."""
    return get_provider_registry()


def aggregator_http_error(exc: AggregatorError) -> HTTPException:
    """Translate an aggregator exception into an HTTPException.

    Upstream and transport failures are logged with their details but only
    a generic message reaches the client.

    Args:
        exc: The exception raised by a service.

    Returns:
        The HTTPException to raise from the route.
    """
    if isinstance(exc, NotConfiguredError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, InvalidCredentialsError):
        return HTTPException(
            status_code=400,
            detail="Invalid credentials. Check your Secret ID and Secret Key.",
        )
    if isinstance(exc, UpstreamError):
        logger.error(
            "%s (status=%s, body=%s)", exc, exc.status_code, redact(exc.body)
        )
        return HTTPException(status_code=502, detail=UNAVAILABLE_DETAIL)
    if isinstance(exc, TransportError):
        logger.error("%s (timeout=%s)", exc, exc.timeout)
        return HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)
    logger.error("Unexpected aggregator error: %s", exc)
    return HTTPException(status_code=500, detail=UNAVAILABLE_DETAIL)


def store_http_error(exc: StoreError) -> HTTPException:
    """Translate a record store failure into an HTTPException.

    Lock and pool timeouts are retriable and map to 503; anything else is
    an internal error. The client only ever sees a generic message.
    """
    if exc.timeout:
        return HTTPException(status_code=503, detail=STORE_BUSY_DETAIL)
    return HTTPException(status_code=500, detail=STORE_ERROR_DETAIL)
