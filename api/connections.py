"""Bank connection API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.helpers import get_store, store_http_error
from integrations.exceptions import ConnectionNotFoundError, PartialDeleteError, StoreError
from schemas.connection import BankConnectionResponse, ConnectionDeleteResponse
from services.connection_service import ConnectionService
from services.record_store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/connections", tags=["connections"])


def get_connection_service(store: RecordStore = Depends(get_store)) -> ConnectionService:
    """Dependency for injecting the connection service (overridable in tests)."""
    return ConnectionService(store)


@router.get("", response_model=list[BankConnectionResponse])
def list_connections(service: ConnectionService = Depends(get_connection_service)):
    """List bank connections, newest first."""
    try:
        return service.list_connections()
    except StoreError as e:
        raise store_http_error(e)


@router.delete("", response_model=ConnectionDeleteResponse)
def delete_connection(
    id: Optional[str] = None,
    service: ConnectionService = Depends(get_connection_service),
):
    """Delete a connection together with all of its transactions."""
    if not id:
        raise HTTPException(status_code=400, detail="Connection ID is required")

    try:
        result = service.delete_connection(id)
    except ConnectionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PartialDeleteError as e:
        raise HTTPException(
            status_code=500,
            detail={
                "message": "Error deleting connection",
                "failed_transaction_ids": e.failed_transaction_ids,
            },
        )
    except StoreError as e:
        raise store_http_error(e)

    return ConnectionDeleteResponse(
        status="partial" if result.failed_transaction_ids else "ok",
        connection_id=result.connection_id,
        transactions_deleted=result.transactions_deleted,
        failed_transaction_ids=result.failed_transaction_ids,
    )
