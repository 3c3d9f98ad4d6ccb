"""Pydantic schemas for bank connections."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class BankConnectionResponse(BaseModel):
    """Response schema for a single bank connection."""

    id: str
    institution_id: str
    institution_name: Optional[str] = None
    requisition_id: Optional[str] = None
    account_id: Optional[str] = None
    status: str
    iban: Optional[str] = None
    account_name: Optional[str] = None
    last_sync: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ConnectionDeleteResponse(BaseModel):
    """Outcome of a cascading connection delete.

    ``failed_transaction_ids`` is non-empty when some transactions could not
    be removed; the connection itself is gone either way.
    """

    status: str = "ok"
    connection_id: str
    transactions_deleted: int
    failed_transaction_ids: list[str] = []


class CreateConnectionRequest(BaseModel):
    """Request body for opening a bank authorisation."""

    institution_id: str = ""
    institution_name: Optional[str] = None
    redirect_url: str


class CreateConnectionResponse(BaseModel):
    connection_id: str
    requisition_id: str
    link: Optional[str] = None


class CompleteConnectionRequest(BaseModel):
    """Request body for the post-authorisation callback."""

    requisition_id: str = ""
