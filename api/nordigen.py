"""Nordigen API endpoints.

Configuration of the aggregator credentials and the bank linking flow:
opening a requisition and processing the redirect back from the bank.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.helpers import (
    aggregator_http_error,
    get_nordigen_client,
    get_store,
    store_http_error,
)
from integrations.exceptions import AggregatorError, ConnectionNotFoundError, StoreError
from integrations.nordigen_client import NordigenClient
from schemas.aggregator import (
    ConfigurationStatusResponse,
    RemoveConfigurationResponse,
    SaveConfigurationRequest,
    SaveConfigurationResponse,
)
from schemas.connection import (
    BankConnectionResponse,
    CompleteConnectionRequest,
    CreateConnectionRequest,
    CreateConnectionResponse,
)
from services.configuration_service import ConfigurationService
from services.connection_service import ConnectionService
from services.credential_store import CredentialStore
from services.credential_validator import CredentialValidator
from services.record_store import RecordStore
from services.token_manager import TokenManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/nordigen", tags=["nordigen"])


def get_configuration_service(
    store: RecordStore = Depends(get_store),
    client: NordigenClient = Depends(get_nordigen_client),
) -> ConfigurationService:
    return ConfigurationService(CredentialStore(store), CredentialValidator(client))


def get_linking_service(
    store: RecordStore = Depends(get_store),
    client: NordigenClient = Depends(get_nordigen_client),
) -> ConnectionService:
    token_manager = TokenManager(CredentialStore(store), client)
    return ConnectionService(store, token_provider=token_manager, client=client)


# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------


@router.get("/config", response_model=ConfigurationStatusResponse)
def get_configuration_status(
    service: ConfigurationService = Depends(get_configuration_service),
):
    """Check whether Nordigen credentials are stored."""
    try:
        status = service.status()
    except StoreError as e:
        raise store_http_error(e)
    logger.debug("Nordigen configured: %s", status.is_configured)
    return ConfigurationStatusResponse(
        is_configured=status.is_configured,
        has_credentials=status.has_credentials,
        config_id=status.config_id,
    )


@router.post("/config", response_model=SaveConfigurationResponse)
def save_configuration(
    body: SaveConfigurationRequest,
    service: ConfigurationService = Depends(get_configuration_service),
):
    """Validate credentials with Nordigen and store them."""
    try:
        secret_id, secret_key = service.clean_secrets(body.secret_id, body.secret_key)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        service.save(secret_id, secret_key)
    except AggregatorError as e:
        raise aggregator_http_error(e)
    except StoreError as e:
        raise store_http_error(e)
    return SaveConfigurationResponse(configured=True)


@router.delete("/config", response_model=RemoveConfigurationResponse)
def remove_configuration(
    service: ConfigurationService = Depends(get_configuration_service),
):
    """Remove stored credentials (no error if none are stored)."""
    try:
        removed = service.remove()
    except StoreError as e:
        raise store_http_error(e)
    return RemoveConfigurationResponse(removed=removed)


# ------------------------------------------------------------------
# Bank linking
# ------------------------------------------------------------------


@router.post("/connect", response_model=CreateConnectionResponse)
def create_connection(
    body: CreateConnectionRequest,
    service: ConnectionService = Depends(get_linking_service),
):
    """Open a bank authorisation and return the link to send the user to."""
    if not body.institution_id:
        raise HTTPException(status_code=400, detail="Institution ID is required")

    try:
        link = service.create_connection(
            body.institution_id, body.institution_name, body.redirect_url
        )
    except AggregatorError as e:
        raise aggregator_http_error(e)
    except StoreError as e:
        raise store_http_error(e)
    return CreateConnectionResponse(
        connection_id=link.connection_id,
        requisition_id=link.requisition_id,
        link=link.link,
    )


@router.post("/callback", response_model=BankConnectionResponse)
def complete_connection(
    body: CompleteConnectionRequest,
    service: ConnectionService = Depends(get_linking_service),
):
    """Process the redirect back from the bank and update the connection."""
    if not body.requisition_id:
        raise HTTPException(status_code=400, detail="Requisition ID is required")

    try:
        connection = service.complete_connection(body.requisition_id)
    except ConnectionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AggregatorError as e:
        raise aggregator_http_error(e)
    except StoreError as e:
        raise store_http_error(e)
    return BankConnectionResponse.model_validate(connection)
