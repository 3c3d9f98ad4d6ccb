"""Institution (bank) listing API endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.helpers import (
    UNAVAILABLE_DETAIL,
    aggregator_http_error,
    get_registry,
    get_store,
    store_http_error,
)
from config import settings
from integrations.exceptions import AggregatorError, StoreError
from integrations.provider_registry import ProviderRegistry
from schemas.aggregator import InstitutionResponse
from services.institution_service import normalize_country_code
from services.record_store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/institutions", tags=["institutions"])


@router.get("", response_model=list[InstitutionResponse])
def list_institutions(
    country: str | None = None,
    store: RecordStore = Depends(get_store),
    registry: ProviderRegistry = Depends(get_registry),
):
    """List the banks available in a country, sorted by name."""
    try:
        country = normalize_country_code(country or settings.DEFAULT_COUNTRY)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        aggregator = registry.get_aggregator(settings.AGGREGATOR_PROVIDER, store)
    except ValueError as e:
        logger.error("Aggregator unavailable: %s", e)
        raise HTTPException(status_code=503, detail=UNAVAILABLE_DETAIL)

    try:
        institutions = aggregator.catalog.list_institutions(country)
    except AggregatorError as e:
        raise aggregator_http_error(e)
    except StoreError as e:
        raise store_http_error(e)
    finally:
        aggregator.close()

    logger.info(
        "%s: returning %d institutions for %s",
        aggregator.name,
        len(institutions),
        country,
    )
    return institutions
