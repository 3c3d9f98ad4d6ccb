"""Klarna Open Banking client (placeholder).

Only the credential lookup is implemented: the API token is static and
read from settings, there is no token refresh, and the institution list is
always empty until the integration is completed. It implements the same
TokenProvider / InstitutionCatalog protocols as the Nordigen integration,
so finishing it requires no change to consumers.
"""

import logging

from config import settings
from integrations.aggregator_protocol import Institution
from integrations.provider_registry import Aggregator

logger = logging.getLogger(__name__)


class KlarnaClient:
    """Static-token Klarna integration."""

    def __init__(self, api_token: str | None = None):
        self._api_token = api_token if api_token is not None else settings.KLARNA_API_TOKEN

    @property
    def provider_name(self) -> str:
        return "Klarna"

    def get_valid_token(self) -> str | None:
        return self._api_token or None

    def list_institutions(self, country_code: str) -> list[Institution]:
        logger.debug("Klarna institution listing not implemented (country %s)", country_code)
        return []


def build_klarna_aggregator(store):
    """Registry factory; Klarna keeps no state in the record store."""
    client = KlarnaClient()
    return Aggregator(name=client.provider_name, token_provider=client, catalog=client)
