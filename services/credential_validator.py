"""Validates a candidate secret pair against the aggregator."""

import logging

from integrations.aggregator_protocol import TokenPair
from integrations.nordigen_client import NordigenClient

logger = logging.getLogger(__name__)


class CredentialValidator:
    """Checks credentials by performing one real token acquisition.

    Nothing is persisted here; the configuration save flow stores the
    secrets together with the returned token pair.
    """

    def __init__(self, client: NordigenClient):
        self._client = client

    def validate(self, secret_id: str, secret_key: str) -> TokenPair:
        """Return the token pair issued for the given credentials.

        Raises:
            InvalidCredentialsError: The aggregator rejected the pair.
            TransportError: The aggregator could not be reached.
        """
        logger.info("Validating credentials with %s", self._client.provider_name)
        tokens = self._client.new_token(secret_id, secret_key)
        logger.info("Credentials validated successfully")
        return tokens
