"""Configuration service - save, inspect and remove aggregator credentials."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from integrations.parsing_utils import expires_at
from services.credential_store import CredentialStore
from services.credential_validator import CredentialValidator

logger = logging.getLogger(__name__)


@dataclass
class ConfigurationStatus:
    is_configured: bool
    has_credentials: bool
    config_id: str | None = None


class ConfigurationService:
    """Service behind the configuration endpoints."""

    def __init__(self, credentials: CredentialStore, validator: CredentialValidator):
        self._credentials = credentials
        self._validator = validator

    def status(self) -> ConfigurationStatus:
        config = self._credentials.get()
        if config is None:
            return ConfigurationStatus(is_configured=False, has_credentials=False)
        return ConfigurationStatus(
            is_configured=bool(config.is_configured),
            has_credentials=True,
            config_id=config.id,
        )

    @staticmethod
    def clean_secrets(secret_id: str, secret_key: str) -> tuple[str, str]:
        """Strip a secret pair, raising ValueError if either value is blank."""
        secret_id = (secret_id or "").strip()
        secret_key = (secret_key or "").strip()
        if not secret_id or not secret_key:
            raise ValueError("Secret ID and Secret Key are required")
        return secret_id, secret_key

    def save(self, secret_id: str, secret_key: str) -> None:
        """Validate a secret pair and store it with its first token pair.

        An existing configuration is updated in place.

        Raises:
            ValueError: If either value is blank.
            InvalidCredentialsError: If the aggregator rejects the pair.
            TransportError: If the aggregator cannot be reached.
            UpstreamError: If the aggregator fails or answers with garbage.
            StoreError: If the configuration cannot be written.
        """
        secret_id, secret_key = self.clean_secrets(secret_id, secret_key)
        tokens = self._validator.validate(secret_id, secret_key)
        now = datetime.now(timezone.utc)
        self._credentials.save(
            {
                "secret_id": secret_id,
                "secret_key": secret_key,
                "access_token": tokens.access,
                "refresh_token": tokens.refresh,
                "token_expires_at": expires_at(tokens.access_expires, now),
                "refresh_expires_at": expires_at(tokens.refresh_expires, now),
                "is_configured": True,
            }
        )

    def remove(self) -> bool:
        """Delete the stored configuration. Returns False if there was none."""
        config = self._credentials.get()
        if config is None:
            return False
        self._credentials.delete(config.id)
        logger.info("Aggregator configuration removed")
        return True
