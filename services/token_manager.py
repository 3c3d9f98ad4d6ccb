"""Token lifecycle for the Nordigen integration.

Keeps the stored access token usable: the stored token is returned as
long as it is outside the safety margin, otherwise it is refreshed, and
if the refresh token is no longer accepted the stored secret pair is used
to authenticate from scratch. Every new token is written back through
CredentialStore so the next request (or process) picks it up.

Concurrent callers in one process serialise on a module-level lock around
refresh-and-persist and re-read the configuration once they hold it, so
only the first of them talks to the aggregator. Across processes two
refreshes can still race; both obtain valid tokens and the last write
wins.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from config import settings
from integrations.aggregator_protocol import TokenPair
from integrations.exceptions import (
    InvalidCredentialsError,
    TokenExpiredError,
    TransportError,
    UpstreamError,
)
from integrations.nordigen_client import NordigenClient
from integrations.parsing_utils import ensure_utc, expires_at
from models import AggregatorConfig
from services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

_refresh_lock = threading.Lock()


class TokenState(str, Enum):
    """Outcome of a token resolution."""

    NOT_CONFIGURED = "not_configured"
    VALID = "valid"
    REFRESHED = "refreshed"
    REAUTHENTICATED = "reauthenticated"
    FAILED = "failed"


@dataclass
class TokenResult:
    """Tagged result threaded through the resolution attempts.

    ``access_token`` is set for VALID, REFRESHED and REAUTHENTICATED.
    ``transport_failure`` records that the last failed attempt never got
    an answer from the aggregator.
    """

    state: TokenState
    access_token: str | None = None
    transport_failure: bool = False

    @property
    def ok(self) -> bool:
        return self.access_token is not None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    """Hands out valid Nordigen bearer tokens (TokenProvider protocol)."""

    def __init__(
        self,
        credentials: CredentialStore,
        client: NordigenClient,
        safety_margin: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the manager.

        Args:
            credentials: Accessor for the stored configuration.
            client: Aggregator transport.
            safety_margin: How long before expiry a token is treated as
                expired (defaults to settings.TOKEN_SAFETY_MARGIN_SECONDS).
            clock: Returns the current UTC time; overridable in tests.
        """
        self._credentials = credentials
        self._client = client
        self._margin = safety_margin or timedelta(
            seconds=settings.TOKEN_SAFETY_MARGIN_SECONDS
        )
        self._clock = clock

    @property
    def provider_name(self) -> str:
        return self._client.provider_name

    def get_valid_token(self) -> str | None:
        """Return a usable access token, or None if unavailable.

        None means either that nothing is configured or that both the
        refresh and the re-authentication were rejected; in the latter case
        the user has to save new credentials.

        Raises:
            TransportError: The final re-authentication attempt could not
                reach the aggregator (retry later, do not reconfigure).
        """
        return self.resolve_token().access_token

    def resolve_token(self) -> TokenResult:
        """Run the stored -> refresh -> re-authenticate chain."""
        config = self._credentials.get()
        if config is None:
            return TokenResult(TokenState.NOT_CONFIGURED)

        # Fast path: no lock, no network
        result = self._check_stored(config)
        if result.ok:
            return result

        with _refresh_lock:
            config = self._credentials.get()
            if config is None:
                return TokenResult(TokenState.NOT_CONFIGURED)
            for attempt in (
                self._check_stored,
                self._try_refresh,
                self._try_reauthenticate,
            ):
                result = attempt(config)
                if result.ok:
                    return result

        logger.error(
            "%s token could not be renewed; credentials need to be re-saved",
            self.provider_name,
        )
        if result.transport_failure:
            raise TransportError(
                f"{self.provider_name} unreachable while renewing the access token",
                provider_name=self.provider_name,
            )
        return result

    def _check_stored(self, config: AggregatorConfig) -> TokenResult:
        """Return the stored token if it is not within the safety margin."""
        if config.access_token and config.token_expires_at:
            if ensure_utc(config.token_expires_at) > self._clock() + self._margin:
                return TokenResult(TokenState.VALID, config.access_token)
        return TokenResult(TokenState.FAILED)

    def _try_refresh(self, config: AggregatorConfig) -> TokenResult:
        if not config.refresh_token:
            return TokenResult(TokenState.FAILED)

        logger.info("%s access token near expiry, refreshing", self.provider_name)
        try:
            tokens = self._client.refresh_token(config.refresh_token)
        except TokenExpiredError:
            logger.info("%s refresh token rejected, re-authenticating", self.provider_name)
            return TokenResult(TokenState.FAILED)
        except UpstreamError as exc:
            logger.warning("%s token refresh failed: %s", self.provider_name, exc)
            return TokenResult(TokenState.FAILED)
        except TransportError as exc:
            logger.warning("%s token refresh failed: %s", self.provider_name, exc)
            return TokenResult(TokenState.FAILED, transport_failure=True)

        self._credentials.update(config.id, self._token_fields(tokens, rotate_only=True))
        logger.info("%s access token refreshed", self.provider_name)
        return TokenResult(TokenState.REFRESHED, tokens.access)

    def _try_reauthenticate(self, config: AggregatorConfig) -> TokenResult:
        try:
            tokens = self._client.new_token(config.secret_id, config.secret_key)
        except (InvalidCredentialsError, UpstreamError) as exc:
            logger.warning("%s re-authentication failed: %s", self.provider_name, exc)
            return TokenResult(TokenState.FAILED)
        except TransportError as exc:
            logger.warning("%s re-authentication failed: %s", self.provider_name, exc)
            return TokenResult(TokenState.FAILED, transport_failure=True)

        self._credentials.update(config.id, self._token_fields(tokens, rotate_only=False))
        logger.info("%s re-authenticated with stored credentials", self.provider_name)
        return TokenResult(TokenState.REAUTHENTICATED, tokens.access)

    def _token_fields(self, tokens: TokenPair, rotate_only: bool) -> dict:
        """Build the config fields to persist for a new token pair.

        With ``rotate_only`` (refresh responses) the refresh token is only
        written when the aggregator actually issued a new one.
        """
        now = self._clock()
        fields = {
            "access_token": tokens.access,
            "token_expires_at": expires_at(tokens.access_expires, now),
        }
        if tokens.refresh or not rotate_only:
            fields["refresh_token"] = tokens.refresh
            refresh_expiry = expires_at(tokens.refresh_expires, now)
            if refresh_expiry is not None:
                fields["refresh_expires_at"] = refresh_expiry
        return fields
