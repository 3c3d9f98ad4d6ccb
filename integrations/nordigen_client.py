"""Nordigen (GoCardless Bank Account Data) API client.

Thin HTTP transport over the aggregator's REST API. It performs exactly
one request per call, maps HTTP failures to the typed exceptions in
:mod:`integrations.exceptions` and never touches the database; token
caching and persistence live in :mod:`services.token_manager`.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from config import settings
from integrations.aggregator_protocol import (
    AccountDetails,
    Institution,
    Requisition,
    TokenPair,
)
from integrations.exceptions import (
    InvalidCredentialsError,
    TokenExpiredError,
    TransportError,
    UpstreamError,
)
from logging_config import redact

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Nordigen"

T = TypeVar("T")


def _response_body(response: httpx.Response) -> object:
    """Return the decoded JSON body, or the raw text if it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


class NordigenClient:
    """Wrapper around the Nordigen REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the HTTP client.

        Args:
            base_url: API root (defaults to settings).
            timeout: Per-request timeout in seconds (defaults to settings).
            transport: Optional httpx transport, used by tests to stub the API.
        """
        self._client = httpx.Client(
            base_url=base_url or settings.NORDIGEN_BASE_URL,
            timeout=timeout if timeout is not None else settings.NORDIGEN_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def provider_name(self) -> str:
        return PROVIDER_NAME

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        **kwargs,
    ) -> httpx.Response:
        """Send one request, converting network failures to TransportError.

        Non-success responses are returned as-is so each caller can decide
        how a rejection should be classified.
        """
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            return self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Nordigen request timed out: {method} {path}",
                provider_name=PROVIDER_NAME,
                timeout=True,
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(
                f"Nordigen connection failed: {method} {path}: {exc}",
                provider_name=PROVIDER_NAME,
            ) from exc

    def _upstream_error(self, response: httpx.Response, what: str) -> UpstreamError:
        body = _response_body(response)
        logger.error(
            "Nordigen %s failed (HTTP %d): %s", what, response.status_code, redact(body)
        )
        return UpstreamError(
            f"Nordigen {what} failed (HTTP {response.status_code})",
            provider_name=PROVIDER_NAME,
            status_code=response.status_code,
            body=body,
        )

    def _parse(self, response: httpx.Response, what: str, parse: Callable[[Any], T]) -> T:
        """Decode a success response and build the result from it.

        A body that is not JSON or lacks the expected fields is an upstream
        failure, never a client error.
        """
        try:
            return parse(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error(
                "Nordigen %s returned an unreadable body (HTTP %d): %s",
                what,
                response.status_code,
                exc,
            )
            raise UpstreamError(
                f"Nordigen {what} returned an unexpected response",
                provider_name=PROVIDER_NAME,
                status_code=response.status_code,
                body=_response_body(response),
            ) from exc

    def _json_or_raise(
        self, response: httpx.Response, what: str, parse: Callable[[Any], T]
    ) -> T:
        if response.is_success:
            return self._parse(response, what, parse)
        raise self._upstream_error(response, what)

    @staticmethod
    def _to_token_pair(data: dict) -> TokenPair:
        return TokenPair(
            access=data["access"],
            access_expires=int(data.get("access_expires", 86400)),
            refresh=data.get("refresh"),
            refresh_expires=data.get("refresh_expires"),
        )

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def new_token(self, secret_id: str, secret_key: str) -> TokenPair:
        """Obtain a fresh access/refresh pair from a secret pair.

        Raises:
            InvalidCredentialsError: On any non-success response.
            TransportError: On network failure or timeout.
        """
        response = self._request(
            "POST",
            "/token/new/",
            json={"secret_id": secret_id, "secret_key": secret_key},
        )
        if not response.is_success:
            logger.warning(
                "Nordigen rejected secret pair (HTTP %d): %s",
                response.status_code,
                redact(_response_body(response)),
            )
            raise InvalidCredentialsError(
                f"Nordigen rejected the credentials (HTTP {response.status_code})",
                provider_name=PROVIDER_NAME,
            )
        return self._parse(response, "token request", self._to_token_pair)

    def refresh_token(self, refresh: str) -> TokenPair:
        """Exchange a refresh token for a new access token.

        Raises:
            TokenExpiredError: If the refresh token was rejected (4xx).
            UpstreamError: On 5xx responses.
            TransportError: On network failure or timeout.
        """
        response = self._request("POST", "/token/refresh/", json={"refresh": refresh})
        if response.status_code >= 500:
            raise self._upstream_error(response, "token refresh")
        if not response.is_success:
            raise TokenExpiredError(
                f"Nordigen refresh token rejected (HTTP {response.status_code})",
                provider_name=PROVIDER_NAME,
            )
        return self._parse(response, "token refresh", self._to_token_pair)

    # ------------------------------------------------------------------
    # Institutions
    # ------------------------------------------------------------------

    def get_institutions(self, token: str, country_code: str) -> list[Institution]:
        """List the institutions available in a country (unsorted)."""
        response = self._request(
            "GET", "/institutions/", token=token, params={"country": country_code}
        )
        institutions = self._json_or_raise(
            response, "institution listing", self._to_institutions
        )
        logger.info(
            "Nordigen: %d institutions for %s", len(institutions), country_code
        )
        return institutions

    @staticmethod
    def _to_institutions(raw: dict | list) -> list[Institution]:
        if isinstance(raw, dict):
            raw = raw.get("results", [])
        return [
            Institution(
                id=inst.get("id") or "",
                name=inst.get("name") or "",
                bic=inst.get("bic"),
                transaction_total_days=inst.get("transaction_total_days"),
                countries=inst.get("countries") or [],
                logo=inst.get("logo"),
            )
            for inst in raw
        ]

    # ------------------------------------------------------------------
    # Agreements, requisitions and accounts
    # ------------------------------------------------------------------

    def create_agreement(
        self,
        token: str,
        institution_id: str,
        max_historical_days: int,
        access_valid_for_days: int,
    ) -> str:
        """Create an end-user agreement and return its id."""
        response = self._request(
            "POST",
            "/agreements/enduser/",
            token=token,
            json={
                "institution_id": institution_id,
                "max_historical_days": max_historical_days,
                "access_valid_for_days": access_valid_for_days,
                "access_scope": ["balances", "details", "transactions"],
            },
        )
        return self._json_or_raise(response, "agreement creation", lambda data: data["id"])

    def create_requisition(
        self,
        token: str,
        institution_id: str,
        redirect_url: str,
        agreement_id: str,
        user_language: str,
    ) -> Requisition:
        """Create a requisition; the returned ``link`` starts the bank login."""
        response = self._request(
            "POST",
            "/requisitions/",
            token=token,
            json={
                "redirect": redirect_url,
                "institution_id": institution_id,
                "agreement": agreement_id,
                "user_language": user_language,
            },
        )
        return self._json_or_raise(response, "requisition creation", self._to_requisition)

    def get_requisition(self, token: str, requisition_id: str) -> Requisition:
        """Fetch the current state of a requisition."""
        response = self._request(
            "GET", f"/requisitions/{requisition_id}/", token=token
        )
        return self._json_or_raise(response, "requisition lookup", self._to_requisition)

    def get_account_details(self, token: str, account_id: str) -> AccountDetails:
        """Fetch IBAN and owner details for an account."""
        response = self._request(
            "GET", f"/accounts/{account_id}/details/", token=token
        )
        return self._json_or_raise(response, "account details", self._to_account_details)

    @staticmethod
    def _to_account_details(data: dict) -> AccountDetails:
        account = data.get("account") or {}
        return AccountDetails(
            iban=account.get("iban"),
            name=account.get("name"),
            owner_name=account.get("ownerName"),
            currency=account.get("currency"),
        )

    @staticmethod
    def _to_requisition(data: dict) -> Requisition:
        return Requisition(
            id=data["id"],
            status=data.get("status", ""),
            link=data.get("link"),
            institution_id=data.get("institution_id"),
            agreement=data.get("agreement"),
            accounts=list(data.get("accounts") or []),
        )
