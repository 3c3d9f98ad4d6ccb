"""Aggregator protocol definitions for multi-provider support.

This module defines the value types exchanged with bank data aggregators
and the capability interfaces (token provider, institution catalog) that
every aggregator integration (Nordigen, Klarna, ...) implements.
"""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class TokenPair:
    """Tokens returned by a token acquisition or refresh call.

    ``refresh`` is None when a refresh call did not rotate the refresh
    token. Lifetimes are relative, in seconds.
    """

    access: str
    access_expires: int
    refresh: str | None = None
    refresh_expires: int | None = None


@dataclass
class Institution:
    """A bank as listed by the aggregator. Never persisted."""

    id: str
    name: str
    bic: str | None = None
    transaction_total_days: str | None = None
    countries: list[str] = field(default_factory=list)
    logo: str | None = None


@dataclass
class Requisition:
    """A bank authorisation session on the aggregator side."""

    id: str
    status: str  # CR, GC, UA, RJ, SA, GA, LN, EX
    link: str | None = None
    institution_id: str | None = None
    agreement: str | None = None
    accounts: list[str] = field(default_factory=list)


@dataclass
class AccountDetails:
    """Owner and identifier details for one aggregator account."""

    iban: str | None = None
    name: str | None = None
    owner_name: str | None = None
    currency: str | None = None


class TokenProvider(Protocol):
    """Protocol for anything that can hand out a usable bearer token."""

    @property
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'Nordigen', 'Klarna')."""
        ...

    def get_valid_token(self) -> str | None:
        """Return a currently valid access token.

        Returns:
            The token, or None when the integration is not configured or
            the stored credentials no longer work.
        """
        ...


class InstitutionCatalog(Protocol):
    """Protocol for listing the banks an aggregator can connect to."""

    def list_institutions(self, country_code: str) -> list[Institution]:
        """Fetch the institutions available in a country, sorted by name.

        Raises:
            NotConfiguredError: If no token can be obtained.
            UpstreamError: If the aggregator rejects the request.
            TransportError: On network failure or timeout.
        """
        ...
