"""Institution listing for the Nordigen integration."""

import logging
import re
import unicodedata

from integrations.aggregator_protocol import Institution, TokenProvider
from integrations.exceptions import NotConfiguredError
from integrations.nordigen_client import NordigenClient
from integrations.provider_registry import Aggregator
from services.credential_store import CredentialStore
from services.token_manager import TokenManager

logger = logging.getLogger(__name__)

_COUNTRY_RE = re.compile(r"^[A-Z]{2}$")


def normalize_country_code(country_code: str) -> str:
    """Upper-case and validate an ISO 3166-1 alpha-2 country code.

    Raises:
        ValueError: If the value is not two letters.
    """
    code = (country_code or "").strip().upper()
    if not _COUNTRY_RE.match(code):
        raise ValueError(f"Invalid country code: {country_code!r}")
    return code


def collation_key(name: str | None) -> tuple[str, str]:
    """Sort key approximating locale-aware string collation.

    Primary comparison ignores accents and case ("Ábanca" sorts with
    "abanca"); ties are broken case-sensitively with lowercase first.
    A missing name sorts as the empty string.
    """
    name = name or ""
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), name.swapcase()


def sort_institutions(institutions: list[Institution]) -> list[Institution]:
    """Return institutions ordered by name (stable)."""
    return sorted(institutions, key=lambda inst: collation_key(inst.name))


class InstitutionService:
    """Lists the banks available in a country (InstitutionCatalog protocol).

    Results are fetched live on every call and always sorted by name.
    Upstream failures are not retried here; the listing is idempotent so
    the caller may retry.
    """

    def __init__(self, token_provider: TokenProvider, client: NordigenClient):
        self._token_provider = token_provider
        self._client = client

    def list_institutions(self, country_code: str) -> list[Institution]:
        """Fetch institutions for ``country_code`` sorted by name.

        Raises:
            ValueError: If the country code is malformed.
            NotConfiguredError: If no valid token is available; the
                aggregator is not called.
            UpstreamError: If the aggregator returns a non-success status.
            TransportError: On network failure or timeout.
        """
        country = normalize_country_code(country_code)
        token = self._token_provider.get_valid_token()
        if token is None:
            raise NotConfiguredError(
                "Nordigen is not configured. Please add your credentials first.",
                provider_name=self._client.provider_name,
            )

        institutions = self._client.get_institutions(token, country)
        return sort_institutions(institutions)


def build_nordigen_aggregator(store, client: NordigenClient | None = None):
    """Registry factory wiring the Nordigen token manager and catalog."""
    client = client or NordigenClient()
    token_manager = TokenManager(CredentialStore(store), client)
    return Aggregator(
        name=client.provider_name,
        token_provider=token_manager,
        catalog=InstitutionService(token_manager, client),
        close=client.close,
    )
