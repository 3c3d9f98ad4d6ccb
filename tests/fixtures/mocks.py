"""Mock implementations for external services."""

from integrations.aggregator_protocol import (
    AccountDetails,
    Institution,
    Requisition,
    TokenPair,
)
from integrations.exceptions import StoreError
from integrations.provider_registry import ProviderRegistry
from integrations.klarna_client import build_klarna_aggregator
from services.institution_service import build_nordigen_aggregator

SAMPLE_INSTITUTIONS = [
    Institution(id="SANTANDER_BSCHESMM", name="Banco Santander", bic="BSCHESMM", countries=["ES"]),
    Institution(id="ABANCA_CAGLESMM", name="Abanca", bic="CAGLESMM", countries=["ES"]),
    Institution(id="BBVA_BBVAESMM", name="BBVA", bic="BBVAESMM", countries=["ES"]),
    Institution(id="CAIXABANK_CAIXESBB", name="CaixaBank", bic="CAIXESBB", countries=["ES"]),
]


class MockNordigenClient:
    """Mock Nordigen client for testing.

    Every call is recorded in ``calls`` by method name. Pass an exception
    instance as ``*_error`` to make the corresponding call raise it.
    """

    def __init__(
        self,
        new_token_result: TokenPair | None = None,
        refresh_result: TokenPair | None = None,
        institutions: list[Institution] | None = None,
        requisition: Requisition | None = None,
        account_details: AccountDetails | None = None,
        new_token_error: Exception | None = None,
        refresh_error: Exception | None = None,
        institutions_error: Exception | None = None,
        account_details_error: Exception | None = None,
    ):
        self.new_token_result = new_token_result or TokenPair(
            access="access-new",
            access_expires=86400,
            refresh="refresh-new",
            refresh_expires=2592000,
        )
        self.refresh_result = refresh_result or TokenPair(
            access="access-refreshed", access_expires=86400
        )
        self.institutions = list(SAMPLE_INSTITUTIONS if institutions is None else institutions)
        self.requisition = requisition or Requisition(
            id="req-new",
            status="CR",
            link="https://ob.gocardless.com/psd2/start/req-new/SANTANDER_BSCHESMM",
        )
        self.account_details = account_details or AccountDetails(
            iban="ES9121000418450200051332", owner_name="Jane Doe"
        )
        self.new_token_error = new_token_error
        self.refresh_error = refresh_error
        self.institutions_error = institutions_error
        self.account_details_error = account_details_error
        self.calls: list[str] = []
        self.tokens_used: list[str] = []
        self.closed = False

    @property
    def provider_name(self) -> str:
        return "Nordigen"

    def close(self) -> None:
        self.closed = True

    def new_token(self, secret_id: str, secret_key: str) -> TokenPair:
        self.calls.append("new_token")
        if self.new_token_error:
            raise self.new_token_error
        return self.new_token_result

    def refresh_token(self, refresh: str) -> TokenPair:
        self.calls.append("refresh_token")
        if self.refresh_error:
            raise self.refresh_error
        return self.refresh_result

    def get_institutions(self, token: str, country_code: str) -> list[Institution]:
        self.calls.append("get_institutions")
        self.tokens_used.append(token)
        if self.institutions_error:
            raise self.institutions_error
        return list(self.institutions)

    def create_agreement(self, token, institution_id, max_historical_days, access_valid_for_days) -> str:
        self.calls.append("create_agreement")
        self.tokens_used.append(token)
        return "agreement-1"

    def create_requisition(self, token, institution_id, redirect_url, agreement_id, user_language) -> Requisition:
        self.calls.append("create_requisition")
        self.tokens_used.append(token)
        return self.requisition

    def get_requisition(self, token: str, requisition_id: str) -> Requisition:
        self.calls.append("get_requisition")
        self.tokens_used.append(token)
        return self.requisition

    def get_account_details(self, token: str, account_id: str) -> AccountDetails:
        self.calls.append("get_account_details")
        if self.account_details_error:
            raise self.account_details_error
        return self.account_details


class MockProviderRegistry(ProviderRegistry):
    """Registry whose Nordigen aggregator uses a MockNordigenClient."""

    def __init__(self, nordigen_client: MockNordigenClient):
        super().__init__()
        self.register_provider(
            "Nordigen", lambda store: build_nordigen_aggregator(store, client=nordigen_client)
        )
        self.register_provider("Klarna", build_klarna_aggregator)

    def initialize_default_providers(self) -> None:
        """No-op: providers are registered in __init__."""
        pass


class FlakyRecordStore:
    """Wraps a RecordStore, recording deletes and failing them for chosen ids."""

    def __init__(self, inner, fail_ids: set[str] | None = None):
        self._inner = inner
        self._fail_ids = set(fail_ids or ())
        self.delete_calls: list[tuple[str, str]] = []

    def delete(self, collection: str, record_id: str) -> None:
        self.delete_calls.append((collection, record_id))
        if record_id in self._fail_ids:
            raise StoreError("simulated delete failure", collection, record_id)
        self._inner.delete(collection, record_id)

    def __getattr__(self, name):
        return getattr(self._inner, name)
