"""Tests for InstitutionService and institution name ordering."""

from unittest.mock import MagicMock

import pytest

from integrations.aggregator_protocol import Institution
from integrations.exceptions import NotConfiguredError, UpstreamError
from services.institution_service import (
    InstitutionService,
    build_nordigen_aggregator,
    normalize_country_code,
    sort_institutions,
)
from tests.fixtures.mocks import MockNordigenClient


def _names(institutions):
    return [inst.name for inst in institutions]


def _inst(name):
    return Institution(id=name.upper(), name=name)


def _service(client, token="access-stored"):
    token_provider = MagicMock()
    token_provider.get_valid_token.return_value = token
    return InstitutionService(token_provider, client)


class TestSortInstitutions:
    def test_empty(self):
        assert sort_institutions([]) == []

    def test_single(self):
        assert _names(sort_institutions([_inst("BBVA")])) == ["BBVA"]

    def test_already_sorted(self):
        names = ["Abanca", "BBVA", "CaixaBank"]
        assert _names(sort_institutions([_inst(n) for n in names])) == names

    def test_case_insensitive(self):
        result = sort_institutions([_inst("bbva"), _inst("Abanca"), _inst("caixa")])
        assert _names(result) == ["Abanca", "bbva", "caixa"]

    def test_accents_sort_with_base_letter(self):
        result = sort_institutions([_inst("Openbank"), _inst("Évo Banco"), _inst("Deutsche Bank")])
        assert _names(result) == ["Deutsche Bank", "Évo Banco", "Openbank"]

    def test_case_tie_is_deterministic(self):
        result = sort_institutions([_inst("ING"), _inst("ing")])
        assert _names(result) == ["ing", "ING"]

    def test_missing_name_sorts_first(self):
        unnamed = Institution(id="UNNAMED", name=None)

        result = sort_institutions([_inst("BBVA"), unnamed, _inst("")])

        assert [inst.id for inst in result] == ["UNNAMED", "", "BBVA"]


class TestNormalizeCountryCode:
    def test_lowercase_accepted(self):
        assert normalize_country_code("es") == "ES"

    @pytest.mark.parametrize("value", ["", "E", "ESP", "1A", None])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            normalize_country_code(value)


class TestListInstitutions:
    def test_returns_sorted(self, mock_nordigen):
        result = _service(mock_nordigen).list_institutions("ES")

        assert _names(result) == ["Abanca", "Banco Santander", "BBVA", "CaixaBank"]
        assert mock_nordigen.calls == ["get_institutions"]
        assert mock_nordigen.tokens_used == ["access-stored"]

    def test_not_configured_makes_no_call(self, mock_nordigen):
        with pytest.raises(NotConfiguredError):
            _service(mock_nordigen, token=None).list_institutions("ES")
        assert mock_nordigen.calls == []

    def test_upstream_error_propagates(self):
        client = MockNordigenClient(
            institutions_error=UpstreamError("boom", "Nordigen", status_code=500)
        )

        with pytest.raises(UpstreamError):
            _service(client).list_institutions("ES")

    def test_empty_listing(self):
        assert _service(MockNordigenClient(institutions=[])).list_institutions("PT") == []

    def test_invalid_country_makes_no_call(self, mock_nordigen):
        with pytest.raises(ValueError):
            _service(mock_nordigen).list_institutions("Spain")
        assert mock_nordigen.calls == []


class TestBuildNordigenAggregator:
    def test_wires_token_manager_and_catalog(self, store, mock_nordigen, aggregator_config):
        aggregator = build_nordigen_aggregator(store, client=mock_nordigen)

        assert aggregator.name == "Nordigen"
        assert aggregator.token_provider.get_valid_token() == "access-stored"
        assert len(aggregator.catalog.list_institutions("ES")) == 4
        aggregator.close()
        assert mock_nordigen.closed is True

    def test_unconfigured_store(self, store, mock_nordigen):
        aggregator = build_nordigen_aggregator(store, client=mock_nordigen)

        with pytest.raises(NotConfiguredError):
            aggregator.catalog.list_institutions("ES")
