"""Tests for credential storage, validation and the configuration service."""

from datetime import timedelta

import pytest

from integrations.exceptions import InvalidCredentialsError, TransportError, UpstreamError
from models import AggregatorConfig
from services.configuration_service import ConfigurationService
from services.credential_store import CredentialStore
from services.credential_validator import CredentialValidator
from tests.fixtures import create_config, snapshot_config
from tests.fixtures.mocks import MockNordigenClient


def _service(store, client):
    return ConfigurationService(CredentialStore(store), CredentialValidator(client))


class TestCredentialStore:
    def test_get_empty(self, store):
        assert CredentialStore(store).get() is None

    def test_get_returns_oldest(self, db, store):
        first = create_config(db, expires_in=timedelta(hours=1), access_token="first")
        create_config(db, expires_in=timedelta(hours=1), access_token="second")

        assert CredentialStore(store).get().id == first.id

    def test_save_creates_then_updates(self, db, store):
        credentials = CredentialStore(store)

        created = credentials.save({"secret_id": "a", "secret_key": "b"})
        updated = credentials.save({"secret_id": "c", "secret_key": "d"})

        assert updated.id == created.id
        assert db.query(AggregatorConfig).count() == 1
        assert snapshot_config(db)["secret_id"] == "c"

    def test_delete(self, db, store, aggregator_config):
        CredentialStore(store).delete(aggregator_config.id)

        assert db.query(AggregatorConfig).count() == 0


class TestCredentialValidator:
    def test_returns_token_pair(self, mock_nordigen):
        tokens = CredentialValidator(mock_nordigen).validate("id", "key")

        assert tokens.access == "access-new"
        assert mock_nordigen.calls == ["new_token"]

    def test_rejection_propagates(self):
        client = MockNordigenClient(new_token_error=InvalidCredentialsError("bad", "Nordigen"))

        with pytest.raises(InvalidCredentialsError):
            CredentialValidator(client).validate("id", "key")


class TestStatus:
    def test_not_configured(self, store, mock_nordigen):
        status = _service(store, mock_nordigen).status()

        assert status.is_configured is False
        assert status.has_credentials is False
        assert status.config_id is None

    def test_configured(self, store, mock_nordigen, aggregator_config):
        status = _service(store, mock_nordigen).status()

        assert status.is_configured is True
        assert status.config_id == aggregator_config.id


class TestSave:
    def test_stores_secrets_and_tokens(self, db, store, mock_nordigen):
        _service(store, mock_nordigen).save(" secret-id ", "secret-key")

        config = snapshot_config(db)
        assert config["secret_id"] == "secret-id"
        assert config["access_token"] == "access-new"
        assert config["refresh_token"] == "refresh-new"
        assert config["token_expires_at"] is not None
        assert config["refresh_expires_at"] is not None
        assert config["is_configured"] is True

    def test_updates_existing_record(self, db, store, mock_nordigen, aggregator_config):
        _service(store, mock_nordigen).save("other-id", "other-key")

        assert db.query(AggregatorConfig).count() == 1
        config = snapshot_config(db)
        assert config["id"] == aggregator_config.id
        assert config["secret_id"] == "other-id"

    @pytest.mark.parametrize("secret_id,secret_key", [("", "key"), ("id", ""), ("  ", "key")])
    def test_blank_values_rejected(self, store, mock_nordigen, secret_id, secret_key):
        with pytest.raises(ValueError, match="required"):
            _service(store, mock_nordigen).save(secret_id, secret_key)
        assert mock_nordigen.calls == []

    def test_clean_secrets_strips_whitespace(self):
        assert ConfigurationService.clean_secrets(" id ", "key\n") == ("id", "key")

    def test_upstream_failure_propagates(self, db, store):
        client = MockNordigenClient(
            new_token_error=UpstreamError("unexpected response", "Nordigen", status_code=200)
        )

        with pytest.raises(UpstreamError):
            _service(store, client).save("id", "key")
        assert db.query(AggregatorConfig).count() == 0

    def test_rejected_credentials_not_stored(self, db, store):
        client = MockNordigenClient(new_token_error=InvalidCredentialsError("bad", "Nordigen"))

        with pytest.raises(InvalidCredentialsError):
            _service(store, client).save("id", "key")
        assert db.query(AggregatorConfig).count() == 0

    def test_transport_error_propagates(self, db, store):
        client = MockNordigenClient(new_token_error=TransportError("down", "Nordigen"))

        with pytest.raises(TransportError):
            _service(store, client).save("id", "key")
        assert db.query(AggregatorConfig).count() == 0


class TestRemove:
    def test_removes_config(self, db, store, mock_nordigen, aggregator_config):
        assert _service(store, mock_nordigen).remove() is True
        assert db.query(AggregatorConfig).count() == 0

    def test_idempotent(self, store, mock_nordigen):
        service = _service(store, mock_nordigen)

        assert service.remove() is False
        assert service.remove() is False
