"""Connection service - bank connection lifecycle and cascading deletes."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from config import settings
from integrations.aggregator_protocol import TokenProvider
from integrations.exceptions import (
    ConnectionNotFoundError,
    NotConfiguredError,
    PartialDeleteError,
    StoreError,
    UpstreamError,
)
from integrations.nordigen_client import NordigenClient
from integrations.parsing_utils import mask_iban
from models import BankConnection
from models.bank_connection import (
    STATUS_CONNECTED,
    STATUS_ERROR,
    STATUS_EXPIRED,
    STATUS_PENDING,
)
from services.record_store import RecordStore

logger = logging.getLogger(__name__)

CONNECTIONS = "bank_connection"
TRANSACTIONS = "bank_transaction"

# Requisition status codes that end the linking flow without an account
_TERMINAL_REQUISITION_STATUS = {
    "EX": STATUS_EXPIRED,
    "RJ": STATUS_ERROR,
    "UA": STATUS_ERROR,
}


@dataclass
class ConnectionDeleteResult:
    """Aggregate outcome of a cascading connection delete."""

    connection_id: str
    transactions_deleted: int = 0
    failed_transaction_ids: list[str] = field(default_factory=list)
    connection_deleted: bool = False

    @property
    def partial_error(self) -> PartialDeleteError | None:
        if not self.failed_transaction_ids:
            return None
        return PartialDeleteError(
            self.connection_id,
            self.failed_transaction_ids,
            transactions_deleted=self.transactions_deleted,
            connection_deleted=self.connection_deleted,
        )


@dataclass
class ConnectionLink:
    """A freshly opened bank authorisation."""

    connection_id: str
    requisition_id: str
    link: str | None


class ConnectionService:
    """Service for creating, listing and deleting bank connections.

    Listing and deleting only need the record store. Opening and completing
    a connection also need a token provider and the aggregator client.
    """

    def __init__(
        self,
        store: RecordStore,
        token_provider: TokenProvider | None = None,
        client: NordigenClient | None = None,
    ):
        self._store = store
        self._token_provider = token_provider
        self._client = client

    # ------------------------------------------------------------------
    # Listing and deletion
    # ------------------------------------------------------------------

    def list_connections(self, limit: int | None = None) -> list[BankConnection]:
        """Return connections, newest first, at most ``limit`` of them."""
        return self._store.list(
            CONNECTIONS,
            order_by="created_at",
            descending=True,
            limit=limit or settings.CONNECTION_PAGE_SIZE,
        )

    def get_connection(self, connection_id: str) -> BankConnection:
        connection = self._store.get(CONNECTIONS, connection_id)
        if connection is None:
            raise ConnectionNotFoundError(f"Connection not found: {connection_id}")
        return connection

    def _transaction_ids(self, connection_id: str) -> list[str]:
        """Collect the ids of every transaction owned by a connection.

        Pages through the store until a short page comes back; ids are
        collected before anything is deleted so offsets stay valid.
        """
        page_size = settings.TRANSACTION_PAGE_SIZE
        ids: list[str] = []
        offset = 0
        while True:
            page = self._store.list(
                TRANSACTIONS,
                filters={"bank_connection_id": connection_id},
                limit=page_size,
                offset=offset,
            )
            ids.extend(tx.id for tx in page)
            if len(page) < page_size:
                return ids
            offset += page_size

    def delete_connection(self, connection_id: str) -> ConnectionDeleteResult:
        """Delete a connection and every transaction that references it.

        Transactions are deleted one by one before the connection. A failed
        transaction delete does not stop the remaining deletes, and the
        connection delete is attempted regardless; failures are reported
        in the returned result.

        Deleting again after a partial failure removes the transactions
        left behind, even though the connection record is already gone;
        the result then has ``connection_deleted`` False.

        Raises:
            ConnectionNotFoundError: If neither the connection nor any of
                its transactions exist.
            PartialDeleteError: If the connection record itself could not
                be deleted.
        """
        connection_exists = self._store.get(CONNECTIONS, connection_id) is not None
        transaction_ids = self._transaction_ids(connection_id)
        if not connection_exists and not transaction_ids:
            raise ConnectionNotFoundError(f"Connection not found: {connection_id}")
        result = ConnectionDeleteResult(connection_id=connection_id)

        if transaction_ids:
            logger.info(
                "Deleting %d transactions of connection %s",
                len(transaction_ids),
                connection_id,
            )
        for tx_id in transaction_ids:
            try:
                self._store.delete(TRANSACTIONS, tx_id)
            except StoreError:
                logger.warning(
                    "Failed to delete transaction %s of connection %s",
                    tx_id,
                    connection_id,
                    exc_info=True,
                )
                result.failed_transaction_ids.append(tx_id)
            else:
                result.transactions_deleted += 1

        if not connection_exists:
            logger.info(
                "Connection %s already deleted; removed %d leftover transactions",
                connection_id,
                result.transactions_deleted,
            )
            return result

        try:
            self._store.delete(CONNECTIONS, connection_id)
        except StoreError as exc:
            error = PartialDeleteError(
                connection_id,
                result.failed_transaction_ids,
                transactions_deleted=result.transactions_deleted,
                connection_deleted=False,
            )
            logger.error("%s", error)
            raise error from exc
        result.connection_deleted = True

        if result.partial_error:
            logger.warning("%s: %s", result.partial_error, result.failed_transaction_ids)
        else:
            logger.info("Deleted connection %s", connection_id)
        return result

    def purge_orphaned_transactions(self, dry_run: bool = False) -> list[str]:
        """Delete transactions whose connection no longer exists.

        Cleans up after partial cascading deletes. Returns the ids of the
        orphaned transactions found (deleted unless ``dry_run``).
        """
        page_size = settings.TRANSACTION_PAGE_SIZE
        known: dict[str, bool] = {}
        orphans: list[str] = []
        offset = 0
        while True:
            page = self._store.list(
                TRANSACTIONS, order_by="created_at", limit=page_size, offset=offset
            )
            for tx in page:
                conn_id = tx.bank_connection_id
                if conn_id not in known:
                    known[conn_id] = self._store.get(CONNECTIONS, conn_id) is not None
                if not known[conn_id]:
                    orphans.append(tx.id)
            if len(page) < page_size:
                break
            offset += page_size

        if not dry_run:
            for tx_id in orphans:
                self._store.delete(TRANSACTIONS, tx_id)
            if orphans:
                logger.info("Purged %d orphaned transactions", len(orphans))
        return orphans

    # ------------------------------------------------------------------
    # Linking flow
    # ------------------------------------------------------------------

    def _require_token(self) -> str:
        if self._token_provider is None or self._client is None:
            raise NotConfiguredError("Bank linking is not available for this provider")
        token = self._token_provider.get_valid_token()
        if token is None:
            raise NotConfiguredError(
                "Nordigen is not configured",
                provider_name=self._client.provider_name,
            )
        return token

    def create_connection(
        self,
        institution_id: str,
        institution_name: str | None,
        redirect_url: str,
    ) -> ConnectionLink:
        """Open a bank authorisation and record a pending connection.

        Creates an end-user agreement and a requisition on the aggregator;
        the returned link sends the user to their bank.
        """
        token = self._require_token()

        agreement_id = self._client.create_agreement(
            token,
            institution_id,
            max_historical_days=settings.AGREEMENT_MAX_HISTORICAL_DAYS,
            access_valid_for_days=settings.AGREEMENT_ACCESS_VALID_FOR_DAYS,
        )
        logger.info("Agreement %s created for %s", agreement_id, institution_id)

        requisition = self._client.create_requisition(
            token,
            institution_id,
            redirect_url=redirect_url,
            agreement_id=agreement_id,
            user_language=settings.REQUISITION_USER_LANGUAGE,
        )
        connection = self._store.create(
            CONNECTIONS,
            {
                "institution_id": institution_id,
                "institution_name": institution_name or institution_id,
                "requisition_id": requisition.id,
                "status": STATUS_PENDING,
            },
        )
        logger.info(
            "Pending connection %s saved for requisition %s",
            connection.id,
            requisition.id,
        )
        return ConnectionLink(
            connection_id=connection.id,
            requisition_id=requisition.id,
            link=requisition.link,
        )

    def complete_connection(self, requisition_id: str) -> BankConnection:
        """Update a pending connection from its requisition's current state.

        Raises:
            ConnectionNotFoundError: If no local connection references the
                requisition.
        """
        token = self._require_token()
        requisition = self._client.get_requisition(token, requisition_id)

        matches = self._store.list(
            CONNECTIONS, filters={"requisition_id": requisition_id}, limit=1
        )
        if not matches:
            raise ConnectionNotFoundError(
                f"Connection not found for requisition: {requisition_id}"
            )
        connection = matches[0]

        if requisition.status != "LN":
            status = _TERMINAL_REQUISITION_STATUS.get(requisition.status, STATUS_PENDING)
            logger.info(
                "Requisition %s not linked (status %s)", requisition_id, requisition.status
            )
            return self._store.update(CONNECTIONS, connection.id, {"status": status})

        if not requisition.accounts:
            logger.error("Requisition %s linked without accounts", requisition_id)
            return self._store.update(CONNECTIONS, connection.id, {"status": STATUS_ERROR})

        account_id = requisition.accounts[0]
        iban = ""
        account_name = ""
        try:
            details = self._client.get_account_details(token, account_id)
        except UpstreamError:
            # Details are display-only; the link itself succeeded
            logger.warning("Account details unavailable for %s", account_id)
        else:
            iban = mask_iban(details.iban or "")
            account_name = details.owner_name or details.name or ""

        connection = self._store.update(
            CONNECTIONS,
            connection.id,
            {
                "account_id": account_id,
                "status": STATUS_CONNECTED,
                "iban": iban,
                "account_name": account_name,
                "last_sync": datetime.now(timezone.utc),
            },
        )
        logger.info("Connection %s linked to account %s", connection.id, account_id)
        return connection
