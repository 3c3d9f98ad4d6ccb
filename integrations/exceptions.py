"""Typed exception hierarchy for aggregator and record store errors.

Provides structured exceptions for differentiated error handling
(user-correctable configuration problems vs transient network errors vs
upstream rejections vs partially applied deletes).
"""


class AggregatorError(Exception):
    """Base exception for all aggregator-related errors.

    Carries the provider name so callers can identify which provider failed.
    """

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class NotConfiguredError(AggregatorError):
    """No credentials are stored, or the stored ones no longer yield a token."""

    pass


class InvalidCredentialsError(AggregatorError):
    """The aggregator rejected the secret pair (user-correctable)."""

    pass


class TokenExpiredError(AggregatorError):
    """The refresh token was rejected.

    Only raised by the transport's refresh call and consumed by
    TokenManager, which falls back to a full re-authentication.
    """

    pass


class UpstreamError(AggregatorError):
    """Non-success HTTP response from the aggregator.

    ``body`` holds the raw response payload for diagnostics; it is logged
    but never returned to API clients.
    """

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
        body: object = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message, provider_name)

    @property
    def retriable(self) -> bool:
        """429 (rate limit) and 5xx errors are generally retriable."""
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500


class TransportError(AggregatorError):
    """Network failures and timeouts talking to the aggregator.

    Always retriable.
    """

    retriable = True

    def __init__(self, message: str, provider_name: str = "", timeout: bool = False):
        self.timeout = timeout
        super().__init__(message, provider_name)


class StoreError(Exception):
    """A record store operation failed.

    ``timeout`` is set when the database was locked or a connection could
    not be obtained in time; such failures are retriable.
    """

    def __init__(
        self,
        message: str,
        collection: str = "",
        record_id: str | None = None,
        timeout: bool = False,
    ):
        self.collection = collection
        self.record_id = record_id
        self.timeout = timeout
        super().__init__(message)

    @property
    def retriable(self) -> bool:
        return self.timeout


class ConnectionNotFoundError(LookupError):
    """No bank connection matches the given id or requisition."""

    pass


class PartialDeleteError(Exception):
    """Some records of a cascading connection delete could not be removed.

    ``failed_transaction_ids`` lists the transactions left behind so a
    cleanup run can reconcile them.
    """

    def __init__(
        self,
        connection_id: str,
        failed_transaction_ids: list[str],
        transactions_deleted: int = 0,
        connection_deleted: bool = True,
    ):
        self.connection_id = connection_id
        self.failed_transaction_ids = list(failed_transaction_ids)
        self.transactions_deleted = transactions_deleted
        self.connection_deleted = connection_deleted
        if connection_deleted:
            message = (
                f"Connection {connection_id} deleted but "
                f"{len(self.failed_transaction_ids)} transaction(s) could not be removed"
            )
        else:
            message = (
                f"Connection {connection_id} could not be deleted "
                f"({transactions_deleted} transaction(s) removed, "
                f"{len(self.failed_transaction_ids)} failed)"
            )
        super().__init__(message)
