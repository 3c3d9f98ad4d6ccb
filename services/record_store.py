"""Generic record store over named collections.

The banking services only need create/read/update/delete and filtered
listing, so they talk to this narrow interface instead of the ORM. The
SQLAlchemy implementation commits every write on its own: there is no
way to group several records into one transaction, which is the contract
ConnectionService is written against.
"""

import logging
from typing import Any, Protocol

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from database import Base
from integrations.exceptions import StoreError
from models import AggregatorConfig, BankConnection, BankTransaction

logger = logging.getLogger(__name__)

COLLECTIONS: dict[str, type[Base]] = {
    "aggregator_config": AggregatorConfig,
    "bank_connection": BankConnection,
    "bank_transaction": BankTransaction,
}

# SQLite reports its busy timeout as "database is locked"
_TIMEOUT_MARKERS = ("database is locked", "database table is locked", "timeout")


def _is_timeout(exc: Exception) -> bool:
    """Return True for lock waits and pool checkouts that ran out of time."""
    if isinstance(exc, PoolTimeoutError):
        return True
    if isinstance(exc, OperationalError):
        message = str(exc.orig if exc.orig is not None else exc).lower()
        return any(marker in message for marker in _TIMEOUT_MARKERS)
    return False


class RecordStore(Protocol):
    """CRUD + list-with-filter over named collections."""

    def create(self, collection: str, fields: dict[str, Any]) -> Any: ...

    def get(self, collection: str, record_id: str) -> Any | None: ...

    def update(self, collection: str, record_id: str, fields: dict[str, Any]) -> Any: ...

    def delete(self, collection: str, record_id: str) -> None: ...

    def list(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Any]: ...


class SQLRecordStore:
    """RecordStore backed by a SQLAlchemy session.

    Returned records are ORM instances. Every failure is rolled back and
    re-raised as :class:`StoreError`.
    """

    def __init__(self, db: Session):
        self._db = db

    def _model(self, collection: str) -> type[Base]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _fail(self, exc: Exception, action: str, collection: str, record_id: str | None = None):
        self._db.rollback()
        timeout = _is_timeout(exc)
        logger.error(
            "Record store %s failed on %s%s%s: %s",
            action,
            collection,
            f"/{record_id}" if record_id else "",
            " (timed out)" if timeout else "",
            exc,
        )
        return StoreError(
            f"Failed to {action} {collection} record",
            collection,
            record_id,
            timeout=timeout,
        )

    def create(self, collection: str, fields: dict[str, Any]) -> Any:
        model = self._model(collection)
        record = model(**fields)
        try:
            self._db.add(record)
            self._db.commit()
            self._db.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail(exc, "create", collection) from exc
        return record

    def get(self, collection: str, record_id: str) -> Any | None:
        model = self._model(collection)
        try:
            return self._db.get(model, record_id, populate_existing=True)
        except SQLAlchemyError as exc:
            raise self._fail(exc, "read", collection, record_id) from exc

    def update(self, collection: str, record_id: str, fields: dict[str, Any]) -> Any:
        model = self._model(collection)
        try:
            record = self._db.get(model, record_id)
            if record is None:
                raise StoreError(
                    f"{collection} record not found", collection, record_id
                )
            for key, value in fields.items():
                setattr(record, key, value)
            self._db.commit()
            self._db.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail(exc, "update", collection, record_id) from exc
        return record

    def delete(self, collection: str, record_id: str) -> None:
        model = self._model(collection)
        try:
            record = self._db.get(model, record_id)
            if record is None:
                raise StoreError(
                    f"{collection} record not found", collection, record_id
                )
            self._db.delete(record)
            self._db.commit()
        except SQLAlchemyError as exc:
            raise self._fail(exc, "delete", collection, record_id) from exc

    def list(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Any]:
        model = self._model(collection)
        query = self._db.query(model).populate_existing()
        if filters:
            query = query.filter_by(**filters)
        if order_by:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        # Tie-break on the primary key so limit/offset pages are stable
        query = query.order_by(model.id.asc())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        try:
            return query.all()
        except SQLAlchemyError as exc:
            raise self._fail(exc, "list", collection) from exc
