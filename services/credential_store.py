"""Accessor for the singleton aggregator configuration record."""

import logging
from typing import Any

from models import AggregatorConfig
from services.record_store import RecordStore

logger = logging.getLogger(__name__)

COLLECTION = "aggregator_config"


class CredentialStore:
    """Reads and writes the one AggregatorConfig row.

    Only the oldest record is ever read, and ``save`` updates it in place
    when present, so the table never grows past one row through this
    class. Store failures propagate unchanged.
    """

    def __init__(self, store: RecordStore):
        self._store = store

    def get(self) -> AggregatorConfig | None:
        """Return the stored configuration, or None if not configured."""
        records = self._store.list(COLLECTION, order_by="created_at", limit=1)
        return records[0] if records else None

    def create(self, fields: dict[str, Any]) -> AggregatorConfig:
        return self._store.create(COLLECTION, fields)

    def update(self, config_id: str, fields: dict[str, Any]) -> AggregatorConfig:
        return self._store.update(COLLECTION, config_id, fields)

    def delete(self, config_id: str) -> None:
        self._store.delete(COLLECTION, config_id)

    def save(self, fields: dict[str, Any]) -> AggregatorConfig:
        """Upsert against the existing record's id."""
        existing = self.get()
        if existing is not None:
            config = self.update(existing.id, fields)
            logger.info("Aggregator configuration updated")
        else:
            config = self.create(fields)
            logger.info("Aggregator configuration created")
        return config
