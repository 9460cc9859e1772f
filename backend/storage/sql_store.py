import logging
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.stored_record import StoredRecord
from backend.storage.base import DataStore

logger = logging.getLogger(__name__)


class SqlDataStore(DataStore):
    """Local backend: JSON documents in the ``stored_records`` table."""

    def __init__(self, db: Session):
        super().__init__()
        self.db = db

    def get(self, namespace: str, key: str) -> dict[str, Any] | None:
        record = self.db.get(StoredRecord, (namespace, key))
        return dict(record.payload) if record else None

    def list(self, namespace: str) -> list[dict[str, Any]]:
        rows = (
            self.db.query(StoredRecord)
            .filter(StoredRecord.namespace == namespace)
            .order_by(StoredRecord.key.asc())
            .all()
        )
        return [dict(row.payload) for row in rows]

    def _write(self, namespace: str, key: str, value: dict[str, Any]) -> bool:
        try:
            record = self.db.get(StoredRecord, (namespace, key))
            if record is None:
                record = StoredRecord(namespace=namespace, key=key, payload=value)
                self.db.add(record)
            else:
                record.payload = value
            record.updated_at = datetime.utcnow()
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to write %s/%s", namespace, key)
            return False
        return True

    def _delete(self, namespace: str, key: str) -> bool:
        try:
            record = self.db.get(StoredRecord, (namespace, key))
            if record is not None:
                self.db.delete(record)
                self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to delete %s/%s", namespace, key)
            return False
        return True

    def _delete_all(self, namespace: str) -> bool:
        try:
            self.db.query(StoredRecord).filter(StoredRecord.namespace == namespace).delete()
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to clear namespace %s", namespace)
            return False
        return True

    def ping(self) -> bool:
        try:
            self.db.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Local database is not reachable")
            return False
        return True
