from sqlalchemy.orm import Session

from backend.config import settings
from backend.storage.base import DataStore
from backend.storage.firebase_store import FirebaseDataStore
from backend.storage.sql_store import SqlDataStore


def open_store(db: Session) -> DataStore:
    """Return the data store selected by ``settings.data_source``."""
    if settings.data_source == "firebase":
        if not settings.firebase_database_url:
            raise RuntimeError("DATA_SOURCE is 'firebase' but FIREBASE_DATABASE_URL is missing")
        return FirebaseDataStore(
            settings.firebase_database_url,
            auth_token=settings.firebase_auth_token,
            timeout=settings.store_timeout_seconds,
        )
    return SqlDataStore(db)
