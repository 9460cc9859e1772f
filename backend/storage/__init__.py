from backend.storage.base import DataStore
from backend.storage.factory import open_store
from backend.storage.firebase_store import FirebaseDataStore
from backend.storage.sql_store import SqlDataStore

__all__ = ["DataStore", "FirebaseDataStore", "SqlDataStore", "open_store"]
