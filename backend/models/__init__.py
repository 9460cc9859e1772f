from backend.models.stored_record import StoredRecord
from backend.models.user import User, UserSession

__all__ = [
    "User",
    "UserSession",
    "StoredRecord",
]
