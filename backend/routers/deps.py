from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.user import User
from backend.services.auth import get_user_from_token
from backend.services.notifications import NotificationSink, StoreNotificationSink
from backend.storage import DataStore, open_store


def bearer_token(authorization: str | None = Header(default=None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")
    return authorization.replace("Bearer ", "", 1)


def get_current_user(token: str = Depends(bearer_token), db: Session = Depends(get_db)) -> User:
    user = get_user_from_token(db, token)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid or expired session")
    return user


def get_store(db: Session = Depends(get_db)) -> DataStore:
    return open_store(db)


def get_notifier(store: DataStore = Depends(get_store)) -> NotificationSink:
    return StoreNotificationSink(store)


def envelope(data, message: str = "Success") -> dict:
    return {"statusCode": 200, "message": message, "data": data}
