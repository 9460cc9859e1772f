import logging
from datetime import datetime, timezone
from typing import Protocol

from backend.config import settings
from backend.schemas.notification import AppNotification
from backend.services.catalog import load_all
from backend.storage.base import DataStore
from backend.storage.namespaces import NOTIFICATIONS, new_key

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def publish(self, message: str, link: str | None = None) -> None: ...


class StoreNotificationSink:
    """Keeps the newest ``limit`` notifications in the data store."""

    def __init__(self, store: DataStore, limit: int | None = None):
        self.store = store
        self.limit = limit if limit is not None else settings.notification_limit

    def publish(self, message: str, link: str | None = None) -> None:
        notification = AppNotification(
            id=new_key("NOTIF"),
            message=message,
            timestamp=datetime.now(timezone.utc),
            link=link,
        )
        if not self.store.set(NOTIFICATIONS, notification.id, notification.model_dump(mode="json")):
            logger.warning("Notification dropped: %s", message)
            return
        for stale in list_notifications(self.store)[self.limit :]:
            self.store.remove(NOTIFICATIONS, stale.id)


def list_notifications(store: DataStore) -> list[AppNotification]:
    return sorted(load_all(AppNotification, store, NOTIFICATIONS), key=lambda n: (n.timestamp, n.id), reverse=True)


def mark_all_read(store: DataStore) -> bool:
    ok = True
    for notification in list_notifications(store):
        if not notification.read:
            updated = notification.model_copy(update={"read": True})
            ok = store.set(NOTIFICATIONS, updated.id, updated.model_dump(mode="json")) and ok
    return ok


def clear_notifications(store: DataStore) -> bool:
    return store.clear(NOTIFICATIONS)
