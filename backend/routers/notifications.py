from fastapi import APIRouter, Depends

from backend.models.user import User
from backend.routers.deps import envelope, get_current_user, get_notifier, get_store
from backend.schemas.notification import PurgeRequest
from backend.services.notifications import NotificationSink, clear_notifications, list_notifications, mark_all_read
from backend.services.records import purge_records
from backend.storage.base import DataStore

router = APIRouter(prefix="/api", tags=["notifications"])


@router.get("/notifications")
def notifications_index(store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    notifications = list_notifications(store)
    return envelope({"notifications": notifications, "unread": sum(1 for n in notifications if not n.read)})


@router.post("/notifications/read-all")
def notifications_read(store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    return envelope({"updated": mark_all_read(store)})


@router.delete("/notifications")
def notifications_clear(store: DataStore = Depends(get_store), current_user: User = Depends(get_current_user)):
    return envelope({"cleared": clear_notifications(store)})


@router.post("/records/purge")
def records_purge(
    payload: PurgeRequest,
    store: DataStore = Depends(get_store),
    notifier: NotificationSink = Depends(get_notifier),
    current_user: User = Depends(get_current_user),
):
    removed = purge_records(store, payload.password, payload.scope, notifier)
    return envelope({"removed_invoices": removed}, message="Records purged")
