from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from database import create_document, get_db, now_utc, sanitize, to_obj_id
from responses import Pagination, envelope, pagination
from schemas import Notification as NotificationSchema
from security import get_current_user

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def notify(db: Database, user_id: str, kind: str, title: str, message: str, related_id: Optional[str] = None) -> dict:
    """Store a notification for ``user_id``."""
    return create_document(
        db,
        "notification",
        NotificationSchema(user_id=str(user_id), type=kind, title=title, message=message, related_id=related_id),
    )


@router.get("")
def list_notifications(
    pager: Pagination = Depends(pagination(default_limit=20)),
    current_user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    uid = current_user["id"]
    notifications, total = pager.find(db["notification"], {"user_id": uid})
    unread = db["notification"].count_documents({"user_id": uid, "is_read": False})
    return pager.envelope([sanitize(n) for n in notifications], total, unreadCount=unread)


@router.put("/read-all")
def mark_all_read(current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    db["notification"].update_many(
        {"user_id": current_user["id"], "is_read": False},
        {"$set": {"is_read": True, "updated_at": now_utc()}},
    )
    return envelope(message="All notifications marked as read.")


@router.put("/{notification_id}/read")
def mark_read(notification_id: str, current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    q = {"_id": to_obj_id(notification_id), "user_id": current_user["id"]}
    res = db["notification"].update_one(q, {"$set": {"is_read": True, "updated_at": now_utc()}})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Notification not found.")
    return envelope(sanitize(db["notification"].find_one(q)))


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    res = db["notification"].delete_one({"_id": to_obj_id(notification_id), "user_id": current_user["id"]})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Notification not found.")
    return envelope(message="Notification deleted successfully.")
