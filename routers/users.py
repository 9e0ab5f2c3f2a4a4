import re
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.database import Database

from database import get_db, sanitize, to_obj_id
from responses import NEWEST_FIRST, Pagination, envelope, pagination
from security import get_current_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/helpers")
def list_helpers(
    expertise: Optional[str] = None,
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    search: Optional[str] = None,
    pager: Pagination = Depends(pagination()),
    db: Database = Depends(get_db),
):
    q: Dict[str, Any] = {"role": "helper", "is_active": True}
    if expertise:
        q["expertise"] = {"$in": [expertise]}
    if min_rating is not None:
        q["rating"] = {"$gte": min_rating}
    if search:
        pattern = re.escape(search)
        q["$or"] = [
            {"first_name": {"$regex": pattern, "$options": "i"}},
            {"last_name": {"$regex": pattern, "$options": "i"}},
            {"bio": {"$regex": pattern, "$options": "i"}},
        ]
    helpers, total = pager.find(db["user"], q, sort=[("rating", -1), ("_id", -1)])
    return pager.envelope([sanitize(h) for h in helpers], total)


@router.get("/helpers/{helper_id}")
def get_helper(helper_id: str, db: Database = Depends(get_db)):
    helper = db["user"].find_one({"_id": to_obj_id(helper_id), "role": "helper"})
    if not helper:
        raise HTTPException(status_code=404, detail="Helper not found.")
    services = db["service"].find({"helper_id": helper_id, "is_active": True}).sort(NEWEST_FIRST)
    return envelope({**sanitize(helper), "services": [sanitize(s) for s in services]})


@router.get("/stats")
def user_stats(current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    uid = current_user["id"]
    bookings = db["booking"]
    stats: Dict[str, Any] = {}
    if current_user["role"] == "helper":
        earned = bookings.find({"helper_id": uid, "status": "completed", "payment_status": "paid"})
        stats = {
            "totalBookings": bookings.count_documents({"helper_id": uid}),
            "completedBookings": bookings.count_documents({"helper_id": uid, "status": "completed"}),
            "pendingBookings": bookings.count_documents({"helper_id": uid, "status": "pending"}),
            "activeServices": db["service"].count_documents({"helper_id": uid, "is_active": True}),
            "totalEarnings": sum(b.get("total_price", 0) for b in earned),
        }
    elif current_user["role"] == "client":
        stats = {
            "totalBookings": bookings.count_documents({"client_id": uid}),
            "completedBookings": bookings.count_documents({"client_id": uid, "status": "completed"}),
            "pendingBookings": bookings.count_documents({"client_id": uid, "status": "pending"}),
        }
    return envelope(stats)
