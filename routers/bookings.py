import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo.database import Database

from database import create_document, find_by_ids, get_db, now_utc, pick, sanitize, to_obj_id, update_document
from responses import Pagination, envelope, pagination
from routers.notifications import notify
from schemas import Address, Booking as BookingSchema, BookingStatus
from security import get_current_user, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])

CLIENT_SUMMARY = ("first_name", "last_name", "email", "phone")
HELPER_SUMMARY = CLIENT_SUMMARY + ("avatar", "rating")
SERVICE_SUMMARY = ("title", "category", "price", "duration")


class CreateBookingRequest(BaseModel):
    service_id: str
    scheduled_date: datetime
    address: Address
    notes: Optional[str] = Field(None, max_length=1000)


class UpdateStatusRequest(BaseModel):
    status: BookingStatus


class CancelRequest(BaseModel):
    reason: Optional[str] = None


def populate(db: Database, bookings) -> list:
    """Embed client, helper and service summaries into each booking."""
    users = find_by_ids(db, "user", [b["client_id"] for b in bookings] + [b["helper_id"] for b in bookings])
    services = find_by_ids(db, "service", [b["service_id"] for b in bookings])
    items = []
    for b in bookings:
        item = sanitize(b)
        item["client"] = pick(users.get(b["client_id"]), CLIENT_SUMMARY)
        item["helper"] = pick(users.get(b["helper_id"]), HELPER_SUMMARY)
        item["service"] = pick(services.get(b["service_id"]), SERVICE_SUMMARY)
        items.append(item)
    return items


def get_booking_or_404(db: Database, booking_id: str) -> dict:
    booking = db["booking"].find_one({"_id": to_obj_id(booking_id)})
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found.")
    return booking


@router.post("", status_code=201)
def create_booking(payload: CreateBookingRequest, current_client=Depends(require_role("client")), db: Database = Depends(get_db)):
    service = db["service"].find_one({"_id": to_obj_id(payload.service_id)})
    if not service:
        raise HTTPException(status_code=404, detail="Service not found.")
    booking_doc = create_document(
        db,
        "booking",
        BookingSchema(
            client_id=current_client["id"],
            helper_id=service["helper_id"],
            service_id=payload.service_id,
            scheduled_date=payload.scheduled_date,
            address=payload.address,
            notes=payload.notes,
            total_price=service["price"],
        ),
    )
    booking_id = str(booking_doc["_id"])
    db["user"].update_one({"_id": to_obj_id(current_client["id"])}, {"$push": {"booking_history": booking_id}})
    notify(
        db,
        service["helper_id"],
        "booking",
        "New Booking Request",
        f"You have a new booking request for {service['title']}",
        booking_id,
    )
    logger.info("Booking %s created for service %s", booking_id, payload.service_id)
    return envelope(sanitize(booking_doc), "Booking created successfully!")


@router.get("")
def list_bookings(
    status: Optional[BookingStatus] = None,
    pager: Pagination = Depends(pagination()),
    current_user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    q: Dict[str, Any] = {}
    if current_user["role"] == "client":
        q["client_id"] = current_user["id"]
    elif current_user["role"] == "helper":
        q["helper_id"] = current_user["id"]
    if status:
        q["status"] = status
    bookings, total = pager.find(db["booking"], q)
    return pager.envelope(populate(db, bookings), total)


@router.get("/{booking_id}")
def get_booking(booking_id: str, current_user=Depends(get_current_user), db: Database = Depends(get_db)):
    booking = get_booking_or_404(db, booking_id)
    if current_user["id"] not in (booking["client_id"], booking["helper_id"]):
        raise HTTPException(status_code=403, detail="Unauthorized access.")
    return envelope(populate(db, [booking])[0])


@router.put("/{booking_id}/status")
def update_booking_status(
    booking_id: str,
    payload: UpdateStatusRequest,
    current_user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    booking = get_booking_or_404(db, booking_id)
    if booking["helper_id"] != current_user["id"]:
        raise HTTPException(status_code=403, detail="Only the helper can update booking status.")
    updates: Dict[str, Any] = {"status": payload.status}
    if payload.status == "completed":
        updates["completed_at"] = now_utc()
    booking = update_document(db, "booking", booking["_id"], updates)
    notify(
        db,
        booking["client_id"],
        "booking",
        "Booking Status Updated",
        f"Your booking status has been updated to {payload.status}",
        booking_id,
    )
    logger.info("Booking %s moved to %s", booking_id, payload.status)
    return envelope(sanitize(booking), "Booking status updated successfully!")


@router.put("/{booking_id}/cancel")
def cancel_booking(
    booking_id: str,
    payload: Optional[CancelRequest] = None,
    current_user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    booking = get_booking_or_404(db, booking_id)
    uid = current_user["id"]
    if uid not in (booking["client_id"], booking["helper_id"]):
        raise HTTPException(status_code=403, detail="Unauthorized to cancel this booking.")
    reason = payload.reason if payload else None
    booking = update_document(
        db,
        "booking",
        booking["_id"],
        {"status": "cancelled", "cancelled_at": now_utc(), "cancellation_reason": reason},
    )
    other_party = booking["helper_id"] if booking["client_id"] == uid else booking["client_id"]
    notify(
        db,
        other_party,
        "booking",
        "Booking Cancelled",
        f"A booking has been cancelled. Reason: {reason or 'No reason provided'}",
        booking_id,
    )
    logger.info("Booking %s cancelled by %s", booking_id, uid)
    return envelope(sanitize(booking), "Booking cancelled successfully!")
