import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo.database import Database

from database import create_document, find_by_ids, get_db, now_utc, pick, sanitize, to_obj_id, update_document
from responses import Pagination, envelope, pagination
from routers.notifications import notify
from schemas import Review as ReviewSchema
from security import require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

CLIENT_SUMMARY = ("first_name", "last_name", "avatar")


class CreateReviewRequest(BaseModel):
    booking_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class RespondRequest(BaseModel):
    response: str = Field(..., min_length=1, max_length=500)


def running_mean(rating: float, count: int, new_rating: int) -> float:
    return (rating * count + new_rating) / (count + 1)


@router.post("", status_code=201)
def create_review(payload: CreateReviewRequest, current_client=Depends(require_role("client")), db: Database = Depends(get_db)):
    booking = db["booking"].find_one({"_id": to_obj_id(payload.booking_id)})
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found.")
    if booking.get("status") != "completed":
        raise HTTPException(status_code=400, detail="Can only review completed bookings.")
    if booking["client_id"] != current_client["id"]:
        raise HTTPException(status_code=403, detail="Unauthorized.")
    # Check-then-insert; no unique index on booking_id backs this.
    if db["review"].find_one({"booking_id": payload.booking_id}):
        raise HTTPException(status_code=400, detail="Review already submitted for this booking.")

    review_doc = create_document(
        db,
        "review",
        ReviewSchema(
            booking_id=payload.booking_id,
            client_id=current_client["id"],
            helper_id=booking["helper_id"],
            rating=payload.rating,
            comment=payload.comment,
        ),
    )

    helper = db["user"].find_one({"_id": to_obj_id(booking["helper_id"])})
    if helper:
        count = helper.get("total_reviews", 0)
        update_document(
            db,
            "user",
            helper["_id"],
            {
                "rating": running_mean(helper.get("rating", 0), count, payload.rating),
                "total_reviews": count + 1,
            },
        )

    review_id = str(review_doc["_id"])
    notify(
        db,
        booking["helper_id"],
        "review",
        "New Review Received",
        f"You received a {payload.rating}-star review",
        review_id,
    )
    logger.info("Review %s created for booking %s", review_id, payload.booking_id)
    return envelope(sanitize(review_doc), "Review submitted successfully!")


@router.get("/helper/{helper_id}")
def helper_reviews(helper_id: str, pager: Pagination = Depends(pagination()), db: Database = Depends(get_db)):
    reviews, total = pager.find(db["review"], {"helper_id": helper_id})
    clients = find_by_ids(db, "user", [r["client_id"] for r in reviews])
    items = []
    for r in reviews:
        item = sanitize(r)
        item["client"] = pick(clients.get(r["client_id"]), CLIENT_SUMMARY)
        items.append(item)
    return pager.envelope(items, total)


@router.put("/{review_id}/respond")
def respond_to_review(
    review_id: str,
    payload: RespondRequest,
    current_helper=Depends(require_role("helper")),
    db: Database = Depends(get_db),
):
    review = db["review"].find_one({"_id": to_obj_id(review_id)})
    if not review:
        raise HTTPException(status_code=404, detail="Review not found.")
    if review["helper_id"] != current_helper["id"]:
        raise HTTPException(status_code=403, detail="Unauthorized.")
    review = update_document(
        db, "review", review["_id"], {"response": payload.response, "response_date": now_utc()}
    )
    return envelope(sanitize(review), "Response added successfully!")
