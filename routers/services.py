import re
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from pymongo.database import Database

from database import create_document, find_by_ids, get_db, pick, sanitize, to_obj_id, update_document
from responses import NEWEST_FIRST, Pagination, envelope, pagination
from schemas import Service as ServiceSchema
from security import require_role

router = APIRouter(prefix="/api/services", tags=["services"])

HELPER_SUMMARY = ("first_name", "last_name", "avatar", "rating", "total_reviews")
HELPER_DETAIL = HELPER_SUMMARY + ("bio", "expertise")

SERVICE_UPDATES = ("title", "description", "category", "price", "duration", "images", "tags", "is_active")


class CreateServiceRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=120)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    duration: Optional[int] = Field(None, ge=0)
    images: List[str] = []
    tags: List[str] = []


class UpdateServiceRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None


@router.get("")
def list_services(
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    pager: Pagination = Depends(pagination()),
    db: Database = Depends(get_db),
):
    q: Dict[str, Any] = {"is_active": True}
    if category:
        q["category"] = category
    if search:
        pattern = re.escape(search)
        q["$or"] = [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    if min_price is not None or max_price is not None:
        price_filter = {}
        if min_price is not None:
            price_filter["$gte"] = min_price
        if max_price is not None:
            price_filter["$lte"] = max_price
        q["price"] = price_filter

    services, total = pager.find(db["service"], q)
    helpers = find_by_ids(db, "user", [s.get("helper_id") for s in services])
    items = []
    for s in services:
        item = sanitize(s)
        item["helper"] = pick(helpers.get(s.get("helper_id")), HELPER_SUMMARY)
        items.append(item)
    return pager.envelope(items, total)


@router.get("/helper/my-services")
def my_services(current_helper=Depends(require_role("helper")), db: Database = Depends(get_db)):
    services = db["service"].find({"helper_id": current_helper["id"]}).sort(NEWEST_FIRST)
    return envelope([sanitize(s) for s in services])


@router.get("/{service_id}")
def get_service(service_id: str, db: Database = Depends(get_db)):
    service = db["service"].find_one({"_id": to_obj_id(service_id)})
    if not service:
        raise HTTPException(status_code=404, detail="Service not found.")
    helper = db["user"].find_one({"_id": to_obj_id(service["helper_id"])})
    item = sanitize(service)
    item["helper"] = pick(helper, HELPER_DETAIL)
    return envelope(item)


@router.post("", status_code=201)
def create_service(payload: CreateServiceRequest, current_helper=Depends(require_role("helper")), db: Database = Depends(get_db)):
    service_doc = create_document(
        db, "service", ServiceSchema(helper_id=current_helper["id"], **payload.model_dump())
    )
    return envelope(sanitize(service_doc), "Service created successfully!")


@router.put("/{service_id}")
def update_service(
    service_id: str,
    payload: UpdateServiceRequest,
    current_helper=Depends(require_role("helper")),
    db: Database = Depends(get_db),
):
    service = db["service"].find_one({"_id": to_obj_id(service_id), "helper_id": current_helper["id"]})
    if not service:
        raise HTTPException(status_code=404, detail="Service not found or unauthorized.")
    updates = payload.model_dump(exclude_unset=True, exclude_none=True, include=set(SERVICE_UPDATES))
    service = update_document(db, "service", service["_id"], updates)
    return envelope(sanitize(service), "Service updated successfully!")


@router.delete("/{service_id}")
def delete_service(service_id: str, current_helper=Depends(require_role("helper")), db: Database = Depends(get_db)):
    res = db["service"].delete_one({"_id": to_obj_id(service_id), "helper_id": current_helper["id"]})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Service not found or unauthorized.")
    return envelope(message="Service deleted successfully!")
