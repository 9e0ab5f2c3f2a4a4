"""Response envelope and pagination shared by every router."""
import math
from typing import Any, Dict, List, Optional

from fastapi import Query
from pymongo.collection import Collection

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


def envelope(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def error_envelope(message: str, errors: Optional[List[Dict]] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    body.update(extra)
    return body


class Pagination:
    def __init__(self, page: int, limit: int):
        self.page = page
        self.limit = limit

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def find(self, collection: Collection, query: Dict, sort=NEWEST_FIRST):
        """Run ``query`` for the current page; returns ``(documents, total)``."""
        total = collection.count_documents(query)
        cursor = collection.find(query).sort(sort).skip(self.skip).limit(self.limit)
        return list(cursor), total

    def envelope(self, items: List, total: int, **extra: Any) -> Dict[str, Any]:
        return envelope(
            items,
            totalPages=math.ceil(total / self.limit),
            currentPage=self.page,
            total=total,
            limit=self.limit,
            **extra,
        )


def pagination(default_limit: int = 10):
    def dep(
        page: int = Query(1, ge=1),
        limit: int = Query(default_limit, ge=1, le=100),
    ) -> Pagination:
        return Pagination(page, limit)
    return dep
