"""
MongoDB access for the FixIt API.

A single MongoClient is created at import time when DATABASE_URL and
DATABASE_NAME are set. Routes receive the database through the ``get_db``
dependency so tests can swap in an in-memory database.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

from config import DATABASE_NAME, DATABASE_TIMEOUT_MS, DATABASE_URL

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect(url: str, name: str) -> Database:
    return MongoClient(url, serverSelectionTimeoutMS=DATABASE_TIMEOUT_MS)[name]


if DATABASE_URL and DATABASE_NAME:
    db = connect(DATABASE_URL, DATABASE_NAME)
    client = db.client
else:
    logger.warning("DATABASE_URL or DATABASE_NAME not set; database routes will fail")


def get_db() -> Database:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_obj_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid id")


def sanitize(doc: Optional[Dict]) -> Optional[Dict]:
    """Turn a raw document into its API shape: ``_id`` -> ``id``, no password hash."""
    if not doc:
        return doc
    d = {**doc}
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    d.pop("password_hash", None)
    return d


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict:
    """Insert a document with timestamps and return it with its new ``_id``."""
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = now_utc()
    doc["created_at"] = now
    doc["updated_at"] = now
    result = database[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def update_document(database: Database, collection_name: str, doc_id: ObjectId, fields: Dict[str, Any]) -> Optional[Dict]:
    """``$set`` the given fields, refresh ``updated_at`` and return the new document."""
    database[collection_name].update_one(
        {"_id": doc_id}, {"$set": {**fields, "updated_at": now_utc()}}
    )
    return database[collection_name].find_one({"_id": doc_id})


def pick(doc: Optional[Dict], fields) -> Optional[Dict]:
    """Project a document onto ``fields`` (plus ``id``), like a populated reference."""
    if not doc:
        return None
    d = sanitize(doc)
    return {k: d.get(k) for k in ("id", *fields)}


def find_by_ids(database: Database, collection_name: str, ids) -> Dict[str, Dict]:
    """Fetch many documents by hex id in one query, keyed by hex id."""
    oids = [ObjectId(i) for i in set(ids) if i and ObjectId.is_valid(i)]
    if not oids:
        return {}
    return {str(d["_id"]): d for d in database[collection_name].find({"_id": {"$in": oids}})}
