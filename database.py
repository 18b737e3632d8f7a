"""
Database Helper Functions

MongoDB helpers used by the service modules. Documents come back with their
ObjectId exposed as the string field "id".
"""

from pymongo import MongoClient, ReturnDocument
from bson import ObjectId
from bson.errors import InvalidId
from datetime import datetime, timezone
import os
from dotenv import load_dotenv
from typing import Union, Optional, Dict, Any, List
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()

_client = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")

if database_url and database_name:
    _client = MongoClient(database_url)
    db = _client[database_name]


def _ensure_db():
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data)


def _object_id(_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(_id)
    except (InvalidId, TypeError):
        return None


# CRUD helpers

def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    _ensure_db()
    payload = _to_dict(data)
    now = datetime.now(timezone.utc)
    payload['created_at'] = now
    payload['updated_at'] = now
    result = db[collection_name].insert_one(payload)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort: Optional[list] = None, skip: Optional[int] = None) -> List[dict]:
    _ensure_db()
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(int(skip))
    if limit:
        cursor = cursor.limit(int(limit))
    return [serialize_doc(doc) for doc in cursor]


def count_documents(collection_name: str, filter_dict: Optional[dict] = None) -> int:
    _ensure_db()
    return db[collection_name].count_documents(filter_dict or {})


def get_document_by_id(collection_name: str, _id: str) -> Optional[dict]:
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return None
    doc = db[collection_name].find_one({"_id": oid})
    return serialize_doc(doc) if doc else None


def update_document(collection_name: str, _id: str, update_data: Dict[str, Any], unset: Optional[List[str]] = None) -> bool:
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return False
    update = {"$set": _to_dict(update_data)}
    update["$set"]["updated_at"] = datetime.now(timezone.utc)
    if unset:
        update["$unset"] = {field: "" for field in unset}
    result = db[collection_name].update_one({"_id": oid}, update)
    return result.matched_count > 0


def ensure_unique_index(collection_name: str, field: str) -> None:
    _ensure_db()
    db[collection_name].create_index(field, unique=True)



def update_document_if_version(collection_name: str, _id: str, expected_version: int, update_data: Dict[str, Any]) -> Optional[dict]:
    """Compare-and-swap write: applies the update only while the stored
    document still has ``expected_version`` and bumps the version by one.
    Returns the updated document, or None if the version no longer matched.
    """
    _ensure_db()
    oid = _object_id(_id)
    if oid is None:
        return None
    update = {
        "$set": {**_to_dict(update_data), "updated_at": datetime.now(timezone.utc)},
        "$inc": {"version": 1},
    }
    doc = db[collection_name].find_one_and_update(
        {"_id": oid, "version": expected_version},
        update,
        return_document=ReturnDocument.AFTER,
    )
    return serialize_doc(doc)


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))  # convert ObjectId to string
    return d
