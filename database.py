"""
Database Helper Functions

MongoDB helper functions used by the API routers.
Every router goes through these helpers instead of touching collections
directly, so the handle below can be swapped (tests use mongomock).
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional, Union

from bson import ObjectId
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument

from settings import DATABASE_URL, DATABASE_NAME

logger = logging.getLogger(__name__)

_client = None
db = None

if DATABASE_URL and DATABASE_NAME:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]
    logger.info("MongoDB client created for database %s", DATABASE_NAME)

OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def get_db():
    if db is None:
        raise RuntimeError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    return db


def parse_object_id(value, field: str = "id") -> ObjectId:
    """Turn a 24-hex string into an ObjectId or fail the request with 400."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not OBJECT_ID_RE.match(value):
        raise HTTPException(status_code=400, detail=f"Invalid ObjectId format for {field}")
    return ObjectId(value)


def to_object_ids(data: dict, fields) -> dict:
    """Convert the reference fields present in data to ObjectId."""
    for field in fields:
        value = data.get(field)
        if isinstance(value, str):
            data[field] = parse_object_id(value, field)
    return data


def serialize_doc(doc):
    """Make a document JSON friendly: ObjectId -> str, passwords removed."""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [serialize_doc(d) for d in doc]
    if isinstance(doc, dict):
        return {k: serialize_doc(v) for k, v in doc.items() if k != "password"}
    return doc


def serialize_docs(docs) -> list:
    return [serialize_doc(d) for d in docs]


# Helper functions for common database operations
def create_document(collection_name: str, data: Union[BaseModel, dict]) -> dict:
    """Insert a single document with timestamps and return it with its _id"""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = data.copy()

    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now

    result = get_db()[collection_name].insert_one(data_dict)
    data_dict["_id"] = result.inserted_id
    return data_dict


def get_documents(collection_name: str, filter_dict: dict = None, limit: int = None, sort=None) -> list:
    """Get documents from collection"""
    cursor = get_db()[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_document(collection_name: str, filter_dict: dict) -> Optional[dict]:
    return get_db()[collection_name].find_one(filter_dict)


def get_document_by_id(collection_name: str, doc_id) -> Optional[dict]:
    return get_document(collection_name, {"_id": parse_object_id(doc_id)})


def update_document(collection_name: str, filter_dict: dict, values: dict) -> Optional[dict]:
    """$set the given values and return the document after the update"""
    values = dict(values)
    values["updated_at"] = datetime.now(timezone.utc)
    return get_db()[collection_name].find_one_and_update(
        filter_dict,
        {"$set": values},
        return_document=ReturnDocument.AFTER,
    )


def delete_document(collection_name: str, filter_dict: dict) -> Optional[dict]:
    return get_db()[collection_name].find_one_and_delete(filter_dict)


def aggregate_documents(collection_name: str, pipeline: list) -> list:
    return list(get_db()[collection_name].aggregate(pipeline))


def lookup_stage(from_collection: str, local_field: str, as_field: str) -> list:
    """$lookup a referenced document by _id and flatten it (null when missing)"""
    return [
        {
            "$lookup": {
                "from": from_collection,
                "localField": local_field,
                "foreignField": "_id",
                "as": as_field,
            }
        },
        {"$unwind": {"path": f"${as_field}", "preserveNullAndEmptyArrays": True}},
    ]


def get_joined_documents(collection_name: str, match: dict = None, joins=(), sort: dict = None) -> list:
    """Find documents with referenced documents joined in.

    joins is a list of (from_collection, local_field, as_field); a reference
    that points nowhere comes back as None.
    """
    pipeline = [{"$match": match or {}}]
    if sort:
        pipeline.append({"$sort": sort})
    for from_collection, local_field, as_field in joins:
        pipeline.extend(lookup_stage(from_collection, local_field, as_field))
    docs = aggregate_documents(collection_name, pipeline)
    for doc in docs:
        for _, _, as_field in joins:
            doc.setdefault(as_field, None)
    return docs
