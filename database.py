"""
Database Helper Functions

MongoDB connection and small helpers shared by the API modules.
The connection is configured from the DATABASE_URL and DATABASE_NAME
environment variables; when either is missing `db` stays None and the
API answers with "Database not configured".
"""
import os
from datetime import datetime, timezone
from typing import Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

load_dotenv()

_client = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")

if database_url and database_name:
    _client = MongoClient(database_url)
    db = _client[database_name]


def get_db() -> Database:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document stamped with created_at/updated_at and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)

    now = datetime.now(timezone.utc)
    data_dict["created_at"] = now
    data_dict["updated_at"] = now

    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(database: Database, collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None):
    cursor = database[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def to_object_id(value) -> Optional[ObjectId]:
    # Malformed ids are treated like missing documents by callers
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def to_str_id(doc):
    """Expose `_id` as `id` and stringify nested ObjectIds."""
    if doc is None:
        return doc
    if isinstance(doc, list):
        return [to_str_id(d) for d in doc]
    if isinstance(doc, ObjectId):
        return str(doc)
    if not isinstance(doc, dict):
        return doc
    d = {}
    for k, v in doc.items():
        if k == "_id":
            d["id"] = str(v)
        elif isinstance(v, (dict, list, ObjectId)):
            d[k] = to_str_id(v)
        else:
            d[k] = v
    return d
