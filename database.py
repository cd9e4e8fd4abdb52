"""
Database helpers

One MongoDB client is opened at startup and shared by every request.
Collections:
- lessons: the bookable catalogue (seeded out of band)
- orders: customer bookings, insert only
"""

import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.server_api import ServerApi

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_NAME = "lessons"


def connect_database(url: Optional[str] = None, name: Optional[str] = None) -> Tuple[MongoClient, Database]:
    url = url or os.getenv("DATABASE_URL") or os.getenv("MONGODB_URI")
    if not url:
        raise RuntimeError("Missing DATABASE_URL in environment")
    name = name or os.getenv("DATABASE_NAME")

    client = MongoClient(url, server_api=ServerApi("1", strict=True, deprecation_errors=True))
    if name:
        db = client[name]
    else:
        db = client.get_default_database(default=DEFAULT_DATABASE_NAME)
    ping(db)
    logger.info("Connected to MongoDB database %s", db.name)
    return client, db


def ping(db: Database) -> Dict[str, Any]:
    return db.command("ping")


def get_documents(db: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Return every matching document, in the order the store yields them."""
    return list(db[collection_name].find(filter_dict or {}))


def create_document(db: Database, collection_name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a document stamped with createdAt and return it with its _id."""
    doc = dict(data)
    doc.setdefault("createdAt", datetime.now(timezone.utc))
    result = db[collection_name].insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def update_document(db: Database, collection_name: str, oid: ObjectId, fields: Dict[str, Any]) -> Tuple[int, int]:
    result = db[collection_name].update_one({"_id": oid}, {"$set": fields})
    return result.matched_count, result.modified_count
