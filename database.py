"""
MongoDB access.

The client is opened once per application (see main.create_app) and handed
to routes through the get_db dependency instead of living at module level.
"""
import logging
from datetime import datetime, timezone

from bson import ObjectId
from fastapi import Request
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import Settings
from errors import InvalidObjectId

logger = logging.getLogger(__name__)

USERS = "users"
PROFILES = "profiles"
POSTS = "posts"


def connect(settings: Settings) -> MongoClient:
    logger.info("Connecting to MongoDB database %s", settings.database_name)
    return MongoClient(settings.database_url)


def ensure_indexes(db: Database):
    """One account per email, one profile per user."""
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[PROFILES].create_index([("user", ASCENDING)], unique=True)
    db[POSTS].create_index([("date", ASCENDING)])


def get_db(request: Request) -> Database:
    return request.app.state.db


def now():
    return datetime.now(timezone.utc)


def parse_object_id(value: str, label: str) -> ObjectId:
    # ObjectId.is_valid also accepts 12-byte strings, route ids must be hex
    if len(value) != 24 or not ObjectId.is_valid(value):
        raise InvalidObjectId(label)
    return ObjectId(value)


def serialize(value):
    """Render a stored document as JSON-ready data: `_id` becomes `id`."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return [serialize(v) for v in value]
    if isinstance(value, dict):
        return {("id" if k == "_id" else k): serialize(v) for k, v in value.items()}
    return value
