"""
Database Helper Functions

MongoDB access shared by every endpoint. The client is created lazily on
first use and reused for the life of the process.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from config import get_settings
from validation import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_db() -> Database:
    """Return the process-wide database handle, connecting on first call."""
    global _client, _db
    if _db is not None:
        return _db
    with _lock:
        if _db is None:
            settings = get_settings()
            if not (settings.database_url and settings.database_name):
                raise PersistenceError(
                    "Database not available. Check DATABASE_URL and DATABASE_NAME environment variables."
                )
            _client = MongoClient(settings.database_url)
            database = _client[settings.database_name]
            try:
                ensure_indexes(database)
            except PyMongoError:
                logger.exception("Could not create indexes")
            _db = database
    return _db


def peek_db() -> Optional[Database]:
    """Database handle if it can be obtained, else None. Used by diagnostics."""
    try:
        return get_db()
    except PersistenceError:
        return None


def ensure_indexes(database: Database) -> None:
    for name in ("college", "country", "exam"):
        database[name].create_index([("slug", ASCENDING)], unique=True)
    database["enquiry"].create_index([("created_at", DESCENDING)])
    database["enquiry"].create_index([("status", ASCENDING)])
    database["enquiry"].create_index([("interest", ASCENDING)])
    database["enquiry"].create_index([("email", ASCENDING)])


@contextmanager
def store_errors(action: str):
    """Re-raise driver errors as API errors; unique-key clashes become a 400."""
    try:
        yield
    except DuplicateKeyError as e:
        raise ValidationError(
            "A record with this slug already exists",
            {"duplicate": (e.details or {}).get("keyValue")},
        ) from e
    except PyMongoError as e:
        logger.exception("Failed to %s", action)
        raise PersistenceError(f"Failed to {action}") from e


def now() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a single document with timestamps and return its id as a string."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = data.copy()

    data_dict["created_at"] = now()
    data_dict["updated_at"] = now()

    with store_errors(f"save {collection_name}"):
        result = get_db()[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
) -> List[Dict[str, Any]]:
    with store_errors(f"fetch {collection_name}"):
        cursor = get_db()[collection_name].find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)


def to_public(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Make a Mongo document JSON friendly: `_id` becomes `id`, ObjectIds become strings."""
    if not doc:
        return doc
    d = {}
    for k, v in doc.items():
        if k == "_id":
            d["id"] = str(v)
        else:
            d[k] = _jsonable(v)
    return d


def _jsonable(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return to_public(value) if "_id" in value else {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value
