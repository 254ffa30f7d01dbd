from datetime import datetime
from typing import Any

from bson import ObjectId


def serialize_doc(doc: Any) -> Any:
    """
    Make a MongoDB document JSON serializable: ObjectIds become strings and
    datetimes become ISO strings, nested structures included.
    """
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, datetime):
        return doc.isoformat()
    if isinstance(doc, list):
        return [serialize_doc(x) for x in doc]
    if isinstance(doc, dict):
        return {k: serialize_doc(v) for k, v in doc.items()}
    return doc


def with_id(doc: dict) -> dict:
    """Serialized copy of ``doc`` with ``_id`` exposed as ``id``."""
    out = serialize_doc(doc)
    out["id"] = out.pop("_id")
    return out
