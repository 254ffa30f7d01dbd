import logging
from datetime import datetime, timezone
from typing import List

from bson import ObjectId

from playtime.config import get_settings
from playtime.db import LOCATIONS
from playtime.errors import MalformedRecordError, NotFoundError
from playtime.models.geo import to_point
from playtime.models.location import (
    LocationIn,
    LocationOut,
    SearchQuery,
    SearchResult,
    location_from_doc,
)
from playtime.services.geo_search import search_nearby

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100


def _document_fields(request: LocationIn) -> dict:
    doc = request.model_dump(exclude={"latitude", "longitude"})
    doc["location"] = to_point(request.latitude, request.longitude).model_dump()
    return doc


async def create_location(database, request: LocationIn) -> LocationOut:
    now = datetime.now(timezone.utc)
    doc = _document_fields(request)
    doc["createdAt"] = now
    doc["updatedAt"] = now

    result = await database[LOCATIONS].insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info("Created location %s at %s", result.inserted_id, doc["location"]["coordinates"])
    return location_from_doc(doc)


async def _ensure_exists(database, location_id: ObjectId) -> None:
    # existence only; the stored point is not parsed
    if not await database[LOCATIONS].count_documents({"_id": location_id}, limit=1):
        raise NotFoundError(f"no location found with ID: {location_id}")


async def get_location(database, location_id: ObjectId) -> LocationOut:
    doc = await database[LOCATIONS].find_one({"_id": location_id})
    if not doc:
        raise NotFoundError(f"no location found with ID: {location_id}")
    return location_from_doc(doc)


async def update_location(database, location_id: ObjectId, request: LocationIn) -> LocationOut:
    """Replace the mutable fields; the point is rebuilt from the request."""
    await _ensure_exists(database, location_id)

    update = _document_fields(request)
    update["updatedAt"] = datetime.now(timezone.utc)
    await database[LOCATIONS].update_one({"_id": location_id}, {"$set": update})
    return await get_location(database, location_id)


async def delete_location(database, location_id: ObjectId) -> None:
    await _ensure_exists(database, location_id)
    await database[LOCATIONS].delete_one({"_id": location_id})
    logger.info("Deleted location %s", location_id)


async def list_locations(database, category: str = "", limit: int = DEFAULT_LIST_LIMIT) -> List[LocationOut]:
    query = {"category": category} if category else {}
    if limit <= 0:
        limit = DEFAULT_LIST_LIMIT

    cursor = database[LOCATIONS].find(query).sort("name", 1).limit(limit)
    locations: List[LocationOut] = []
    async for doc in cursor:
        try:
            locations.append(location_from_doc(doc))
        except MalformedRecordError as e:
            # one bad record should not fail the whole listing
            logger.warning("Failed to convert location %s: %s", doc.get("_id"), e)
    return locations


async def search_locations(database, query: SearchQuery) -> List[SearchResult]:
    return await search_nearby(database[LOCATIONS], query, timeout=get_settings().mongo_timeout)
