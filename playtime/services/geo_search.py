"""Nearby location search on top of MongoDB's ``$geoNear``.

The pipeline is always proximity -> keyword -> category -> limit. The radius
is applied before the text filters, so a small radius can hide keyword
matches further away; clients rely on that ordering.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from pymongo import GEOSPHERE
from pymongo.errors import PyMongoError

from playtime.errors import MalformedRecordError, QueryExecutionError
from playtime.models.location import (
    DEFAULT_LIMIT,
    DEFAULT_RADIUS,
    SearchQuery,
    SearchResult,
    location_from_doc,
)

logger = logging.getLogger(__name__)

STORE_TIMEOUT = 10.0  # seconds per store round trip
GEO_FIELD = "location"
GEO_INDEX_NAME = "location_2dsphere"
DISTANCE_FIELD = "distance"


@dataclass(frozen=True)
class ProximityStage:
    longitude: float
    latitude: float
    max_distance: float
    spherical: bool = True
    distance_field: str = DISTANCE_FIELD
    key: str = GEO_FIELD

    def to_mongo(self) -> dict:
        return {
            "$geoNear": {
                "near": {"type": "Point", "coordinates": [self.longitude, self.latitude]},
                "key": self.key,
                "distanceField": self.distance_field,
                "maxDistance": self.max_distance,
                "spherical": self.spherical,
            }
        }


@dataclass(frozen=True)
class PatternMatchStage:
    """Case-insensitive literal substring match on any of ``fields``."""

    fields: Tuple[str, ...]
    keyword: str

    def to_mongo(self) -> dict:
        # Escape special regex characters so the keyword matches literally
        pattern = re.escape(self.keyword)
        return {
            "$match": {
                "$or": [{field: {"$regex": pattern, "$options": "i"}} for field in self.fields]
            }
        }


@dataclass(frozen=True)
class EqualityStage:
    field: str
    value: str

    def to_mongo(self) -> dict:
        return {"$match": {self.field: self.value}}


@dataclass(frozen=True)
class LimitStage:
    count: int

    def to_mongo(self) -> dict:
        return {"$limit": self.count}


Stage = Union[ProximityStage, PatternMatchStage, EqualityStage, LimitStage]


def apply_defaults(query: SearchQuery) -> SearchQuery:
    radius = query.radius if query.radius > 0 else DEFAULT_RADIUS
    limit = query.limit if query.limit > 0 else DEFAULT_LIMIT
    return query.model_copy(update={"radius": radius, "limit": limit})


def build_nearby_pipeline(query: SearchQuery) -> List[Stage]:
    query = apply_defaults(query)
    stages: List[Stage] = [
        ProximityStage(
            longitude=query.longitude,
            latitude=query.latitude,
            max_distance=query.radius,
        )
    ]
    if query.keyword:
        stages.append(PatternMatchStage(fields=("name", "description"), keyword=query.keyword))
    if query.category:
        stages.append(EqualityStage(field="category", value=query.category))
    stages.append(LimitStage(count=query.limit))
    return stages


def render_pipeline(stages: Sequence[Stage]) -> List[dict]:
    return [stage.to_mongo() for stage in stages]


async def search_nearby(collection, query: SearchQuery, timeout: float = STORE_TIMEOUT) -> List[SearchResult]:
    """Locations near (query.latitude, query.longitude), closest first.

    Raises ``QueryExecutionError`` if the aggregation fails or does not finish
    within ``timeout`` seconds. Records that cannot be read back (bad point
    or bad field) are logged and skipped.
    """
    pipeline = render_pipeline(build_nearby_pipeline(query))
    logger.debug("Nearby search pipeline: %s", pipeline)

    try:
        cursor = collection.aggregate(pipeline, maxTimeMS=int(timeout * 1000))
        docs = await asyncio.wait_for(cursor.to_list(length=None), timeout)
    except asyncio.TimeoutError as e:
        raise QueryExecutionError(f"nearby search timed out after {timeout:g}s") from e
    except PyMongoError as e:
        raise QueryExecutionError(f"failed to execute nearby search: {e}") from e

    results: List[SearchResult] = []
    for doc in docs:
        distance = float(doc.pop(DISTANCE_FIELD, 0.0))
        try:
            location = location_from_doc(doc)
        except MalformedRecordError as e:
            logger.warning("Skipping location %s in nearby search: %s", doc.get("_id"), e)
            continue
        results.append(SearchResult(location=location, distance=distance))
    return results


async def ensure_geo_index(collection) -> str:
    """Create the 2dsphere index on the location field if it is missing."""
    try:
        return await collection.create_index(
            [(GEO_FIELD, GEOSPHERE)], name=GEO_INDEX_NAME, background=True
        )
    except PyMongoError as e:
        raise QueryExecutionError(f"failed to create geospatial index: {e}") from e
