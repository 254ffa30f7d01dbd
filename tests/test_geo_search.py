from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure

from playtime.errors import QueryExecutionError
from playtime.models.geo import to_point
from playtime.models.location import SearchQuery
from playtime.services.geo_search import (
    EqualityStage,
    GEO_INDEX_NAME,
    LimitStage,
    PatternMatchStage,
    ProximityStage,
    build_nearby_pipeline,
    ensure_geo_index,
    render_pipeline,
    search_nearby,
)
from tests.fakes import FakeCollection, StaticCollection


def make_location(name, lat, lon, category="park", description=""):
    now = datetime.now(timezone.utc)
    return {
        "name": name,
        "address": "1 Example Street",
        "description": description,
        "category": category,
        "location": to_point(lat, lon).model_dump(),
        "createdAt": now,
        "updatedAt": now,
    }


@pytest.fixture
def locations():
    return FakeCollection("locations")


def test_pipeline_stage_order():
    stages = build_nearby_pipeline(
        SearchQuery(latitude=1.0, longitude=2.0, keyword="dog", category="park", radius=50, limit=3)
    )
    assert [type(s) for s in stages] == [ProximityStage, PatternMatchStage, EqualityStage, LimitStage]
    assert stages[0].longitude == 2.0 and stages[0].latitude == 1.0


def test_pipeline_skips_empty_filters():
    stages = build_nearby_pipeline(SearchQuery(latitude=1.0, longitude=2.0))
    assert [type(s) for s in stages] == [ProximityStage, LimitStage]


@pytest.mark.parametrize("radius", [0, -5])
def test_non_positive_radius_defaults_to_1000(radius):
    stages = build_nearby_pipeline(SearchQuery(latitude=0, longitude=0, radius=radius))
    assert stages[0].max_distance == 1000


@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limit_defaults_to_10(limit):
    stages = build_nearby_pipeline(SearchQuery(latitude=0, longitude=0, limit=limit))
    assert stages[-1].count == 10


def test_rendered_geo_near_stage():
    rendered = render_pipeline(build_nearby_pipeline(SearchQuery(latitude=10, longitude=20, radius=300)))
    geo_near = rendered[0]["$geoNear"]
    assert geo_near["near"] == {"type": "Point", "coordinates": [20, 10]}
    assert geo_near["maxDistance"] == 300
    assert geo_near["spherical"] is True
    assert geo_near["distanceField"] == "distance"
    assert rendered[-1] == {"$limit": 10}


def test_keyword_is_matched_literally():
    stage = PatternMatchStage(fields=("name", "description"), keyword="a.b*").to_mongo()
    clauses = stage["$match"]["$or"]
    assert clauses[0] == {"name": {"$regex": r"a\.b\*", "$options": "i"}}
    assert clauses[1]["description"]["$regex"] == r"a\.b\*"


async def test_single_nearby_location(locations):
    await locations.insert_one(make_location("Dolores Park", 37.7749, -122.4194))

    results = await search_nearby(
        locations, SearchQuery(latitude=37.7750, longitude=-122.4195, radius=200, limit=10)
    )

    assert len(results) == 1
    assert results[0].distance < 200
    assert results[0].location.latitude == pytest.approx(37.7749)
    assert results[0].location.longitude == pytest.approx(-122.4194)
    assert results[0].location.name == "Dolores Park"


async def test_category_filter_returns_only_matching(locations):
    await locations.insert_one(make_location("Park", 37.7749, -122.4194, category="park"))
    await locations.insert_one(make_location("Cafe", 37.7751, -122.4196, category="cafe"))

    results = await search_nearby(
        locations, SearchQuery(latitude=37.7750, longitude=-122.4195, category="park")
    )

    assert [r.location.name for r in results] == ["Park"]


async def test_empty_store_returns_empty_list(locations):
    results = await search_nearby(locations, SearchQuery(latitude=0, longitude=0))
    assert results == []


async def test_filters_never_grow_results(locations):
    for i in range(6):
        await locations.insert_one(
            make_location(
                f"Spot {i}",
                37.7749 + i * 0.0001,
                -122.4194,
                category="park" if i % 2 else "cafe",
                description="dog run" if i < 3 else "",
            )
        )
    base = SearchQuery(latitude=37.7749, longitude=-122.4194, radius=5000, limit=100)

    everything = await search_nearby(locations, base)
    by_keyword = await search_nearby(locations, base.model_copy(update={"keyword": "DOG"}))
    by_both = await search_nearby(locations, base.model_copy(update={"keyword": "dog", "category": "park"}))
    capped = await search_nearby(locations, base.model_copy(update={"limit": 2}))

    assert len(everything) == 6
    assert len(by_keyword) == 3
    assert len(by_both) == 1
    assert len(capped) == 2
    assert [r.distance for r in everything] == sorted(r.distance for r in everything)


async def test_radius_is_applied_before_keyword(locations):
    await locations.insert_one(make_location("Far dog park", 37.80, -122.4194))

    results = await search_nearby(
        locations, SearchQuery(latitude=37.7749, longitude=-122.4194, keyword="dog", radius=100)
    )

    assert results == []


async def test_malformed_point_is_skipped():
    good = make_location("Good", 1.0, 2.0)
    good.update({"_id": ObjectId(), "distance": 12.5})
    bad = make_location("Bad", 1.0, 2.0)
    bad.update({"_id": ObjectId(), "distance": 3.0})
    bad["location"]["coordinates"] = [2.0, 1.0, 0.0]
    collection = StaticCollection(docs=[bad, good])

    results = await search_nearby(collection, SearchQuery(latitude=1.0, longitude=2.0))

    assert [r.location.name for r in results] == ["Good"]
    assert results[0].distance == 12.5


async def test_null_list_fields_read_as_empty():
    legacy = make_location("Legacy", 1.0, 2.0)
    legacy.update({"_id": ObjectId(), "distance": 4.0, "petSize": None, "petType": None, "zone": None})
    good = make_location("Good", 1.0, 2.0)
    good.update({"_id": ObjectId(), "distance": 12.5})
    collection = StaticCollection(docs=[legacy, good])

    results = await search_nearby(collection, SearchQuery(latitude=1.0, longitude=2.0))

    assert [r.location.name for r in results] == ["Legacy", "Good"]
    assert results[0].location.petSize == []
    assert results[0].location.zone == []


async def test_record_with_bad_field_is_skipped():
    bad = make_location("Bad", 1.0, 2.0)
    bad.update({"_id": ObjectId(), "distance": 3.0, "petSize": "small", "name": None})
    good = make_location("Good", 1.0, 2.0)
    good.update({"_id": ObjectId(), "distance": 12.5})
    collection = StaticCollection(docs=[bad, good])

    results = await search_nearby(collection, SearchQuery(latitude=1.0, longitude=2.0))

    assert [r.location.name for r in results] == ["Good"]


async def test_store_failure_raises_query_execution_error():
    collection = StaticCollection(error=OperationFailure("no geo index"))
    with pytest.raises(QueryExecutionError):
        await search_nearby(collection, SearchQuery(latitude=0, longitude=0))


async def test_store_timeout_raises_query_execution_error():
    collection = StaticCollection(delay=1)
    with pytest.raises(QueryExecutionError, match="timed out"):
        await search_nearby(collection, SearchQuery(latitude=0, longitude=0), timeout=0.05)
    _, kwargs = collection.calls[0]
    assert kwargs["maxTimeMS"] == 50


async def test_ensure_geo_index_is_idempotent(locations):
    assert await ensure_geo_index(locations) == GEO_INDEX_NAME
    assert await ensure_geo_index(locations) == GEO_INDEX_NAME
    assert locations.indexes == {GEO_INDEX_NAME: [("location", "2dsphere")]}


async def test_ensure_geo_index_failure_is_typed():
    collection = StaticCollection(error=OperationFailure("not authorized"))
    with pytest.raises(QueryExecutionError):
        await ensure_geo_index(collection)
