from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from playtime.deps import get_db, parse_oid
from playtime.models.location import DEFAULT_LIMIT, DEFAULT_RADIUS, LocationIn, SearchQuery
from playtime.responses import success
from playtime.services import location_service

router = APIRouter()


@router.post("", summary="Create a location")
async def create_location(payload: LocationIn, database: AsyncIOMotorDatabase = Depends(get_db)):
    location = await location_service.create_location(database, payload)
    return success(location, status_code=201)


@router.get("", summary="List locations")
async def list_locations(
    category: str = "",
    limit: int = Query(location_service.DEFAULT_LIST_LIMIT, ge=1),
    database: AsyncIOMotorDatabase = Depends(get_db),
):
    return success(await location_service.list_locations(database, category, limit))


@router.get("/search", summary="Find nearby locations")
async def search_locations(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    keyword: str = "",
    category: str = "",
    radius: float = Query(DEFAULT_RADIUS, gt=0),
    limit: int = Query(DEFAULT_LIMIT, gt=0),
    database: AsyncIOMotorDatabase = Depends(get_db),
):
    query = SearchQuery(
        latitude=latitude,
        longitude=longitude,
        keyword=keyword,
        category=category,
        radius=radius,
        limit=limit,
    )
    return success(await location_service.search_locations(database, query))


@router.get("/{location_id}", summary="Get a location")
async def get_location(location_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    oid = parse_oid(location_id, "location ID")
    return success(await location_service.get_location(database, oid))


@router.put("/{location_id}", summary="Update a location")
async def update_location(
    location_id: str,
    payload: LocationIn,
    database: AsyncIOMotorDatabase = Depends(get_db),
):
    oid = parse_oid(location_id, "location ID")
    return success(await location_service.update_location(database, oid, payload))


@router.delete("/{location_id}", summary="Delete a location")
async def delete_location(location_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    oid = parse_oid(location_id, "location ID")
    await location_service.delete_location(database, oid)
    return success({"message": "Location deleted successfully"})
