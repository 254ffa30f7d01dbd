import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.results import DeleteResult

from playtime.db import REVIEWS
from playtime.deps import get_db, parse_oid
from playtime.errors import NotFoundError
from playtime.models.review import ReviewIn, ReviewOut, ReviewUpdate
from playtime.models.utils import with_id
from playtime.responses import success

logger = logging.getLogger(__name__)

router = APIRouter()


def _review(doc: dict) -> ReviewOut:
    return ReviewOut.model_validate(with_id(doc))


async def _find(database, query: dict, limit: int = 0) -> List[ReviewOut]:
    cursor = database[REVIEWS].find(query).sort("date", -1)
    if limit:
        cursor = cursor.limit(limit)
    return [_review(doc) async for doc in cursor]


async def _get_or_404(database, oid) -> dict:
    doc = await database[REVIEWS].find_one({"_id": oid})
    if not doc:
        raise NotFoundError("Review not found")
    return doc


@router.post("", summary="Submit a review for a place")
async def create_review(payload: ReviewIn, database: AsyncIOMotorDatabase = Depends(get_db)):
    doc = payload.model_dump()
    doc["date"] = datetime.now(timezone.utc)
    res = await database[REVIEWS].insert_one(doc)
    doc["_id"] = res.inserted_id
    return success(_review(doc), status_code=201)


@router.get("", summary="List reviews")
async def list_reviews(
    place_id: Optional[str] = None,
    user_id: Optional[str] = None,
    rating: Optional[int] = Query(None, ge=1, le=5),
    limit: int = Query(100, ge=1),
    database: AsyncIOMotorDatabase = Depends(get_db),
):
    query = {}
    if place_id:
        query["place_id"] = place_id
    if user_id:
        query["user_id"] = user_id
    if rating is not None:
        query["rating_star"] = rating
    return success(await _find(database, query, limit))


@router.get("/user/{user_id}", summary="Reviews written by a user")
async def list_user_reviews(user_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    return success(await _find(database, {"user_id": user_id}))


@router.delete("/user/{user_id}", summary="Delete every review written by a user")
async def delete_user_reviews(user_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    res: DeleteResult = await database[REVIEWS].delete_many({"user_id": user_id})
    logger.info("%d reviews of user %s deleted", res.deleted_count, user_id)
    return success({"deleted": res.deleted_count})


@router.get("/place/{place_id}", summary="Reviews of a place")
async def list_place_reviews(place_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    return success(await _find(database, {"place_id": place_id}))


@router.delete("/place/{place_id}", summary="Delete every review of a place")
async def delete_place_reviews(place_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    res: DeleteResult = await database[REVIEWS].delete_many({"place_id": place_id})
    logger.info("%d reviews of place %s deleted", res.deleted_count, place_id)
    return success({"deleted": res.deleted_count})


@router.get("/{review_id}", summary="Get a review")
async def get_review(review_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    doc = await _get_or_404(database, parse_oid(review_id, "review ID"))
    return success(_review(doc))


@router.put("/{review_id}", summary="Update a review")
async def update_review(
    review_id: str,
    payload: ReviewUpdate,
    database: AsyncIOMotorDatabase = Depends(get_db),
):
    oid = parse_oid(review_id, "review ID")
    await _get_or_404(database, oid)
    await database[REVIEWS].update_one(
        {"_id": oid},
        {"$set": {**payload.model_dump(), "date": datetime.now(timezone.utc)}},
    )
    return success(_review(await _get_or_404(database, oid)))


@router.delete("/{review_id}", summary="Delete a review")
async def delete_review(review_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    oid = parse_oid(review_id, "review ID")
    res: DeleteResult = await database[REVIEWS].delete_one({"_id": oid})
    if res.deleted_count == 0:
        raise NotFoundError("Review not found")
    return success({"message": "Review deleted successfully"})
