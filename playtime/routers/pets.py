from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from playtime.db import PETS
from playtime.deps import get_db, parse_oid
from playtime.errors import NotFoundError
from playtime.models.pet import PetIn, PetOut
from playtime.models.utils import with_id
from playtime.responses import success

router = APIRouter()


def _pet(doc: dict) -> PetOut:
    return PetOut.model_validate(with_id(doc))


def _pet_fields(payload: PetIn) -> dict:
    doc = payload.model_dump(exclude={"ownerId"})
    if payload.ownerId:
        doc["ownerId"] = parse_oid(payload.ownerId, "owner ID")
    return doc


async def _get_or_404(database, oid) -> dict:
    doc = await database[PETS].find_one({"_id": oid})
    if not doc:
        raise NotFoundError("Pet not found")
    return doc


@router.post("", summary="Create a pet")
async def create_pet(payload: PetIn, database: AsyncIOMotorDatabase = Depends(get_db)):
    now = datetime.now(timezone.utc)
    doc = _pet_fields(payload)
    doc["createdAt"] = now
    doc["updatedAt"] = now
    res = await database[PETS].insert_one(doc)
    doc["_id"] = res.inserted_id
    return success(_pet(doc), status_code=201)


@router.get("", summary="List pets, optionally by owner")
async def list_pets(
    ownerId: Optional[str] = None,
    limit: int = Query(100, ge=1),
    database: AsyncIOMotorDatabase = Depends(get_db),
):
    query = {"ownerId": parse_oid(ownerId, "owner ID")} if ownerId else {}
    cursor = database[PETS].find(query).sort("createdAt", -1).limit(limit)
    pets: List[PetOut] = [_pet(d) async for d in cursor]
    return success(pets)


@router.get("/{pet_id}", summary="Get a pet")
async def get_pet(pet_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    doc = await _get_or_404(database, parse_oid(pet_id, "pet ID"))
    return success(_pet(doc))


@router.put("/{pet_id}", summary="Update a pet")
async def update_pet(pet_id: str, payload: PetIn, database: AsyncIOMotorDatabase = Depends(get_db)):
    oid = parse_oid(pet_id, "pet ID")
    await _get_or_404(database, oid)

    update = _pet_fields(payload)
    update.pop("ownerId", None)  # ownership does not move on update
    update["updatedAt"] = datetime.now(timezone.utc)
    await database[PETS].update_one({"_id": oid}, {"$set": update})
    return success(_pet(await _get_or_404(database, oid)))


@router.delete("/{pet_id}", summary="Delete a pet")
async def delete_pet(pet_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    oid = parse_oid(pet_id, "pet ID")
    await _get_or_404(database, oid)
    await database[PETS].delete_one({"_id": oid})
    return success({"message": "Pet deleted successfully"})
