import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from playtime.db import USERS
from playtime.deps import get_db, parse_oid
from playtime.errors import NotFoundError
from playtime.models.user import UserIn, UserOut
from playtime.models.utils import with_id
from playtime.responses import success

logger = logging.getLogger(__name__)

router = APIRouter()


def _user(doc: dict) -> UserOut:
    return UserOut.model_validate(with_id(doc))


@router.post("", summary="Create or update a user by openId")
async def upsert_user(payload: UserIn, database: AsyncIOMotorDatabase = Depends(get_db)):
    now = datetime.now(timezone.utc)
    res = await database[USERS].update_one(
        {"openId": payload.openId},
        {
            "$set": {**payload.model_dump(), "updatedAt": now},
            "$setOnInsert": {"createdAt": now},
        },
        upsert=True,
    )
    doc = await database[USERS].find_one({"openId": payload.openId})

    if res.upserted_id is None:
        logger.info("User found with openId %s, updated", payload.openId)
        return success(_user(doc))

    logger.info("No user found with openId %s, created %s", payload.openId, res.upserted_id)
    return success(_user(doc), status_code=201)


@router.get("", summary="Get a user by id or phone, or list users")
async def get_users(
    id: Optional[str] = None,
    phone: Optional[str] = None,
    database: AsyncIOMotorDatabase = Depends(get_db),
):
    if id:
        doc = await database[USERS].find_one({"_id": parse_oid(id, "user ID")})
    elif phone:
        doc = await database[USERS].find_one({"phoneNumber": phone})
    else:
        cursor = database[USERS].find({}).sort("createdAt", -1).limit(100)
        users: List[UserOut] = [_user(d) async for d in cursor]
        return success(users)

    if not doc:
        raise NotFoundError("User not found")
    return success(_user(doc))


@router.get("/openid/{open_id}", summary="Get a user by WeChat openId")
async def get_user_by_openid(open_id: str, database: AsyncIOMotorDatabase = Depends(get_db)):
    doc = await database[USERS].find_one({"openId": open_id})
    if not doc:
        raise NotFoundError("User not found")
    return success(_user(doc))
