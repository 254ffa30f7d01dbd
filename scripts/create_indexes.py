import asyncio

from motor.motor_asyncio import AsyncIOMotorClient

from playtime.config import get_settings
from playtime.db import LOCATIONS, PETS, REVIEWS, USERS, client_options
from playtime.services.geo_search import ensure_geo_index


async def main():
    settings = get_settings()
    client = AsyncIOMotorClient(settings.mongo_uri, **client_options(settings))
    db = client[settings.mongo_db]
    await ensure_geo_index(db[LOCATIONS])
    await db[LOCATIONS].create_index([("category", 1), ("name", 1)])
    await db[REVIEWS].create_index([("place_id", 1), ("date", -1)])
    await db[REVIEWS].create_index([("user_id", 1), ("date", -1)])
    await db[PETS].create_index([("ownerId", 1), ("createdAt", -1)])
    await db[USERS].create_index([("openId", 1)], unique=True)

    print("Indexes created")
    client.close()

asyncio.run(main())
