import logging
from typing import Optional

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from playtime.config import get_settings

logger = logging.getLogger(__name__)

LOCATIONS = "locations"
USERS = "users"
PETS = "pets"
REVIEWS = "reviews"

# 전역 클라이언트와 DB 핸들
_client: Optional[AsyncIOMotorClient] = None
db: Optional[AsyncIOMotorDatabase] = None


def client_options(settings) -> dict:
    timeout_ms = settings.mongo_timeout * 1000
    options = {
        "serverSelectionTimeoutMS": timeout_ms,
        "connectTimeoutMS": timeout_ms,
        "socketTimeoutMS": timeout_ms,
    }
    if settings.mongo_uri.startswith("mongodb+srv://"):
        options["tlsCAFile"] = certifi.where()
    if settings.mongo_user and settings.mongo_pass:
        options["username"] = settings.mongo_user
        options["password"] = settings.mongo_pass
    return options


async def connect(*args, **kwargs):
    """
    Connect to MongoDB and keep the client and database handle in module globals.
    """
    global _client, db
    settings = get_settings()
    try:
        _client = AsyncIOMotorClient(settings.mongo_uri, **client_options(settings))
        db = _client[settings.mongo_db]

        # 연결 테스트
        await db.command("ping")
        logger.info("✅ Connected to MongoDB (%s)", settings.mongo_db)
    except Exception as e:
        logger.error("❌ MongoDB connection failed: %s", e)
        _client = None
        db = None


async def close():
    """MongoDB 연결 종료"""
    global _client, db
    if _client is not None:
        _client.close()
        _client = None
        db = None
        logger.info("🛑 MongoDB connection closed")
