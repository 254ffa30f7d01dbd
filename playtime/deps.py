from bson import ObjectId
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from playtime.errors import PlaytimeError, ValidationError
from playtime.services.token_cache import TokenCache, get_token_cache


class DatabaseUnavailable(PlaytimeError):
    def __init__(self):
        super().__init__("Database not connected")


def get_db() -> AsyncIOMotorDatabase:
    # Import db module to access the current value (not the imported value at module load time)
    import playtime.db
    db = playtime.db.db
    if db is None:
        raise DatabaseUnavailable()
    return db


def get_tokens(request: Request) -> TokenCache:
    cache = getattr(request.app.state, "token_cache", None)
    return cache if cache is not None else get_token_cache()


def parse_oid(value: str, field: str = "ID") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {field} format")
    return ObjectId(value)
