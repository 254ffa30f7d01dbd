import logging

from bson import ObjectId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from playtime import db as mongo
from playtime.config import get_settings
from playtime.errors import PlaytimeError
from playtime.logging_config import setup_logging
from playtime.responses import error
from playtime.routers import locations, pets, reviews, users, wechat
from playtime.services.geo_search import ensure_geo_index
from playtime.services.token_cache import get_token_cache

setup_logging()
logger = logging.getLogger("playtime")

app = FastAPI(title="Playtime API", version="0.1.0")


@app.exception_handler(PlaytimeError)
async def playtime_error_handler(request: Request, exc: PlaytimeError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return error(exc.message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
    message = f"Invalid {field} parameter: {first.get('msg', 'invalid value')}" if field else "Invalid request format"
    return error(message, 400)


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.error("Store failure on %s: %s", request.url.path, exc)
    return error(f"Database operation failed: {exc}", 500)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them."""
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)
    return error("Internal server error", 500)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = str(ObjectId())[-8:]
    logger.info("[%s] Started %s request to %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    logger.info("[%s] Completed %s request to %s (%s)",
                request_id, request.method, request.url.path, response.status_code)
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.on_event("startup")
async def on_startup():
    await mongo.connect()
    app.state.db = mongo.db
    app.state.token_cache = get_token_cache()

    if mongo.db is not None:
        try:
            await ensure_geo_index(mongo.db[mongo.LOCATIONS])
        except PlaytimeError as e:
            # search is still attempted; the store rejects it if the index is truly missing
            logger.warning("Failed to create geospatial index: %s", e.message)


@app.on_event("shutdown")
async def on_shutdown():
    await mongo.close()


app.include_router(wechat.token_router, tags=["wechat"])
app.include_router(wechat.router, prefix="/wechat", tags=["wechat"])
app.include_router(users.router, prefix="/user", tags=["users"])
app.include_router(pets.router, prefix="/pet", tags=["pets"])
app.include_router(locations.router, prefix="/place", tags=["places"])
app.include_router(locations.router, prefix="/map", tags=["places"])
app.include_router(reviews.router, prefix="/review", tags=["reviews"])
