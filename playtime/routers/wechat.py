import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile

from playtime.deps import get_tokens
from playtime.errors import ValidationError
from playtime.models.wechat import PhoneRequest
from playtime.responses import success
from playtime.services import map_service, wechat_service
from playtime.services.storage_service import (
    ALLOWED_IMAGE_TYPES,
    MAX_FILE_SIZE,
    StorageService,
    get_storage_service,
)
from playtime.services.token_cache import TokenCache

logger = logging.getLogger(__name__)

# Plain ``def`` handlers: FastAPI runs them on its worker threads, so the
# blocking upstream calls do not stall the event loop.
router = APIRouter()
token_router = APIRouter()


@token_router.get("/token", summary="Current WeChat access token")
def get_token(tokens: TokenCache = Depends(get_tokens)):
    token = tokens.get_token()
    return success({"access_token": token.access_token, "expires_in": token.expires_in})


@token_router.post("/phone", summary="Look up the user's phone number")
@router.post("/phone", summary="Look up the user's phone number")
def get_phone(payload: PhoneRequest, tokens: TokenCache = Depends(get_tokens)):
    return success(wechat_service.get_phone_number(payload.code, tokens))


@router.get("/auth", summary="Map API key for the mini program")
def get_map_key():
    return success({"key": wechat_service.get_map_key()})


@router.get("/login", summary="Exchange a wx.login code for a session")
def login(code: str = Query("")):
    if not code:
        raise ValidationError("Code is required")
    return success(wechat_service.get_login_session(code))


@router.post("/upload", summary="Upload an image to object storage")
def upload(file: UploadFile = File(...), storage: StorageService = Depends(get_storage_service)):
    content_type = file.content_type or ""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Unsupported file type: only images are allowed")

    content = file.file.read(MAX_FILE_SIZE + 1)
    if len(content) > MAX_FILE_SIZE:
        raise ValidationError(f"File too large. Maximum size: {MAX_FILE_SIZE // (1024 * 1024)}MB")

    logger.info("Received file upload: %s, size: %d bytes, type: %s", file.filename, len(content), content_type)
    return success(storage.upload_file(content, file.filename or "", content_type))


@router.get("/map/reverseGeocode", summary="Reverse geocode a coordinate")
def reverse_geocode(lat: str = Query(""), lng: str = Query("")):
    if not lat or not lng:
        raise ValidationError("Latitude and longitude are required")
    return success(map_service.reverse_geocode(lat, lng))
