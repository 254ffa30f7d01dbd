import logging

from playtime.config import get_settings
from playtime.errors import ConfigurationError, UpstreamError
from playtime.models.wechat import LoginSession, PhoneInfo
from playtime.services.http_client import call_json
from playtime.services.token_cache import TokenCache

logger = logging.getLogger(__name__)

PHONE_URL = "https://api.weixin.qq.com/wxa/business/getuserphonenumber"
SESSION_URL = "https://api.weixin.qq.com/sns/jscode2session"

# access_token invalid / expired
TOKEN_REJECTED_CODES = {40001, 42001}


def get_phone_number(code: str, token_cache: TokenCache, session=None) -> PhoneInfo:
    """Exchange a getPhoneNumber ``code`` for the user's phone info."""
    token = token_cache.get_token()
    payload = call_json(
        "POST",
        PHONE_URL,
        session=session,
        params={"access_token": token.access_token},
        json={"code": code},
    )

    errcode = payload.get("errcode", 0)
    if errcode:
        if errcode in TOKEN_REJECTED_CODES:
            logger.warning("WeChat rejected cached access token (%s), invalidating", errcode)
            token_cache.invalidate()
        raise UpstreamError(errcode, payload.get("errmsg", ""))

    return PhoneInfo.model_validate(payload.get("phone_info") or {})


def get_login_session(code: str, session=None) -> LoginSession:
    """Exchange a wx.login ``code`` for openid / session_key."""
    settings = get_settings()
    payload = call_json(
        "GET",
        SESSION_URL,
        session=session,
        params={
            "appid": settings.app_id,
            "secret": settings.app_secret,
            "js_code": code,
            "grant_type": "authorization_code",
        },
    )

    errcode = payload.get("errcode", 0)
    if errcode:
        raise UpstreamError(errcode, payload.get("errmsg", ""))
    return LoginSession.model_validate(payload)


def get_map_key() -> str:
    key = get_settings().mini_map_key
    if not key:
        raise ConfigurationError("MiniMap API key is not set")
    return key
