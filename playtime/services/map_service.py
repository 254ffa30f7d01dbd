import logging

from playtime.errors import UpstreamError
from playtime.services.http_client import call_json
from playtime.services.wechat_service import get_map_key

logger = logging.getLogger(__name__)

GEOCODER_URL = "https://apis.map.qq.com/ws/geocoder/v1/"


def reverse_geocode(lat: str, lng: str, session=None) -> dict:
    """Resolve a coordinate to an address (plus nearby POIs) via Tencent Maps."""
    key = get_map_key()
    payload = call_json(
        "GET",
        GEOCODER_URL,
        session=session,
        params={"key": key, "location": f"{lat},{lng}", "get_poi": 1},
    )

    status = payload.get("status", 0)
    if status != 0:
        logger.warning("Tencent Maps reverse geocode failed: %s %s", status, payload.get("message"))
        raise UpstreamError(status, payload.get("message", ""), service="Tencent Maps")
    return payload.get("result") or {}
