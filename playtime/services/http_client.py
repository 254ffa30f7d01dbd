import requests

from playtime.config import get_settings
from playtime.errors import TransportError


def call_json(method: str, url: str, session=None, **kwargs) -> dict:
    """Make an outbound call and decode its JSON body.

    Any network failure, non-200 status or undecodable body is raised as
    ``TransportError``. Application error codes inside the body are left to
    the caller.
    """
    kwargs.setdefault("timeout", get_settings().http_timeout)
    http = session or requests
    try:
        resp = http.request(method, url, **kwargs)
    except requests.RequestException as e:
        raise TransportError(f"failed to call {url}: {e}") from e
    if resp.status_code != 200:
        raise TransportError(f"unexpected status code from {url}: {resp.status_code}")
    try:
        return resp.json()
    except ValueError as e:
        raise TransportError(f"failed to parse response from {url}: {e}") from e
