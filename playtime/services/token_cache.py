"""Process-wide cache for the WeChat ``access_token``.

One ``TokenCache`` is created per process (see ``get_token_cache``) and
shared by every request thread. Reads take a shared lock; installing or
dropping a token takes the exclusive lock. Two threads may both decide to
refresh; the second simply overwrites the first with an equally fresh token.
"""
import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Optional

import requests

from playtime.config import get_settings
from playtime.errors import TransportError, UpstreamAuthError
from playtime.models.wechat import AccessToken

logger = logging.getLogger(__name__)

TOKEN_URL = "https://api.weixin.qq.com/cgi-bin/token"
SAFETY_MARGIN = 300  # seconds before real expiry at which a token counts as expired


class ReadWriteLock:
    """Many readers or one writer. Waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class TokenCache:
    def __init__(
        self,
        app_id: str,
        app_secret: str,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        timeout: float = 10,
    ):
        self.app_id = app_id
        self.app_secret = app_secret
        self.session = session or requests.Session()
        self.clock = clock
        self.timeout = timeout
        self._lock = ReadWriteLock()
        self._token: Optional[AccessToken] = None

    def _is_fresh(self, token: Optional[AccessToken]) -> bool:
        if token is None or not token.access_token:
            return False
        return self.clock() - token.issued_at < token.expires_in - SAFETY_MARGIN

    def get_token(self) -> AccessToken:
        """Return the cached token, fetching a new one if it is (nearly) expired."""
        with self._lock.read():
            token = self._token
            if self._is_fresh(token):
                return token
        return self.fetch_new_token()

    def fetch_new_token(self) -> AccessToken:
        """Ask WeChat for a new token and install it.

        Nothing is cached when the call fails, so a previous token stays
        available until its own expiry.
        """
        params = {
            "grant_type": "client_credential",
            "appid": self.app_id,
            "secret": self.app_secret,
        }
        try:
            resp = self.session.get(TOKEN_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            logger.error("Failed to fetch access token: %s", e)
            raise TransportError(f"failed to fetch token: {e}") from e
        except ValueError as e:
            raise TransportError(f"failed to parse token response: {e}") from e

        errcode = payload.get("errcode", 0)
        if errcode:
            logger.warning("WeChat refused token request: %s %s", errcode, payload.get("errmsg"))
            raise UpstreamAuthError(errcode, payload.get("errmsg", ""))

        if not payload.get("access_token"):
            raise TransportError("token response has no access_token")

        token = AccessToken(
            access_token=payload["access_token"],
            expires_in=int(payload.get("expires_in", 7200)),
            issued_at=self.clock(),
        )
        with self._lock.write():
            self._token = token
        logger.info("Access token refreshed, expires in %ss", token.expires_in)
        return token

    def invalidate(self) -> None:
        with self._lock.write():
            self._token = None


_token_cache: Optional[TokenCache] = None
_token_cache_lock = threading.Lock()


def get_token_cache() -> TokenCache:
    """Provider (singleton) for dependency injection."""
    global _token_cache
    with _token_cache_lock:
        if _token_cache is None:
            settings = get_settings()
            _token_cache = TokenCache(
                settings.app_id,
                settings.app_secret,
                timeout=settings.http_timeout,
            )
        return _token_cache
