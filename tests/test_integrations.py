from unittest.mock import MagicMock

import pytest
import requests
from botocore.exceptions import ClientError

from playtime.config import get_settings
from playtime.errors import ConfigurationError, TransportError, UpstreamError
from playtime.models.wechat import AccessToken
from playtime.services import map_service, wechat_service
from playtime.services.storage_service import StorageService


def http_session(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    session = MagicMock()
    session.request.return_value = resp
    return session


@pytest.fixture
def tokens():
    cache = MagicMock()
    cache.get_token.return_value = AccessToken("tok-1", 7200, 0.0)
    return cache


@pytest.fixture
def settings(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "app_id", "wx-app")
    monkeypatch.setattr(settings, "app_secret", "wx-secret")
    monkeypatch.setattr(settings, "mini_map_key", "map-key")
    monkeypatch.setattr(settings, "cos_secret_id", "cos-id")
    monkeypatch.setattr(settings, "cos_secret_key", "cos-key")
    monkeypatch.setattr(settings, "cos_bucket_url", "https://pets-1250000000.cos.ap-beijing.myqcloud.com")
    return settings


def test_phone_number_lookup(tokens, settings):
    session = http_session(
        {"errcode": 0, "errmsg": "ok", "phone_info": {"phoneNumber": "+86 13800000000", "countryCode": "86"}}
    )

    info = wechat_service.get_phone_number("code-1", tokens, session=session)

    assert info.phoneNumber == "+86 13800000000"
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("POST", wechat_service.PHONE_URL)
    assert kwargs["params"] == {"access_token": "tok-1"}
    assert kwargs["json"] == {"code": "code-1"}
    assert kwargs["timeout"] == settings.http_timeout


def test_phone_lookup_with_rejected_token_invalidates_cache(tokens, settings):
    session = http_session({"errcode": 40001, "errmsg": "invalid credential"})

    with pytest.raises(UpstreamError) as excinfo:
        wechat_service.get_phone_number("code-1", tokens, session=session)

    assert excinfo.value.code == 40001
    tokens.invalidate.assert_called_once()


def test_phone_lookup_other_error_keeps_cache(tokens, settings):
    session = http_session({"errcode": 40029, "errmsg": "invalid code"})

    with pytest.raises(UpstreamError):
        wechat_service.get_phone_number("code-1", tokens, session=session)

    tokens.invalidate.assert_not_called()


def test_non_200_is_transport_error(tokens, settings):
    session = http_session({}, status_code=503)
    with pytest.raises(TransportError):
        wechat_service.get_phone_number("code-1", tokens, session=session)


def test_login_session(settings):
    session = http_session({"openid": "o-1", "session_key": "sk", "unionid": "u-1"})

    login = wechat_service.get_login_session("js-code", session=session)

    assert login.openid == "o-1"
    params = session.request.call_args.kwargs["params"]
    assert params == {
        "appid": "wx-app",
        "secret": "wx-secret",
        "js_code": "js-code",
        "grant_type": "authorization_code",
    }


def test_login_session_upstream_error(settings):
    session = http_session({"errcode": 40163, "errmsg": "code been used"})
    with pytest.raises(UpstreamError):
        wechat_service.get_login_session("js-code", session=session)


def test_login_network_failure(settings):
    session = MagicMock()
    session.request.side_effect = requests.Timeout("slow")
    with pytest.raises(TransportError):
        wechat_service.get_login_session("js-code", session=session)


def test_reverse_geocode(settings):
    session = http_session({"status": 0, "message": "query ok", "result": {"address": "Beijing"}})

    result = map_service.reverse_geocode("39.9", "116.4", session=session)

    assert result == {"address": "Beijing"}
    params = session.request.call_args.kwargs["params"]
    assert params == {"key": "map-key", "location": "39.9,116.4", "get_poi": 1}


def test_reverse_geocode_without_key_fails_cleanly(settings, monkeypatch):
    monkeypatch.setattr(settings, "mini_map_key", "")
    session = http_session({})
    with pytest.raises(ConfigurationError):
        map_service.reverse_geocode("39.9", "116.4", session=session)
    session.request.assert_not_called()


def test_reverse_geocode_upstream_status(settings):
    session = http_session({"status": 311, "message": "key format error"})
    with pytest.raises(UpstreamError) as excinfo:
        map_service.reverse_geocode("39.9", "116.4", session=session)
    assert excinfo.value.code == 311


def test_storage_upload(settings):
    s3 = MagicMock()
    storage = StorageService(client=s3)

    result = storage.upload_file(b"\x89PNG", "cat.png", "image/png")

    kwargs = s3.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "pets-1250000000"
    assert kwargs["ContentType"] == "image/png"
    assert kwargs["Key"].startswith("avatar/") and kwargs["Key"].endswith(".png")
    assert result.filename == kwargs["Key"]
    assert result.url == f"https://pets-1250000000.cos.ap-beijing.myqcloud.com/{kwargs['Key']}"


def test_storage_extension_from_content_type(settings):
    s3 = MagicMock()
    result = StorageService(client=s3).upload_file(b"data", "blob", "image/jpeg")
    assert result.filename.endswith(".jpg")


def test_storage_client_error(settings):
    s3 = MagicMock()
    s3.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "PutObject")
    with pytest.raises(TransportError):
        StorageService(client=s3).upload_file(b"data", "a.png", "image/png")


def test_storage_requires_configuration(settings, monkeypatch):
    monkeypatch.setattr(settings, "cos_secret_key", "")
    with pytest.raises(ConfigurationError):
        StorageService(client=MagicMock())
