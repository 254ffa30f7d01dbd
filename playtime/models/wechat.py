from dataclasses import dataclass

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class AccessToken:
    access_token: str
    expires_in: int
    issued_at: float  # clock reading when the token was installed


class PhoneRequest(BaseModel):
    code: str = Field(..., min_length=1)


class Watermark(BaseModel):
    timestamp: int = 0
    appid: str = ""


class PhoneInfo(BaseModel):
    phoneNumber: str = ""
    purePhoneNumber: str = ""
    countryCode: str = ""
    watermark: Watermark = Field(default_factory=Watermark)


class LoginSession(BaseModel):
    openid: str = ""
    session_key: str = ""
    unionid: str = ""


class UploadResult(BaseModel):
    url: str
    filename: str
