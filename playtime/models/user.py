from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserIn(BaseModel):
    nickName: str = ""
    phoneNumber: str = Field(..., min_length=1)
    avatarUrl: str = ""
    openId: str = Field(..., min_length=1)
    unionId: str = ""


class UserOut(BaseModel):
    id: str
    nickName: str = ""
    phoneNumber: str = ""
    avatarUrl: str = ""
    openId: str = ""
    unionId: str = ""
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
