from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewIn(BaseModel):
    place_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    user_name: str = ""
    content: str = Field(..., min_length=1)
    rating_star: int = Field(..., ge=1, le=5)


class ReviewUpdate(BaseModel):
    content: str = Field(..., min_length=1)
    rating_star: int = Field(..., ge=1, le=5)


class ReviewOut(BaseModel):
    id: str
    place_id: str
    user_id: str
    user_name: str = ""
    content: str = ""
    rating_star: int = 0
    date: Optional[datetime] = None
