from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PetIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    gender: str = ""
    size: str = ""
    breed: str = ""
    avatar: str = ""
    character: str = ""
    age: int = Field(0, ge=0)
    ownerId: Optional[str] = None


class PetOut(BaseModel):
    id: str
    name: str
    gender: str = ""
    size: str = ""
    breed: str = ""
    avatar: str = ""
    character: str = ""
    age: int = 0
    ownerId: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
