from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from playtime.errors import MalformedPointError, MalformedRecordError
from playtime.models.geo import GeoPoint, from_point
from playtime.models.utils import with_id

Category = Literal["park", "cafe", "restaurant", "shop", "other"]
PetSize = Literal["small", "medium", "large"]
PetType = Literal["dog", "cat", "other"]

DEFAULT_RADIUS = 1000.0
DEFAULT_LIMIT = 10


class AddressComponent(BaseModel):
    nation: str = ""
    province: str = ""
    city: str = ""
    district: str = ""
    street: str = ""
    street_number: str = ""


class AdInfo(BaseModel):
    adcode: str = ""
    city_code: str = ""
    district_code: str = ""
    nation_code: str = ""
    nationality_code: str = ""


class LocationIn(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    address: str = Field(..., min_length=5, max_length=200)
    description: str = Field("", max_length=500)
    category: Category
    photos: List[str] = Field(default_factory=list, max_length=10)
    isPetFriendly: bool = False
    petSize: List[PetSize] = Field(default_factory=list)
    petType: List[PetType] = Field(default_factory=list)
    zone: List[str] = Field(default_factory=list)
    addressComponent: AddressComponent = Field(default_factory=AddressComponent)
    adInfo: AdInfo = Field(default_factory=AdInfo)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationOut(BaseModel):
    """Location as returned to clients, with the point flattened to lat/lng."""

    id: str
    name: str
    address: str = ""
    description: str = ""
    category: str = "other"
    photos: List[str] = Field(default_factory=list)
    isPetFriendly: bool = False
    petSize: List[str] = Field(default_factory=list)
    petType: List[str] = Field(default_factory=list)
    zone: List[str] = Field(default_factory=list)
    addressComponent: AddressComponent = Field(default_factory=AddressComponent)
    adInfo: AdInfo = Field(default_factory=AdInfo)
    latitude: float
    longitude: float
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @field_validator("photos", "petSize", "petType", "zone", mode="before")
    @classmethod
    def _null_list(cls, value):
        # older records hold null instead of an empty array
        return [] if value is None else value

    @field_validator("addressComponent", "adInfo", mode="before")
    @classmethod
    def _null_object(cls, value):
        return {} if value is None else value


class SearchQuery(BaseModel):
    """Nearby search request. Range checks on lat/lng happen in the router."""

    latitude: float
    longitude: float
    keyword: str = ""
    category: str = ""
    radius: float = DEFAULT_RADIUS
    limit: int = DEFAULT_LIMIT


class SearchResult(BaseModel):
    location: LocationOut
    distance: float  # meters from the search point


def location_from_doc(doc: dict) -> LocationOut:
    """Project a stored location document into ``LocationOut``.

    Raises ``MalformedPointError`` when the stored point cannot be read and
    ``MalformedRecordError`` when any other field does not fit the model.
    """
    raw_point = doc.get("location")
    try:
        point = GeoPoint.model_validate(raw_point)
    except PydanticValidationError as e:
        raise MalformedPointError(f"invalid GeoJSON Point: {raw_point!r}") from e
    latitude, longitude = from_point(point)

    fields = with_id({k: v for k, v in doc.items() if k != "location"})
    fields["latitude"] = latitude
    fields["longitude"] = longitude
    try:
        return LocationOut.model_validate(fields)
    except PydanticValidationError as e:
        raise MalformedRecordError(f"invalid location record {fields.get('id')}: {e}") from e
