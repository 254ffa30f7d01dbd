from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict, field_serializer

from playtime.errors import MalformedPointError


class GeoPoint(BaseModel):
    """GeoJSON point as stored in MongoDB. Coordinates are (lng, lat)."""

    model_config = ConfigDict(frozen=True)

    type: Literal["Point"] = "Point"
    coordinates: Tuple[float, ...]

    @field_serializer("coordinates")
    def _coordinates_as_array(self, coordinates: Tuple[float, ...]):
        # stored as a plain BSON array
        return list(coordinates)


def to_point(lat: float, lon: float) -> GeoPoint:
    # GeoJSON은 [lng, lat] 순서!
    return GeoPoint(coordinates=(lon, lat))


def from_point(point: GeoPoint) -> Tuple[float, float]:
    """Return (lat, lon) for a stored point."""
    coordinates = point.coordinates
    if len(coordinates) != 2:
        raise MalformedPointError(
            f"invalid GeoJSON Point: expected 2 coordinates, got {len(coordinates)}"
        )
    lon, lat = coordinates
    return lat, lon
