"""Placement entity: a user-drawn area with its attributes."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from shapely.geometry import Polygon

from ..geometry.polygon_ops import (
    Coords,
    buffer_polygon,
    close_ring,
    get_polygon_area,
    polygon_from_coords,
)
from .rules import AreaRates, RuleSet

DEFAULT_FIRE_BUFFER_M = 5.0


class PlacementEntity(BaseModel):
    """A placement area drawn on the shared map.

    Geometry derived from ``coordinates`` (polygon and fire buffer) is rebuilt
    lazily whenever the coordinates or the bound buffer distance change, so
    readers always see the buffer of the current polygon.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="Stable entity identifier")
    coordinates: Coords = Field(
        default_factory=list, description="Exterior ring as [x, y] pairs in meters"
    )
    name: str = Field(default="", description="Name of camp or project")
    description: str = Field(default="", description="Free text description")
    contact_info: str = Field(default="", description="Name, email or chat handle")
    nr_of_people: int = Field(default=0, ge=0, description="People sleeping in tents")
    nr_of_vehicles: int = Field(default=0, ge=0, description="Vehicles parked in the area")
    additional_sqm: float = Field(default=0.0, ge=0, description="m² of additional structures")
    power_need: Optional[float] = Field(default=None, description="Power need in watts")
    amplified_sound: Optional[int] = Field(default=None, description="Amplified sound level")

    _buffer_distance: float = PrivateAttr(default=DEFAULT_FIRE_BUFFER_M)
    _rates: AreaRates = PrivateAttr(default_factory=AreaRates)
    _geometry_key: Optional[tuple] = PrivateAttr(default=None)
    _polygon: Optional[Polygon] = PrivateAttr(default=None)
    _buffer: Optional[Polygon] = PrivateAttr(default=None)

    @field_validator("coordinates", mode="before")
    @classmethod
    def validate_coordinates(cls, v: Any) -> Coords:
        """Normalize to a closed ring of (x, y) tuples."""
        if v is None:
            return []
        for point in v:
            if len(point) < 2:
                raise ValueError(f"Coordinate {point!r} needs x and y")
        return close_ring(v)

    @field_validator("power_need", "amplified_sound", mode="before")
    @classmethod
    def normalize_unset(cls, v: Any) -> Any:
        """Map blanks and the legacy -1 sentinel to None."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        try:
            if float(v) < 0:
                return None
        except (TypeError, ValueError):
            pass
        return v

    def bind(self, rules: RuleSet) -> "PlacementEntity":
        """Take fire buffer distance and area rates from a rule set."""
        self._buffer_distance = rules.fire_buffer_m
        self._rates = rules.area_rates
        return self

    @property
    def buffer_distance(self) -> float:
        return self._buffer_distance

    def coordinates_snapshot(self) -> tuple:
        """Immutable copy of the current ring, used for change detection."""
        return tuple(self.coordinates)

    def _refresh_geometry(self) -> None:
        key = (self.coordinates_snapshot(), self._buffer_distance)
        if key == self._geometry_key:
            return
        self._polygon = polygon_from_coords(self.coordinates)
        self._buffer = buffer_polygon(self._polygon, self._buffer_distance)
        self._geometry_key = key

    def update_buffer(self) -> Polygon:
        """Rebuild polygon and buffer now if the ring changed."""
        self._refresh_geometry()
        return self._buffer

    @property
    def polygon(self) -> Polygon:
        self._refresh_geometry()
        return self._polygon

    @property
    def buffer_polygon(self) -> Polygon:
        """Polygon expanded by the fire safety distance."""
        self._refresh_geometry()
        return self._buffer

    @property
    def area(self) -> float:
        """Polygon area in m²; 0.0 when the shape is degenerate."""
        return get_polygon_area(self.polygon)

    @property
    def calculated_area_needed(self) -> float:
        """Area the people, vehicles and extra structures are expected to need."""
        return (
            self.nr_of_people * self._rates.sqm_per_person
            + self.nr_of_vehicles * self._rates.sqm_per_vehicle
            + self.additional_sqm
        )

    @property
    def point_count(self) -> int:
        """Number of vertices, not counting the closing point."""
        if not self.coordinates:
            return 0
        return len(self.coordinates) - 1
