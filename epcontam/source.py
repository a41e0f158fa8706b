"""Read-only building model consumed by the airflow network translator."""

from collections.abc import Sequence
from typing import Literal, Protocol, runtime_checkable

import numpy as np
import pandas as pd
from geomeppy.geom.polygons import Polygon3D
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

SurfaceType = Literal["Wall", "Floor", "RoofCeiling"]

Vertex = tuple[float, float, float]


@runtime_checkable
class ResultsSource(Protocol):
    """Simulation results keyed by environment period, frequency, variable and object."""

    def available_env_periods(self) -> list[str]:
        """Return the names of the simulated environment periods."""
        ...

    def time_series(
        self, env_period: str, frequency: str, variable_name: str, key_value: str
    ) -> pd.Series | None:
        """Return a reported time series, or None if it was not reported."""
        ...


class BuildingStory(BaseModel):
    """A building story."""

    handle: str
    name: str
    nominal_floor_to_floor_height: float = Field(default=0.0, ge=0)
    nominal_z_coordinate: float | None = Field(
        default=None, title="Explicit story elevation [m]"
    )


class Space(BaseModel):
    """A space, the geometric unit that thermal zones are made of."""

    handle: str
    name: str
    story: str | None = Field(default=None, title="Handle of the owning story")
    thermal_zone: str | None = Field(default=None, title="Handle of the owning zone")
    volume: float = Field(default=0.0, ge=0)
    floor_area: float = Field(default=0.0, ge=0)


class ThermalZone(BaseModel):
    """A thermal zone."""

    handle: str
    name: str
    volume: float | None = Field(default=None, title="Explicit zone volume [m3]")
    supply_air_node: str | None = Field(
        default=None, title="Node the air loop supplies the zone through"
    )
    return_air_node: str | None = Field(
        default=None, title="Node the zone returns air to the air loop through"
    )


class Surface(BaseModel):
    """A planar building surface."""

    handle: str
    name: str
    space: str | None = Field(default=None, title="Handle of the owning space")
    surface_type: SurfaceType
    outside_boundary_condition: str = Field(
        ..., title="Outdoors, Surface, Ground, Adiabatic, ..."
    )
    adjacent_surface: str | None = Field(
        default=None, title="Handle of the surface on the other side"
    )
    vertices: list[Vertex] = Field(..., min_length=3)

    @property
    def polygon(self) -> Polygon3D:
        """Return the surface as a geomeppy polygon."""
        return Polygon3D(self.vertices)

    @property
    def gross_area(self) -> float:
        """Return the gross area of the surface [m2]."""
        return float(self.polygon.area)

    @property
    def azimuth(self) -> float:
        """Return the azimuth of the outward normal, clockwise from north [rad]."""
        normal = self.polygon.normal_vector
        # horizontal surfaces face no compass direction
        if np.hypot(normal.x, normal.y) < 1e-9:
            return 0.0
        return float(np.arctan2(normal.x, normal.y) % (2 * np.pi))

    @property
    def average_z(self) -> float:
        """Return the mean height of the vertices [m]."""
        return float(np.mean([v[2] for v in self.vertices]))


class AirLoop(BaseModel):
    """An air loop and the thermal zones it serves."""

    handle: str
    name: str
    thermal_zones: list[str] = Field(
        default_factory=list, title="Handles of the served zones"
    )


@runtime_checkable
class ModelSource(Protocol):
    """Query interface over a building model."""

    def building_name(self) -> str | None:
        """Return the building name, if any."""
        ...

    def stories(self) -> Sequence[BuildingStory]:
        """Return every story, in model order."""
        ...

    def thermal_zones(self) -> Sequence[ThermalZone]:
        """Return every thermal zone, in model order."""
        ...

    def surfaces(self) -> Sequence[Surface]:
        """Return every surface, in model order."""
        ...

    def air_loops(self) -> Sequence[AirLoop]:
        """Return every air loop, in model order."""
        ...

    def story(self, handle: str) -> BuildingStory | None:
        """Look up a story by handle."""
        ...

    def space(self, handle: str) -> Space | None:
        """Look up a space by handle."""
        ...

    def thermal_zone(self, handle: str) -> ThermalZone | None:
        """Look up a thermal zone by handle."""
        ...

    def surface(self, handle: str) -> Surface | None:
        """Look up a surface by handle."""
        ...

    def spaces_of(self, zone: ThermalZone) -> Sequence[Space]:
        """Return the spaces that make up a thermal zone."""
        ...

    def results(self) -> ResultsSource | None:
        """Return the simulation results attached to the model, if any."""
        ...


class BuildingModel(BaseModel):
    """An in-memory building model.

    Relations between objects are stored as handles; lookups by handle are
    resolved through indices built once at construction.  Treat instances as
    read-only after construction.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    Name: str | None = Field(default=None, title="Building name")
    Stories: list[BuildingStory] = Field(default_factory=list)
    Spaces: list[Space] = Field(default_factory=list)
    ThermalZones: list[ThermalZone] = Field(default_factory=list)
    Surfaces: list[Surface] = Field(default_factory=list)
    AirLoops: list[AirLoop] = Field(default_factory=list)
    Results: ResultsSource | None = Field(default=None, exclude=True)

    _stories: dict[str, BuildingStory] = PrivateAttr(default_factory=dict)
    _spaces: dict[str, Space] = PrivateAttr(default_factory=dict)
    _zones: dict[str, ThermalZone] = PrivateAttr(default_factory=dict)
    _surfaces: dict[str, Surface] = PrivateAttr(default_factory=dict)
    _zone_spaces: dict[str, list[Space]] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def check_unique_handles(self):
        """Handles identify objects, so they may not repeat."""
        handles = [
            obj.handle
            for group in (
                self.Stories,
                self.Spaces,
                self.ThermalZones,
                self.Surfaces,
                self.AirLoops,
            )
            for obj in group
        ]
        duplicates = sorted({h for h in handles if handles.count(h) > 1})
        if duplicates:
            msg = f"Duplicate handles found in building model: {', '.join(duplicates)}"
            raise ValueError(msg)
        return self

    def model_post_init(self, __context):
        """Build the handle indices."""
        self._stories = {s.handle: s for s in self.Stories}
        self._spaces = {s.handle: s for s in self.Spaces}
        self._zones = {z.handle: z for z in self.ThermalZones}
        self._surfaces = {s.handle: s for s in self.Surfaces}
        self._zone_spaces = {z.handle: [] for z in self.ThermalZones}
        for space in self.Spaces:
            if space.thermal_zone in self._zone_spaces:
                self._zone_spaces[space.thermal_zone].append(space)

    def building_name(self) -> str | None:
        """Return the building name, if any."""
        return self.Name

    def stories(self) -> Sequence[BuildingStory]:
        """Return every story, in model order."""
        return self.Stories

    def thermal_zones(self) -> Sequence[ThermalZone]:
        """Return every thermal zone, in model order."""
        return self.ThermalZones

    def surfaces(self) -> Sequence[Surface]:
        """Return every surface, in model order."""
        return self.Surfaces

    def air_loops(self) -> Sequence[AirLoop]:
        """Return every air loop, in model order."""
        return self.AirLoops

    def story(self, handle: str) -> BuildingStory | None:
        """Look up a story by handle."""
        return self._stories.get(handle)

    def space(self, handle: str) -> Space | None:
        """Look up a space by handle."""
        return self._spaces.get(handle)

    def thermal_zone(self, handle: str) -> ThermalZone | None:
        """Look up a thermal zone by handle."""
        return self._zones.get(handle)

    def surface(self, handle: str) -> Surface | None:
        """Look up a surface by handle."""
        return self._surfaces.get(handle)

    def spaces_of(self, zone: ThermalZone) -> Sequence[Space]:
        """Return the spaces that make up a thermal zone."""
        return self._zone_spaces.get(zone.handle, [])

    def results(self) -> ResultsSource | None:
        """Return the simulation results attached to the model, if any."""
        return self.Results
