"""Data model and text serializer for multizone airflow network (CONTAM project) files."""

from collections.abc import Sequence
from logging import getLogger
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from epcontam.constants import assumed_constants
from epcontam.exceptions import TemplateLoadError

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self  # noqa: UP035

logger = getLogger(__name__)

EXTERIOR = -1
"""Zone index used for the ambient environment."""

PRJ_HEADER = "ContamW 3.1  0"
SECTION_END = "-999"

# zone flags
VAR_P = 0x0001
SYS_N = 0x0002
VAR_C = 0x0008

# path flags
WIND = 0x0001
AHS_S = 0x0008
AHS_R = 0x0010
AHS_O = 0x0020
AHS_X = 0x0040

PathRole = Literal[
    "envelope",
    "interior",
    "supply",
    "return",
    "recirculation",
    "outside_air",
    "exhaust",
]

ROLE_FLAGS: dict[str, int] = {
    "envelope": WIND,
    "interior": 0,
    "supply": AHS_S,
    "return": AHS_S,
    "recirculation": AHS_R,
    "outside_air": AHS_O,
    "exhaust": AHS_X,
}

SYSTEM_ROLES = ("supply", "return")


def _g(value: float | int | None) -> str:
    """Format a number the way the project file expects (printf %g)."""
    if value is None:
        return "0"
    return f"{value:g}"


class SteadyWeather(BaseModel):
    """Steady-state ambient conditions."""

    ambient_temperature: float = Field(
        default=assumed_constants.ZoneReferenceTemperature_K,
        title="Ambient temperature [K]",
    )
    barometric_pressure: float = Field(default=101325.0, title="Pressure [Pa]")
    wind_speed: float = Field(default=0.0, ge=0, title="Wind speed [m/s]")
    wind_direction: float = Field(default=0.0, title="Wind direction [deg]")


class RunControl(BaseModel):
    """Project-wide settings."""

    description: str = Field(default="", title="Project description")
    wind_reference_height: float = Field(
        default=0.0, title="Height used for the wind pressure modifier [m]"
    )
    steady_weather: SteadyWeather = Field(default_factory=SteadyWeather)


class WindProfile(BaseModel):
    """A wind pressure coefficient profile, Cp as a function of relative wind angle."""

    nr: int = Field(..., ge=1)
    name: str
    description: str = ""
    coefficients: list[tuple[float, float]] = Field(
        default_factory=list, title="(azimuth [deg], Cp) pairs"
    )


class AirflowElement(BaseModel):
    """A power-law airflow element fitted from a test point."""

    nr: int = Field(..., ge=1)
    name: str
    description: str = ""
    dtype: Literal["plr_test1"] = "plr_test1"
    laminar: float = Field(..., title="Laminar flow coefficient")
    turbulent: float = Field(..., title="Turbulent flow coefficient")
    exponent: float = Field(..., gt=0, le=1, title="Flow exponent")
    reference_pressure_drop: float = Field(..., gt=0, title="Test pressure drop [Pa]")
    reference_flow: float = Field(..., title="Test mass flow [kg/s]")
    pressure_units: int = 0
    flow_units: int = 1


class Level(BaseModel):
    """A pressure reference plane, one per building story."""

    nr: int = Field(..., ge=1)
    reference_height: float = Field(..., title="Reference height [m]")
    height_delta: float = Field(..., title="Distance to the next level [m]")
    name: str


class Zone(BaseModel):
    """A well-mixed airflow zone."""

    nr: int = Field(..., ge=1)
    level: int = Field(..., ge=1, title="Owning level index")
    name: str
    volume: float = Field(default=0.0, ge=0, title="Volume [m3]")
    temperature: float = Field(
        default=assumed_constants.ZoneReferenceTemperature_K,
        title="Initial temperature [K]",
    )
    variable_pressure: bool = True
    variable_contaminants: bool = True
    system: bool = False

    @property
    def flags(self) -> int:
        """Return the zone flag bit field."""
        flags = 0
        if self.variable_pressure:
            flags |= VAR_P
        if self.system:
            flags |= SYS_N
        if self.variable_contaminants:
            flags |= VAR_C
        return flags


class FlowPath(BaseModel):
    """A directed airflow connection between two zones (or a zone and ambient)."""

    nr: int = Field(..., ge=1)
    role: PathRole
    from_zone: int = Field(..., title="Zone index the path starts at (-1 is ambient)")
    to_zone: int = Field(..., title="Zone index the path ends at (-1 is ambient)")
    level: int = Field(..., ge=1)
    relative_height: float = 0.0
    multiplier: float = 1.0
    element: int = Field(default=0, ge=0, title="Airflow element index")
    wind_azimuth: float | None = Field(default=None, title="Wall azimuth [deg]")
    wind_modifier: float | None = None
    wind_profile: int | None = None
    ahs: int | None = Field(default=None, title="Owning air handling system")
    flow_rate: float | None = Field(
        default=None, title="Fixed system flow rate [kg/s]"
    )

    @model_validator(mode="after")
    def check_role_fields(self):
        """Role-specific fields may only be set on paths of that role."""
        has_wind = any(
            v is not None
            for v in (self.wind_azimuth, self.wind_modifier, self.wind_profile)
        )
        if has_wind and self.role != "envelope":
            msg = f"Wind pressure data is only valid on envelope paths, not '{self.role}'."
            raise ValueError(msg)
        if self.ahs is not None and self.role not in SYSTEM_ROLES:
            msg = f"Only supply and return paths belong to an AHS, not '{self.role}'."
            raise ValueError(msg)
        return self

    @property
    def flags(self) -> int:
        """Return the path flag bit field."""
        return ROLE_FLAGS[self.role]

    @property
    def wind_driven(self) -> bool:
        """Whether the path is subject to wind pressure."""
        return self.role == "envelope"


class Ahs(BaseModel):
    """A simple air handling system."""

    nr: int = Field(..., ge=1)
    name: str
    return_zone: int
    supply_zone: int
    recirculation_path: int = 0
    outside_air_path: int = 0
    exhaust_path: int = 0
    description: str = ""


def _check_numbering(items: Sequence[BaseModel], what: str):
    for position, item in enumerate(items):
        if item.nr != position + 1:
            msg = f"{what} numbering is not contiguous: entry {position + 1} has nr {item.nr}."
            raise ValueError(msg)


class NetworkData(BaseModel):
    """The assembled airflow network."""

    run_control: RunControl = Field(default_factory=RunControl)
    wind_profiles: list[WindProfile] = Field(default_factory=list)
    airflow_elements: list[AirflowElement] = Field(default_factory=list)
    levels: list[Level] = Field(default_factory=list)
    zones: list[Zone] = Field(default_factory=list)
    paths: list[FlowPath] = Field(default_factory=list)
    ahs: list[Ahs] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_contiguous_numbering(self):
        """Every list is numbered 1, 2, ... in order."""
        _check_numbering(self.wind_profiles, "Wind profile")
        _check_numbering(self.airflow_elements, "Airflow element")
        _check_numbering(self.levels, "Level")
        _check_numbering(self.zones, "Zone")
        _check_numbering(self.paths, "Path")
        _check_numbering(self.ahs, "AHS")
        return self

    @classmethod
    def from_yaml(cls, path: Path | str) -> Self:
        """Load a network (typically a template) from a YAML file.

        Args:
            path (Path | str): The YAML file.

        Raises:
            TemplateLoadError: If the file cannot be read or does not describe a network.

        Returns:
            network (NetworkData): The loaded network.
        """
        try:
            with open(path) as f:
                raw = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise TemplateLoadError(path, str(e)) from e
        if not isinstance(raw, dict):
            raise TemplateLoadError(path, "expected a mapping at the top level")
        try:
            network = cls.model_validate(raw)
        except ValidationError as e:
            raise TemplateLoadError(path, str(e)) from e
        logger.debug(
            f"Loaded network from {path} with {len(network.airflow_elements)} airflow elements"
        )
        return network

    def element_index(self) -> dict[str, int]:
        """Map airflow element names to their indices."""
        return {element.name: element.nr for element in self.airflow_elements}

    def to_prj(self) -> str:
        """Render the network as project file text."""
        rc = self.run_control
        weather = rc.steady_weather
        lines = [PRJ_HEADER, rc.description]

        lines.append("! wind_H   Tambt   barpres  windspd  winddir")
        lines.append(
            f"{_g(rc.wind_reference_height)} {_g(weather.ambient_temperature)} "
            f"{_g(weather.barometric_pressure)} {_g(weather.wind_speed)} "
            f"{_g(weather.wind_direction)}"
        )
        lines.append(SECTION_END)

        lines.append(f"{len(self.wind_profiles)} ! wind pressure profiles:")
        for profile in self.wind_profiles:
            lines.append(f"{profile.nr} {len(profile.coefficients)} {profile.name}")
            lines.append(profile.description)
            lines.extend(f" {_g(azm)} {_g(cp)}" for azm, cp in profile.coefficients)
        lines.append(SECTION_END)

        lines.append(f"{len(self.airflow_elements)} ! flow elements:")
        for el in self.airflow_elements:
            lines.append(f"{el.nr} {el.dtype} {el.name}")
            lines.append(el.description)
            lines.append(
                f" {_g(el.laminar)} {_g(el.turbulent)} {_g(el.exponent)} "
                f"{_g(el.reference_pressure_drop)} {_g(el.reference_flow)} "
                f"{el.pressure_units} {el.flow_units}"
            )
        lines.append(SECTION_END)

        lines.append(f"{len(self.levels)} ! levels:")
        lines.append("! #  refHt  delHt  name")
        lines.extend(
            f"{lvl.nr} {_g(lvl.reference_height)} {_g(lvl.height_delta)} {lvl.name}"
            for lvl in self.levels
        )
        lines.append(SECTION_END)

        lines.append(f"{len(self.zones)} ! zones:")
        lines.append("! Z#  f  l#  Vol  T0  name")
        lines.extend(
            f"{z.nr} {z.flags} {z.level} {_g(z.volume)} {_g(z.temperature)} {z.name}"
            for z in self.zones
        )
        lines.append(SECTION_END)

        lines.append(f"{len(self.paths)} ! flow paths:")
        lines.append("! P#  f  n#  m#  e#  w#  a#  l#  relHt  mult  wPmod  wazm  Fahs")
        lines.extend(
            f"{p.nr} {p.flags} {p.from_zone} {p.to_zone} {p.element} "
            f"{_g(p.wind_profile)} {_g(p.ahs)} {p.level} {_g(p.relative_height)} "
            f"{_g(p.multiplier)} {_g(p.wind_modifier)} {_g(p.wind_azimuth)} "
            f"{_g(p.flow_rate)}"
            for p in self.paths
        )
        lines.append(SECTION_END)

        lines.append(f"{len(self.ahs)} ! simple AHS:")
        lines.append("! # zr# zs# pr# ps# px# name")
        for a in self.ahs:
            lines.append(
                f"{a.nr} {a.return_zone} {a.supply_zone} {a.recirculation_path} "
                f"{a.outside_air_path} {a.exhaust_path} {a.name}"
            )
            lines.append(a.description)
        lines.append(SECTION_END)

        lines.append("* end project file.")
        return "\n".join(lines) + "\n"
