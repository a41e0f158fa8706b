"""Wind speed profile corrections for envelope flow paths."""

from pydantic import BaseModel, Field

from epcontam.settings import WindTerrain


class TerrainProfile(BaseModel, frozen=True):
    """Power-law boundary layer parameters for a terrain class."""

    exponent: float = Field(..., gt=0, frozen=True)
    boundary_layer_thickness_m: float = Field(..., gt=0, frozen=True)


# ASHRAE Handbook of Fundamentals, atmospheric boundary layer parameters
TERRAIN_PROFILES: dict[str, TerrainProfile] = {
    "flat": TerrainProfile(exponent=0.10, boundary_layer_thickness_m=210),
    "country": TerrainProfile(exponent=0.14, boundary_layer_thickness_m=270),
    "suburban": TerrainProfile(exponent=0.22, boundary_layer_thickness_m=370),
    "city": TerrainProfile(exponent=0.33, boundary_layer_thickness_m=460),
}

METEOROLOGICAL_TERRAIN: WindTerrain = "country"
METEOROLOGICAL_HEIGHT_M = 10.0


def velocity_modifier(terrain: WindTerrain, height: float) -> float:
    """Ratio of the local wind speed at a height to the weather station wind speed.

    Args:
        terrain (WindTerrain): The terrain class around the building.
        height (float): The height above ground [m].

    Returns:
        modifier (float): The wind speed ratio.
    """
    if height <= 0:
        return 0.0
    met = TERRAIN_PROFILES[METEOROLOGICAL_TERRAIN]
    local = TERRAIN_PROFILES[terrain]
    return (met.boundary_layer_thickness_m / METEOROLOGICAL_HEIGHT_M) ** met.exponent * (
        height / local.boundary_layer_thickness_m
    ) ** local.exponent


def pressure_modifier(terrain: WindTerrain, height: float) -> float:
    """The wind pressure modifier, 0.5 * (local speed / station speed)^2.

    Args:
        terrain (WindTerrain): The terrain class around the building.
        height (float): The building height [m].

    Returns:
        modifier (float): The modifier applied to the dynamic pressure of the station wind.
    """
    return 0.5 * velocity_modifier(terrain, height) ** 2
