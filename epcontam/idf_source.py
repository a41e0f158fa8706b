"""Build a building model from an EnergyPlus IDF and its SQLite results."""

import sqlite3
from contextlib import closing
from logging import getLogger
from pathlib import Path

import pandas as pd
from archetypal.idfclass import IDF
from archetypal.idfclass.sql import Sql
from geomeppy.geom.polygons import Polygon3D

from epcontam.source import (
    AirLoop,
    BuildingModel,
    BuildingStory,
    ResultsSource,
    Space,
    Surface,
    ThermalZone,
)

logger = getLogger(__name__)

SURFACE_TYPES = {
    "wall": "Wall",
    "floor": "Floor",
    "roof": "RoofCeiling",
    "ceiling": "RoofCeiling",
}

BOUNDARY_CONDITIONS = {
    "outdoors": "Outdoors",
    "surface": "Surface",
    "zone": "Zone",
    "adiabatic": "Adiabatic",
    "othersidecoefficients": "OtherSideCoefficients",
    "othersideconditionsmodel": "OtherSideConditionsModel",
}

ELEVATION_DECIMALS = 3


def _handle(kind: str, name: str) -> str:
    """IDF names are case-insensitive, so handles are built from the upper-cased name."""
    return f"{kind}:{name.upper()}"


def normalize_boundary_condition(value: str) -> str:
    """Map an IDF outside boundary condition onto its canonical spelling.

    Every ground variant (Ground, GroundFCfactorMethod, GroundSlabPreprocessor...) maps to "Ground".

    Args:
        value (str): The raw boundary condition.

    Returns:
        boundary (str): The normalized boundary condition.
    """
    key = value.strip().lower()
    if key.startswith("ground"):
        return "Ground"
    return BOUNDARY_CONDITIONS.get(key, value.strip())


def _as_float(value) -> float | None:
    """Return the numeric value of an IDF field, or None for autocalculate/blank fields."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _fields_like(obj, prefix: str, suffix: str) -> list[str]:
    """Return the non-blank values of the extensible fields `<prefix>N<suffix>`."""
    return [
        str(obj[field])
        for field in obj.fieldnames
        if field.startswith(prefix) and field.endswith(suffix) and obj[field]
    ]


def _zone_geometry(idf: IDF) -> dict[str, tuple[float, float, float]]:
    """Return zone name (upper) -> (floor elevation, height, floor area) from the zone surfaces."""
    bounds: dict[str, list[float]] = {}
    floor_areas: dict[str, float] = {}
    for srf in idf.idfobjects["BUILDINGSURFACE:DETAILED"]:
        key = srf.Zone_Name.upper()
        z = [c[2] for c in srf.coords]
        lo, hi = bounds.get(key, [min(z), max(z)])
        bounds[key] = [min(lo, *z), max(hi, *z)]
        if srf.Surface_Type.lower() == "floor":
            floor_areas[key] = floor_areas.get(key, 0.0) + float(
                Polygon3D(srf.coords).area
            )
    return {
        key: (lo, hi - lo, floor_areas.get(key, 0.0))
        for key, (lo, hi) in bounds.items()
    }


def _stories_from_elevations(
    geometry: dict[str, tuple[float, float, float]],
) -> tuple[list[BuildingStory], dict[float, str]]:
    """Synthesize one story per distinct zone floor elevation, bottom to top."""
    heights: dict[float, float] = {}
    for floor_z, height, _ in geometry.values():
        elevation = round(floor_z, ELEVATION_DECIMALS)
        heights[elevation] = max(heights.get(elevation, 0.0), height)
    elevations = sorted(heights)
    stories = []
    story_handles = {}
    for i, elevation in enumerate(elevations):
        floor_to_floor = (
            elevations[i + 1] - elevation
            if i + 1 < len(elevations)
            else heights[elevation]
        )
        handle = f"Story:{i + 1}"
        stories.append(
            BuildingStory(
                handle=handle,
                name=f"Story {i + 1}",
                nominal_floor_to_floor_height=floor_to_floor,
                nominal_z_coordinate=elevation,
            )
        )
        story_handles[elevation] = handle
    return stories, story_handles


def _zone_nodes(idf: IDF) -> dict[str, tuple[str | None, str | None]]:
    """Return zone name (upper) -> (supply inlet node, return air node)."""
    nodes = {}
    for conn in idf.idfobjects["ZONEHVAC:EQUIPMENTCONNECTIONS"]:
        nodes[conn.Zone_Name.upper()] = (
            conn.Zone_Air_Inlet_Node_or_NodeList_Name or None,
            conn.Zone_Return_Air_Node_or_NodeList_Name or None,
        )
    return nodes


def _air_loops(
    idf: IDF, nodes: dict[str, tuple[str | None, str | None]]
) -> list[AirLoop]:
    """Find the zones each air loop serves by walking its return path back to the zone return nodes."""
    return_zone = {
        ret.upper(): zone for zone, (_, ret) in nodes.items() if ret is not None
    }
    mixers = {m.Name.upper(): m for m in idf.idfobjects["AIRLOOPHVAC:ZONEMIXER"]}
    return_paths = {
        p.Return_Air_Path_Outlet_Node_Name.upper(): p
        for p in idf.idfobjects["AIRLOOPHVAC:RETURNPATH"]
    }
    loops = []
    for loop in idf.idfobjects["AIRLOOPHVAC"]:
        served: list[str] = []
        return_path = return_paths.get(loop.Demand_Side_Outlet_Node_Name.upper())
        if return_path is None:
            logger.warning(f"No return path found for air loop '{loop.Name}'")
        else:
            for component in _fields_like(return_path, "Component_", "_Name"):
                mixer = mixers.get(component.upper())
                if mixer is None:
                    continue
                for inlet in _fields_like(mixer, "Inlet_", "_Node_Name"):
                    zone = return_zone.get(inlet.upper())
                    if zone is not None and _handle("Zone", zone) not in served:
                        served.append(_handle("Zone", zone))
        loops.append(
            AirLoop(
                handle=_handle("AirLoop", loop.Name),
                name=loop.Name,
                thermal_zones=served,
            )
        )
    return loops


def building_model_from_idf(
    idf: IDF, results: ResultsSource | None = None
) -> BuildingModel:
    """Build a building model from an IDF.

    Every ZONE becomes a thermal zone holding a single space.  IDF files have no
    stories, so one story is synthesized per distinct zone floor elevation.

    Args:
        idf (IDF): The EnergyPlus model.
        results (ResultsSource | None): Simulation results to attach to the model.

    Returns:
        model (BuildingModel): The building model.
    """
    geometry = _zone_geometry(idf)
    stories, story_handles = _stories_from_elevations(geometry)
    nodes = _zone_nodes(idf)

    zones = []
    spaces = []
    for zone in idf.idfobjects["ZONE"]:
        key = zone.Name.upper()
        floor_z, height, floor_area = geometry.get(key, (0.0, 0.0, 0.0))
        volume = _as_float(zone.Volume) or floor_area * height
        supply_node, return_node = nodes.get(key, (None, None))
        zones.append(
            ThermalZone(
                handle=_handle("Zone", zone.Name),
                name=zone.Name,
                volume=volume,
                supply_air_node=supply_node,
                return_air_node=return_node,
            )
        )
        spaces.append(
            Space(
                handle=_handle("Space", zone.Name),
                name=zone.Name,
                story=story_handles.get(round(floor_z, ELEVATION_DECIMALS))
                if key in geometry
                else None,
                thermal_zone=_handle("Zone", zone.Name),
                volume=volume,
                floor_area=floor_area,
            )
        )

    surfaces = []
    for srf in idf.idfobjects["BUILDINGSURFACE:DETAILED"]:
        surface_type = SURFACE_TYPES.get(srf.Surface_Type.lower())
        if surface_type is None:
            logger.warning(
                f"Skipping surface '{srf.Name}' of unknown type '{srf.Surface_Type}'"
            )
            continue
        boundary = normalize_boundary_condition(srf.Outside_Boundary_Condition)
        adjacent = (
            srf.Outside_Boundary_Condition_Object if boundary == "Surface" else ""
        )
        surfaces.append(
            Surface(
                handle=_handle("Surface", srf.Name),
                name=srf.Name,
                space=_handle("Space", srf.Zone_Name),
                surface_type=surface_type,
                outside_boundary_condition=boundary,
                adjacent_surface=_handle("Surface", adjacent) if adjacent else None,
                vertices=[tuple(float(v) for v in c) for c in srf.coords],
            )
        )

    buildings = idf.idfobjects["BUILDING"]
    name = buildings[0].Name if buildings else None
    logger.info(
        f"Read {len(zones)} zones, {len(surfaces)} surfaces and {len(stories)} stories from '{name}'"
    )
    return BuildingModel(
        Name=name or None,
        Stories=stories,
        Spaces=spaces,
        ThermalZones=zones,
        Surfaces=surfaces,
        AirLoops=_air_loops(idf, nodes),
        Results=results,
    )


class SqlResults:
    """Simulation results read from an EnergyPlus SQLite output file."""

    def __init__(self, path: Path | str):
        """Open the results file.

        Args:
            path (Path | str): The eplusout.sql file.
        """
        self.path = Path(path)
        self.sql = Sql(self.path.as_posix())
        with closing(sqlite3.connect(self.path)) as conn:
            rows = conn.execute(
                "SELECT EnvironmentName FROM EnvironmentPeriods"
            ).fetchall()
        self._env_periods = [row[0] for row in rows]

    def available_env_periods(self) -> list[str]:
        """Return the names of the simulated environment periods."""
        return list(self._env_periods)

    def time_series(
        self, env_period: str, frequency: str, variable_name: str, key_value: str
    ) -> pd.Series | None:
        """Return a reported time series, or None if it was not reported.

        The environment period is only checked against the simulated periods;
        the series covers every period the results file reports.

        Args:
            env_period (str): The environment period name.
            frequency (str): The reporting frequency, e.g. "Hourly".
            variable_name (str): The output variable name.
            key_value (str): The reported object, e.g. an upper-cased node name.

        Returns:
            series (pd.Series | None): The series.
        """
        if env_period not in self._env_periods:
            return None
        data = self.sql.timeseries_by_name([variable_name], frequency)
        if data.empty:
            return None
        data = data.droplevel("IndexGroup", axis=1)
        for key, name in data.columns:
            if key.upper() == key_value.upper() and name == variable_name:
                return data[(key, name)]
        return None
