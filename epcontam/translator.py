"""Translate a building model into a multizone airflow network.

Stories become levels, thermal zones become airflow zones, exterior and
interior surfaces become flow paths, and every air loop becomes a simple air
handling system: a supply and a return zone, a supply and a return path per
served zone, and recirculation, outside air and exhaust paths closing the loop.
"""

from collections.abc import Mapping
from logging import getLogger
from pathlib import Path

import numpy as np

from epcontam.constants import assumed_constants
from epcontam.elements import AirflowElementFactory
from epcontam.exceptions import (
    AdjacentSurfaceUnresolved,
    FatalTranslationError,
    InvalidLeakageRate,
    MultipleLeakageModes,
    NoLevelsFound,
    TemplateLoadError,
    ZoneLevelUnresolved,
)
from epcontam.flows import FlowEstimator, return_path_name, supply_path_name
from epcontam.prj import EXTERIOR, Ahs, FlowPath, Level, NetworkData, Zone
from epcontam.progress import ProgressObserver
from epcontam.report import LogMessage, TranslationReport
from epcontam.settings import (
    KNOWN_LEAKAGE_DESCRIPTORS,
    WindTerrain,
    contam_settings,
)
from epcontam.source import ModelSource, Surface, ThermalZone
from epcontam.wind import pressure_modifier

logger = getLogger(__name__)

LEAKAGE_ROLES = ("exterior", "interior", "floor", "roof")

TEMPLATE_ELEMENT_NAMES: dict[str, dict[str, str]] = {
    "exterior": {
        "Leaky": "ExtWallLeaky",
        "Average": "ExtWallAvg",
        "Tight": "ExtWallTight",
    },
    "interior": {
        "Leaky": "IntWallLeaky",
        "Average": "IntWallAvg",
        "Tight": "IntWallTight",
    },
    "floor": {"Leaky": "FloorLeaky", "Average": "FloorAvg", "Tight": "FloorTight"},
    "roof": {"Leaky": "RoofLeaky", "Average": "RoofAvg", "Tight": "RoofTight"},
}


class NetworkAssembler:
    """Builds an airflow network from a building model, one translation at a time.

    The baseline template is loaded once at construction.  Every call to
    `translate` starts from a fresh copy of it, so an assembler can be reused
    for several models in sequence, but concurrent translations need separate
    assemblers.
    """

    def __init__(
        self,
        template_path: Path | str | None = None,
        wind_terrain: WindTerrain | None = None,
    ):
        """Load the baseline template.

        Args:
            template_path (Path | str | None): The template YAML; defaults to the configured one.
            wind_terrain (WindTerrain | None): Terrain for the wind pressure modifier; defaults to the configured one.
        """
        self.template_path = (
            Path(template_path) if template_path else contam_settings.template_path
        )
        self.wind_terrain: WindTerrain = wind_terrain or contam_settings.wind_terrain
        self.report = TranslationReport(logger)

        self._template_error: str | None = None
        try:
            self._baseline = NetworkData.from_yaml(self.template_path)
        except TemplateLoadError as e:
            logger.error(e.message)
            self._template_error = e.message
            self._baseline = NetworkData()

        self._registered_elements: list[tuple[str, float, float, float]] = []
        self._steady_weather: tuple[float, float] | None = None
        self._progress: ProgressObserver | None = None
        self._valid = False
        self.network = self._baseline.model_copy(deep=True)
        self.measured_flows: dict[str, np.ndarray] = {}
        self._clear_tables()

    def _clear_tables(self):
        self._level_map: dict[str, int] = {}
        self._zone_map: dict[str, int] = {}
        self._zone_names: dict[str, str] = {}
        self._surface_map: dict[str, int] = {}
        self._ahs_map: dict[str, int] = {}
        self._path_map: dict[str, int] = {}
        self._afe_map: dict[str, int] = {}

    @property
    def template_valid(self) -> bool:
        """Whether the baseline template loaded correctly."""
        return self._template_error is None

    def valid(self) -> bool:
        """Whether the last translation succeeded on a correctly loaded template."""
        return self._valid and self.template_valid

    def warnings(self) -> list[LogMessage]:
        """Warnings generated by the last translation."""
        return self.report.warnings()

    def errors(self) -> list[LogMessage]:
        """Errors generated by the last translation."""
        return self.report.errors()

    @property
    def surface_map(self) -> dict[str, int]:
        """Surface handle -> path index, for surfaces that produced a path."""
        return dict(self._surface_map)

    @property
    def zone_map(self) -> dict[str, int]:
        """Thermal zone handle -> zone index."""
        return dict(self._zone_map)

    @property
    def ahs_map(self) -> dict[str, int]:
        """Air loop handle -> air handling system index."""
        return dict(self._ahs_map)

    @property
    def path_map(self) -> dict[str, int]:
        """Named system paths -> path index."""
        return dict(self._path_map)

    def reset(self):
        """Return to the state right after construction."""
        self._registered_elements.clear()
        self._steady_weather = None
        self._valid = False
        self.network = self._baseline.model_copy(deep=True)
        self.measured_flows = {}
        self._clear_tables()
        self.report.clear()

    def set_steady_weather(self, wind_speed: float, wind_direction: float) -> bool:
        """Set the steady-state wind; it also applies to later translations.

        Args:
            wind_speed (float): The wind speed [m/s]; negative values are made positive.
            wind_direction (float): The wind direction [deg].

        Returns:
            success (bool): Always True.
        """
        if wind_speed < 0:
            self.report.warning(
                "Steady state wind speed is negative, using absolute value."
            )
            wind_speed = -wind_speed
        self._steady_weather = (wind_speed, wind_direction)
        self._apply_steady_weather()
        return True

    def _apply_steady_weather(self):
        if self._steady_weather is None:
            return
        weather = self.network.run_control.steady_weather
        weather.wind_speed, weather.wind_direction = self._steady_weather

    def add_airflow_element(
        self,
        name: str,
        flow: float,
        exponent: float = assumed_constants.DefaultFlowExponent,
        delta_p: float = assumed_constants.DefaultReferencePressureDrop_Pa,
    ) -> int:
        """Derive an airflow element from a leakage rate and add it to the network.

        The element is kept, at the same index, for later translations, so its
        index can be passed in an element map.

        Args:
            name (str): The element name.
            flow (float): The leakage rate at the test pressure [m3/h].
            exponent (float): The flow exponent.
            delta_p (float): The test pressure drop [Pa].

        Returns:
            nr (int): The index of the new element.
        """
        nr = AirflowElementFactory(self.network).derive_element(
            name, flow, exponent, delta_p
        )
        self._registered_elements.append((name, flow, exponent, delta_p))
        return nr

    def translate(
        self,
        model: ModelSource,
        *,
        include_hvac: bool | None = None,
        leakage_descriptor: str | None = None,
        element_map: Mapping[str, int] | None = None,
        leakage_rate: float | None = None,
        progress: ProgressObserver | None = None,
    ) -> bool:
        """Translate a building model into the airflow network.

        At most one of `leakage_descriptor`, `element_map` and `leakage_rate`
        may be given; with none, the configured descriptor is used.

        Args:
            model (ModelSource): The building model.
            include_hvac (bool | None): Translate air loops; defaults to the configured value.
            leakage_descriptor (str | None): "Average", "Tight" or "Leaky" template elements.
            element_map (Mapping[str, int] | None): Element index per role ("exterior", "interior", "floor", "roof").
            leakage_rate (float | None): Leakage rate [m3/h at 75 Pa] to derive custom elements from.
            progress (ProgressObserver | None): Receives phase and step updates.

        Raises:
            MultipleLeakageModes: If more than one leakage specification is given.
            InvalidLeakageRate: If the leakage rate is not positive and finite.

        Returns:
            success (bool): False if a fatal problem aborted the translation.
        """
        modes = [
            name
            for name, value in (
                ("leakage_descriptor", leakage_descriptor),
                ("element_map", element_map),
                ("leakage_rate", leakage_rate),
            )
            if value is not None
        ]
        if len(modes) > 1:
            raise MultipleLeakageModes(modes)
        if leakage_rate is not None and (
            not np.isfinite(leakage_rate) or leakage_rate <= 0
        ):
            raise InvalidLeakageRate(leakage_rate)
        if include_hvac is None:
            include_hvac = contam_settings.include_hvac

        self._begin(progress)
        if leakage_rate is not None:
            element_map = self._derive_custom_elements(leakage_rate)
        self._afe_map = self.network.element_index()
        if element_map is not None:
            elements = self._resolve_element_map(element_map)
        else:
            descriptor = self._check_descriptor(
                leakage_descriptor or contam_settings.leakage_descriptor
            )
            elements = self._template_elements(descriptor)

        try:
            self._translate(model, include_hvac, elements)
        except FatalTranslationError as e:
            self.report.error(e.message)
            self._valid = False
            return False
        finally:
            self._progress = None
        self._valid = True
        return True

    def _begin(self, progress: ProgressObserver | None):
        self._progress = progress
        self._valid = False
        self.report.clear()
        if self._template_error is not None:
            self.report.error(self._template_error)
        self.network = self._baseline.model_copy(deep=True)
        factory = AirflowElementFactory(self.network)
        for name, flow, exponent, delta_p in self._registered_elements:
            factory.derive_element(name, flow, exponent, delta_p)
        self._apply_steady_weather()
        self.measured_flows = {}
        self._clear_tables()

    def _derive_custom_elements(self, leakage_rate: float) -> dict[str, int]:
        factory = AirflowElementFactory(self.network)
        interior_rate = assumed_constants.InteriorLeakageMultiplier * leakage_rate
        return {
            "exterior": factory.derive_element("CustomExterior", leakage_rate),
            "roof": factory.derive_element("CustomRoof", leakage_rate),
            "interior": factory.derive_element("CustomInterior", interior_rate),
            "floor": factory.derive_element("CustomFloor", interior_rate),
        }

    def _check_descriptor(self, descriptor: str) -> str:
        if descriptor not in KNOWN_LEAKAGE_DESCRIPTORS:
            self.report.warning(
                f"Unknown leakage descriptor '{descriptor}' using 'Average'"
            )
            return "Average"
        return descriptor

    def _template_elements(self, descriptor: str) -> dict[str, int]:
        elements = {}
        for role in LEAKAGE_ROLES:
            name = TEMPLATE_ELEMENT_NAMES[role][descriptor]
            elements[role] = self._table_lookup(self._afe_map, name, "afeMap") or 0
        return elements

    def _resolve_element_map(self, element_map: Mapping[str, int]) -> dict[str, int]:
        elements = {}
        for role in LEAKAGE_ROLES:
            nr = self._table_lookup(element_map, role, "afeMap") or 0
            if (
                not isinstance(nr, int)
                or nr < 0
                or nr > len(self.network.airflow_elements)
            ):
                self.report.warning(
                    f"Airflow element {nr} given for '{role}' paths does not exist"
                )
                nr = 0
            elements[role] = nr
        return elements

    def _table_lookup(
        self, table: Mapping[str, int], key: str, name: str
    ) -> int | None:
        nr = table.get(key)
        if not nr:
            self.report.warning(f"Unable to look up '{key}' in {name}")
            return None
        return nr

    def _start_phase(self, title: str, maximum: int):
        if self._progress is not None:
            self._progress.start_phase(title, maximum)

    def _advance(self):
        if self._progress is not None:
            self._progress.advance()

    def _translate(
        self, model: ModelSource, include_hvac: bool, elements: dict[str, int]
    ):
        name = model.building_name()
        self.network.run_control.description = (
            f'Automatically generated from "{name}" building model'
            if name
            else "Automatically generated building model"
        )
        self._translate_stories(model)
        self._translate_zones(model)
        self._translate_surfaces(model, elements)
        if include_hvac:
            self._translate_air_loops(model)
            self._connect_air_handling_systems()
            estimator = FlowEstimator(self.network, self._path_map, self.report)
            estimator.estimate(model)
            self.measured_flows = estimator.measured_flows

    def _translate_stories(self, model: ModelSource):
        stories = model.stories()
        self._start_phase("Translating Stories", len(stories))
        total_height = 0.0
        for nr, story in enumerate(stories, start=1):
            height = story.nominal_floor_to_floor_height
            total_height += height
            reference_height = (
                story.nominal_z_coordinate
                if story.nominal_z_coordinate is not None
                else total_height
            )
            self.network.levels.append(
                Level(
                    nr=nr,
                    reference_height=reference_height,
                    height_delta=height,
                    name=f"<{nr}>",
                )
            )
            self._level_map[story.handle] = nr
            self._advance()
        self.network.run_control.wind_reference_height = total_height
        if not self.network.levels:
            raise NoLevelsFound()

    def _translate_zones(self, model: ModelSource):
        thermal_zones = model.thermal_zones()
        self._start_phase("Translating Zones", len(thermal_zones))
        for nr, thermal_zone in enumerate(thermal_zones, start=1):
            self._zone_map[thermal_zone.handle] = nr
            self._zone_names[thermal_zone.handle] = thermal_zone.name
            spaces = model.spaces_of(thermal_zone)

            volume = thermal_zone.volume or 0.0
            if not volume:
                volume = sum(space.volume for space in spaces)
                if volume == 0.0:
                    self.report.warning(
                        f"Failed to compute volume for Zone '{thermal_zone.name}'"
                    )

            # A zone spanning several stories ends up on the first one found.
            level_nr = None
            for space in spaces:
                if space.story is not None:
                    level_nr = self._table_lookup(
                        self._level_map, space.story, "levelMap"
                    )
                    break
            if not level_nr:
                raise ZoneLevelUnresolved(thermal_zone.name)

            self.network.zones.append(
                Zone(
                    nr=nr,
                    level=level_nr,
                    name=f"Zone_{nr}",
                    volume=volume,
                    variable_pressure=True,
                    variable_contaminants=True,
                )
            )
            self._advance()

    def _add_path(self, **kwargs) -> FlowPath:
        path = FlowPath(nr=len(self.network.paths) + 1, **kwargs)
        self.network.paths.append(path)
        return path

    def _translate_surfaces(self, model: ModelSource, elements: dict[str, int]):
        surfaces = model.surfaces()
        self._start_phase("Translating Surfaces", len(surfaces))
        wind_modifier = pressure_modifier(
            self.wind_terrain, self.network.run_control.wind_reference_height
        )
        used: set[str] = set()
        for surface in surfaces:
            self._translate_surface(model, surface, elements, wind_modifier, used)
            self._advance()

    def _translate_surface(
        self,
        model: ModelSource,
        surface: Surface,
        elements: dict[str, int],
        wind_modifier: float,
        used: set[str],
    ):
        boundary = surface.outside_boundary_condition
        if surface.handle in used or boundary == "Ground":
            return
        space = model.space(surface.space) if surface.space else None
        if space is None:
            self.report.warning(f"Unattached surface '{surface.name}'")
            return
        thermal_zone = (
            model.thermal_zone(space.thermal_zone) if space.thermal_zone else None
        )
        if thermal_zone is None:
            self.report.warning(f"Unattached space '{space.name}'")
            return
        zone_nr = self._table_lookup(self._zone_map, thermal_zone.handle, "zoneMap")
        if not zone_nr:
            return
        zone = self.network.zones[zone_nr - 1]
        level = self.network.levels[zone.level - 1]
        relative_height = surface.average_z - level.reference_height

        if boundary == "Outdoors":
            is_roof = surface.surface_type == "RoofCeiling"
            path = self._add_path(
                role="envelope",
                from_zone=zone.nr,
                to_zone=EXTERIOR,
                level=zone.level,
                relative_height=relative_height,
                multiplier=surface.gross_area,
                element=elements["roof"] if is_roof else elements["exterior"],
                wind_azimuth=float(np.degrees(surface.azimuth)),
                wind_modifier=wind_modifier,
                wind_profile=(
                    assumed_constants.RoofWindProfile
                    if is_roof
                    else assumed_constants.WallWindProfile
                ),
            )
            self._surface_map[surface.handle] = path.nr
        elif boundary == "Surface":
            adjacent, adjacent_zone = self._resolve_adjacent(model, surface)
            if adjacent_zone.handle == thermal_zone.handle:
                return
            adjacent_nr = self._zone_map.get(adjacent_zone.handle)
            if not adjacent_nr:
                raise AdjacentSurfaceUnresolved(
                    adjacent.name, "Untranslated zone for adjacent surface"
                )
            is_floor = surface.surface_type in ("Floor", "RoofCeiling")
            path = self._add_path(
                role="interior",
                from_zone=zone.nr,
                to_zone=adjacent_nr,
                level=zone.level,
                relative_height=relative_height,
                multiplier=surface.gross_area,
                element=elements["floor"] if is_floor else elements["interior"],
            )
            self._surface_map[surface.handle] = path.nr
            used.add(adjacent.handle)

    def _resolve_adjacent(
        self, model: ModelSource, surface: Surface
    ) -> tuple[Surface, ThermalZone]:
        adjacent = (
            model.surface(surface.adjacent_surface)
            if surface.adjacent_surface
            else None
        )
        if adjacent is None:
            raise AdjacentSurfaceUnresolved(
                surface.name, "Unable to find adjacent surface for surface"
            )
        space = model.space(adjacent.space) if adjacent.space else None
        if space is None:
            raise AdjacentSurfaceUnresolved(
                adjacent.name, "Unattached adjacent surface"
            )
        thermal_zone = (
            model.thermal_zone(space.thermal_zone) if space.thermal_zone else None
        )
        if thermal_zone is None:
            raise AdjacentSurfaceUnresolved(space.name, "Unattached adjacent space")
        return adjacent, thermal_zone

    def _translate_air_loops(self, model: ModelSource):
        air_loops = model.air_loops()
        self._start_phase("Translating AirLoops", len(air_loops))
        for air_loop in air_loops:
            if not air_loop.thermal_zones:
                self._advance()
                continue
            nr = len(self.network.ahs) + 1
            self._ahs_map[air_loop.handle] = nr
            name = f"AHS_{nr}"

            return_zone = Zone(
                nr=len(self.network.zones) + 1,
                level=1,
                name=f"{name}(Rec)",
                variable_pressure=False,
                variable_contaminants=True,
                system=True,
            )
            supply_zone = Zone(
                nr=return_zone.nr + 1,
                level=1,
                name=f"{name}(Sup)",
                variable_pressure=False,
                variable_contaminants=True,
                system=True,
            )
            self.network.zones.extend([return_zone, supply_zone])
            ahs = Ahs(
                nr=nr,
                name=name,
                return_zone=return_zone.nr,
                supply_zone=supply_zone.nr,
            )

            for zone_handle in air_loop.thermal_zones:
                zone_nr = self._table_lookup(self._zone_map, zone_handle, "zoneMap")
                if not zone_nr:
                    continue
                zone_name = self._zone_names[zone_handle]
                supply = self._add_path(
                    role="supply",
                    from_zone=supply_zone.nr,
                    to_zone=zone_nr,
                    level=1,
                    ahs=nr,
                )
                self._path_map[supply_path_name(zone_name)] = supply.nr
                return_ = self._add_path(
                    role="return",
                    from_zone=zone_nr,
                    to_zone=return_zone.nr,
                    level=1,
                    ahs=nr,
                )
                self._path_map[return_path_name(zone_name)] = return_.nr

            self.network.ahs.append(ahs)
            self._advance()

    def _connect_air_handling_systems(self):
        self._start_phase("Connecting AHS to zones", len(self.network.ahs))
        for ahs in self.network.ahs:
            recirculation = self._add_path(
                role="recirculation",
                from_zone=ahs.return_zone,
                to_zone=ahs.supply_zone,
                level=1,
            )
            self._path_map[f"{ahs.name} recirculation"] = recirculation.nr
            outside_air = self._add_path(
                role="outside_air",
                from_zone=EXTERIOR,
                to_zone=ahs.supply_zone,
                level=1,
            )
            self._path_map[f"{ahs.name} oa"] = outside_air.nr
            exhaust = self._add_path(
                role="exhaust",
                from_zone=ahs.return_zone,
                to_zone=EXTERIOR,
                level=1,
            )
            self._path_map[f"{ahs.name} exhaust"] = exhaust.nr

            ahs.recirculation_path = recirculation.nr
            ahs.outside_air_path = outside_air.nr
            ahs.exhaust_path = exhaust.nr
            self._advance()

    def to_string(self) -> str | None:
        """Render the network of the last valid translation, or None."""
        if self.valid():
            return self.network.to_prj()
        return None

    def to_prj(self, path: Path | str) -> bool:
        """Write the network of the last valid translation to a project file.

        Args:
            path (Path | str): The destination file.

        Returns:
            success (bool): False if there is nothing valid to write or the write failed.
        """
        output = self.to_string()
        if output is None:
            return False
        try:
            with open(path, "w") as f:
                f.write(output)
        except OSError as e:
            self.report.error(f"Unable to write project file {path}: {e}")
            return False
        return True

    def translate_to_string(self, model: ModelSource, **kwargs) -> str | None:
        """Translate a model and render the result, or return None on failure.

        Args:
            model (ModelSource): The building model.
            **kwargs: Passed to `translate`.

        Returns:
            text (str | None): The project file text.
        """
        if self.translate(model, **kwargs):
            return self.to_string()
        return None

    @classmethod
    def model_to_prj(cls, model: ModelSource, path: Path | str, **kwargs) -> bool:
        """Translate a model with a new assembler and write the project file.

        Args:
            model (ModelSource): The building model.
            path (Path | str): The destination file.
            **kwargs: Passed to `translate`.

        Returns:
            success (bool): Whether a valid file was written.
        """
        assembler = cls()
        if not assembler.translate(model, **kwargs):
            return False
        return assembler.to_prj(path)
