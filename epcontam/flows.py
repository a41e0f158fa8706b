"""Flow rates for the supply and return paths of air handling systems."""

import re
from collections.abc import Mapping
from logging import getLogger

import numpy as np

from epcontam.constants import assumed_constants, physical_constants
from epcontam.prj import NetworkData
from epcontam.report import TranslationReport
from epcontam.source import ModelSource, ResultsSource

logger = getLogger(__name__)

NODE_FLOW_VARIABLE = "System Node MassFlowRate"
NODE_FLOW_FREQUENCY = "Hourly"


def supply_path_name(zone_name: str) -> str:
    """Name under which a zone's supply path is registered."""
    return f"{zone_name} supply"


def return_path_name(zone_name: str) -> str:
    """Name under which a zone's return path is registered."""
    return f"{zone_name} return"


def normalize_node_name(name: str) -> str:
    """Convert a node name to the key EnergyPlus reports it under (upper case)."""
    return re.sub(r"[a-z]+", lambda m: m.group(0).upper(), name)


class FlowEstimator:
    """Assigns flow rates to the supply and return paths registered by name.

    With simulation results, the node mass flow rates of every zone are collected
    into `measured_flows`; they are not yet written to the paths.  Without
    results, the supply flow of each zone is approximated from its floor area
    (1 scfm/ft2) and the return flow is a fixed fraction of it.
    """

    def __init__(
        self,
        network: NetworkData,
        path_map: Mapping[str, int],
        report: TranslationReport,
    ):
        """Create the estimator.

        Args:
            network (NetworkData): The network whose paths are updated.
            path_map (Mapping[str, int]): Named paths, e.g. "<zone name> supply" -> path index.
            report (TranslationReport): Where anomalies are recorded.
        """
        self.network = network
        self.path_map = path_map
        self.report = report
        self.measured_flows: dict[str, np.ndarray] = {}

    def estimate(self, model: ModelSource):
        """Assign flow rates using the best information the model offers.

        Args:
            model (ModelSource): The source building model.
        """
        results = model.results()
        if results is not None:
            self.collect_measured_flows(model, results)
        else:
            self.report.warning(
                "Simulation results not available, using 1 scfm/ft^2 to set supply flows"
            )
            self.approximate_flows(model)

    def collect_measured_flows(self, model: ModelSource, results: ResultsSource):
        """Read the hourly node mass flow rates of each zone's return and supply nodes.

        Args:
            model (ModelSource): The source building model.
            results (ResultsSource): The simulation results.
        """
        env_periods = results.available_env_periods()
        if not env_periods:
            self.report.warning("No environment periods found in simulation results")
            return
        # there should only ever be one
        env_period = env_periods[0]
        for zone in model.thermal_zones():
            # TODO: include outside air from zone equipment (PTAC, PTHP, ...) and exhaust fans
            self.report.warning("Zone equipment not yet accounted for.")
            for node in (zone.return_air_node, zone.supply_air_node):
                if not node:
                    continue
                key = normalize_node_name(node)
                series = results.time_series(
                    env_period, NODE_FLOW_FREQUENCY, NODE_FLOW_VARIABLE, key
                )
                if series is None:
                    self.report.warning(
                        f"No '{NODE_FLOW_VARIABLE}' results for node '{key}'"
                    )
                    continue
                self.measured_flows[key] = series.to_numpy(dtype=float)
        logger.info(
            f"Collected measured flows for {len(self.measured_flows)} nodes; "
            "these are not applied to system paths"
        )

    def approximate_flows(self, model: ModelSource):
        """Set supply and return flows from zone floor areas.

        Zones without a registered supply or return path are skipped silently.

        Args:
            model (ModelSource): The source building model.
        """
        for zone in model.thermal_zones():
            area = sum(space.floor_area for space in model.spaces_of(zone))
            if area == 0.0:
                self.report.warning(
                    f"Failed to compute floor area for Zone '{zone.name}'"
                )
                continue
            flow_rate = (
                area
                * assumed_constants.SupplyFlowPerFloorArea_m3_per_s_m2
                * physical_constants.AirDensity_kg_per_m3
            )
            supply_nr = self.path_map.get(supply_path_name(zone.name), 0)
            if supply_nr:
                self.network.paths[supply_nr - 1].flow_rate = flow_rate
            return_nr = self.path_map.get(return_path_name(zone.name), 0)
            if return_nr:
                self.network.paths[return_nr - 1].flow_rate = (
                    assumed_constants.ReturnFlowFraction * flow_rate
                )
