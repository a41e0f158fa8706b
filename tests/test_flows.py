"""Tests for the air handling system translation and the flows module."""

import pandas as pd
import pytest

from epcontam.flows import normalize_node_name
from epcontam.prj import EXTERIOR
from epcontam.source import BuildingModel, Space, ThermalZone
from epcontam.translator import NetworkAssembler

AIR_DENSITY = 1.2041
SUPPLY_PER_AREA = 0.00508


class FakeResults:
    """Simulation results holding one node flow series."""

    def __init__(self, series: dict[str, pd.Series], env_periods: list[str] | None = None):
        self.series = series
        self.env_periods = ["RUN PERIOD 1"] if env_periods is None else env_periods
        self.calls: list[tuple[str, str, str, str]] = []

    def available_env_periods(self) -> list[str]:
        return self.env_periods

    def time_series(
        self, env_period: str, frequency: str, variable_name: str, key_value: str
    ) -> pd.Series | None:
        self.calls.append((env_period, frequency, variable_name, key_value))
        return self.series.get(key_value)


def test_ahs_topology(hvac_model: BuildingModel):
    """Test the zones, paths and closure of the system built for one air loop."""
    assembler = NetworkAssembler()
    assert assembler.translate(hvac_model)
    network = assembler.network

    assert [z.name for z in network.zones] == [
        "Zone_1",
        "Zone_2",
        "AHS_1(Rec)",
        "AHS_1(Sup)",
    ]
    return_zone, supply_zone = network.zones[2:]
    assert return_zone.system and supply_zone.system
    assert not return_zone.variable_pressure
    assert return_zone.variable_contaminants
    assert return_zone.level == 1

    # envelope paths + supply and return per served zone + three closure paths
    assert len(network.paths) == 2 + 2 * 2 + 3
    assert [(p.role, p.from_zone, p.to_zone) for p in network.paths[2:]] == [
        ("supply", 4, 1),
        ("return", 1, 3),
        ("supply", 4, 2),
        ("return", 2, 3),
        ("recirculation", 3, 4),
        ("outside_air", EXTERIOR, 4),
        ("exhaust", 3, EXTERIOR),
    ]
    assert all(p.ahs == 1 for p in network.paths[2:6])
    assert all(p.level == 1 for p in network.paths[2:])

    assert len(network.ahs) == 1
    ahs = network.ahs[0]
    assert ahs.name == "AHS_1"
    assert (ahs.return_zone, ahs.supply_zone) == (3, 4)
    closure = (ahs.recirculation_path, ahs.outside_air_path, ahs.exhaust_path)
    assert closure == (7, 8, 9)
    assert len(set(closure)) == 3
    assert assembler.ahs_map == {"L1": 1}
    assert assembler.path_map["Zone Two return"] == 6
    assert assembler.path_map["AHS_1 oa"] == 8


def test_approximated_flows(hvac_model: BuildingModel):
    """Test that supply flows follow floor area and returns are a fraction of them."""
    assembler = NetworkAssembler()
    assert assembler.translate(hvac_model)
    paths = assembler.network.paths
    expected = 100.0 * SUPPLY_PER_AREA * AIR_DENSITY
    assert paths[2].flow_rate == pytest.approx(expected)
    assert paths[3].flow_rate == pytest.approx(0.9 * expected)
    assert paths[4].flow_rate == pytest.approx(expected)
    assert paths[6].flow_rate is None
    assert [m.message for m in assembler.warnings()] == [
        "Simulation results not available, using 1 scfm/ft^2 to set supply flows"
    ]
    text = assembler.to_string()
    assert text is not None
    assert f" {expected:g}\n" in text


def test_zero_floor_area_is_reported(hvac_model: BuildingModel):
    """Test that a zone without floor area keeps its flows unset."""
    kwargs = hvac_model.model_dump(exclude={"Results"})
    kwargs["Spaces"][1]["floor_area"] = 0.0
    model = BuildingModel.model_validate(kwargs)
    assembler = NetworkAssembler()
    assert assembler.translate(model)
    assert assembler.network.paths[4].flow_rate is None
    assert assembler.network.paths[5].flow_rate is None
    assert "Failed to compute floor area for Zone 'Zone Two'" in [
        m.message for m in assembler.warnings()
    ]


def test_hvac_can_be_skipped(hvac_model: BuildingModel):
    """Test that air loops are ignored when HVAC is excluded."""
    assembler = NetworkAssembler()
    assert assembler.translate(hvac_model, include_hvac=False)
    assert len(assembler.network.zones) == 2
    assert len(assembler.network.paths) == 2
    assert assembler.network.ahs == []


def test_measured_flows_are_collected(two_story_parts: dict, hvac_model: BuildingModel):
    """Test that node flows are read from the results but not written to the paths."""
    series = pd.Series([0.1, 0.2, 0.3])
    results = FakeResults({"ZONE ONE RETURN": series})
    two_story_parts["ThermalZones"] = [
        ThermalZone(
            handle="Z1",
            name="Zone One",
            supply_air_node="Zone One Inlet",
            return_air_node="Zone One Return",
        ),
        ThermalZone(handle="Z2", name="Zone Two"),
    ]
    two_story_parts["AirLoops"] = hvac_model.AirLoops
    model = BuildingModel(**two_story_parts, Results=results)

    assembler = NetworkAssembler()
    assert assembler.translate(model)
    assert list(assembler.measured_flows) == ["ZONE ONE RETURN"]
    assert assembler.measured_flows["ZONE ONE RETURN"].tolist() == [0.1, 0.2, 0.3]
    assert all(p.flow_rate is None for p in assembler.network.paths)

    assert results.calls == [
        ("RUN PERIOD 1", "Hourly", "System Node MassFlowRate", "ZONE ONE RETURN"),
        ("RUN PERIOD 1", "Hourly", "System Node MassFlowRate", "ZONE ONE INLET"),
    ]
    messages = [m.message for m in assembler.warnings()]
    assert messages.count("Zone equipment not yet accounted for.") == 2
    assert "No 'System Node MassFlowRate' results for node 'ZONE ONE INLET'" in messages


def test_results_without_env_periods(hvac_model: BuildingModel):
    """Test that empty results are reported and nothing is collected."""
    kwargs = hvac_model.model_dump(exclude={"Results"})
    model = BuildingModel.model_validate({**kwargs, "Results": FakeResults({}, [])})
    assembler = NetworkAssembler()
    assert assembler.translate(model)
    assert assembler.measured_flows == {}
    assert [m.message for m in assembler.warnings()] == [
        "No environment periods found in simulation results"
    ]


def test_unmapped_served_zone_is_skipped(two_story_parts: dict, hvac_model: BuildingModel):
    """Test that an air loop listing an unknown zone only connects the known ones."""
    loop = hvac_model.AirLoops[0].model_copy(update={"thermal_zones": ["Z1", "nope"]})
    two_story_parts["AirLoops"] = [loop]
    assembler = NetworkAssembler()
    assert assembler.translate(BuildingModel(**two_story_parts))
    assert len(assembler.network.paths) == 2 + 2 + 3
    assert "Unable to look up 'nope' in zoneMap" in [
        m.message for m in assembler.warnings()
    ]


def test_normalize_node_name():
    """Test that node names are upper-cased the way EnergyPlus reports them."""
    assert normalize_node_name("Zone 1 Inlet-Node_a") == "ZONE 1 INLET-NODE_A"


def test_spaces_are_summed_for_floor_area(two_story_parts: dict, hvac_model: BuildingModel):
    """Test that a zone made of two spaces uses their combined floor area."""
    two_story_parts["Spaces"].append(
        Space(handle="SP3", name="Space 3", story="S1", thermal_zone="Z1", floor_area=50.0)
    )
    two_story_parts["AirLoops"] = hvac_model.AirLoops
    assembler = NetworkAssembler()
    assert assembler.translate(BuildingModel(**two_story_parts))
    expected = 150.0 * SUPPLY_PER_AREA * AIR_DENSITY
    assert assembler.network.paths[2].flow_rate == pytest.approx(expected)
